# src/cfo_workspace/core/tables.py

from __future__ import annotations

import logging
from collections.abc import Iterable

from .models import TableCollection, TableType

logger = logging.getLogger(__name__)


def dedupe_by_id(tables: Iterable[TableCollection]) -> list[TableCollection]:
    seen: set[str] = set()
    out: list[TableCollection] = []
    for t in tables:
        if t.id in seen:
            continue
        seen.add(t.id)
        out.append(t)
    return out


def bootstrap_tables(
    loaded: Iterable[TableCollection],
    default_backlog: TableCollection | None,
) -> list[TableCollection]:
    """
    Normalize the stored table list.

    - duplicate ids collapse to their first occurrence
    - exactly one backlog table survives: the system one if flagged, else the first
    - with no backlog table at all, `default_backlog` is appended
    """
    tables = dedupe_by_id(loaded)
    backlogs = [t for t in tables if t.type == TableType.BACKLOG]

    if len(backlogs) > 1:
        keep = next((t for t in backlogs if t.is_system), backlogs[0])
        tables = [t for t in tables if t.type != TableType.BACKLOG or t is keep]
        logger.info("Collapsed %d backlog tables into %s", len(backlogs), keep.id)
    elif not backlogs and default_backlog is not None:
        tables.append(default_backlog)
        logger.info("No backlog table stored; added default %s", default_backlog.id)

    return tables
