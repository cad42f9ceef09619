# src/cfo_workspace/core/registry.py

from __future__ import annotations

"""
Status / priority lookup by id.

Tasks reference options by id. Older stored data referenced them by display name,
so `resolve` accepts either and always returns the id when one matches.
"""

import dataclasses
import logging
from collections.abc import Iterable, Sequence
from typing import Protocol

from .models import Task

logger = logging.getLogger(__name__)


class _Option(Protocol):
    id: str
    name: str


class OptionRegistry:
    def __init__(self, options: Iterable[_Option]) -> None:
        self._by_id: dict[str, _Option] = {}
        self._by_name: dict[str, _Option] = {}
        self._order: list[str] = []
        for opt in options:
            if opt.id in self._by_id:
                continue
            self._by_id[opt.id] = opt
            self._by_name.setdefault(opt.name, opt)
            self._order.append(opt.id)

    def ids(self) -> list[str]:
        return list(self._order)

    def first_id(self, default: str) -> str:
        return self._order[0] if self._order else default

    def first_id_except(self, excluded: str, default: str) -> str:
        for opt_id in self._order:
            if opt_id != excluded:
                return opt_id
        return default

    def resolve(self, ref: str | None) -> str | None:
        """Map an id or a legacy display name to an id; unknown refs pass through."""
        if not ref:
            return ref
        if ref in self._by_id:
            return ref
        opt = self._by_name.get(ref)
        if opt is not None:
            return opt.id
        return ref

    def name_of(self, ref: str | None) -> str:
        if not ref:
            return ""
        opt = self._by_id.get(ref) or self._by_name.get(ref)
        return opt.name if opt is not None else ref


def normalize_task_refs(
    tasks: Sequence[Task],
    statuses: OptionRegistry,
    priorities: OptionRegistry,
) -> list[Task]:
    """Rewrite name-based status/priority references to ids (returns new objects only where changed)."""
    out: list[Task] = []
    migrated = 0
    for t in tasks:
        status = statuses.resolve(t.status) or ""
        priority = priorities.resolve(t.priority) or ""
        if status != t.status or priority != t.priority:
            t = dataclasses.replace(t, status=status, priority=priority)
            migrated += 1
        out.append(t)
    if migrated:
        logger.debug("Resolved legacy status/priority names on %d tasks", migrated)
    return out
