# src/cfo_workspace/notify/messages.py

from __future__ import annotations

from html import escape


def format_new_task_message(
    title: str,
    priority: str,
    end_date: str,
    assignee_name: str,
    project_name: str | None = None,
) -> str:
    lines = [
        "🆕 <b>Новая задача</b>",
        f"<b>{escape(title)}</b>",
        f"Исполнитель: {escape(assignee_name)}",
        f"Приоритет: {escape(priority)}",
        f"Срок: {escape(end_date)}",
    ]
    if project_name:
        lines.append(f"Проект: {escape(project_name)}")
    return "\n".join(lines)


def format_status_change_message(title: str, old_status: str, new_status: str, user_name: str) -> str:
    return (
        "🔄 <b>Статус изменён</b>\n"
        f"<b>{escape(title)}</b>\n"
        f"{escape(old_status)} → {escape(new_status)}\n"
        f"Изменил: {escape(user_name)}"
    )


def format_new_comment_message(task_title: str, text: str, user_name: str) -> str:
    return (
        "💬 <b>Новый комментарий</b>\n"
        f"<b>{escape(task_title)}</b>\n"
        f"{escape(user_name)}: {escape(text)}"
    )


def format_new_doc_message(doc_title: str, user_name: str) -> str:
    return f"📄 <b>Новый документ</b>\n<b>{escape(doc_title)}</b>\nДобавил: {escape(user_name)}"
