from __future__ import annotations

import json
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

from dossiers_control.app.table_state import TableSnapshot, TableState

DEFAULT_CONTEXT_FILE = Path.home() / ".dossiers_tables_context.json"


def _context_path() -> Path:
    configured = os.getenv("DOSSIERS_TABLE_CONTEXT_PATH", "").strip()
    return Path(configured) if configured else DEFAULT_CONTEXT_FILE


def load_context() -> dict[str, Any]:
    path = _context_path()
    if not path.exists():
        return {}
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
        return payload if isinstance(payload, dict) else {}
    except (ValueError, OSError):
        return {}


def load_table_filters(table_key: str) -> dict[str, Any]:
    filters = load_context().get("filters_by_table", {})
    if not isinstance(filters, dict):
        return {}
    saved = filters.get(table_key)
    return saved if isinstance(saved, dict) else {}


def save_table_filters(table_key: str, column_filters: dict[str, Any]) -> None:
    payload = load_context()
    filters = payload.get("filters_by_table")
    if not isinstance(filters, dict):
        filters = {}
    if column_filters:
        filters[table_key] = column_filters
    else:
        filters.pop(table_key, None)
    payload["filters_by_table"] = filters
    path = _context_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")


def clear_context() -> None:
    path = _context_path()
    if path.exists():
        path.unlink()


def bind_filter_persistence(state: TableState, table_key: str) -> Callable[[], None]:
    """Restore the saved column filters into ``state`` and save them again on every change."""
    saved = load_table_filters(table_key)
    if saved:
        state.set_column_filters(saved)

    last_saved = dict(state.column_filters)

    def _on_change(snapshot: TableSnapshot) -> None:
        nonlocal last_saved
        current = dict(snapshot.column_filters)
        if current == last_saved:
            return
        save_table_filters(table_key, current)
        last_saved = current

    return state.subscribe(_on_change)
