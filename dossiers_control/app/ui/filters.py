from __future__ import annotations

import threading
from collections.abc import Callable
from datetime import date
from typing import Any, Protocol

from dossiers_control.app.table_state import ColumnHandle, GlobalFilterHandle

DEFAULT_DEBOUNCE_MS = 500
NO_OPTIONS_MESSAGE = "Aucune option disponible"


class Scheduler(Protocol):
    def schedule(self, delay_seconds: float, callback: Callable[[], None]) -> Any: ...

    def cancel(self, handle: Any) -> None: ...


class ThreadingScheduler:
    def schedule(self, delay_seconds: float, callback: Callable[[], None]) -> threading.Timer:
        timer = threading.Timer(delay_seconds, callback)
        timer.daemon = True
        timer.start()
        return timer

    def cancel(self, handle: threading.Timer) -> None:
        handle.cancel()


class Debouncer:
    """Runs ``callback`` once ``wait_ms`` after the last :meth:`trigger` call."""

    def __init__(self, callback: Callable[[], None], wait_ms: int = DEFAULT_DEBOUNCE_MS, scheduler: Scheduler | None = None) -> None:
        self._callback = callback
        self._wait_ms = max(0, wait_ms)
        self._scheduler = scheduler or ThreadingScheduler()
        self._pending: Any = None

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def trigger(self) -> None:
        self.cancel()
        if self._wait_ms == 0:
            self._callback()
            return
        self._pending = self._scheduler.schedule(self._wait_ms / 1000, self._fire)

    def cancel(self) -> None:
        if self._pending is not None:
            self._scheduler.cancel(self._pending)
            self._pending = None

    def _fire(self) -> None:
        self._pending = None
        self._callback()


class DebouncedTextFilter:
    def __init__(
        self,
        column: ColumnHandle | GlobalFilterHandle,
        placeholder: str = "Filtrer...",
        debounce_ms: int = DEFAULT_DEBOUNCE_MS,
        scheduler: Scheduler | None = None,
    ) -> None:
        self.column = column
        self.placeholder = placeholder
        self.value = _as_text(column.get_filter_value())
        self._debouncer = Debouncer(self._commit, wait_ms=debounce_ms, scheduler=scheduler)

    def sync(self) -> None:
        """Mirror the column value when it changed from outside (e.g. clear all filters)."""
        external = _as_text(self.column.get_filter_value())
        if not self._debouncer.pending and external != self.value:
            self.value = external

    def type_text(self, text: str) -> None:
        self.value = text
        self._debouncer.trigger()

    def flush(self) -> None:
        if self._debouncer.pending:
            self._debouncer.cancel()
            self._commit()

    def cancel(self) -> None:
        self._debouncer.cancel()

    def _commit(self) -> None:
        if self.value == _as_text(self.column.get_filter_value()):
            return
        self.column.set_filter_value(self.value or None)


class MultiSelectFilter:
    def __init__(self, column: ColumnHandle, options: list[str], placeholder: str = "Tous") -> None:
        self.column = column
        self.options = list(options)
        self.placeholder = placeholder
        self.is_open = False

    @property
    def selected(self) -> list[str]:
        value = self.column.get_filter_value()
        if isinstance(value, list):
            return list(value)
        return [value] if isinstance(value, str) and value else []

    @property
    def empty_message(self) -> str | None:
        return NO_OPTIONS_MESSAGE if not self.options else None

    @property
    def label(self) -> str:
        count = len(self.selected)
        if count == 0 or count == len(self.options):
            return self.placeholder
        return f"{count} sélectionné{'s' if count > 1 else ''}"

    def toggle_open(self) -> None:
        self.is_open = not self.is_open

    def outside_click(self) -> None:
        self.is_open = False

    def is_selected(self, option: str) -> bool:
        return option in self.selected

    def toggle_option(self, option: str) -> None:
        current = self.selected
        if option in current:
            current.remove(option)
        else:
            current.append(option)
        self.column.set_filter_value(current or None)

    def select_all(self) -> None:
        self.column.set_filter_value(list(self.options) or None)

    def clear(self) -> None:
        self.column.set_filter_value(None)


class DateRangeFilter:
    def __init__(self, column: ColumnHandle) -> None:
        self.column = column
        self.is_open = False
        self.from_date = ""
        self.to_date = ""
        self.sync()

    def sync(self) -> None:
        if self.is_open:
            return
        current = self.column.get_filter_value()
        bounds = current if isinstance(current, dict) else {}
        self.from_date = bounds.get("from", "")
        self.to_date = bounds.get("to", "")

    def toggle_open(self) -> None:
        self.is_open = not self.is_open

    def outside_click(self) -> None:
        self.is_open = False

    def apply(self) -> None:
        value = {}
        if self.from_date:
            value["from"] = self.from_date
        if self.to_date:
            value["to"] = self.to_date
        self.column.set_filter_value(value or None)
        self.is_open = False

    def clear(self) -> None:
        self.from_date = ""
        self.to_date = ""
        self.column.set_filter_value(None)
        self.is_open = False

    @property
    def display_text(self) -> str:
        current = self.column.get_filter_value()
        if not isinstance(current, dict):
            return "Toutes dates"
        start, end = current.get("from"), current.get("to")
        if start and end:
            return f"{_day_month(start)} - {_day_month(end)}"
        if start:
            return f"Depuis {_day_month(start)}"
        if end:
            return f"Jusqu'à {_day_month(end)}"
        return "Toutes dates"


def _as_text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _day_month(value: str) -> str:
    try:
        return date.fromisoformat(value[:10]).strftime("%d/%m")
    except ValueError:
        return value
