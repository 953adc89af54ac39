from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from typing import Any

from dossiers_client_sdk.params import FilterValue, PaginationState, SortItem, is_empty_filter

Listener = Callable[["TableSnapshot"], None]


@dataclass(frozen=True)
class TableSnapshot:
    pagination: PaginationState
    sorting: tuple[SortItem, ...] = ()
    column_filters: Mapping[str, FilterValue] = field(default_factory=dict)
    global_filter: str = ""

    @property
    def has_active_filters(self) -> bool:
        return bool(self.column_filters) or bool(self.global_filter.strip())


class ColumnHandle:
    """What a filter widget sees of its column: read and write one filter value."""

    def __init__(self, state: "TableState", column_id: str) -> None:
        self._state = state
        self.id = column_id

    def get_filter_value(self) -> FilterValue | None:
        return self._state.column_filters.get(self.id)

    def set_filter_value(self, value: FilterValue | None) -> None:
        filters = dict(self._state.column_filters)
        if is_empty_filter(value):
            if self.id not in filters:
                return
            filters.pop(self.id)
        else:
            filters[self.id] = value
        self._state.set_column_filters(filters)

    def is_filtered(self) -> bool:
        return self.id in self._state.column_filters


class GlobalFilterHandle:
    """Same surface as :class:`ColumnHandle`, bound to the global search text."""

    id = "search"

    def __init__(self, state: "TableState") -> None:
        self._state = state

    def get_filter_value(self) -> str | None:
        return self._state.global_filter or None

    def set_filter_value(self, value: FilterValue | None) -> None:
        text = value if isinstance(value, str) else ""
        if text == self._state.global_filter:
            return
        self._state.set_global_filter(text)

    def is_filtered(self) -> bool:
        return bool(self._state.global_filter.strip())


class TableState:
    """Pagination, sorting and filter state of one table instance.

    Setters replace the stored value and notify subscribers once per call.
    The page index goes back to 0 whenever filters or the page size change.
    """

    def __init__(
        self,
        *,
        page_size: int = 50,
        sorting: Sequence[SortItem] = (),
        column_filters: Mapping[str, FilterValue] | None = None,
        global_filter: str = "",
    ) -> None:
        if page_size < 1:
            raise ValueError("page_size must be >= 1")
        self._snapshot = TableSnapshot(
            pagination=PaginationState(page_index=0, page_size=page_size),
            sorting=tuple(sorting),
            column_filters=_clean_filters(column_filters or {}),
            global_filter=global_filter,
        )
        self._listeners: list[Listener] = []

    @property
    def snapshot(self) -> TableSnapshot:
        return self._snapshot

    @property
    def pagination(self) -> PaginationState:
        return self._snapshot.pagination

    @property
    def sorting(self) -> tuple[SortItem, ...]:
        return self._snapshot.sorting

    @property
    def column_filters(self) -> Mapping[str, FilterValue]:
        return self._snapshot.column_filters

    @property
    def global_filter(self) -> str:
        return self._snapshot.global_filter

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def column(self, column_id: str) -> ColumnHandle:
        return ColumnHandle(self, column_id)

    def set_pagination(self, next_value: PaginationState | Callable[[PaginationState], PaginationState]) -> None:
        current = self._snapshot.pagination
        pagination = next_value(current) if callable(next_value) else next_value
        if pagination.page_size < 1:
            raise ValueError("page_size must be >= 1")
        page_index = max(0, pagination.page_index)
        if pagination.page_size != current.page_size:
            page_index = 0
        self._commit(replace(self._snapshot, pagination=PaginationState(page_index, pagination.page_size)))

    def set_sorting(self, next_value: Sequence[SortItem] | Callable[[tuple[SortItem, ...]], Sequence[SortItem]]) -> None:
        sorting = next_value(self._snapshot.sorting) if callable(next_value) else next_value
        self._commit(replace(self._snapshot, sorting=tuple(sorting)))

    def set_column_filters(self, next_value: Mapping[str, Any] | Callable[[Mapping[str, FilterValue]], Mapping[str, Any]]) -> None:
        filters = next_value(self._snapshot.column_filters) if callable(next_value) else next_value
        self._commit(
            replace(
                self._snapshot,
                column_filters=_clean_filters(filters),
                pagination=replace(self._snapshot.pagination, page_index=0),
            )
        )

    def set_global_filter(self, value: str) -> None:
        self._commit(
            replace(
                self._snapshot,
                global_filter=value or "",
                pagination=replace(self._snapshot.pagination, page_index=0),
            )
        )

    def clear_all_filters(self) -> None:
        self._commit(
            replace(
                self._snapshot,
                column_filters={},
                global_filter="",
                pagination=replace(self._snapshot.pagination, page_index=0),
            )
        )

    def _commit(self, snapshot: TableSnapshot) -> None:
        self._snapshot = snapshot
        for listener in list(self._listeners):
            listener(snapshot)


def _clean_filters(filters: Mapping[str, Any]) -> dict[str, FilterValue]:
    cleaned: dict[str, FilterValue] = {}
    for column_id, value in filters.items():
        if is_empty_filter(value):
            continue
        if isinstance(value, dict):
            cleaned[column_id] = {bound: value[bound] for bound in ("from", "to") if value.get(bound)}
        elif isinstance(value, (list, tuple)):
            cleaned[column_id] = [item for item in value if not is_empty_filter(item)]
        else:
            cleaned[column_id] = value
    return cleaned
