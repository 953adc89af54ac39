from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from dossiers_client_sdk.params import SortItem

from dossiers_control.app.config import DEFAULT_PAGE_SIZE_OPTIONS
from dossiers_control.app.infrastructure.errors.error_mapper import ErrorMapper
from dossiers_control.app.server_table import ServerTable
from dossiers_control.app.table_state import ColumnHandle, GlobalFilterHandle
from dossiers_control.app.ui import pagination
from dossiers_control.app.ui.filters import DEFAULT_DEBOUNCE_MS, DebouncedTextFilter, Scheduler
from dossiers_control.app.ui.pagination import PaginationFooter

EMPTY_VALUE = "—"
EMPTY_MESSAGE = "Aucun résultat trouvé"
FILTER_HINT = "Essayez de modifier vos critères de filtrage"
CLEAR_FILTERS_LABEL = "Effacer tous les filtres"
LOADING_MESSAGE = "Chargement..."
SEARCH_PLACEHOLDER = "Recherche globale..."

Row = dict[str, Any]
FilterStrategy = Callable[[ColumnHandle], Any]
RowCallback = Callable[[Row], None]


@dataclass
class ColumnDef:
    id: str
    header: str
    accessor: str | Callable[[Row], Any] | None = None
    cell: Callable[[Row], str] | None = None
    enable_sorting: bool = True
    enable_filter: bool = False
    render_filter: FilterStrategy | None = None
    sort_comparator: Callable[[Row], Any] | None = None
    visible: bool = True

    def value(self, row: Row) -> Any:
        if callable(self.accessor):
            return self.accessor(row)
        return row.get(self.accessor or self.id)

    def render(self, row: Row) -> str:
        if self.cell is not None:
            return self.cell(row)
        return normalize_value(self.value(row))


@dataclass(frozen=True)
class HeaderCell:
    column_id: str
    label: str
    sortable: bool
    sort_direction: str | None
    filter_active: bool
    filter_widget: Any = None

    @property
    def sort_indicator(self) -> str:
        if self.sort_direction == "asc":
            return "▲"
        if self.sort_direction == "desc":
            return "▼"
        return ""


@dataclass(frozen=True)
class BodyRow:
    source: Row
    cells: tuple[str, ...]


@dataclass(frozen=True)
class TableView:
    headers: tuple[HeaderCell, ...]
    rows: tuple[BodyRow, ...]
    footer: PaginationFooter
    result_count: str
    is_loading: bool = False
    loading_message: str | None = None
    empty_message: str | None = None
    empty_hint: str | None = None
    error_message: str | None = None
    clear_filters_label: str | None = None
    hidden_columns: tuple[str, ...] = field(default_factory=tuple)


def normalize_value(value: Any) -> str:
    if value is None:
        return EMPTY_VALUE
    if isinstance(value, str):
        clean = value.strip()
        return clean or EMPTY_VALUE
    if isinstance(value, bool):
        return "Oui" if value else "Non"
    if isinstance(value, datetime):
        return value.strftime("%d/%m/%Y %H:%M")
    if isinstance(value, date):
        return value.strftime("%d/%m/%Y")
    if isinstance(value, (list, tuple)):
        return ", ".join(normalize_value(item) for item in value) or EMPTY_VALUE
    return str(value)


def next_sort(sorting: Sequence[SortItem], column_id: str) -> tuple[SortItem, ...]:
    """Single-column cycle: none -> asc -> desc -> none."""
    current = sorting[0] if sorting else None
    if current is None or current.id != column_id:
        return (SortItem(column_id, desc=False),)
    if not current.desc:
        return (SortItem(column_id, desc=True),)
    return ()


class TableRenderer:
    """Builds the :class:`TableView` of a :class:`ServerTable` and routes user actions to its state."""

    def __init__(
        self,
        server_table: ServerTable,
        columns: Sequence[ColumnDef],
        *,
        page_size_options: Sequence[int] = DEFAULT_PAGE_SIZE_OPTIONS,
        empty_message: str = EMPTY_MESSAGE,
        on_row_click: RowCallback | None = None,
        on_row_context_menu: RowCallback | None = None,
        debounce_ms: int = DEFAULT_DEBOUNCE_MS,
        scheduler: Scheduler | None = None,
    ) -> None:
        self.table = server_table
        self.columns = list(columns)
        self.page_size_options = tuple(page_size_options)
        self.empty_message = empty_message
        self._on_row_click = on_row_click
        self._on_row_context_menu = on_row_context_menu
        self._widgets: dict[str, Any] = {}
        self._rows: tuple[BodyRow, ...] = ()
        self.global_search = DebouncedTextFilter(
            GlobalFilterHandle(server_table.state),
            placeholder=SEARCH_PLACEHOLDER,
            debounce_ms=debounce_ms,
            scheduler=scheduler,
        )

    @property
    def state(self):
        return self.table.state

    @property
    def visible_columns(self) -> list[ColumnDef]:
        return [column for column in self.columns if column.visible]

    def column_def(self, column_id: str) -> ColumnDef:
        for column in self.columns:
            if column.id == column_id:
                return column
        raise KeyError(column_id)

    def filter_widget(self, column_id: str) -> Any:
        column = self.column_def(column_id)
        if not column.enable_filter or column.render_filter is None:
            return None
        widget = self._widgets.get(column_id)
        if widget is None:
            widget = column.render_filter(self.state.column(column_id))
            self._widgets[column_id] = widget
        return widget

    def render(self) -> TableView:
        status = self.table.status
        snapshot = self.state.snapshot
        self.global_search.sync()

        headers = tuple(self._header(column, snapshot.sorting) for column in self.visible_columns)
        self._rows = tuple(
            BodyRow(source=row, cells=tuple(column.render(row) for column in self.visible_columns))
            for row in self._ordered_rows(status.result.data, snapshot.sorting)
        )
        footer = pagination.build_footer(
            snapshot.pagination,
            status.result.page_count,
            status.result.total,
            self.page_size_options,
        )

        error_message = ErrorMapper.to_display_message(status.error) if status.error is not None else None
        is_empty = not self._rows and status.has_data and error_message is None and not status.is_loading
        filters_active = snapshot.has_active_filters
        return TableView(
            headers=headers,
            rows=self._rows,
            footer=footer,
            result_count=pagination.result_label(status.result.total),
            is_loading=status.is_loading,
            loading_message=LOADING_MESSAGE if status.is_loading and not status.has_data else None,
            empty_message=self.empty_message if is_empty else None,
            empty_hint=FILTER_HINT if is_empty and filters_active else None,
            error_message=error_message,
            clear_filters_label=CLEAR_FILTERS_LABEL if filters_active else None,
            hidden_columns=tuple(column.id for column in self.columns if not column.visible),
        )

    def toggle_sort(self, column_id: str) -> None:
        if not self.column_def(column_id).enable_sorting:
            return
        self.state.set_sorting(lambda current: next_sort(current, column_id))

    def go_first(self) -> None:
        pagination.first_page(self.state)

    def go_prev(self) -> None:
        pagination.prev_page(self.state)

    def go_next(self) -> None:
        pagination.next_page(self.state, self.table.page_count)

    def go_last(self) -> None:
        pagination.last_page(self.state, self.table.page_count)

    def set_page_size(self, page_size: int) -> None:
        pagination.change_page_size(self.state, page_size)

    def search(self, text: str) -> None:
        self.global_search.type_text(text)

    def clear_all_filters(self) -> None:
        self.global_search.cancel()
        for widget in self._widgets.values():
            cancel = getattr(widget, "cancel", None)
            if cancel is not None:
                cancel()
        self.state.clear_all_filters()
        self.global_search.sync()
        for widget in self._widgets.values():
            sync = getattr(widget, "sync", None)
            if sync is not None:
                sync()

    def toggle_column_visibility(self, column_id: str) -> None:
        column = self.column_def(column_id)
        if column.visible and len(self.visible_columns) == 1:
            return
        column.visible = not column.visible

    def click_row(self, index: int) -> None:
        if self._on_row_click is not None:
            self._on_row_click(self._rows[index].source)

    def context_menu_row(self, index: int) -> None:
        if self._on_row_context_menu is not None:
            self._on_row_context_menu(self._rows[index].source)

    def _header(self, column: ColumnDef, sorting: Sequence[SortItem]) -> HeaderCell:
        direction = None
        if sorting and sorting[0].id == column.id:
            direction = "desc" if sorting[0].desc else "asc"
        widget = self.filter_widget(column.id)
        sync = getattr(widget, "sync", None)
        if sync is not None:
            sync()
        return HeaderCell(
            column_id=column.id,
            label=column.header,
            sortable=column.enable_sorting,
            sort_direction=direction,
            filter_active=self.state.column(column.id).is_filtered(),
            filter_widget=widget,
        )

    def _ordered_rows(self, rows: list[Row], sorting: Sequence[SortItem]) -> list[Row]:
        # rows arrive in server order; a comparator only reorders the current page
        if not sorting:
            return list(rows)
        try:
            column = self.column_def(sorting[0].id)
        except KeyError:
            return list(rows)
        if column.sort_comparator is None:
            return list(rows)
        return sorted(rows, key=column.sort_comparator, reverse=sorting[0].desc)
