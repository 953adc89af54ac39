from __future__ import annotations

from dataclasses import dataclass, replace

from dossiers_client_sdk.params import PaginationState

from dossiers_control.app.table_state import TableState


@dataclass(frozen=True)
class PaginationFooter:
    label: str
    page_size: int
    page_size_options: tuple[int, ...]
    first_disabled: bool
    prev_disabled: bool
    next_disabled: bool
    last_disabled: bool


def result_label(total: int) -> str:
    return f"{total} résultat{'s' if total > 1 else ''}"


def page_label(page_index: int, page_count: int, total: int) -> str:
    return f"Page {page_index + 1} sur {max(page_count, 1)} • {result_label(total)}"


def build_footer(
    pagination: PaginationState,
    page_count: int,
    total: int,
    page_size_options: tuple[int, ...],
) -> PaginationFooter:
    at_start = pagination.page_index == 0
    at_end = pagination.page_index >= page_count - 1
    return PaginationFooter(
        label=page_label(pagination.page_index, page_count, total),
        page_size=pagination.page_size,
        page_size_options=page_size_options,
        first_disabled=at_start,
        prev_disabled=at_start,
        next_disabled=at_end,
        last_disabled=at_end,
    )


def first_page(state: TableState) -> None:
    if state.pagination.page_index == 0:
        return
    state.set_pagination(lambda current: replace(current, page_index=0))


def prev_page(state: TableState) -> None:
    if state.pagination.page_index == 0:
        return
    state.set_pagination(lambda current: replace(current, page_index=max(0, current.page_index - 1)))


def next_page(state: TableState, page_count: int) -> None:
    if state.pagination.page_index >= page_count - 1:
        return
    state.set_pagination(lambda current: replace(current, page_index=current.page_index + 1))


def last_page(state: TableState, page_count: int) -> None:
    if state.pagination.page_index >= max(0, page_count - 1):
        return
    state.set_pagination(lambda current: replace(current, page_index=max(0, page_count - 1)))


def change_page_size(state: TableState, page_size: int) -> None:
    state.set_pagination(lambda current: replace(current, page_size=page_size))
