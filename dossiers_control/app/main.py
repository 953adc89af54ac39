from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from typing import Any

from dossiers_client_sdk.config import ConfigError, SDKConfig
from dossiers_client_sdk.errors import ApiError
from dossiers_client_sdk.http_client import HttpClient
from dossiers_client_sdk.listing_client import ListingClient
from dossiers_client_sdk.params import PaginationState, SortItem

from dossiers_control.app.config import AppConfig
from dossiers_control.app.infrastructure.errors.error_mapper import ErrorMapper
from dossiers_control.app.listing_cache import ListingCache
from dossiers_control.app.table_state import TableState
from dossiers_control.app.tables import TABLES, FilterContext, TableDefinition, get_definition, load_facets, open_table
from dossiers_control.app.ui.listing_view import TableRenderer
from dossiers_control.app.ui.table_printer import print_table


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="dossiers-tables", description="Listes paginées côté serveur.")
    commands = parser.add_subparsers(dest="command", required=True)

    list_cmd = commands.add_parser("list", help="Affiche une page d'une liste.")
    list_cmd.add_argument("table", choices=sorted(TABLES))
    list_cmd.add_argument("--page", type=int, default=1)
    list_cmd.add_argument("--page-size", type=int, default=None)
    list_cmd.add_argument("--sort", default=None, help="colonne[:desc]")
    list_cmd.add_argument("--search", default="")
    list_cmd.add_argument("--filter", action="append", default=[], help="colonne=valeur (répétable)")

    gui_cmd = commands.add_parser("gui", help="Ouvre la liste dans une fenêtre.")
    gui_cmd.add_argument("table", choices=sorted(TABLES))
    return parser


def parse_sort(raw: str | None) -> tuple[SortItem, ...] | None:
    if not raw:
        return None
    column_id, _, direction = raw.partition(":")
    return (SortItem(column_id.strip(), desc=direction.strip().lower() == "desc"),)


def parse_filters(raw_filters: Sequence[str]) -> dict[str, Any]:
    """``col=a`` gives text, a repeated column gives a list, ``col=from..to`` a date range."""
    filters: dict[str, Any] = {}
    for raw in raw_filters:
        column_id, sep, value = raw.partition("=")
        if not sep or not column_id.strip():
            raise ValueError(f"Filtre invalide: {raw!r} (attendu colonne=valeur)")
        column_id, value = column_id.strip(), value.strip()
        if ".." in value:
            start, _, end = value.partition("..")
            filters[column_id] = {"from": start.strip(), "to": end.strip()}
        elif column_id in filters:
            current = filters[column_id]
            filters[column_id] = [*(current if isinstance(current, list) else [current]), value]
        else:
            filters[column_id] = value
    return filters


def run_list(args: argparse.Namespace, definition: TableDefinition, listing_client: ListingClient, app_config: AppConfig) -> int:
    state = TableState(
        page_size=args.page_size or definition.page_size,
        sorting=parse_sort(args.sort) or definition.initial_sorting,
        column_filters=parse_filters(args.filter),
        global_filter=args.search,
    )
    if args.page > 1:
        state.set_pagination(PaginationState(args.page - 1, state.pagination.page_size))
    table = open_table(
        definition,
        listing_client,
        state=state,
        cache=ListingCache(ttl_seconds=app_config.cache_ttl_seconds),
    )
    columns = definition.columns(FilterContext(debounce_ms=0))
    renderer = TableRenderer(
        table,
        columns,
        page_size_options=app_config.page_size_options,
        empty_message=definition.empty_message,
        debounce_ms=0,
    )
    table.load()
    print_table(definition.title, renderer.render())
    table.close()
    return 1 if table.is_error else 0


def run_gui(definition: TableDefinition, listing_client: ListingClient, app_config: AppConfig) -> int:
    from concurrent.futures import ThreadPoolExecutor
    import tkinter as tk

    from dossiers_control.app.context_store import bind_filter_persistence
    from dossiers_control.app.ui.tk_table import ServerDataTableView, TkScheduler

    root = tk.Tk()
    root.title(f"Dossiers - {definition.title}")
    root.geometry("1200x640")
    executor = ThreadPoolExecutor(max_workers=app_config.fetch_workers)
    state = TableState(page_size=definition.page_size, sorting=definition.initial_sorting)
    unbind = bind_filter_persistence(state, definition.key)
    table = open_table(
        definition,
        listing_client,
        state=state,
        cache=ListingCache(ttl_seconds=app_config.cache_ttl_seconds),
        executor=executor,
    )
    scheduler = TkScheduler(root)
    context = FilterContext(
        facets=load_facets(definition, listing_client),
        debounce_ms=app_config.debounce_ms,
        scheduler=scheduler,
    )
    renderer = TableRenderer(
        table,
        definition.columns(context),
        page_size_options=app_config.page_size_options,
        empty_message=definition.empty_message,
        debounce_ms=app_config.debounce_ms,
        scheduler=scheduler,
    )
    view = ServerDataTableView(root, renderer)
    table.load()
    try:
        root.mainloop()
    finally:
        view.close()
        unbind()
        table.close()
        executor.shutdown(wait=False, cancel_futures=True)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        sdk_config = SDKConfig.from_env()
        app_config = AppConfig.from_env()
        definition = get_definition(args.table)
    except (ConfigError, ValueError) as error:
        print(f"Configuration invalide: {error}", file=sys.stderr)
        return 2

    http_client = HttpClient(sdk_config)
    listing_client = ListingClient(http_client)
    try:
        if args.command == "gui":
            return run_gui(definition, listing_client, app_config)
        return run_list(args, definition, listing_client, app_config)
    except ApiError as error:
        print(ErrorMapper.to_display_message(error), file=sys.stderr)
        return 1
    except ValueError as error:
        print(str(error), file=sys.stderr)
        return 2
    finally:
        http_client.close()


if __name__ == "__main__":
    sys.exit(main())
