from __future__ import annotations

from collections.abc import Callable

from dossiers_control.app.ui.listing_view import TableView


def format_table(title: str, view: TableView) -> str:
    lines = [f"\n{title}"]
    if view.clear_filters_label:
        lines.append(f"[{view.clear_filters_label}]")

    headers = [f"{cell.label} {cell.sort_indicator}".rstrip() + (" *" if cell.filter_active else "") for cell in view.headers]
    widths = [len(header) for header in headers]
    for row in view.rows:
        for idx, text in enumerate(row.cells):
            widths[idx] = max(widths[idx], len(text))

    lines.append(" | ".join(header.ljust(widths[idx]) for idx, header in enumerate(headers)))
    lines.append("-+-".join("-" * width for width in widths))

    if view.error_message:
        lines.append(view.error_message)
    elif view.loading_message:
        lines.append(view.loading_message)
    elif view.empty_message:
        lines.append(view.empty_message)
        if view.empty_hint:
            lines.append(view.empty_hint)
    else:
        for row in view.rows:
            lines.append(" | ".join(text.ljust(widths[idx]) for idx, text in enumerate(row.cells)))

    footer = view.footer
    lines.append("")
    lines.append(footer.label)
    sizes = " ".join(f"[{size}]" if size == footer.page_size else str(size) for size in footer.page_size_options)
    lines.append(f"Lignes par page: {sizes}")
    return "\n".join(lines)


def print_table(title: str, view: TableView, write: Callable[[str], None] = print) -> None:
    write(format_table(title, view))
