from __future__ import annotations

import queue
import tkinter as tk
from collections.abc import Callable
from tkinter import ttk
from typing import Any

from dossiers_control.app.server_table import ServerTable
from dossiers_control.app.ui.filters import DateRangeFilter, DebouncedTextFilter, MultiSelectFilter
from dossiers_control.app.ui.listing_view import TableRenderer, TableView

POLL_INTERVAL_MS = 50


class TkScheduler:
    """Debounce timers on the Tk event loop."""

    def __init__(self, widget: Any) -> None:
        self._widget = widget

    def schedule(self, delay_seconds: float, callback: Callable[[], None]) -> str:
        return self._widget.after(int(delay_seconds * 1000), callback)

    def cancel(self, handle: str) -> None:
        self._widget.after_cancel(handle)


class ServerDataTableView:
    """ttk rendering of a :class:`TableRenderer`.

    Fetch completions arrive on worker threads; they only put a marker on a
    queue that the Tk loop drains with ``after``.
    """

    def __init__(self, parent: tk.Misc, renderer: TableRenderer) -> None:
        self.renderer = renderer
        self._parent = parent
        self._changes: queue.SimpleQueue[None] = queue.SimpleQueue()
        self._unsubscribe = renderer.table.subscribe(self._on_table_change)
        self._filter_vars: dict[str, Any] = {}
        self._menu_vars: list[tk.BooleanVar] = []

        self.frame = ttk.Frame(parent, padding=8)
        self.frame.pack(fill="both", expand=True)

        toolbar = ttk.Frame(self.frame)
        toolbar.pack(fill="x")
        self._search_var = tk.StringVar(value=renderer.global_search.value)
        search = ttk.Entry(toolbar, textvariable=self._search_var, width=40)
        search.pack(side="left")
        search.bind("<KeyRelease>", lambda _event: renderer.search(self._search_var.get()))
        self._clear_button = ttk.Button(toolbar, text="Effacer tous les filtres", command=self._clear_filters)
        self._columns_button = ttk.Menubutton(toolbar, text="Colonnes")
        self._columns_button.pack(side="right")
        self._build_columns_menu()

        self._filters_frame = ttk.Frame(self.frame)
        self._filters_frame.pack(fill="x", pady=(6, 0))

        self.tree = ttk.Treeview(self.frame, show="headings", selectmode="browse")
        self.tree.pack(fill="both", expand=True, pady=6)
        self.tree.bind("<Double-1>", self._on_row_click)
        self.tree.bind("<Button-3>", self._on_row_context_menu)

        self._status_var = tk.StringVar(value="")
        ttk.Label(self.frame, textvariable=self._status_var, foreground="#b00020").pack(fill="x")

        footer = ttk.Frame(self.frame)
        footer.pack(fill="x")
        self._page_var = tk.StringVar(value="")
        ttk.Label(footer, textvariable=self._page_var).pack(side="left")
        self._size_var = tk.StringVar(value=str(renderer.state.pagination.page_size))
        sizes = ttk.Combobox(
            footer,
            textvariable=self._size_var,
            values=[str(size) for size in renderer.page_size_options],
            width=5,
            state="readonly",
        )
        sizes.pack(side="left", padx=8)
        sizes.bind("<<ComboboxSelected>>", lambda _event: renderer.set_page_size(int(self._size_var.get())))
        self._nav_buttons = {
            "last": ttk.Button(footer, text="⏭", width=3, command=renderer.go_last),
            "next": ttk.Button(footer, text="▶", width=3, command=renderer.go_next),
            "prev": ttk.Button(footer, text="◀", width=3, command=renderer.go_prev),
            "first": ttk.Button(footer, text="⏮", width=3, command=renderer.go_first),
        }
        for button in self._nav_buttons.values():
            button.pack(side="right")

        self._build_filters()
        self.refresh()
        self._poll()

    def close(self) -> None:
        self._unsubscribe()

    def refresh(self) -> None:
        view = self.renderer.render()
        self._render_tree(view)
        self._render_status(view)
        self._render_footer(view)
        if view.clear_filters_label:
            self._clear_button.pack(side="left", padx=8)
        else:
            self._clear_button.pack_forget()

    def _on_table_change(self, _table: ServerTable) -> None:
        self._changes.put(None)

    def _poll(self) -> None:
        changed = False
        while True:
            try:
                self._changes.get_nowait()
            except queue.Empty:
                break
            changed = True
        if changed:
            self.refresh()
        self.frame.after(POLL_INTERVAL_MS, self._poll)

    def _render_tree(self, view: TableView) -> None:
        columns = [cell.column_id for cell in view.headers]
        self.tree.configure(columns=columns)
        for cell in view.headers:
            label = f"{cell.label} {cell.sort_indicator}".rstrip()
            if cell.filter_active:
                label = f"{label} *"
            command = (lambda column_id=cell.column_id: self._toggle_sort(column_id)) if cell.sortable else ""
            self.tree.heading(cell.column_id, text=label, command=command)
        self.tree.delete(*self.tree.get_children())
        for index, row in enumerate(view.rows):
            self.tree.insert("", "end", iid=str(index), values=row.cells)

    def _render_status(self, view: TableView) -> None:
        if view.error_message:
            self._status_var.set(view.error_message)
        elif view.loading_message:
            self._status_var.set(view.loading_message)
        elif view.empty_message:
            hint = f"\n{view.empty_hint}" if view.empty_hint else ""
            self._status_var.set(f"{view.empty_message}{hint}")
        else:
            self._status_var.set("")

    def _render_footer(self, view: TableView) -> None:
        footer = view.footer
        self._page_var.set(footer.label)
        self._size_var.set(str(footer.page_size))
        flags = {
            "first": footer.first_disabled,
            "prev": footer.prev_disabled,
            "next": footer.next_disabled,
            "last": footer.last_disabled,
        }
        for name, disabled in flags.items():
            self._nav_buttons[name].configure(state="disabled" if disabled else "normal")

    def _toggle_sort(self, column_id: str) -> None:
        self.renderer.toggle_sort(column_id)

    def _clear_filters(self) -> None:
        self.renderer.clear_all_filters()
        self._search_var.set("")
        self._build_filters()

    def _build_columns_menu(self) -> None:
        menu = tk.Menu(self._columns_button, tearoff=False)
        for column in self.renderer.columns:
            var = tk.BooleanVar(value=column.visible)
            self._menu_vars.append(var)
            menu.add_checkbutton(
                label=column.header,
                variable=var,
                command=lambda column_id=column.id: self._toggle_column(column_id),
            )
        self._columns_button["menu"] = menu

    def _toggle_column(self, column_id: str) -> None:
        self.renderer.toggle_column_visibility(column_id)
        self._build_filters()
        self.refresh()

    def _build_filters(self) -> None:
        for child in self._filters_frame.winfo_children():
            child.destroy()
        self._filter_vars.clear()
        for column in self.renderer.visible_columns:
            cell = ttk.Frame(self._filters_frame)
            cell.pack(side="left", padx=2)
            ttk.Label(cell, text=column.header).pack(anchor="w")
            widget = self.renderer.filter_widget(column.id)
            if isinstance(widget, DebouncedTextFilter):
                self._text_filter(cell, column.id, widget)
            elif isinstance(widget, MultiSelectFilter):
                self._multi_select(cell, widget)
            elif isinstance(widget, DateRangeFilter):
                self._date_range(cell, widget)

    def _text_filter(self, cell: ttk.Frame, column_id: str, widget: DebouncedTextFilter) -> None:
        var = tk.StringVar(value=widget.value)
        self._filter_vars[column_id] = var
        entry = ttk.Entry(cell, textvariable=var, width=14)
        entry.pack()
        entry.bind("<KeyRelease>", lambda _event: widget.type_text(var.get()))

    def _multi_select(self, cell: ttk.Frame, widget: MultiSelectFilter) -> None:
        button = ttk.Menubutton(cell, text=widget.label)
        button.pack()
        menu = tk.Menu(button, tearoff=False)
        if widget.empty_message:
            menu.add_command(label=widget.empty_message, state="disabled")
        else:
            menu.add_command(label="Tout", command=lambda: self._after_select(widget.select_all, button, widget))
            menu.add_command(label="Aucun", command=lambda: self._after_select(widget.clear, button, widget))
            menu.add_separator()
            for option in widget.options:
                var = tk.BooleanVar(value=widget.is_selected(option))
                self._menu_vars.append(var)
                menu.add_checkbutton(
                    label=option,
                    variable=var,
                    command=lambda option=option: self._after_select(lambda: widget.toggle_option(option), button, widget),
                )
        button["menu"] = menu

    def _after_select(self, action: Callable[[], None], button: ttk.Menubutton, widget: MultiSelectFilter) -> None:
        action()
        button.configure(text=widget.label)

    def _date_range(self, cell: ttk.Frame, widget: DateRangeFilter) -> None:
        label = tk.StringVar(value=widget.display_text)
        start = tk.StringVar(value=widget.from_date)
        end = tk.StringVar(value=widget.to_date)
        row = ttk.Frame(cell)
        row.pack()
        ttk.Entry(row, textvariable=start, width=10).pack(side="left")
        ttk.Entry(row, textvariable=end, width=10).pack(side="left")

        def _apply() -> None:
            widget.from_date = start.get().strip()
            widget.to_date = end.get().strip()
            widget.apply()
            label.set(widget.display_text)

        def _clear() -> None:
            widget.clear()
            start.set("")
            end.set("")
            label.set(widget.display_text)

        ttk.Button(row, text="Appliquer", command=_apply).pack(side="left")
        ttk.Button(row, text="Effacer", command=_clear).pack(side="left")
        ttk.Label(cell, textvariable=label).pack(anchor="w")

    def _on_row_click(self, event: Any) -> None:
        item = self.tree.identify_row(event.y)
        if item:
            self.renderer.click_row(int(item))

    def _on_row_context_menu(self, event: Any) -> None:
        item = self.tree.identify_row(event.y)
        if item:
            self.tree.selection_set(item)
            self.renderer.context_menu_row(int(item))
