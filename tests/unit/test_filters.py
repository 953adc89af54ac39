from dossiers_control.app.table_state import TableState
from dossiers_control.app.ui.filters import (
    NO_OPTIONS_MESSAGE,
    DateRangeFilter,
    Debouncer,
    DebouncedTextFilter,
    MultiSelectFilter,
)


class _FakeScheduler:
    def __init__(self) -> None:
        self.pending: dict[int, tuple[float, object]] = {}
        self._next = 0

    def schedule(self, delay_seconds, callback):
        self._next += 1
        self.pending[self._next] = (delay_seconds, callback)
        return self._next

    def cancel(self, handle) -> None:
        self.pending.pop(handle, None)

    def run_all(self) -> None:
        callbacks = [callback for _, callback in self.pending.values()]
        self.pending.clear()
        for callback in callbacks:
            callback()


def _state_with_counter() -> tuple[TableState, list]:
    state = TableState()
    commits: list = []
    state.subscribe(commits.append)
    return state, commits


def test_debounced_text_commits_once_after_burst() -> None:
    state, commits = _state_with_counter()
    scheduler = _FakeScheduler()
    widget = DebouncedTextFilter(state.column("nom"), debounce_ms=500, scheduler=scheduler)

    for text in ("d", "du", "dup", "dupo"):
        widget.type_text(text)

    assert commits == []
    assert [delay for delay, _ in scheduler.pending.values()] == [0.5]

    scheduler.run_all()

    assert len(commits) == 1
    assert state.column_filters == {"nom": "dupo"}


def test_debounced_text_clearing_removes_filter() -> None:
    state = TableState(column_filters={"nom": "dupont"})
    scheduler = _FakeScheduler()
    widget = DebouncedTextFilter(state.column("nom"), scheduler=scheduler)

    assert widget.value == "dupont"
    widget.type_text("")
    scheduler.run_all()

    assert state.column_filters == {}


def test_debounced_text_mirrors_external_changes() -> None:
    state = TableState(column_filters={"nom": "dupont"})
    widget = DebouncedTextFilter(state.column("nom"), scheduler=_FakeScheduler())

    state.clear_all_filters()
    widget.sync()

    assert widget.value == ""


def test_debounced_text_flush_and_cancel() -> None:
    state, commits = _state_with_counter()
    scheduler = _FakeScheduler()
    widget = DebouncedTextFilter(state.column("numero"), scheduler=scheduler)

    widget.type_text("D-1")
    widget.cancel()
    assert scheduler.pending == {}
    assert commits == []

    widget.type_text("D-2")
    widget.flush()
    assert state.column_filters == {"numero": "D-2"}
    assert scheduler.pending == {}


def test_debouncer_without_wait_runs_immediately() -> None:
    calls: list[int] = []
    debouncer = Debouncer(lambda: calls.append(1), wait_ms=0, scheduler=_FakeScheduler())

    debouncer.trigger()

    assert calls == [1]
    assert not debouncer.pending


def test_multi_select_toggle_and_labels() -> None:
    state = TableState()
    widget = MultiSelectFilter(state.column("type"), ["VICTIME", "MIS_EN_CAUSE", "TEMOIN"])

    assert widget.label == "Tous"
    widget.toggle_option("VICTIME")
    assert state.column_filters == {"type": ["VICTIME"]}
    assert widget.label == "1 sélectionné"

    widget.toggle_option("TEMOIN")
    assert widget.label == "2 sélectionnés"
    assert widget.is_selected("TEMOIN")

    widget.toggle_option("VICTIME")
    widget.toggle_option("TEMOIN")
    assert state.column_filters == {}


def test_multi_select_all_and_clear() -> None:
    state = TableState()
    widget = MultiSelectFilter(state.column("grade"), ["GND", "ADJ"])

    widget.select_all()
    assert state.column_filters == {"grade": ["GND", "ADJ"]}
    assert widget.label == "Tous"

    widget.clear()
    assert state.column_filters == {}


def test_multi_select_without_options() -> None:
    state = TableState()
    widget = MultiSelectFilter(state.column("badges"), [])

    assert widget.empty_message == NO_OPTIONS_MESSAGE
    widget.select_all()
    assert state.column_filters == {}


def test_multi_select_open_state_closed_by_outside_click() -> None:
    widget = MultiSelectFilter(TableState().column("type"), ["A"])

    widget.toggle_open()
    assert widget.is_open
    widget.outside_click()
    assert not widget.is_open


def test_date_range_apply_variants() -> None:
    state = TableState()
    widget = DateRangeFilter(state.column("dateFaits"))
    assert widget.display_text == "Toutes dates"

    widget.from_date = "2024-03-05"
    widget.apply()
    assert state.column_filters == {"dateFaits": {"from": "2024-03-05"}}
    assert widget.display_text == "Depuis 05/03"

    widget.from_date = ""
    widget.to_date = "2024-03-10"
    widget.apply()
    assert state.column_filters == {"dateFaits": {"to": "2024-03-10"}}
    assert widget.display_text == "Jusqu'à 10/03"

    widget.from_date = "2024-03-05"
    widget.apply()
    assert widget.display_text == "05/03 - 10/03"


def test_date_range_apply_without_bounds_removes_filter() -> None:
    state = TableState(column_filters={"dateEnvoi": {"from": "2024-01-01"}})
    widget = DateRangeFilter(state.column("dateEnvoi"))
    assert widget.from_date == "2024-01-01"

    widget.from_date = ""
    widget.apply()

    assert state.column_filters == {}


def test_date_range_clear() -> None:
    state = TableState(column_filters={"createdAt": {"from": "2024-01-01", "to": "2024-01-31"}})
    widget = DateRangeFilter(state.column("createdAt"))
    widget.toggle_open()

    widget.clear()

    assert state.column_filters == {}
    assert (widget.from_date, widget.to_date) == ("", "")
    assert not widget.is_open
