import json
from pathlib import Path

from dossiers_control.app.context_store import (
    bind_filter_persistence,
    clear_context,
    load_context,
    load_table_filters,
    save_table_filters,
)
from dossiers_control.app.table_state import TableState


def test_save_and_load_table_filters(tmp_path: Path, monkeypatch) -> None:
    context_file = tmp_path / "tables.json"
    monkeypatch.setenv("DOSSIERS_TABLE_CONTEXT_PATH", str(context_file))

    save_table_filters("demandes", {"nom": "Dupont", "type": ["VICTIME"], "dateFaits": {"from": "2024-01-01"}})
    save_table_filters("dossiers", {"numero": "D-1"})

    assert load_table_filters("demandes") == {"nom": "Dupont", "type": ["VICTIME"], "dateFaits": {"from": "2024-01-01"}}
    assert load_table_filters("dossiers") == {"numero": "D-1"}
    assert load_table_filters("paiements") == {}


def test_saving_empty_filters_removes_table_entry(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("DOSSIERS_TABLE_CONTEXT_PATH", str(tmp_path / "tables.json"))
    save_table_filters("demandes", {"nom": "Dupont"})

    save_table_filters("demandes", {})

    assert load_context() == {"filters_by_table": {}}


def test_corrupted_file_is_ignored(tmp_path: Path, monkeypatch) -> None:
    context_file = tmp_path / "tables.json"
    context_file.write_text("{not json", encoding="utf-8")
    monkeypatch.setenv("DOSSIERS_TABLE_CONTEXT_PATH", str(context_file))

    assert load_context() == {}
    assert load_table_filters("demandes") == {}


def test_bind_filter_persistence_restores_and_saves(tmp_path: Path, monkeypatch) -> None:
    context_file = tmp_path / "tables.json"
    monkeypatch.setenv("DOSSIERS_TABLE_CONTEXT_PATH", str(context_file))
    save_table_filters("conventions", {"instance": "TJ Paris"})

    state = TableState()
    unbind = bind_filter_persistence(state, "conventions")
    assert state.column_filters == {"instance": "TJ Paris"}

    state.column("type").set_filter_value(["AVENANT"])
    saved = json.loads(context_file.read_text(encoding="utf-8"))
    assert saved["filters_by_table"]["conventions"] == {"instance": "TJ Paris", "type": ["AVENANT"]}

    unbind()
    state.clear_all_filters()
    assert load_table_filters("conventions") == {"instance": "TJ Paris", "type": ["AVENANT"]}


def test_clear_context(tmp_path: Path, monkeypatch) -> None:
    context_file = tmp_path / "tables.json"
    monkeypatch.setenv("DOSSIERS_TABLE_CONTEXT_PATH", str(context_file))
    save_table_filters("demandes", {"nom": "x"})

    clear_context()

    assert not context_file.exists()
