import json
import logging

from dossiers_control.app.infrastructure.logging.logger import get_logger, log_action


def test_log_action_emits_one_json_record(caplog) -> None:
    logger = logging.getLogger("tests.log_action")

    with caplog.at_level(logging.INFO, logger="tests.log_action"):
        log_action(logger, module="demandes", action="fetch", outcome="success", duration_ms=12, page=2, rows=50)

    record = json.loads(caplog.records[-1].getMessage())
    assert record["module"] == "demandes"
    assert record["action"] == "fetch"
    assert record["outcome"] == "success"
    assert record["duration_ms"] == 12
    assert record["trace_id"] is None
    assert record["level"] == "INFO"
    assert record["page"] == 2
    assert "ts" in record


def test_warning_level_is_reported(caplog) -> None:
    logger = logging.getLogger("tests.log_action.warning")

    with caplog.at_level(logging.INFO, logger="tests.log_action.warning"):
        log_action(logger, module="paiements", action="fetch", outcome="error", trace_id="t-9", level=logging.WARNING)

    record = json.loads(caplog.records[-1].getMessage())
    assert caplog.records[-1].levelno == logging.WARNING
    assert record["level"] == "WARNING"
    assert record["trace_id"] == "t-9"


def test_get_logger_installs_single_handler() -> None:
    first = get_logger("tests.get_logger")
    second = get_logger("tests.get_logger")

    assert first is second
    assert len(second.handlers) == 1
