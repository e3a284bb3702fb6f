import json
import logging

from fogcontroller.core.logger import SUCCESS_LEVEL, ConsoleFormatter, JSONFormatter, setup_logger
from fogcontroller.core.logging_context import ContextFilter, LoggingContext


def _record(message, **fields):
    record = logging.LogRecord("fogcontroller.test", logging.ERROR, "/src/mod.py", 12, message, (), None)
    for key, value in fields.items():
        setattr(record, key, value)
    return record


class TestConsoleFormatter:

    def test_scope_and_fields(self):
        text = ConsoleFormatter().format(_record("Invalid user id", scope="add", fog_uuid="abc"))
        header, message, fields = text.splitlines()
        assert header.endswith("[ERROR] add")
        assert message == "     Message: Invalid user id"
        assert fields == "     fog_uuid: abc"

    def test_multiline_message(self):
        lines = ConsoleFormatter().format(_record("first\nsecond")).splitlines()
        assert lines[1:] == ["     Message: first", "             second"]


def test_json_formatter_includes_context():
    entry = json.loads(JSONFormatter().format(_record("boom", scope="list")))
    assert entry["level"] == "ERROR"
    assert entry["message"] == "boom"
    assert entry["scope"] == "list"


def test_logging_context_reaches_records():
    record = _record("hello")
    with LoggingContext(logging.getLogger("x"), scope="update", command_id=3):
        ContextFilter().filter(record)
    assert (record.scope, record.command_id) == ("update", 3)

    outside = _record("hello")
    ContextFilter().filter(outside)
    assert not hasattr(outside, "scope")


def test_setup_logger_is_idempotent(monkeypatch):
    monkeypatch.setenv("FOGCONTROLLER_LOG_LEVEL", "warning")
    first = setup_logger("fogcontroller.tests.idempotent")
    second = setup_logger("fogcontroller.tests.idempotent")
    assert first is second
    assert len(second.handlers) == 1
    assert second.level == logging.WARNING
    assert second.propagate is False
    assert hasattr(second, "success")
    assert logging.getLevelName(SUCCESS_LEVEL) == "SUCCESS"
