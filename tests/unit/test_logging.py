"""Unit tests for the JSON log formatter."""

from __future__ import annotations

import json
import logging

from linear_slack_dispatcher.dispatcher.logging import JsonFormatter, configure_logging


def _record(**extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name="linear_slack_dispatcher.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="Found task %s",
        args=("ENG-1",),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_renders_message_and_extra() -> None:
    payload = json.loads(JsonFormatter().format(_record(issue="ENG-1", priority=2)))

    assert payload["level"] == "INFO"
    assert payload["logger"] == "linear_slack_dispatcher.test"
    assert payload["message"] == "Found task ENG-1"
    assert payload["extra"] == {"issue": "ENG-1", "priority": 2}
    assert "exception" not in payload


def test_json_formatter_omits_empty_extra() -> None:
    payload = json.loads(JsonFormatter().format(_record()))

    assert "extra" not in payload


def test_json_formatter_stringifies_non_json_extra() -> None:
    payload = json.loads(JsonFormatter().format(_record(team_keys=frozenset({"ENG"}))))

    assert payload["extra"] == {"team_keys": "frozenset({'ENG'})"}


def test_configure_logging_replaces_handlers_and_quiets_urllib3() -> None:
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        configure_logging("debug")
        configure_logging("debug")

        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JsonFormatter)
        assert root.level == logging.DEBUG
        assert logging.getLogger("urllib3").level == logging.INFO
    finally:
        for handler in list(root.handlers):
            root.removeHandler(handler)
        for handler in saved_handlers:
            root.addHandler(handler)
        root.setLevel(saved_level)
