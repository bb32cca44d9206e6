from __future__ import annotations

import json
import logging

import pytest
import structlog

from moysklad_client.logging_config import configure_logging


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()


def test_json_output_renders_event_and_context(restore_logging, capsys) -> None:
    configure_logging("DEBUG", json_output=True)

    structlog.get_logger("moysklad_client.test").warning("rate_limited_retry", attempt=1, delay=2.0)

    line = capsys.readouterr().err.strip().splitlines()[-1]
    event = json.loads(line)
    assert event["event"] == "rate_limited_retry"
    assert event["attempt"] == 1
    assert event["delay"] == 2.0
    assert event["level"] == "warning"
    assert event["logger"] == "moysklad_client.test"
    assert "timestamp" in event


def test_level_filters_lower_events(restore_logging, capsys) -> None:
    configure_logging("WARNING")

    structlog.get_logger("moysklad_client.test").debug("rate_limit_wait", delay=0.5)

    assert "rate_limit_wait" not in capsys.readouterr().err


def test_unknown_level_falls_back_to_info(restore_logging) -> None:
    configure_logging("chatty")

    assert logging.getLogger().level == logging.INFO
