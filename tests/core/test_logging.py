from __future__ import annotations

import json
import logging

import structlog

from governor.core.logging import configure_logging


def test_configure_logging_quiets_sql_echo_below_warning() -> None:
    configure_logging("debug")

    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING


def test_configure_logging_unknown_level_falls_back_to_info() -> None:
    configure_logging("chatty")

    assert logging.getLogger().level == logging.INFO


def test_json_renderer_emits_event_and_fields(capsys) -> None:
    configure_logging("info", json_logs=True)

    structlog.get_logger("governor.test").info("admission_rejected", origin="198.51.100.7", max=2)

    line = capsys.readouterr().out.strip().splitlines()[-1]
    payload = json.loads(line)
    assert payload["event"] == "admission_rejected"
    assert payload["origin"] == "198.51.100.7"
    assert payload["level"] == "info"
    assert payload["logger"] == "governor.test"
