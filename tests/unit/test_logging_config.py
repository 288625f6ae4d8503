"""Tests for structlog-backed logging setup."""

from __future__ import annotations

import json
import logging
from typing import Iterator
from unittest.mock import patch

import pytest
import structlog

from constellation.core.config import ObservabilityConfig
from constellation.core.logging_config import setup_logging


@pytest.fixture(autouse=True)
def _restore_root_logger() -> Iterator[None]:
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()


class TestSetupLogging:
    def test_installs_single_processor_handler(self) -> None:
        setup_logging(ObservabilityConfig(log_level="debug"))
        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, structlog.stdlib.ProcessorFormatter)
        assert root.level == logging.DEBUG
        assert logging.getLogger("constellation").level == logging.DEBUG

    def test_unknown_level_falls_back_to_info(self) -> None:
        setup_logging(ObservabilityConfig(log_level="chatty"))
        assert logging.getLogger().level == logging.INFO

    def test_json_lines_carry_extra_and_service(self) -> None:
        with patch("constellation.core.logging_config.sys.stderr") as stderr:
            stderr.isatty.return_value = False
            setup_logging(ObservabilityConfig(service_name="constellation-test"))
        handler = logging.getLogger().handlers[0]
        record = logging.LogRecord("constellation.api", logging.INFO, __file__, 1, "Deal created", None, None)
        record.deal_id = "d1"
        line = json.loads(handler.format(record))
        assert line["event"] == "Deal created"
        assert line["deal_id"] == "d1"
        assert line["level"] == "info"
        assert line["service"] == "constellation-test"
