"""Tests for file logging setup."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from trace_agent.logging import LOGGER_NAME, configure_logging, reset_logging


@pytest.fixture(autouse=True)
def _reset():
    yield
    reset_logging()


class TestConfigureLogging:
    def test_writes_to_file(self, tmp_path: Path) -> None:
        log_file = tmp_path / "trace.log"
        handler = configure_logging(log_file)

        logging.getLogger("trace_agent.services.agent_loop").info("hello from the loop")
        handler.flush()

        assert "hello from the loop" in log_file.read_text()

    def test_does_not_propagate(self, tmp_path: Path) -> None:
        configure_logging(tmp_path / "trace.log")
        assert logging.getLogger(LOGGER_NAME).propagate is False

    def test_verbose_enables_debug(self, tmp_path: Path) -> None:
        configure_logging(tmp_path / "trace.log", verbose=True)
        assert logging.getLogger(LOGGER_NAME).level == logging.DEBUG

    def test_reconfigure_replaces_handler(self, tmp_path: Path) -> None:
        configure_logging(tmp_path / "a.log")
        configure_logging(tmp_path / "b.log")
        assert len(logging.getLogger(LOGGER_NAME).handlers) == 1


class TestResetLogging:
    def test_restores_propagation(self, tmp_path: Path) -> None:
        configure_logging(tmp_path / "trace.log")
        reset_logging()
        logger = logging.getLogger(LOGGER_NAME)
        assert logger.handlers == []
        assert logger.propagate is True
