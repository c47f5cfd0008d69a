"""Tests for the Rich logging setup."""

from __future__ import annotations

import logging

import pytest
from rich.logging import RichHandler

from msgconnect.log import LOGGER_NAME, _should_disable_color, configure_logging


@pytest.fixture(autouse=True)
def _restore_logger() -> None:
    logger = logging.getLogger(LOGGER_NAME)
    handlers, level = list(logger.handlers), logger.level
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)


def _rich_handlers(logger: logging.Logger) -> list[RichHandler]:
    return [h for h in logger.handlers if isinstance(h, RichHandler)]


class TestConfigureLogging:
    def test_attaches_one_rich_handler(self) -> None:
        logger = configure_logging()
        assert logger.name == "msgconnect"
        assert len(_rich_handlers(logger)) == 1
        assert logger.level == logging.INFO

    def test_repeat_call_replaces_handler(self) -> None:
        configure_logging()
        logger = configure_logging(verbose=True)
        assert len(_rich_handlers(logger)) == 1
        assert logger.level == logging.DEBUG

    def test_quiet(self) -> None:
        assert configure_logging(quiet=True).level == logging.WARNING

    def test_verbose_wins_over_quiet(self) -> None:
        assert configure_logging(verbose=True, quiet=True).level == logging.DEBUG

    def test_module_loggers_propagate(self) -> None:
        configure_logging()
        child = logging.getLogger("msgconnect.client.manager")
        assert child.getEffectiveLevel() == logging.INFO

    def test_no_color_flag(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        handler = _rich_handlers(configure_logging(no_color=True))[0]
        assert handler.console.no_color is True


class TestColorDetection:
    def test_no_color_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("NO_COLOR", "")
        assert _should_disable_color() is True

    def test_dumb_terminal(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "dumb")
        assert _should_disable_color() is True

    def test_color_allowed(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm-256color")
        assert _should_disable_color() is False
