"""Unit tests for CLI log formatting."""

import io
import json
import logging

import pytest

from stencil.utils.logging import (
    HumanFormatter,
    JSONFormatter,
    LogMode,
    VerboseFormatter,
    configure_from_cli,
    setup_logging,
)


def make_record(msg: str = "rendered %s", args: tuple = ("mail.txt",), exc: BaseException | None = None) -> logging.LogRecord:
    exc_info = (type(exc), exc, exc.__traceback__) if exc is not None else None
    return logging.LogRecord("stencil.renderer", logging.ERROR, __file__, 1, msg, args, exc_info)


class TestFormatters:
    """Tests for the three output formats."""

    def test_human(self) -> None:
        assert HumanFormatter(use_colors=False).format(make_record()) == "[ERROR] rendered mail.txt"

    def test_human_colored(self) -> None:
        line = HumanFormatter(use_colors=True).format(make_record())

        assert line.startswith("\033[31m[ERROR]")

    def test_verbose_includes_logger_and_traceback(self) -> None:
        try:
            raise RuntimeError("boom")
        except RuntimeError as e:
            record = make_record(exc=e)

        line = VerboseFormatter(use_colors=False).format(record)

        assert "stencil.renderer: rendered mail.txt" in line
        assert "RuntimeError: boom" in line

    def test_json(self) -> None:
        entry = json.loads(JSONFormatter().format(make_record(exc=ValueError("bad"))))

        assert entry["level"] == "ERROR"
        assert entry["logger"] == "stencil.renderer"
        assert entry["msg"] == "rendered mail.txt"
        assert entry["error"] == "ValueError"


class TestSetup:
    """Tests for logger configuration."""

    @pytest.fixture(autouse=True)
    def restore_logger(self):
        logger = logging.getLogger("stencil")
        handlers, level = list(logger.handlers), logger.level
        yield
        logger.handlers[:] = handlers
        logger.setLevel(level)

    def test_setup_logging_writes_to_stream(self) -> None:
        stream = io.StringIO()
        setup_logging(LogMode.JSON, logging.INFO, stream)

        logging.getLogger("stencil.test").info("hello")

        assert json.loads(stream.getvalue())["msg"] == "hello"

    def test_setup_replaces_handlers(self) -> None:
        setup_logging(stream=io.StringIO())
        setup_logging(stream=io.StringIO())

        assert len(logging.getLogger("stencil").handlers) == 1

    @pytest.mark.parametrize(
        ("flags", "level", "formatter"),
        [
            ({}, logging.INFO, HumanFormatter),
            ({"verbose": True}, logging.DEBUG, VerboseFormatter),
            ({"quiet": True}, logging.WARNING, HumanFormatter),
            ({"ci": True}, logging.INFO, JSONFormatter),
        ],
    )
    def test_configure_from_cli(self, flags: dict, level: int, formatter: type) -> None:
        configure_from_cli(**flags)

        logger = logging.getLogger("stencil")
        assert logger.level == level
        assert type(logger.handlers[0].formatter) is formatter
