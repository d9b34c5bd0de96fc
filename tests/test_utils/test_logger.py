from __future__ import annotations

import logging
from io import StringIO
from typing import Generator

import pytest

from dotnet_check_updates.utils.logger import (
    ROOT_LOGGER_NAME,
    ColoredFormatter,
    disable_logging,
    get_logger,
    is_logging_configured,
    level_from_environment,
    setup_logging,
)


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    """Leave the package logger unconfigured between tests."""
    disable_logging()
    yield
    disable_logging()


@pytest.mark.unit
class TestGetLogger:
    """Tests for logger naming."""

    def test_root_logger(self) -> None:
        assert get_logger().name == ROOT_LOGGER_NAME
        assert get_logger(ROOT_LOGGER_NAME).name == ROOT_LOGGER_NAME

    def test_child_logger(self) -> None:
        assert get_logger("discovery").name == f"{ROOT_LOGGER_NAME}.discovery"

    def test_module_name_is_kept(self) -> None:
        """Test ``__name__`` style names are not prefixed twice."""
        name = f"{ROOT_LOGGER_NAME}.core.parser"

        assert get_logger(name).name == name


@pytest.mark.unit
class TestSetupLogging:
    """Tests for setup_logging / disable_logging."""

    def test_writes_to_stream(self) -> None:
        stream = StringIO()
        setup_logging(level=logging.INFO, stream=stream)

        get_logger("test").info("Found %d projects", 3)

        assert "Found 3 projects" in stream.getvalue()
        assert is_logging_configured()

    def test_level_filters_messages(self) -> None:
        stream = StringIO()
        setup_logging(level=logging.WARNING, stream=stream)

        get_logger("test").info("hidden")

        assert stream.getvalue() == ""

    def test_repeated_setup_replaces_handler(self) -> None:
        """Test calling setup twice does not duplicate output."""
        setup_logging(level=logging.INFO, stream=StringIO())
        setup_logging(level=logging.INFO, stream=StringIO())

        assert len(logging.getLogger(ROOT_LOGGER_NAME).handlers) == 1

    def test_disable(self) -> None:
        setup_logging(level=logging.DEBUG, stream=StringIO())

        disable_logging()

        assert not is_logging_configured()
        assert all(
            isinstance(h, logging.NullHandler)
            for h in logging.getLogger(ROOT_LOGGER_NAME).handlers
        )


@pytest.mark.unit
class TestLevelFromEnvironment:
    """Tests for DCU_ENABLE_LOGGING / DCU_LOGLEVEL."""

    def test_disabled_by_default(self) -> None:
        assert level_from_environment({}) is None
        assert level_from_environment({"DCU_LOGLEVEL": "info"}) is None

    @pytest.mark.parametrize("enabled", ["true", "TRUE", "1"])
    def test_enabled_defaults_to_debug(self, enabled: str) -> None:
        assert level_from_environment({"DCU_ENABLE_LOGGING": enabled}) == logging.DEBUG

    @pytest.mark.parametrize(
        "name,level",
        [
            ("Information", logging.INFO),
            ("warning", logging.WARNING),
            ("error", logging.ERROR),
            ("trace", logging.DEBUG),
            ("nonsense", logging.DEBUG),
        ],
    )
    def test_level_names(self, name: str, level: int) -> None:
        env = {"DCU_ENABLE_LOGGING": "true", "DCU_LOGLEVEL": name}

        assert level_from_environment(env) == level

    def test_reads_os_environ(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DCU_ENABLE_LOGGING", "1")
        monkeypatch.setenv("DCU_LOGLEVEL", "info")

        assert level_from_environment() == logging.INFO


@pytest.mark.unit
class TestColoredFormatter:
    """Tests for ANSI colouring of level names."""

    def test_no_color(self) -> None:
        formatter = ColoredFormatter("%(levelname)s %(message)s", use_color=False)
        record = logging.makeLogRecord({"levelname": "INFO", "msg": "hello"})

        assert formatter.format(record) == "INFO hello"

    def test_color_does_not_mutate_record(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(ColoredFormatter, "_should_use_color", staticmethod(lambda: True))
        formatter = ColoredFormatter("%(levelname)s", use_color=True)
        record = logging.makeLogRecord({"levelname": "ERROR", "msg": "x"})

        assert "\033[31m" in formatter.format(record)
        assert record.levelname == "ERROR"
