"""Tests for logging configuration."""

import logging
from types import SimpleNamespace

import pytest

from eventsync.config.settings import LoggingSettings
from eventsync.utils.logging import (
    VERBOSE,
    AutoColoredFormatter,
    TimestampedFileHandler,
    apply_command_line_overrides,
    get_log_level,
    setup_logging,
)


@pytest.fixture
def logging_settings(tmp_path):
    """Minimal settings object carrying only what logging reads."""
    return SimpleNamespace(logging=LoggingSettings(console_colors=False), data_dir=tmp_path)


@pytest.fixture(autouse=True)
def restore_package_logger():
    yield
    logger = logging.getLogger("eventsync")
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    logger.propagate = True


class _Collector(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


class TestVerboseLevel:
    def test_verbose_when_level_enabled_then_record_at_verbose(self):
        logger = logging.getLogger("eventsync.tests.verbose")
        collector = _Collector()
        logger.addHandler(collector)
        logger.setLevel(VERBOSE)
        try:
            logger.verbose("updated %s", "row")
            logger.setLevel(logging.INFO)
            logger.verbose("hidden")
        finally:
            logger.removeHandler(collector)

        assert [(r.levelname, r.getMessage()) for r in collector.records] == [("VERBOSE", "updated row")]


class TestGetLogLevel:
    def test_level_when_verbose_then_custom_value(self):
        assert get_log_level("verbose") == VERBOSE

    def test_level_when_standard_name_then_numeric(self):
        assert get_log_level("WARNING") == logging.WARNING

    def test_level_when_unknown_then_value_error(self):
        with pytest.raises(ValueError):
            get_log_level("LOUD")


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_setup_when_console_only_then_single_stream_handler(self, logging_settings):
        logger = setup_logging(logging_settings)

        assert logger.name == "eventsync"
        assert logger.propagate is False
        assert len(logger.handlers) == 1
        assert logger.handlers[0].level == logging.INFO
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_setup_when_file_enabled_then_log_file_written(self, logging_settings, tmp_path):
        logging_settings.logging.file_enabled = True
        logging_settings.logging.file_directory = str(tmp_path / "logs")

        logger = setup_logging(logging_settings)
        logger.warning("written to disk")
        for handler in logger.handlers:
            handler.flush()

        log_files = list((tmp_path / "logs").glob("eventsync_*.log"))
        assert len(log_files) == 1
        assert "written to disk" in log_files[0].read_text()


class TestTimestampedFileHandler:
    def test_handler_when_too_many_files_then_oldest_removed(self, tmp_path):
        for i in range(4):
            (tmp_path / f"eventsync_2024010{i}_000000.log").write_text("old")

        handler = TimestampedFileHandler(tmp_path, max_files=2)
        handler.close()

        assert len(list(tmp_path.glob("eventsync_*.log"))) == 2


class TestAutoColoredFormatter:
    def test_format_when_colors_disabled_then_plain(self):
        formatter = AutoColoredFormatter("%(levelname)s %(message)s", enable_colors=False)
        record = logging.LogRecord("eventsync", logging.ERROR, __file__, 1, "bad", None, None)

        assert formatter.format(record) == "ERROR bad"


class TestApplyCommandLineOverrides:
    def test_overrides_when_quiet_then_console_error(self, logging_settings):
        args = SimpleNamespace(log_level=None, verbose=False, quiet=True, log_dir=None, no_log_colors=False)

        apply_command_line_overrides(logging_settings, args)

        assert logging_settings.logging.console_level == "ERROR"

    def test_overrides_when_log_dir_then_file_logging_enabled(self, logging_settings, tmp_path):
        args = SimpleNamespace(log_level="DEBUG", verbose=False, quiet=False, log_dir=tmp_path, no_log_colors=True)

        apply_command_line_overrides(logging_settings, args)

        assert logging_settings.logging.file_enabled is True
        assert logging_settings.logging.file_directory == tmp_path
        assert logging_settings.logging.console_level == "DEBUG"
        assert logging_settings.logging.console_colors is False
