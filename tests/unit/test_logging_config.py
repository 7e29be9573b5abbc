"""Unit tests for logging configuration."""

import logging

from clockmaker.clockmaker_config import LoggingConfig
from clockmaker.logging_config import LOG_FORMAT, _prepare_log_file, configure_logging


class TestConfigureLogging:
    def test_console_only(self, restore_logging):
        handlers = configure_logging(LoggingConfig(log_level="warning"))

        assert len(handlers) == 1
        assert isinstance(handlers[0], logging.StreamHandler)
        assert restore_logging.level == logging.WARNING
        assert restore_logging.handlers == handlers

    def test_file_handler(self, restore_logging, tmp_path):
        log_file = tmp_path / "logs" / "clockmaker.log"

        handlers = configure_logging(
            LoggingConfig(log_file=str(log_file), disable_console_logging=True)
        )
        logging.getLogger("clockmaker.test").info("tick recorded")
        for handler in handlers:
            handler.flush()

        assert len(handlers) == 1
        assert isinstance(handlers[0], logging.FileHandler)
        assert "[INFO] [test_logging_config] tick recorded" in log_file.read_text()

    def test_file_and_console(self, restore_logging, tmp_path):
        handlers = configure_logging(LoggingConfig(log_file=str(tmp_path / "a.log")))

        assert [type(handler) for handler in handlers] == [
            logging.FileHandler,
            logging.StreamHandler,
        ]

    def test_per_logger_levels(self, restore_logging):
        timer_logger = logging.getLogger("clockmaker.timer")
        saved = timer_logger.level
        try:
            configure_logging(LoggingConfig(loggers={"clockmaker.timer": "debug"}))

            assert timer_logger.level == logging.DEBUG
        finally:
            timer_logger.setLevel(saved)

    def test_format(self, restore_logging):
        handlers = configure_logging(LoggingConfig())

        assert handlers[0].formatter._fmt == LOG_FORMAT


class TestPrepareLogFile:
    def test_creates_directory(self, tmp_path):
        path = _prepare_log_file(str(tmp_path / "nested" / "dir" / "out.log"), 1024)

        assert (tmp_path / "nested" / "dir").is_dir()
        assert path.endswith("out.log")

    def test_collapses_slashes_and_whitespace(self, tmp_path):
        path = _prepare_log_file(f"  {tmp_path}//out.log  ", 1024)

        assert path == f"{tmp_path}/out.log"

    def test_relative_path_is_made_absolute(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        path = _prepare_log_file("out.log", 1024)

        assert path == str(tmp_path / "out.log")

    def test_truncates_oversized_file_to_tail(self, tmp_path):
        log_file = tmp_path / "big.log"
        log_file.write_text("a" * 50 + "b" * 10)

        _prepare_log_file(str(log_file), 10)

        assert log_file.read_text() == "b" * 10

    def test_small_file_untouched(self, tmp_path):
        log_file = tmp_path / "small.log"
        log_file.write_text("keep me")

        _prepare_log_file(str(log_file), 1024)

        assert log_file.read_text() == "keep me"
