"""Tests for logging setup."""
import logging
from logging.handlers import RotatingFileHandler

import pytest

from tunevault.logging_config import LOG_MAX_BYTES, QUIET_LOGGERS, setup_logging


@pytest.fixture(autouse=True)
def restore_logging(monkeypatch):
    """Put the root logger back the way pytest configured it."""
    monkeypatch.delenv("LOG_PATH", raising=False)
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    quiet = {name: logging.getLogger(name).level for name in QUIET_LOGGERS}
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    for name, previous in quiet.items():
        logging.getLogger(name).setLevel(previous)


class TestSetupLogging:

    def test_explicit_level(self):
        setup_logging(level="debug", log_path="")

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert all(handler.level == logging.DEBUG for handler in root.handlers)

    def test_numeric_level_from_celery(self):
        setup_logging(level=logging.WARNING, log_path="")
        assert logging.getLogger().level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self):
        setup_logging(level="chatty", log_path="")
        assert logging.getLogger().level == logging.INFO

    def test_no_file_handler_without_path(self):
        setup_logging(level="info", log_path="")

        assert not any(isinstance(h, RotatingFileHandler) for h in logging.getLogger().handlers)

    def test_rotating_file_in_new_directory(self, tmp_path):
        log_file = tmp_path / "logs" / "nested" / "tunevault.log"

        setup_logging(level="info", log_path=str(log_file))
        logging.getLogger("tunevault.test").info("hello from the test")

        (file_handler,) = [h for h in logging.getLogger().handlers if isinstance(h, RotatingFileHandler)]
        assert file_handler.maxBytes == LOG_MAX_BYTES
        assert file_handler.backupCount == 5
        file_handler.flush()
        assert "hello from the test" in log_file.read_text(encoding="utf-8")

    def test_log_path_from_environment(self, tmp_path, monkeypatch):
        log_file = tmp_path / "env.log"
        monkeypatch.setenv("LOG_PATH", str(log_file))

        setup_logging(level="info")

        assert any(isinstance(h, RotatingFileHandler) for h in logging.getLogger().handlers)
        assert log_file.exists()

    def test_repeated_setup_replaces_handlers(self):
        setup_logging(level="info", log_path="")
        count = len(logging.getLogger().handlers)

        setup_logging(level="info", log_path="")

        assert len(logging.getLogger().handlers) == count

    def test_third_party_loggers_are_quieted(self):
        setup_logging(level="debug", log_path="")

        for name in QUIET_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING
