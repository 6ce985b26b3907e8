"""Tests for logging setup."""

import logging
import logging.handlers
import uuid

import pytest

from backoffice.core.config import Settings
from backoffice.core.logging import configure_from_settings, setup_logger


@pytest.fixture
def logger_name():
    name = f"backoffice-test-{uuid.uuid4().hex[:8]}"
    yield name
    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


class TestSetupLogger:
    """Tests for setup_logger."""

    def test_console_only_by_default(self, logger_name):
        logger = setup_logger(logger_name)

        assert logger.level == logging.INFO
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], logging.StreamHandler)

    def test_level_is_case_insensitive(self, logger_name):
        assert setup_logger(logger_name, level="debug").level == logging.DEBUG

    def test_invalid_level(self, logger_name):
        with pytest.raises(ValueError, match="Invalid log level"):
            setup_logger(logger_name, level="LOUD")

    def test_no_duplicate_handlers(self, logger_name):
        setup_logger(logger_name)
        logger = setup_logger(logger_name, level="WARNING")

        assert len(logger.handlers) == 1
        assert logger.level == logging.WARNING

    def test_rotating_file_handler(self, logger_name, tmp_path):
        log_dir = tmp_path / "logs"
        logger = setup_logger(logger_name, log_dir=str(log_dir), file_logging=True, console_logging=False)

        logger.info("chain built")
        for handler in logger.handlers:
            handler.flush()

        assert isinstance(logger.handlers[0], logging.handlers.RotatingFileHandler)
        content = (log_dir / f"{logger_name}.log").read_text()
        assert "[INFO]" in content
        assert "chain built" in content


def test_configure_from_settings(tmp_path):
    logger = logging.getLogger("backoffice")
    saved_handlers, saved_level = list(logger.handlers), logger.level
    logger.handlers = []
    try:
        settings = Settings(
            _env_file=None, log_level="ERROR", log_dir=str(tmp_path), log_to_file=True,
            log_max_bytes=2048, log_backup_count=2,
        )
        configured = configure_from_settings(settings)

        assert configured is logger
        assert configured.level == logging.ERROR
        assert (tmp_path / "backoffice.log").exists()
        file_handler = next(h for h in logger.handlers if isinstance(h, logging.handlers.RotatingFileHandler))
        assert file_handler.maxBytes == 2048
        assert file_handler.backupCount == 2
    finally:
        for handler in logger.handlers:
            handler.close()
        logger.handlers = saved_handlers
        logger.setLevel(saved_level)

