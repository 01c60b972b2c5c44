"""Tests for config-driven logger setup."""

import logging
from logging.handlers import RotatingFileHandler

import pytest

from retail_pos.utils.config import LoggingConfig
from retail_pos.utils.logger import get_logger


@pytest.fixture
def logging_config(monkeypatch, tmp_path):
    """Point the logger at a config with one file entry and one level override."""
    class MockConfig:
        is_production = False
        logging = LoggingConfig(
            files={"till": str(tmp_path / "till" / "till.log")},
            levels={"till": "WARNING"}
        )

    config = MockConfig()
    monkeypatch.setattr("retail_pos.utils.logger.get_config", lambda: config)
    yield config

    for name in ("till", "drawer"):
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)


def test_configured_logger_writes_its_file(logging_config, tmp_path):
    logger = get_logger("till")

    file_handlers = [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]
    assert len(file_handlers) == 1
    assert file_handlers[0].baseFilename == str(tmp_path / "till" / "till.log")
    assert logger.level == logging.WARNING


def test_logger_without_entry_is_console_only(logging_config):
    logger = get_logger("drawer")

    assert not any(isinstance(h, RotatingFileHandler) for h in logger.handlers)
    assert logger.level == logging.INFO


def test_production_skips_file_handlers(logging_config):
    logging_config.is_production = True

    logger = get_logger("till")

    assert not any(isinstance(h, RotatingFileHandler) for h in logger.handlers)


def test_repeated_calls_do_not_stack_handlers(logging_config):
    first = get_logger("till")
    handler_count = len(first.handlers)

    assert get_logger("till") is first
    assert len(first.handlers) == handler_count
