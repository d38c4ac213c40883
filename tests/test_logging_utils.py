"""Tests for file logging setup."""

import logging

import pytest

from beacon.logging_utils import setup_logging


@pytest.fixture
def beacon_logger():
    logger = logging.getLogger("beacon")
    saved_handlers, saved_level = list(logger.handlers), logger.level
    yield logger
    for handler in logger.handlers:
        if handler not in saved_handlers:
            handler.close()
    logger.handlers = saved_handlers
    logger.setLevel(saved_level)


def test_setup_logging_writes_module_records(tmp_path, beacon_logger):
    logger, log_path = setup_logging(tmp_path / "logs", "debug")

    logging.getLogger("beacon.array.client").debug("GET /api/v1/status -> 200")
    for handler in logger.handlers:
        handler.flush()

    assert log_path == tmp_path / "logs" / "beacon.log"
    assert logger.level == logging.DEBUG
    assert "[DEBUG] beacon.array.client: GET /api/v1/status -> 200" in log_path.read_text()


def test_setup_logging_is_idempotent(tmp_path, beacon_logger):
    setup_logging(tmp_path, logging.INFO)
    before = len(beacon_logger.handlers)

    setup_logging(tmp_path, logging.WARNING)

    assert len(beacon_logger.handlers) == before
    assert beacon_logger.level == logging.WARNING
