"""Tests for logging configuration."""

import logging

from cravecare.app_logging import configure_logging


def test_configure_logging_idempotent() -> None:
    logger = logging.getLogger("cravecare")
    logger.handlers.clear()

    configure_logging()
    first_count = len(logger.handlers)

    configure_logging()
    second_count = len(logger.handlers)

    assert first_count == 1
    assert second_count == 1


def test_module_loggers_inherit_package_level() -> None:
    configure_logging(logging.DEBUG)

    child = logging.getLogger("cravecare.services.rewards")

    assert child.getEffectiveLevel() == logging.DEBUG
    configure_logging()
