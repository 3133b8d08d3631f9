from __future__ import annotations

import logging

import pytest

from dargo_client.logging_config import ConsoleFormatter, configure_logging


@pytest.fixture
def package_logger():
    logger = logging.getLogger("dargo_client")
    saved_handlers, saved_level = list(logger.handlers), logger.level
    yield logger
    logger.handlers[:] = saved_handlers
    logger.setLevel(saved_level)


def _console_handlers(logger: logging.Logger) -> list[logging.Handler]:
    return [h for h in logger.handlers if isinstance(h.formatter, ConsoleFormatter)]


def test_configure_twice_keeps_one_console_handler(package_logger):
    configure_logging("DEBUG")
    configure_logging("WARNING")

    assert len(_console_handlers(package_logger)) == 1
    assert package_logger.level == logging.WARNING


def test_other_handlers_are_left_alone(package_logger):
    other = logging.NullHandler()
    package_logger.addHandler(other)

    configure_logging()
    assert other in package_logger.handlers
    assert len(_console_handlers(package_logger)) == 1


def test_console_format():
    record = logging.LogRecord("dargo_client.connection", logging.INFO, __file__, 1, "state %s", ("connected",), None)
    assert ConsoleFormatter().format(record).endswith("[INFO] [test_logging_config] state connected")
