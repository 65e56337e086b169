"""
Unit Tests for Logging Setup

setup_logging() owns the ``cvdrisk`` logger only.
"""
import logging

import pytest

from cvdrisk.utils.logging import PACKAGE_LOGGER, StructuredFormatter, get_logger, setup_logging


@pytest.fixture
def host_root_logger():
    root = logging.getLogger()
    handler = logging.NullHandler()
    level = root.level
    root.addHandler(handler)
    root.setLevel(logging.ERROR)
    yield root, handler
    root.removeHandler(handler)
    root.setLevel(level)
    setup_logging("INFO")


class TestSetupLogging:
    """Tests for setup_logging()."""

    def test_root_logger_is_left_alone(self, host_root_logger):
        root, handler = host_root_logger

        setup_logging("DEBUG")

        assert handler in root.handlers
        assert root.level == logging.ERROR

    def test_package_logger_is_configured(self, host_root_logger):
        setup_logging("warning")
        package = logging.getLogger(PACKAGE_LOGGER)

        assert package.level == logging.WARNING
        assert len(package.handlers) == 1
        assert isinstance(package.handlers[0].formatter, StructuredFormatter)

    def test_repeated_setup_does_not_stack_handlers(self, host_root_logger):
        setup_logging("INFO")
        setup_logging("INFO")
        assert len(logging.getLogger(PACKAGE_LOGGER).handlers) == 1

    def test_unknown_level_falls_back_to_info(self, host_root_logger):
        setup_logging("chatty")
        assert logging.getLogger(PACKAGE_LOGGER).level == logging.INFO

    def test_module_loggers_are_children(self):
        assert get_logger("cvdrisk.engine").parent is logging.getLogger(PACKAGE_LOGGER)
