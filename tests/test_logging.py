"""Test the centralized logging functionality."""

import logging
from io import StringIO

from matrix_sim.log_config import LOG_FORMAT, get_logger, set_global_log_level


def test_set_global_log_level():
    """Test that set_global_log_level configures logging properly."""
    set_global_log_level(logging.WARNING)
    assert logging.getLogger("matrix_sim").level == logging.WARNING

    set_global_log_level(logging.DEBUG)
    assert logging.getLogger("matrix_sim").level == logging.DEBUG

    set_global_log_level(logging.INFO)
    assert logging.getLogger("matrix_sim").level == logging.INFO
    assert logging.getLogger().handlers[0].formatter._fmt == LOG_FORMAT


def test_logger_hierarchy():
    """Test that child loggers inherit from parent."""
    set_global_log_level(logging.WARNING)

    child_logger = get_logger("matrix_sim.topology.child")

    assert child_logger.getEffectiveLevel() == logging.WARNING


def test_logging_output():
    """Test that logging outputs at correct levels."""
    logger = get_logger("matrix_sim.test.output")

    log_capture = StringIO()
    handler = logging.StreamHandler(log_capture)
    handler.setLevel(logging.DEBUG)

    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)

    logger.debug("Debug message")
    logger.info("Info message")
    logger.warning("Warning message")

    log_output = log_capture.getvalue()
    assert "Debug message" in log_output
    assert "Info message" in log_output
    assert "Warning message" in log_output
    logger.removeHandler(handler)
