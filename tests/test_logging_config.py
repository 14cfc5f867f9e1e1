"""
Tests for the queue-based logging setup.
"""

import logging
import logging.handlers

import pytest

from app.logging_config import ThreadSafeLoggingConfig


@pytest.fixture
def logging_config():
    root_logger = logging.getLogger()
    handlers, level = list(root_logger.handlers), root_logger.level
    config = ThreadSafeLoggingConfig()
    yield config
    config.stop()
    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)


class TestThreadSafeLoggingConfig:
    """Test enabling, disabling and stopping the logging sink."""

    def test_enabled_uses_queue_handler(self, logging_config):
        logging_config.setup_logging("debug")

        root_logger = logging.getLogger()
        assert root_logger.level == logging.DEBUG
        assert any(isinstance(h, logging.handlers.QueueHandler) for h in root_logger.handlers)

    def test_noisy_libraries_silenced(self, logging_config):
        logging_config.setup_logging("INFO")
        assert logging.getLogger("werkzeug").level == logging.WARNING

    def test_disabled_drops_everything(self, logging_config):
        logging_config.setup_logging("INFO", enabled=False)

        root_logger = logging.getLogger()
        assert not root_logger.isEnabledFor(logging.CRITICAL)

    def test_stop_is_idempotent(self, logging_config):
        logging_config.setup_logging("INFO")
        logging_config.stop()
        logging_config.stop()
        assert logging_config._log_listener is None
