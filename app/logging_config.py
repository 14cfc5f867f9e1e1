"""
Logging Configuration Module

Thread-safe logging for the tracking service. Request handlers and the
write pool log from many threads at once, so records go through a queue
and are emitted by a single listener.
"""

import logging
import logging.handlers
import sys
from queue import Queue
from typing import Optional


class ThreadSafeLoggingConfig:
    """Thread-safe logging configuration with queue-based logging."""

    def __init__(self):
        self._log_listener: Optional[logging.handlers.QueueListener] = None
        self._log_queue: Optional[Queue] = None

    def setup_logging(self, level: str = "INFO", enabled: bool = True) -> None:
        """
        Configure the root logger.

        Args:
            level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            enabled: When False every record is dropped
        """
        self.stop()

        root_logger = logging.getLogger()
        root_logger.handlers.clear()

        if not enabled:
            root_logger.addHandler(logging.NullHandler())
            root_logger.setLevel(logging.CRITICAL + 1)
            return

        self._log_queue = Queue()
        queue_handler = logging.handlers.QueueHandler(self._log_queue)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )

        self._log_listener = logging.handlers.QueueListener(
            self._log_queue, console_handler, respect_handler_level=True
        )
        self._log_listener.start()

        root_logger.addHandler(queue_handler)
        root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

        if root_logger.level > logging.DEBUG:
            self._silence_noisy_libraries()

    def _silence_noisy_libraries(self) -> None:
        """Silence noisy third-party libraries."""
        noisy_loggers = [
            "urllib3",
            "werkzeug",
        ]

        for name in noisy_loggers:
            logging.getLogger(name).setLevel(logging.WARNING)

    def stop(self) -> None:
        """Stop the logging listener and cleanup."""
        if self._log_listener:
            self._log_listener.stop()
            self._log_listener = None
        if self._log_queue:
            self._log_queue = None


# Global logging configuration instance
logging_config = ThreadSafeLoggingConfig()


def setup_logging(level: str = "INFO", enabled: bool = True) -> None:
    """
    Setup thread-safe logging configuration.

    Args:
        level: Log level name
        enabled: Whether logging output is enabled at all
    """
    logging_config.setup_logging(level, enabled)


def stop_logging() -> None:
    """Stop the logging listener and cleanup."""
    logging_config.stop()
