"""
Logging configuration for Attendance Service.

Provides structured logging with station ID context.
"""

import logging
import sys
from typing import Optional


LOG_FORMAT = '[%(levelname)s] [station=%(station_id)s] %(name)s: %(message)s'


class StationContextFilter(logging.Filter):
    """Add attendance station context to log records."""

    def __init__(self, station_id: str):
        super().__init__()
        self.station_id = station_id

    def filter(self, record: logging.LogRecord) -> bool:
        record.station_id = self.station_id
        return True


def setup_logging(
    station_id: str,
    debug: bool = False,
    log_file: Optional[str] = None
) -> None:
    """
    Configure logging for the service.

    Args:
        station_id: Station identifier for log context
        debug: Enable debug level logging
        log_file: Optional file to mirror console output into
    """
    level = logging.DEBUG if debug else logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT)
    context_filter = StationContextFilter(station_id)

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        handler.addFilter(context_filter)
        root_logger.addHandler(handler)

    # urllib3 is chatty at DEBUG
    logging.getLogger('urllib3').setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
