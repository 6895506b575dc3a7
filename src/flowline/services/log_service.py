"""Logging setup for the API server and the wait worker."""

import logging
import os
import time
from logging.handlers import TimedRotatingFileHandler

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"

# Chatty client libraries are capped at WARNING unless running at DEBUG
_NOISY_LOGGERS = ("httpx", "httpcore", "urllib3")


class SizeAndTimeRotatingHandler(TimedRotatingFileHandler):
    """Rotates at midnight or once the file reaches ``max_bytes``."""

    def __init__(self, filename, max_bytes, backup_count=0, **kwargs):
        self.max_bytes = max_bytes
        super().__init__(filename, backupCount=backup_count, **kwargs)

    def shouldRollover(self, record):
        if int(time.time()) >= self.rolloverAt:
            return 1

        if self.stream and self.max_bytes > 0:
            self.stream.seek(0, os.SEEK_END)
            if self.stream.tell() >= self.max_bytes:
                return 1

        return 0

    def doRollover(self):
        super().doRollover()
        self.rolloverAt = self.computeRollover(int(time.time()))


def configure_logging(
    log_file: str,
    log_dir: str = "logs",
    level: int | str = logging.INFO,
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 7,
    console: bool = True,
) -> logging.Logger:
    """Install console and rotating file handlers on the root logger.

    Args:
        log_file: Log file name, e.g. ``flowline-api.log``.
        log_dir: Directory for log files; created if missing.
        level: Logging level or its name (``"info"``).
        max_bytes: File size that forces a rollover.
        backup_count: Rotated files to keep.
        console: Also log to stderr.

    Returns:
        The configured root logger.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    os.makedirs(log_dir, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT)

    file_handler = SizeAndTimeRotatingHandler(
        filename=os.path.join(log_dir, log_file),
        max_bytes=max_bytes,
        backup_count=backup_count,
        when="midnight",
        interval=1,
        encoding="utf-8",
    )
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)

    if level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    return root
