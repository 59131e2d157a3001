# lodestone/logging_config.py
import logging
import sys
from typing import TextIO

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Chatty libraries that stay at WARNING unless we run at DEBUG.
NOISY_LOGGERS = ("aiohttp", "asyncio")


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    stream: TextIO | None = None,
) -> logging.Logger:
    """
    Configure the root logger for a load-test run.

    Log records go to stderr by default so the report printed on stdout
    stays clean. If log_file is provided, records are also written there.
    """
    logger = logging.getLogger()
    logger.setLevel(level.upper())

    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler(stream or sys.stderr)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
        logger.info(f"Logging to file: {log_file}")

    third_party_level = logging.DEBUG if logger.level <= logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(third_party_level)

    def handle_exception(exc_type, exc_value, exc_traceback):
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_traceback)
            return
        logger.error("Uncaught exception", exc_info=(exc_type, exc_value, exc_traceback))

    sys.excepthook = handle_exception

    return logger
