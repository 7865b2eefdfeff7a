import logging
import sys
from typing import Iterable, Optional

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Libraries that log every statement at INFO
QUIET_LOGGERS = ("sqlalchemy.engine", "aiosqlite")


def setup_logging(level: Optional[str] = "INFO", quiet: Iterable[str] = QUIET_LOGGERS) -> None:
    """
    Route all application logs to stdout with one formatter.
    Calling it again replaces the handler instead of adding another.
    """
    log_level = logging.getLevelName(str(level or "INFO").upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(log_level)

    for name in quiet:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))
