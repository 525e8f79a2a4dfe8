"""
Logging setup.

Modules log through ``logging.getLogger(__name__)``. ``setup_logger`` hangs an
:class:`InterceptHandler` on the ``blocktrans`` logger so those records are
rendered by loguru (console plus an optional rotating file).
"""

import logging
import sys
from pathlib import Path
from typing import Optional

try:
    from loguru import logger as loguru_logger
    HAS_LOGURU = True
except ImportError:
    HAS_LOGURU = False

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[source]}</cyan> - <level>{message}</level>"
)
PLAIN_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s - %(message)s"


class InterceptHandler(logging.Handler):
    """Route stdlib ``logging`` records from blocktrans modules into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = loguru_logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        loguru_logger.bind(source=record.name).opt(exception=record.exc_info).log(level, record.getMessage())


def _prepare_log_file(log_file: str) -> str:
    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    return str(path)


def setup_logger(
    name: str = "blocktrans",
    level: str = "INFO",
    log_file: Optional[str] = None,
    use_loguru: bool = True
) -> logging.Logger:
    """
    Configure the ``name`` logger tree and return its root logger.

    With loguru, records go to stderr and, when ``log_file`` is given, to a
    file rotated at 10 MB and kept for a week. Without it, plain stdlib
    handlers with the same layout are attached.
    """
    level = level.upper()
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level))
    logger.propagate = False

    if use_loguru and HAS_LOGURU:
        loguru_logger.remove()
        loguru_logger.configure(extra={"source": name})
        loguru_logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT)
        if log_file:
            loguru_logger.add(_prepare_log_file(log_file), level=level, rotation="10 MB", retention="1 week")
        logger.handlers = [InterceptHandler()]
        return logger

    formatter = logging.Formatter(PLAIN_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(_prepare_log_file(log_file), encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(formatter)
    logger.handlers = handlers
    return logger
