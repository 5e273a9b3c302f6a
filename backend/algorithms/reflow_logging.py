"""
Logger capability used by the constraint checker and reflow engine.

Anything with info/warning/error methods works, including a standard
logging.Logger. NullLogger is the default and discards everything.
"""

import logging
import os
from typing import Any, Optional, Protocol

ENGINE_LOGGER_NAME = 'reflow'
LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'


class ReflowLogger(Protocol):
    def info(self, msg: str, *args: Any) -> None: ...

    def warning(self, msg: str, *args: Any) -> None: ...

    def error(self, msg: str, *args: Any) -> None: ...


class NullLogger:
    """No-op logger."""

    def info(self, msg: str, *args: Any) -> None:
        pass

    def warning(self, msg: str, *args: Any) -> None:
        pass

    def error(self, msg: str, *args: Any) -> None:
        pass


def resolve_logger(logger: Optional[ReflowLogger]) -> ReflowLogger:
    """Return the given logger, or a NullLogger when none was supplied."""
    return logger if logger is not None else NullLogger()


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """
    Configure root logging for the CLI / web entry points and return the
    'reflow' logger that gets injected into the engine.

    Level defaults to REFLOW_LOG_LEVEL (or INFO).
    """
    level_name = (level or os.environ.get('REFLOW_LOG_LEVEL', 'INFO')).upper()
    numeric = logging.getLevelName(level_name)
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown log level: {level_name}")

    logging.basicConfig(level=numeric, format=LOG_FORMAT)
    logger = logging.getLogger(ENGINE_LOGGER_NAME)
    logger.setLevel(numeric)
    return logger
