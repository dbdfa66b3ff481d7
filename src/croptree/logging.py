"""Logging helpers for croptree.

croptree logs through loguru and keeps its records disabled until
:func:`enable_logging` is called, so importing the library stays silent.
"""
from __future__ import annotations

import contextlib
import sys
from typing import TYPE_CHECKING

from loguru import logger

if TYPE_CHECKING:
    from loguru import Record

PACKAGE_NAME = __name__.split(".")[0]

_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - "
    "<level>{message}</level>"
)


class LoggingHandle:
    """Owns one loguru sink added by :func:`enable_logging`.

    Usable as a context manager; leaving the block removes the sink and
    disables croptree records again.
    """

    def __init__(self, handler_id: int):
        self.handler_id: int | None = handler_id

    def disable(self) -> None:
        if self.handler_id is None:
            return
        with contextlib.suppress(ValueError):
            logger.remove(self.handler_id)
        self.handler_id = None
        logger.disable(PACKAGE_NAME)

    def __enter__(self) -> LoggingHandle:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.disable()


def enable_logging(level: str = "INFO", sink=None) -> LoggingHandle:
    """Route croptree log records to ``sink`` (stderr by default).

    Parameters
    ----------
    level : str, default="INFO"
        Minimum loguru level name to emit.
    sink : file-like or callable, optional
        Any loguru sink. Defaults to ``sys.stderr``.

    Returns
    -------
    LoggingHandle
        Handle whose :meth:`LoggingHandle.disable` removes the sink.
    """
    logger.enable(PACKAGE_NAME)
    handler_id = logger.add(
        sys.stderr if sink is None else sink,
        level=level,
        filter=_is_croptree_record,
        format=_FORMAT,
    )
    return LoggingHandle(handler_id)


def _is_croptree_record(record: Record) -> bool:
    name = record["name"]
    return name is not None and name.startswith(PACKAGE_NAME)
