"""loguru sink setup for the command line and REPL."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, Optional, TextIO

from loguru import logger

from .utils import log_level_override

if TYPE_CHECKING:
    from loguru import Record

# -v count => level; anything past the end clamps to TRACE.
VERBOSITY_LEVELS = ("ERROR", "WARNING", "INFO", "DEBUG", "TRACE")

FORMAT = "<g>{time:HH:mm:ss}</g>|<lvl>{level:8}</lvl>| <c>{name}</c> - {message}"


def level_for_verbosity(verbosity: int) -> str:
    idx = min(max(verbosity, 0), len(VERBOSITY_LEVELS) - 1)
    return VERBOSITY_LEVELS[idx]


def configure(verbosity: int = 0, sink: Optional[TextIO] = None) -> str:
    """Enable laspa logging on stderr and return the effective level name.

    LASPA_LOG_LEVEL, when set, wins over the -v count.
    """
    level = log_level_override() or level_for_verbosity(verbosity)
    threshold = logger.level(level).no

    def only_laspa(record: "Record") -> bool:
        return (record["name"] or "").startswith("laspa") and record["level"].no >= threshold

    logger.remove()
    logger.add(
        sink if sink is not None else sys.stderr,
        level=0,
        filter=only_laspa,
        format=FORMAT,
        colorize=None,
        backtrace=False,
        diagnose=False,
    )
    logger.enable("laspa")
    logger.debug("logging at {}", level)
    return level
