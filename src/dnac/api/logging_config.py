"""Logging setup for command-line use.

Console output honors DNAC_LOG_LEVEL (default INFO); a debug file always
receives everything at DEBUG so a failed run can be inspected afterwards.
"""
import logging
import os
import sys
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def init_logging(
    level: Optional[Union[int, str]] = None,
    debug_file: Optional[str] = "debug.log",
) -> None:
    """Configure the root logger with a console and a debug-file handler.

    Args:
        level: Console level; falls back to DNAC_LOG_LEVEL, then INFO
        debug_file: Append-mode DEBUG log file (None disables it)
    """
    if level is None:
        level = os.getenv("DNAC_LOG_LEVEL", "INFO")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(formatter)
    handlers: list[logging.Handler] = [console]

    if debug_file:
        file_handler = logging.FileHandler(debug_file, mode="a", encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    logging.basicConfig(
        level=logging.DEBUG if debug_file else level,
        handlers=handlers,
        force=True,
    )

    # aiohttp's own debug chatter is not useful in the debug file
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
