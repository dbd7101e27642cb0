from __future__ import annotations

import logging

TRACE = 5
LOG_FORMAT = "%(asctime)s %(levelname)-7s [ %(name)s ] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "WARNING", "ERROR")

logging.addLevelName(TRACE, "TRACE")


def parse_level(name: str) -> int:
    if name.upper() == "TRACE":
        return TRACE
    level = logging.getLevelName(name.upper())
    if not isinstance(level, int):
        raise ValueError(f"unknown log level '{name}'")
    return level


def configure_logging(level: str | int = logging.WARNING) -> None:
    if isinstance(level, str):
        level = parse_level(level)
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATE_FORMAT, force=True)
