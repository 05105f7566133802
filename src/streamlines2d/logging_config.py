"""
Logging configuration for the streamlines2d namespace.

Module loggers (`streamlines2d.field`, `streamlines2d.streamline`,
`streamlines2d.mesh`) propagate to the package logger configured here.
Seed rejections and loop stops are DEBUG, placement summaries INFO and
malformed mesh records ERROR, so per-module levels pick what gets through.
"""
from __future__ import annotations

from collections.abc import Mapping

import logging
import sys

PACKAGE = "streamlines2d"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    level: int = logging.INFO,
    log_file: str | None = None,
    *,
    module_levels: Mapping[str, int] | None = None,
) -> logging.Logger:
    """
    Configure the package logger and, optionally, individual module loggers.

    Args:
        level: Level for the whole package (e.g. logging.INFO).
        log_file: Optional path to also write logs to.
        module_levels: Per-module overrides keyed by the short module name,
            e.g. {"field": logging.DEBUG} to see every rejected seed while
            the rest of the package stays at `level`.
    """
    logger = logging.getLogger(PACKAGE)
    logger.setLevel(level)

    # repeated calls replace handlers instead of duplicating output
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()

    # handlers stay at NOTSET; logger levels decide what is emitted
    formatter = logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S")
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode="w", encoding="utf-8"))
    for h in handlers:
        h.setFormatter(formatter)
        logger.addHandler(h)

    for name, lvl in (module_levels or {}).items():
        short = name.removeprefix(f"{PACKAGE}.")
        logging.getLogger(f"{PACKAGE}.{short}").setLevel(lvl)

    logger.debug("Logging initialized at %s.", logging.getLevelName(level))
    return logger
