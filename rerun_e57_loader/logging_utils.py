"""Mini README: Logging helpers for the E57 loader.

Structure:
    * get_logger - factory returning module loggers with baseline configuration.
    * configure_root_logger - adjusts the global level once per process.

Usage:
    Modules import ``get_logger`` and keep a module level ``LOGGER``. The
    viewer reads the recording stream from stdout, so every diagnostic is
    routed to stderr and shows up in the viewer's own log output instead.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

_LOGGER_INITIALISED = False


def configure_root_logger(level: Optional[int | str] = None) -> None:
    """Attach a stderr handler to the root logger on first call.

    Later calls only adjust the level, and only when one is given.
    """

    global _LOGGER_INITIALISED
    if _LOGGER_INITIALISED:
        if level is not None:
            logging.getLogger().setLevel(level)
        return

    # stdout is reserved for the recording stream.
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            "[%(asctime)s] [%(levelname)s] %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.INFO if level is None else level)
    root_logger.addHandler(handler)
    _LOGGER_INITIALISED = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a module-specific logger ensuring baseline configuration."""

    configure_root_logger()
    return logging.getLogger(name)
