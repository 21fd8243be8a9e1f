"""Logging helpers shared by every liftsim component."""

import logging
import sys
from typing import Optional, Union

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
ROOT_LOGGER = "liftsim"


def _root_logger() -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
        root.addHandler(handler)
        root.setLevel(logging.INFO)
        root.propagate = False
    return root


def setup_logger(name: str, level: Optional[Union[str, int]] = None,
                 verbose: bool = False) -> logging.Logger:
    """Create (or fetch) a logger under the shared 'liftsim' logger.

    Component loggers carry no handler of their own and inherit the level
    of 'liftsim', so setup_logger("liftsim", level="DEBUG") turns on debug
    output everywhere. Repeated calls never stack handlers.

    Args:
        name: Logger name, usually the class name of the caller
        level: Logging level name or number; left unchanged when None
        verbose: Shortcut for DEBUG level when no explicit level is given

    Returns:
        Configured logger instance
    """
    if level is None and verbose:
        level = "DEBUG"
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    _root_logger()
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"

    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level)
    return logger
