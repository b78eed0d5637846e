"""Logging setup shared by all simulator components."""

import logging
import sys
from typing import Union

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_ROOT_NAME = "trainsim"


def setup_logger(name: str, level: Union[str, int, None] = None,
                 verbose: bool = False) -> logging.Logger:
    """Create or fetch a logger under the ``trainsim`` hierarchy.

    Handlers live on the package root logger only, so component loggers
    created per class share one stream and never print twice.

    Args:
        name: Logger name (usually the class name)
        level: Optional log level applied to the package root logger
        verbose: Shortcut for ``level="DEBUG"``

    Returns:
        Configured logger
    """
    root = logging.getLogger(_ROOT_NAME)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
        root.setLevel(logging.INFO)
        root.propagate = False

    if verbose:
        level = "DEBUG"
    if level is not None:
        root.setLevel(level.upper() if isinstance(level, str) else level)

    if name == _ROOT_NAME:
        return root
    return root.getChild(name)
