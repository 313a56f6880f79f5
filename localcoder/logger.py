# localcoder/logger.py
"""Logging helpers. Modules log under the ``localcoder`` namespace; the CLI decides where it goes."""
import logging
from typing import Optional

import litellm
from rich.console import Console
from rich.logging import RichHandler

_LOGGER_NAME = "localcoder"


def get_logger(name: Optional[str] = None) -> logging.Logger:
    if name:
        if name.startswith(_LOGGER_NAME + "."):
            return logging.getLogger(name)
        return logging.getLogger(f"{_LOGGER_NAME}.{name}")
    return logging.getLogger(_LOGGER_NAME)


def setup_logging(debug: bool = False) -> None:
    """Attach a RichHandler on stderr to the package logger.

    Safe to call more than once: the second call only adjusts the level.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    level = logging.DEBUG if debug else logging.WARNING
    logger.setLevel(level)

    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(console=Console(stderr=True), show_path=False, markup=False, rich_tracebacks=True)
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
        logger.addHandler(handler)

    # Suppress LiteLLM debug info
    litellm.suppress_debug_info = True
    logging.getLogger("LiteLLM").setLevel(logging.WARNING)
    logging.getLogger("litellm").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


logging.getLogger(_LOGGER_NAME).addHandler(logging.NullHandler())
