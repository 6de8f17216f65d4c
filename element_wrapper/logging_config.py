"""Logging setup for element_wrapper.

Every module obtains its logger through :func:`get_logger`. Handlers are
only installed when the host calls :func:`configure_logging`; otherwise
records propagate to whatever the host application configured.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "element_wrapper"

_configured = False


def get_logger(name: str) -> logging.Logger:
    """Return a logger below the package namespace.

    Args:
        name: Usually ``__name__`` of the calling module.

    Returns:
        The logger instance.
    """
    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + "."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)


def configure_logging(level: str | int = "INFO", console: Console | None = None) -> logging.Logger:
    """Install a rich handler on the package logger once.

    Args:
        level: Log level name or number.
        console: Console to write to; stderr when omitted.

    Returns:
        The package logger.
    """
    global _configured

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level if isinstance(level, int) else level.upper())

    if not _configured:
        handler = RichHandler(
            console=console or Console(stderr=True),
            show_path=False,
            markup=False,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
        _configured = True

    return logger
