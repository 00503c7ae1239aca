"""
Logging setup.

Every module asks for ``get_logger(__name__)``; the Streamlit page calls
``configure_logging`` once with the level from the config.
"""

import sys

from loguru import logger as _logger

LOG_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan> - <level>{message}</level>"
)

_logger.configure(extra={"name": "runner_sizer"})


def configure_logging(level: str = "INFO") -> None:
    """Replace loguru's default sink with a stderr sink at ``level``."""
    _logger.remove()
    _logger.add(sys.stderr, level=level.upper(), format=LOG_FORMAT)


def get_logger(name: str):
    """Return a logger bound to a module name."""
    return _logger.bind(name=name)
