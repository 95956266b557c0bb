"""
Logging configuration for the command line entry point.
"""
import logging
import sys

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"
HANDLER_NAME = "dx-stderr"


def setup_logging(level: str = "WARNING") -> None:
    """
    Installs a single stderr handler on the ``dx`` logger.

    Repeated calls adjust the level and point the handler at the current
    ``sys.stderr``.

    :param level: A logging level name, e.g. "DEBUG".
    """
    logger = logging.getLogger("dx")
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
    handler = next((h for h in logger.handlers if h.get_name() == HANDLER_NAME), None)
    if handler is None:
        handler = logging.StreamHandler()
        handler.set_name(HANDLER_NAME)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    else:
        handler.setStream(sys.stderr)
