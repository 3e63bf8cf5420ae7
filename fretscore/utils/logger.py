import logging
import sys
from typing import Optional, TextIO, Union

def setup_logger(level: Union[int, str] = logging.INFO, stream: Optional[TextIO] = None):
    """
    Configures the root logger for command-line use.

    Logs go to stderr by default so that JSON written to stdout stays clean.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    logger = logging.getLogger()

    if logger.hasHandlers():
        logger.handlers.clear()

    logger.setLevel(level)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(level)

    # In debug mode, show module name and line number
    if level == logging.DEBUG:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s (%(filename)s:%(lineno)d)'
        )
    else:
        formatter = logging.Formatter('%(message)s')

    handler.setFormatter(formatter)
    logger.addHandler(handler)
