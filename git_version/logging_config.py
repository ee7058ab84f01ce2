"""
Logging configuration for git-version.

Library modules only import the loguru logger; the command-line tool picks
the sink. Version output goes to stdout, so log messages always go to
stderr (directly or through a stderr rich Console) and never mix with it.
"""

import sys

from loguru import logger
from rich.console import Console

LOG_FORMAT = '<green>{time:YYYY/MM/DD HH:mm:ss}</green> | {level.icon}  - <level>{message}</level>'

# Shows which module issued a git command or reached a decision
DEBUG_LOG_FORMAT = ('<green>{time:YYYY/MM/DD HH:mm:ss}</green> | {level.icon}  - '
                    '<cyan>{name}:{function}</cyan> - <level>{message}</level>')

_DETAILED_LEVELS = ('DEBUG', 'VERBOSE', 'TRACE')


def get_log_format(log_level: str) -> str:
    """Get the message format for a level; the chattier levels include the source."""
    return DEBUG_LOG_FORMAT if log_level.upper() in _DETAILED_LEVELS else LOG_FORMAT


def setup_logging(log_level: str = 'INFO', console: Console = None) -> None:
    """
    Set up logging configuration with shared Rich console.

    Args:
        log_level: Logging level (DEBUG, VERBOSE, INFO, WARNING, ERROR, CRITICAL)
        console: Rich Console the messages are printed on, normally a stderr
            console (optional, defaults to sys.stderr)
    """
    # VERBOSE sits between DEBUG (10) and INFO (20)
    try:
        logger.level("VERBOSE", no=15, color="<cyan>", icon="ℹ️")
    except (TypeError, ValueError):
        pass

    logger.remove()
    log_format = get_log_format(log_level)

    if console:
        logger.add(
            lambda msg: console.print(msg, end='', markup=False, highlight=False, soft_wrap=True),
            level=log_level,
            format=log_format,
        )
    else:
        logger.add(sys.stderr, level=log_level, format=log_format, colorize=True)
