"""Logger configuration for runplan.

Plan normalization logs through loguru with structured keyword arguments
(``week_index``, ``flow``, ``tier``...). Both sinks append ``{extra}`` so
those fields show up next to the message.
"""

import sys
from pathlib import Path

from loguru import logger

from runplan.config.settings import Settings

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level> {extra}"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message} {extra}"


def setup_logger(config: Settings) -> list[int]:
    """Configure loguru from settings.

    A colored console sink is always installed. When ``LOG_FILE`` is set, a
    rotating file sink is added with the configured rotation and retention.

    Args:
        config: Settings providing LOG_LEVEL, LOG_FILE, LOG_ROTATION and LOG_RETENTION

    Returns:
        Ids of the installed sinks, console first
    """
    logger.remove()

    sink_ids = [logger.add(sys.stderr, format=CONSOLE_FORMAT, level=config.log_level, colorize=True)]

    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        sink_ids.append(
            logger.add(
                log_path,
                format=FILE_FORMAT,
                level=config.log_level,
                rotation=config.log_rotation,
                retention=config.log_retention,
                compression="zip",
                backtrace=True,
                diagnose=True,
            )
        )

    logger.info("Logger initialized", log_level=config.log_level, log_file=config.log_file)
    return sink_ids
