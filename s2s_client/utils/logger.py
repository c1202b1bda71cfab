# Save this file as: s2s_client/utils/logger.py
import os
import sys
from typing import Optional

from loguru import logger

CONSOLE_FORMAT = '{time:HH:mm:ss} | {level: <8} | {message}'
FILE_FORMAT = '{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}'


def configure_logging(level: str = 'INFO', log_dir: Optional[str] = None):
    """Install the console sink (stderr) and, if log_dir is given, a daily file sink"""
    logger.remove()

    # Console handler goes to stderr so transcripts printed on stdout stay clean
    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        logger.add(
            os.path.join(log_dir, 's2s_{time:YYYY-MM-DD}.log'),
            format=FILE_FORMAT,
            level=level
        )


# Console-only until the CLI reconfigures
configure_logging()
