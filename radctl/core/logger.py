"""
Logging setup using loguru
"""

from loguru import logger
import sys

def setup_logger(level: str = "INFO"):
    """Setup logger with colored formatting"""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        colorize=True
    )
    return logger
