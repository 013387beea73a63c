#Description: Loguru configuration for structured logging; DEBUG flag raises verbosity.

from loguru import logger
import sys

from utils.config import settings

logger.remove()
logger.add(sys.stdout, level="DEBUG" if settings.DEBUG else "INFO",
           colorize=True,
           format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level}</level> | <cyan>{message}</cyan>")
