import sys
from typing import Optional
from loguru import logger
import os

from .config import LoggingSettings

def setup_logging(
    debug_mode: bool = True,
    log_dir: Optional[str] = None,
    settings: Optional[LoggingSettings] = None,
):
    """
    Configures Loguru logger.

    The console sink always goes to stderr. A rotating file sink is only
    added when ``log_dir`` is given. A ``settings`` section (usually
    ``ConfigManager().data.logging``) overrides both arguments.
    """
    if settings is not None:
        debug_mode = settings.debug_mode
        log_dir = settings.log_dir

    # Remove default handler
    logger.remove()

    # Console Handler
    level = "DEBUG" if debug_mode else "INFO"
    logger.add(sys.stderr, level=level, format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>")

    # File Handler
    if log_dir:
        if not os.path.exists(log_dir):
            os.makedirs(log_dir)

        logger.add(os.path.join(log_dir, "vtree_{time}.log"), rotation="10 MB", retention="1 week", level="DEBUG")

    logger.info("Logging initialized.")
