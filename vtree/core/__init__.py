"""
vtree Core - Shared infrastructure.

Provides:
- Signal: Synchronous observer notifications
- ConfigManager: Configuration with optional persistence
- setup_logging: Loguru sink configuration
"""
from .events import Signal
from .config import ConfigManager, AppConfig, TreeOptions, LoggingSettings
from .logging import setup_logging
