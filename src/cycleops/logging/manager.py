"""
Centralized logging configuration and management.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional

from .config import LoggingConfig
from .formatters import ContextConsoleFormatter, StructuredFormatter, create_rich_handler
from .loggers import CycleOpsLogger

DEFAULT_LOG_FILE = Path("logs/cycleops.log")


class LoggingManager:
    """Singleton owning the root handlers installed for CycleOps."""

    _instance = None
    _initialized = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if not self._initialized:
            self.config = None
            self.handlers = []
            self._initialized = True

    def configure(self, config: LoggingConfig):
        """Replace the root handlers according to ``config``."""
        self.config = config

        root_logger = logging.getLogger()
        for handler in self.handlers:
            root_logger.removeHandler(handler)
            handler.close()
        self.handlers.clear()

        root_logger.setLevel(config.level)

        for output in config.output:
            if output == "console":
                self._add_console_handler(config)
            elif output == "file":
                self._add_file_handler(config)

        logging.getLogger("cycleops").setLevel(config.level)

    def _add_console_handler(self, config: LoggingConfig):
        if config.format_type == "rich":
            handler = create_rich_handler()
            handler.setFormatter(logging.Formatter("%(message)s"))
        elif config.format_type == "json":
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(StructuredFormatter(config.service_name, config.version))
        else:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(ContextConsoleFormatter())

        self._install(handler, config)

    def _add_file_handler(self, config: LoggingConfig):
        """Add file handler with rotation."""
        file_path = config.file_path or DEFAULT_LOG_FILE
        file_path.parent.mkdir(parents=True, exist_ok=True)

        handler = logging.handlers.RotatingFileHandler(
            file_path,
            maxBytes=config.max_file_size,
            backupCount=config.backup_count,
        )

        if config.format_type == "json":
            handler.setFormatter(StructuredFormatter(config.service_name, config.version))
        else:
            handler.setFormatter(ContextConsoleFormatter())

        self._install(handler, config)

    def _install(self, handler: logging.Handler, config: LoggingConfig):
        handler.setLevel(config.level)
        logging.getLogger().addHandler(handler)
        self.handlers.append(handler)

    def get_logger(self, name: str, correlation_id: Optional[str] = None) -> CycleOpsLogger:
        return CycleOpsLogger(name, correlation_id)


# Global logging manager instance
logging_manager = LoggingManager()


def configure_logging(config: LoggingConfig):
    """Configure the global logging system."""
    logging_manager.configure(config)
