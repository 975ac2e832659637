"""
CycleOps Logging Package

Structured logging with correlation ids and timing helpers:
- formatters: Log formatting (JSON, console, rich)
- loggers: CycleOpsLogger carrying correlation id and keyword context
- performance: Operation timing
- config: Logging configuration
- manager: Centralized logging setup
"""

from .config import LoggingConfig
from .formatters import StructuredFormatter
from .loggers import CycleOpsLogger
from .manager import LoggingManager, configure_logging, logging_manager
from .performance import TimedOperation, timed

get_logger = logging_manager.get_logger

__all__ = [
    "LoggingConfig",
    "LoggingManager",
    "configure_logging",
    "CycleOpsLogger",
    "get_logger",
    "timed",
    "TimedOperation",
    "StructuredFormatter",
]
