"""
Logging configuration.
"""

import logging
from pathlib import Path
from typing import List, Optional, Union

from cycleops.constants import DEFAULT_LOG_BACKUP_COUNT, DEFAULT_LOG_FILE_SIZE_BYTES

FORMAT_TYPES = ("console", "json", "rich")
OUTPUTS = ("console", "file")


class LoggingConfig:
    """Configuration for the logging system."""

    def __init__(
        self,
        level: Union[str, int] = logging.INFO,
        format_type: str = "console",
        output: Union[str, List[str]] = "console",
        file_path: Optional[Path] = None,
        max_file_size: int = DEFAULT_LOG_FILE_SIZE_BYTES,
        backup_count: int = DEFAULT_LOG_BACKUP_COUNT,
        service_name: str = "cycleops",
        version: str = "unknown",
    ):
        self.level = level if isinstance(level, int) else getattr(logging, level.upper())
        if format_type not in FORMAT_TYPES:
            raise ValueError(f"Unknown log format '{format_type}', expected one of {FORMAT_TYPES}")
        self.format_type = format_type
        self.output = output if isinstance(output, list) else [output]
        self.file_path = Path(file_path) if file_path else None
        self.max_file_size = max_file_size
        self.backup_count = backup_count
        self.service_name = service_name
        self.version = version
