"""
Configuration management for CycleOps.

Usage:
    from cycleops.core.config import ConfigManager

    config = ConfigManager().load_config()
    hold = config.holds.minutes_for("rental")
"""

from .manager import ConfigManager
from .models import (
    ConcurrencyConfig,
    CycleOpsConfig,
    CycleOpsSettings,
    GatewayConfig,
    GeneralConfig,
    HoldsConfig,
    LoggingConfig,
    LogLevel,
    MetricsConfig,
    StorageConfig,
    SweeperConfig,
)

__all__ = [
    "ConfigManager",
    "ConcurrencyConfig",
    "CycleOpsConfig",
    "CycleOpsSettings",
    "GatewayConfig",
    "GeneralConfig",
    "HoldsConfig",
    "LoggingConfig",
    "LogLevel",
    "MetricsConfig",
    "StorageConfig",
    "SweeperConfig",
]
