"""
Configuration models for CycleOps.

Pydantic models providing validation, type safety and documentation for
every configuration section, plus the environment-variable overrides.
"""

from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from cycleops.constants import (
    DEFAULT_CONFLICT_BACKOFF_SECONDS,
    DEFAULT_CURRENCY,
    DEFAULT_DATABASE_URL,
    DEFAULT_GATEWAY_BASE_URL,
    DEFAULT_GATEWAY_TIMEOUT_SECONDS,
    DEFAULT_LOG_BACKUP_COUNT,
    DEFAULT_LOG_FILE_SIZE_BYTES,
    DEFAULT_MAX_WRITE_ATTEMPTS,
    DEFAULT_METRICS_PORT,
    DEFAULT_RENTAL_HOLD_MINUTES,
    DEFAULT_REPAIR_HOLD_MINUTES,
    DEFAULT_SWEEP_INTERVAL_SECONDS,
    MAX_GATEWAY_TIMEOUT_SECONDS,
    MAX_HOLD_MINUTES,
    MAX_SWEEP_INTERVAL_SECONDS,
    MIN_LOG_FILE_SIZE_BYTES,
    MIN_SWEEP_INTERVAL_SECONDS,
    SUPPORTED_CURRENCIES,
)


class LogLevel(str, Enum):
    """Valid logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Logging level")
    format: str = Field("console", description="Log format: console, json, rich")
    output: List[str] = Field(["console"], description="Log outputs: console, file")
    file_path: Optional[Path] = Field(None, description="Log file path")
    max_file_size: int = Field(
        DEFAULT_LOG_FILE_SIZE_BYTES,
        ge=MIN_LOG_FILE_SIZE_BYTES,
        description="Maximum log file size in bytes",
    )
    backup_count: int = Field(
        DEFAULT_LOG_BACKUP_COUNT, ge=1, le=20, description="Number of backup log files to keep"
    )

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        if v not in ["console", "json", "rich"]:
            raise ValueError("format must be one of: console, json, rich")
        return v

    @field_validator("output")
    @classmethod
    def validate_output(cls, v: List[str]) -> List[str]:
        valid_outputs = {"console", "file"}
        for output in v:
            if output not in valid_outputs:
                raise ValueError(f"output must contain only: {', '.join(sorted(valid_outputs))}")
        return v


class MetricsConfig(BaseModel):
    """Metrics configuration."""

    enabled: bool = Field(False, description="Expose Prometheus metrics")
    port: int = Field(DEFAULT_METRICS_PORT, ge=1024, le=65535, description="Metrics server port")


class GeneralConfig(BaseModel):
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)


class HoldsConfig(BaseModel):
    """How long a pending or unpaid request is held before it expires."""

    repair_minutes: int = Field(DEFAULT_REPAIR_HOLD_MINUTES, ge=1, le=MAX_HOLD_MINUTES)
    rental_minutes: int = Field(DEFAULT_RENTAL_HOLD_MINUTES, ge=1, le=MAX_HOLD_MINUTES)

    def minutes_for(self, kind) -> int:
        if getattr(kind, "value", kind) == "rental":
            return self.rental_minutes
        return self.repair_minutes


class SweeperConfig(BaseModel):
    enabled: bool = Field(True, description="Run the expiry sweeper")
    interval_seconds: int = Field(
        DEFAULT_SWEEP_INTERVAL_SECONDS,
        ge=MIN_SWEEP_INTERVAL_SECONDS,
        le=MAX_SWEEP_INTERVAL_SECONDS,
        description="Seconds between sweeps",
    )


class GatewayConfig(BaseModel):
    """Payment gateway configuration."""

    name: str = Field("razorpay", description="Gateway name used in logs and errors")
    base_url: str = Field(DEFAULT_GATEWAY_BASE_URL, description="Gateway API base URL")
    key_id: Optional[str] = Field(None, description="Gateway API key id")
    key_secret: Optional[str] = Field(None, description="Gateway secret, also used to verify signatures")
    currency: str = Field(DEFAULT_CURRENCY, description="Order currency")
    timeout_seconds: int = Field(
        DEFAULT_GATEWAY_TIMEOUT_SECONDS, ge=1, le=MAX_GATEWAY_TIMEOUT_SECONDS
    )

    @field_validator("key_id", "key_secret")
    @classmethod
    def validate_credentials(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and len(v.strip()) == 0:
            return None
        return v

    @field_validator("currency")
    @classmethod
    def validate_currency(cls, v: str) -> str:
        v = v.strip().upper()
        if v not in SUPPORTED_CURRENCIES:
            raise ValueError(f"currency must be one of: {', '.join(SUPPORTED_CURRENCIES)}")
        return v

    @model_validator(mode="after")
    def validate_credentials_together(self) -> "GatewayConfig":
        if (self.key_id is None) != (self.key_secret is None):
            raise ValueError("Both key_id and key_secret must be provided together")
        return self

    @property
    def configured(self) -> bool:
        return self.key_id is not None and self.key_secret is not None


class ConcurrencyConfig(BaseModel):
    """Optimistic concurrency retry settings."""

    max_write_attempts: int = Field(DEFAULT_MAX_WRITE_ATTEMPTS, ge=1, le=10)
    backoff_seconds: float = Field(DEFAULT_CONFLICT_BACKOFF_SECONDS, ge=0, le=5)


class StorageConfig(BaseModel):
    database_url: str = Field(DEFAULT_DATABASE_URL, description="SQLAlchemy database URL")
    echo: bool = Field(False, description="Log SQL statements")


class CycleOpsConfig(BaseModel):
    """Main CycleOps configuration model."""

    general: GeneralConfig = Field(default_factory=GeneralConfig)
    holds: HoldsConfig = Field(default_factory=HoldsConfig)
    sweeper: SweeperConfig = Field(default_factory=SweeperConfig)
    gateway: GatewayConfig = Field(default_factory=GatewayConfig)
    concurrency: ConcurrencyConfig = Field(default_factory=ConcurrencyConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)

    model_config = {
        "extra": "forbid",
        "validate_assignment": True,
        "str_strip_whitespace": True,
    }


class CycleOpsSettings(BaseSettings):
    """Settings that can be overridden by environment variables."""

    # Logging settings
    cycleops_logging_level: Optional[str] = Field(None, alias="CYCLEOPS_LOGGING_LEVEL")
    cycleops_logging_format: Optional[str] = Field(None, alias="CYCLEOPS_LOGGING_FORMAT")
    cycleops_logging_output: Optional[str] = Field(None, alias="CYCLEOPS_LOGGING_OUTPUT")
    cycleops_logging_file_path: Optional[str] = Field(None, alias="CYCLEOPS_LOGGING_FILE_PATH")

    # Metrics settings
    cycleops_metrics_enabled: Optional[bool] = Field(None, alias="CYCLEOPS_METRICS_ENABLED")
    cycleops_metrics_port: Optional[int] = Field(None, alias="CYCLEOPS_METRICS_PORT")

    # Hold windows
    cycleops_repair_hold_minutes: Optional[int] = Field(None, alias="CYCLEOPS_REPAIR_HOLD_MINUTES")
    cycleops_rental_hold_minutes: Optional[int] = Field(None, alias="CYCLEOPS_RENTAL_HOLD_MINUTES")

    # Sweeper
    cycleops_sweep_interval: Optional[int] = Field(None, alias="CYCLEOPS_SWEEP_INTERVAL")

    # Gateway
    cycleops_gateway_key_id: Optional[str] = Field(None, alias="CYCLEOPS_GATEWAY_KEY_ID")
    cycleops_gateway_key_secret: Optional[str] = Field(None, alias="CYCLEOPS_GATEWAY_KEY_SECRET")
    cycleops_gateway_base_url: Optional[str] = Field(None, alias="CYCLEOPS_GATEWAY_BASE_URL")
    cycleops_gateway_currency: Optional[str] = Field(None, alias="CYCLEOPS_GATEWAY_CURRENCY")
    cycleops_gateway_timeout: Optional[int] = Field(None, alias="CYCLEOPS_GATEWAY_TIMEOUT")

    # Storage
    cycleops_database_url: Optional[str] = Field(None, alias="CYCLEOPS_DATABASE_URL")

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )
