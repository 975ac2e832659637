"""
Application-wide constants for CycleOps.

This module contains magic numbers and defaults that are used throughout
the application to improve maintainability and reduce duplication.
"""

from decimal import Decimal

# Money
MONEY_QUANTUM = Decimal("0.01")
ZERO = Decimal("0.00")
MINOR_UNITS_PER_MAJOR = 100
DEFAULT_CURRENCY = "INR"
SUPPORTED_CURRENCIES = ("INR", "USD")

# Hold windows (minutes) before an unattended request expires
DEFAULT_REPAIR_HOLD_MINUTES = 15
DEFAULT_RENTAL_HOLD_MINUTES = 60
MAX_HOLD_MINUTES = 7 * 24 * 60

# Expiry sweeper
DEFAULT_SWEEP_INTERVAL_SECONDS = 60
MIN_SWEEP_INTERVAL_SECONDS = 1
MAX_SWEEP_INTERVAL_SECONDS = 3600

# Optimistic concurrency
DEFAULT_MAX_WRITE_ATTEMPTS = 3
DEFAULT_CONFLICT_BACKOFF_SECONDS = 0.01

# Payment gateway
DEFAULT_GATEWAY_BASE_URL = "https://api.razorpay.com"
DEFAULT_GATEWAY_TIMEOUT_SECONDS = 10
MAX_GATEWAY_TIMEOUT_SECONDS = 60
GATEWAY_ORDERS_ENDPOINT = "/v1/orders"

# Storage
DEFAULT_DATABASE_URL = "sqlite:///cycleops.db"

# Logging
DEFAULT_LOG_FILE_SIZE_BYTES = 10 * 1024 * 1024
MIN_LOG_FILE_SIZE_BYTES = 1024
DEFAULT_LOG_BACKUP_COUNT = 5

# Metrics
DEFAULT_METRICS_PORT = 8000

# HTTP status codes surfaced by error classes
HTTP_STATUS_BAD_REQUEST = 400
HTTP_STATUS_NOT_FOUND = 404
HTTP_STATUS_CONFLICT = 409
HTTP_STATUS_UNPROCESSABLE = 422
HTTP_STATUS_BAD_GATEWAY = 502
HTTP_STATUS_SERVICE_UNAVAILABLE = 503
