"""
Retry support.

RetryManager drives optimistic-concurrency retries inside the engine and is
exported for callers that want to retry GatewayUnavailableError at their
own boundary.
"""

from .retry import (
    RetryManager,
    RetryPolicy,
    RetryStrategy,
    conflict_retry_policy,
    gateway_retry_policy,
    run_with_conflict_retry,
)

__all__ = [
    "RetryManager",
    "RetryPolicy",
    "RetryStrategy",
    "conflict_retry_policy",
    "gateway_retry_policy",
    "run_with_conflict_retry",
]
