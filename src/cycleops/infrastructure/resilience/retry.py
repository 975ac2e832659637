"""
Retry mechanisms with configurable backoff.

The engine uses RetryManager for one thing only: re-running a whole
read-compute-write operation after it lost a compare-and-set race. Gateway
calls are never retried here; callers can build a manager from
``gateway_retry_policy()`` to do so at their boundary.
"""

import functools
import random
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Tuple, Type

from cycleops.constants import DEFAULT_CONFLICT_BACKOFF_SECONDS, DEFAULT_MAX_WRITE_ATTEMPTS
from cycleops.exceptions import (
    ConcurrentModificationError,
    GatewayUnavailableError,
    StoreUnavailableError,
    VersionConflict,
)
from cycleops.logging import get_logger

logger = get_logger(__name__)


class RetryStrategy(Enum):
    """Available retry strategies."""

    FIXED_DELAY = "fixed_delay"
    LINEAR_BACKOFF = "linear_backoff"
    EXPONENTIAL_BACKOFF = "exponential_backoff"
    EXPONENTIAL_BACKOFF_JITTER = "exponential_backoff_jitter"


@dataclass
class RetryPolicy:
    """Configuration for retry behavior."""

    max_attempts: int = DEFAULT_MAX_WRITE_ATTEMPTS
    strategy: RetryStrategy = RetryStrategy.EXPONENTIAL_BACKOFF_JITTER
    base_delay: float = DEFAULT_CONFLICT_BACKOFF_SECONDS
    max_delay: float = 1.0
    multiplier: float = 2.0
    jitter_max: float = 0.5
    retryable_exceptions: Tuple[Type[Exception], ...] = (VersionConflict,)


class BackoffStrategy(ABC):
    @abstractmethod
    def calculate_delay(self, attempt: int, base_delay: float, max_delay: float) -> float:
        """Calculate delay for given attempt number."""


class FixedDelayStrategy(BackoffStrategy):
    def calculate_delay(self, attempt: int, base_delay: float, max_delay: float) -> float:
        return min(base_delay, max_delay)


class LinearBackoffStrategy(BackoffStrategy):
    def calculate_delay(self, attempt: int, base_delay: float, max_delay: float) -> float:
        return min(base_delay * attempt, max_delay)


class ExponentialBackoffStrategy(BackoffStrategy):
    """Exponential backoff with optional jitter."""

    def __init__(self, multiplier: float = 2.0, jitter: bool = False, jitter_max: float = 0.1):
        self.multiplier = multiplier
        self.jitter = jitter
        self.jitter_max = jitter_max

    def calculate_delay(self, attempt: int, base_delay: float, max_delay: float) -> float:
        delay = min(base_delay * (self.multiplier ** (attempt - 1)), max_delay)
        if self.jitter and delay > 0:
            delay += delay * self.jitter_max * random.random()
        return delay


class RetryManager:
    """
    Runs a callable, retrying configured exception types with backoff.

    Exceptions outside ``retryable_exceptions`` propagate immediately. When
    attempts run out the last exception is re-raised with ``retry_attempts``
    set on it.
    """

    def __init__(self, policy: Optional[RetryPolicy] = None, sleep: Callable[[float], None] = time.sleep):
        self.policy = policy or RetryPolicy()
        self._sleep = sleep
        self.strategy_map = {
            RetryStrategy.FIXED_DELAY: FixedDelayStrategy(),
            RetryStrategy.LINEAR_BACKOFF: LinearBackoffStrategy(),
            RetryStrategy.EXPONENTIAL_BACKOFF: ExponentialBackoffStrategy(
                multiplier=self.policy.multiplier, jitter=False
            ),
            RetryStrategy.EXPONENTIAL_BACKOFF_JITTER: ExponentialBackoffStrategy(
                multiplier=self.policy.multiplier, jitter=True, jitter_max=self.policy.jitter_max
            ),
        }

    def __call__(self, func: Callable) -> Callable:
        """Decorator to add retry logic to a function."""

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            return self.execute_with_retry(func, *args, **kwargs)

        return wrapper

    def execute_with_retry(self, func: Callable, *args, **kwargs) -> Any:
        name = getattr(func, "__name__", repr(func))
        for attempt in range(1, self.policy.max_attempts + 1):
            try:
                result = func(*args, **kwargs)
                if attempt > 1:
                    logger.debug(f"{name} succeeded after {attempt} attempts", attempts=attempt)
                return result
            except self.policy.retryable_exceptions as e:
                if attempt >= self.policy.max_attempts:
                    e.retry_attempts = attempt
                    raise
                delay = self.calculate_delay(attempt)
                logger.debug(
                    f"{name} failed, retrying",
                    exception_type=type(e).__name__,
                    attempt=attempt,
                    max_attempts=self.policy.max_attempts,
                    delay=round(delay, 4),
                )
                if delay > 0:
                    self._sleep(delay)
        # max_attempts >= 1 guarantees the loop returns or raises
        raise RuntimeError(f"No attempts made for {name}")

    def calculate_delay(self, attempt: int) -> float:
        strategy = self.strategy_map[self.policy.strategy]
        return strategy.calculate_delay(attempt, self.policy.base_delay, self.policy.max_delay)


def conflict_retry_policy(
    max_attempts: int = DEFAULT_MAX_WRITE_ATTEMPTS,
    backoff_seconds: float = DEFAULT_CONFLICT_BACKOFF_SECONDS,
) -> RetryPolicy:
    return RetryPolicy(
        max_attempts=max_attempts,
        strategy=RetryStrategy.EXPONENTIAL_BACKOFF_JITTER,
        base_delay=backoff_seconds,
        retryable_exceptions=(VersionConflict,),
    )


def gateway_retry_policy(max_attempts: int = 3, base_delay: float = 1.0) -> RetryPolicy:
    """Policy for callers retrying transient gateway and store failures."""
    return RetryPolicy(
        max_attempts=max_attempts,
        strategy=RetryStrategy.EXPONENTIAL_BACKOFF_JITTER,
        base_delay=base_delay,
        max_delay=30.0,
        jitter_max=0.1,
        retryable_exceptions=(GatewayUnavailableError, StoreUnavailableError),
    )


def run_with_conflict_retry(
    operation: Callable[[], Any],
    entity: str,
    entity_id: Optional[str],
    retry_manager: Optional[RetryManager] = None,
) -> Any:
    """Run ``operation`` retrying lost CAS writes; exhaustion raises ConcurrentModificationError."""
    manager = retry_manager or RetryManager(conflict_retry_policy())
    try:
        return manager.execute_with_retry(operation)
    except VersionConflict as e:
        attempts = getattr(e, "retry_attempts", manager.policy.max_attempts)
        logger.error(
            f"Giving up on {entity} {entity_id} after repeated version conflicts",
            entity=entity,
            request_id=entity_id if entity == "request" else None,
            entity_id=entity_id,
            attempts=attempts,
        )
        raise ConcurrentModificationError(entity, entity_id, attempts) from e
