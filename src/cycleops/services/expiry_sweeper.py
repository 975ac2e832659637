"""
Expiry sweeper.

Periodically expires pending and unpaid requests whose hold window has
elapsed. Each request goes through the same guarded write as interactive
transitions, so a sweep racing an approval resolves to whichever write
lands first.
"""

import threading
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional

from cycleops.constants import DEFAULT_SWEEP_INTERVAL_SECONDS
from cycleops.exceptions import CycleOpsError, InfrastructureError, StateError
from cycleops.infrastructure.metrics import CycleOpsMetrics, get_metrics
from cycleops.infrastructure.storage import RequestStore
from cycleops.logging import TimedOperation, get_logger
from cycleops.models import TransitionEvent
from cycleops.utils.time import utc_now

from .transition_executor import TransitionExecutor

logger = get_logger(__name__)


@dataclass
class SweepReport:
    """Outcome of one sweep, by request id."""

    started_at: datetime
    expired: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    expired_by_kind: Dict[str, int] = field(default_factory=dict)
    duration_seconds: float = 0.0

    @property
    def candidates(self) -> int:
        return len(self.expired) + len(self.skipped) + len(self.failed)


class ExpirySweeper:
    def __init__(
        self,
        request_store: RequestStore,
        executor: TransitionExecutor,
        interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
        clock: Callable[[], datetime] = utc_now,
        metrics: Optional[CycleOpsMetrics] = None,
    ):
        self.request_store = request_store
        self.executor = executor
        self.interval_seconds = interval_seconds
        self.clock = clock
        self.metrics = metrics or get_metrics()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def run_once(self) -> SweepReport:
        """
        Expire every request whose hold has elapsed.

        Requests that can no longer expire (approved, paid or already expired
        since they were listed) are skipped at debug level. Infrastructure
        failures are logged with the request id and the sweep moves on.

        Raises:
            StoreUnavailableError: Candidates could not be listed
        """
        now = self.clock()
        report = SweepReport(started_at=now)
        expired_kinds: Counter = Counter()

        with TimedOperation("expiry_sweep", logger) as timer:
            for request in self.request_store.list_expirable(now):
                try:
                    expired = self.executor.apply(request.id, TransitionEvent.EXPIRE, now=now)
                except StateError as e:
                    logger.debug(
                        f"Skipping request {request.id}: {e.message}",
                        request_id=request.id,
                        error_code=e.error_code,
                    )
                    report.skipped.append(request.id)
                except InfrastructureError as e:
                    logger.error(
                        f"Failed to expire request {request.id}: {e.message}",
                        request_id=request.id,
                        error_code=e.error_code,
                    )
                    self.metrics.record_error(type(e).__name__, "expiry_sweep")
                    report.failed.append(request.id)
                else:
                    report.expired.append(expired.id)
                    expired_kinds[expired.kind.value] += 1

        report.duration_seconds = timer.duration_seconds
        report.expired_by_kind = dict(expired_kinds)
        self.metrics.record_sweep(report.duration_seconds, report.expired_by_kind)

        if report.candidates:
            logger.info(
                f"Expiry sweep: {len(report.expired)} expired, {len(report.skipped)} skipped, "
                f"{len(report.failed)} failed",
                expired=len(report.expired),
                skipped=len(report.skipped),
                failed=len(report.failed),
            )
        return report

    def start(self) -> None:
        """Run sweeps every ``interval_seconds`` in a daemon thread."""
        if self.is_running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, name="cycleops-expiry-sweeper", daemon=True)
        self._thread.start()
        logger.info(f"Expiry sweeper started (every {self.interval_seconds}s)", interval=self.interval_seconds)

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        if self._thread is None:
            return
        self._stop_event.set()
        self._thread.join(timeout=timeout)
        self._thread = None
        logger.info("Expiry sweeper stopped")

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.run_once()
            except CycleOpsError as e:
                logger.error(f"Expiry sweep failed: {e.message}", error_code=e.error_code)
                self.metrics.record_error(type(e).__name__, "expiry_sweep")
            self._stop_event.wait(self.interval_seconds)
