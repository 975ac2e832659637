"""
Persisted transitions.

Every lifecycle change, whether interactive or from the sweeper, goes
through ``TransitionExecutor.apply``: read the current request, compute the
transition, then write with a version check. A lost write re-runs the whole
sequence, so the loser of a race observes the winner's status and reports
IllegalTransitionError instead of applying twice.

A coupon use is counted only after the committing request write has landed.
The coupon is checked before the write so an exhausted coupon refuses
without touching the request; if another request takes the last use in
between, the request write is undone with a second version-checked write.
"""

from typing import Optional, Tuple

from cycleops.exceptions import CycleOpsError, VersionConflict
from cycleops.infrastructure.metrics import CycleOpsMetrics, get_metrics
from cycleops.infrastructure.resilience import RetryManager, run_with_conflict_retry
from cycleops.infrastructure.storage import RequestStore
from cycleops.logging import get_logger
from cycleops.models import ServiceRequest, TransitionEvent

from .coupon_validator import CouponValidator
from .state_machine import RequestStateMachine

logger = get_logger(__name__)


class TransitionExecutor:
    def __init__(
        self,
        request_store: RequestStore,
        state_machine: RequestStateMachine,
        coupon_validator: CouponValidator,
        retry_manager: Optional[RetryManager] = None,
        metrics: Optional[CycleOpsMetrics] = None,
    ):
        self.request_store = request_store
        self.state_machine = state_machine
        self.coupon_validator = coupon_validator
        self.retry_manager = retry_manager
        self.metrics = metrics or get_metrics()

    def apply(self, request_id: str, event: TransitionEvent, **kwargs) -> ServiceRequest:
        """
        Apply ``event`` to the stored request and persist the result.

        Keyword arguments are passed to ``RequestStateMachine.transition``.

        Raises:
            RequestNotFoundError: Unknown request id
            StateError: The event is not allowed from the stored status
            CouponExhaustedError: The coupon ran out before this commitment
            ConcurrentModificationError: Writes kept conflicting
        """
        event = TransitionEvent(event)

        def attempt() -> Tuple[ServiceRequest, ServiceRequest, bool]:
            current = self.request_store.get_by_id(request_id)
            updated = self.state_machine.transition(current, event, **kwargs)

            commits_coupon = bool(current.coupon_code) and self.state_machine.is_commitment(current, updated)
            if commits_coupon:
                self.coupon_validator.ensure_available(current.coupon_code, current.id)

            if not self.request_store.save_with_version_check(updated, current.version):
                raise VersionConflict("request", request_id)
            return current, updated.evolve(version=current.version + 1), commits_coupon

        previous, saved, commits_coupon = run_with_conflict_retry(
            attempt, "request", request_id, self.retry_manager
        )
        if commits_coupon:
            self._consume_or_undo(previous, saved)

        self.metrics.record_transition(saved.kind.value, event.value, saved.status.value)
        logger.info(
            f"Request {saved.id} is now {saved.status.value}",
            request_id=saved.id,
            kind=saved.kind.value,
            event=event.value,
            status=saved.status.value,
        )
        return saved

    def _consume_or_undo(self, previous: ServiceRequest, saved: ServiceRequest) -> None:
        """Count the coupon use for a committed request, restoring ``previous`` if that fails."""
        try:
            # Idempotent per request id
            self.coupon_validator.consume(
                previous.coupon_code, previous.id, previous.user_id, previous.discount_amount
            )
        except CycleOpsError as e:
            restored = self.request_store.save_with_version_check(previous, saved.version)
            if restored:
                logger.warning(
                    f"Undid commitment of request {previous.id}: {e.message}",
                    request_id=previous.id,
                    coupon_code=previous.coupon_code,
                    status=previous.status.value,
                )
            else:
                logger.error(
                    f"Request {previous.id} committed but coupon {previous.coupon_code} "
                    f"was not counted and the request changed again",
                    request_id=previous.id,
                    coupon_code=previous.coupon_code,
                    error_code=e.error_code,
                )
            raise
