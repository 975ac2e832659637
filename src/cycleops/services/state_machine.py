"""
Request lifecycle state machine.

Transitions are pure: they take an immutable request and return a new one
with the status moved, ``updated_at`` stamped and the audit history extended.
Nothing is written here; the transition executor persists the result with a
version-checked write.

Edges (work state is ``active`` for repairs, ``arranging_delivery`` for rentals):

    pending          -> approved, rejected, expired
    approved         -> waiting_payment, work state
    waiting_payment  -> work state, expired
    arranging_delivery -> active_rental
    active, active_rental -> completed
"""

from datetime import datetime
from typing import Callable, Dict, Optional

from cycleops.exceptions import IllegalTransitionError, MissingRejectionReasonError, NotYetExpirableError
from cycleops.models import ServiceRequest, StatusChange, TransitionEvent
from cycleops.utils.time import ensure_utc, utc_now


class RequestStateMachine:
    def __init__(self, clock: Callable[[], datetime] = utc_now):
        self.clock = clock
        self._handlers: Dict[TransitionEvent, Callable[..., ServiceRequest]] = {
            TransitionEvent.APPROVE: self._approve,
            TransitionEvent.REJECT: self._reject,
            TransitionEvent.PAYMENT_CONFIRMED: self._payment_confirmed,
            TransitionEvent.ADVANCE: self._advance,
            TransitionEvent.COMPLETE: self._complete,
            TransitionEvent.EXPIRE: self._expire,
        }

    def transition(
        self,
        request: ServiceRequest,
        event: TransitionEvent,
        note: Optional[str] = None,
        payment_reference: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> ServiceRequest:
        """
        Apply ``event`` to ``request``.

        Args:
            request: Current request, left untouched
            event: Lifecycle event
            note: Rejection note, required for ``reject``
            payment_reference: Gateway payment id for ``payment_confirmed``
            now: Transition time, defaults to the machine's clock

        Returns:
            The request in its new status

        Raises:
            IllegalTransitionError: Event not allowed from the current status
            MissingRejectionReasonError: ``reject`` without a non-blank note
            NotYetExpirableError: ``expire`` before ``expires_at``
        """
        event = TransitionEvent(event)
        handler = self._handlers.get(event)
        if handler is None:
            raise IllegalTransitionError(request.id, request.kind, request.status, event)
        at = ensure_utc(now) or self.clock()
        return handler(request, at, note=note, payment_reference=payment_reference)

    @staticmethod
    def is_commitment(before: ServiceRequest, after: ServiceRequest) -> bool:
        """
        True when a transition irrevocably commits the request.

        That is the first move into the work state: a cash or zero-net
        approval, or a confirmed online payment. Coupon usage is counted here.
        """
        return after.status is after.WORK_STATE and before.status is not before.WORK_STATE

    def allowed_events(self, request: ServiceRequest):
        """Events that may be applied to ``request`` in its current status."""
        status = request.status.value
        events = []
        if status == "pending":
            events += [TransitionEvent.APPROVE, TransitionEvent.REJECT]
        if status in ("approved", "arranging_delivery"):
            events.append(TransitionEvent.ADVANCE)
        if status == "waiting_payment":
            events.append(TransitionEvent.PAYMENT_CONFIRMED)
        if request.status is request.ACTIVE_STATE:
            events.append(TransitionEvent.COMPLETE)
        if request.is_holding:
            events.append(TransitionEvent.EXPIRE)
        return events

    def _approve(self, request: ServiceRequest, at: datetime, **_) -> ServiceRequest:
        self._require(request, TransitionEvent.APPROVE, "pending")
        approved = self._move(request, request.Status.APPROVED, TransitionEvent.APPROVE, at)
        return self._route_payment(approved, at)

    def _reject(self, request: ServiceRequest, at: datetime, note: Optional[str] = None, **_) -> ServiceRequest:
        self._require(request, TransitionEvent.REJECT, "pending")
        note = (note or "").strip()
        if not note:
            raise MissingRejectionReasonError(request.id)
        return self._move(
            request, request.Status.REJECTED, TransitionEvent.REJECT, at, note=note, rejection_note=note
        )

    def _payment_confirmed(
        self, request: ServiceRequest, at: datetime, payment_reference: Optional[str] = None, **_
    ) -> ServiceRequest:
        self._require(request, TransitionEvent.PAYMENT_CONFIRMED, "waiting_payment")
        return self._move(
            request,
            request.WORK_STATE,
            TransitionEvent.PAYMENT_CONFIRMED,
            at,
            note=payment_reference,
            expires_at=None,
            payment_reference=payment_reference or request.payment_reference,
        )

    def _advance(self, request: ServiceRequest, at: datetime, **_) -> ServiceRequest:
        if request.status.value == "approved":
            return self._route_payment(request, at)
        if request.status is request.WORK_STATE and request.WORK_STATE is not request.ACTIVE_STATE:
            return self._move(request, request.ACTIVE_STATE, TransitionEvent.ADVANCE, at)
        raise IllegalTransitionError(request.id, request.kind, request.status, TransitionEvent.ADVANCE)

    def _complete(self, request: ServiceRequest, at: datetime, **_) -> ServiceRequest:
        if request.status is not request.ACTIVE_STATE:
            raise IllegalTransitionError(request.id, request.kind, request.status, TransitionEvent.COMPLETE)
        return self._move(request, request.Status.COMPLETED, TransitionEvent.COMPLETE, at)

    def _expire(self, request: ServiceRequest, at: datetime, **_) -> ServiceRequest:
        if not request.is_holding:
            raise IllegalTransitionError(request.id, request.kind, request.status, TransitionEvent.EXPIRE)
        if not request.is_expirable_at(at):
            raise NotYetExpirableError(request.id, request.expires_at)
        # expires_at is kept for audit
        return self._move(request, request.Status.EXPIRED, TransitionEvent.EXPIRE, at)

    def _route_payment(self, request: ServiceRequest, at: datetime) -> ServiceRequest:
        """approved -> waiting_payment for online payment, else straight to work."""
        if request.requires_online_payment:
            return self._move(request, request.Status.WAITING_PAYMENT, TransitionEvent.ADVANCE, at)
        return self._move(
            request, request.WORK_STATE, TransitionEvent.ADVANCE, at, note="no online payment due", expires_at=None
        )

    @staticmethod
    def _require(request: ServiceRequest, event: TransitionEvent, status: str) -> None:
        if request.status.value != status:
            raise IllegalTransitionError(request.id, request.kind, request.status, event)

    @staticmethod
    def _move(
        request: ServiceRequest,
        to_status,
        event: TransitionEvent,
        at: datetime,
        note: Optional[str] = None,
        **changes,
    ) -> ServiceRequest:
        change = StatusChange(
            from_status=request.status.value,
            to_status=to_status.value,
            event=event,
            at=at,
            note=note,
        )
        return request.evolve(
            status=to_status,
            updated_at=at,
            history=request.history + (change,),
            **changes,
        )
