"""
Payment reconciliation with the external gateway.

Creates gateway orders for requests awaiting online payment and verifies the
signed callback the customer brings back. A bad signature is expected traffic,
so verification answers False instead of raising. The reconciler records
payment transactions but never changes a request's status; the caller does
that through the state machine once a payment verifies.
"""

import uuid
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Union

from cycleops.constants import DEFAULT_CURRENCY, ZERO
from cycleops.exceptions import IllegalTransitionError, InvalidAmountError, PaymentAlreadyCompletedError
from cycleops.infrastructure.gateway import PaymentGateway, verify_signature
from cycleops.infrastructure.metrics import CycleOpsMetrics, get_metrics
from cycleops.infrastructure.storage import PaymentTransactionStore
from cycleops.logging import get_logger
from cycleops.models import GatewayOrder, PaymentPayload, PaymentTransaction, ServiceRequest
from cycleops.utils.money import from_minor_units, to_minor_units
from cycleops.utils.time import utc_now

logger = get_logger(__name__)

CREATE_ORDER = "create_payment_order"


class PaymentReconciler:
    def __init__(
        self,
        gateway: PaymentGateway,
        transaction_store: PaymentTransactionStore,
        key_secret: str,
        currency: str = DEFAULT_CURRENCY,
        clock: Callable[[], datetime] = utc_now,
        metrics: Optional[CycleOpsMetrics] = None,
    ):
        self.gateway = gateway
        self.transaction_store = transaction_store
        self.key_secret = key_secret
        self.currency = currency
        self.clock = clock
        self.metrics = metrics or get_metrics()

    def create_order(self, request: ServiceRequest) -> GatewayOrder:
        """
        Create a gateway order for the request's net amount.

        Args:
            request: Request in ``waiting_payment``

        Returns:
            GatewayOrder referencing the pending PaymentTransaction

        Raises:
            IllegalTransitionError: Request is not waiting for payment
            PaymentAlreadyCompletedError: A payment already completed for it
            InvalidAmountError: Nothing to pay; settle through the cash path
            GatewayUnavailableError: Gateway unreachable or failing, retryable
            GatewayRejectedError: Gateway refused the order
        """
        if request.status.value != "waiting_payment":
            raise IllegalTransitionError(request.id, request.kind, request.status, CREATE_ORDER)

        completed = self._completed_transaction(request.id)
        if completed is not None:
            raise PaymentAlreadyCompletedError(request.id, completed.payment_id)

        if request.net_amount <= ZERO:
            raise InvalidAmountError(request.id, request.net_amount)

        amount_minor = to_minor_units(request.net_amount)
        response = self.gateway.create_order(
            amount_minor,
            self.currency,
            {
                "receipt": f"{request.kind.value}_{request.id}",
                "request_id": request.id,
                "request_kind": request.kind.value,
                "user_id": request.user_id,
            },
        )

        now = self.clock()
        transaction = PaymentTransaction(
            id=uuid.uuid4().hex,
            request_id=request.id,
            request_kind=request.kind,
            user_id=request.user_id,
            gateway_order_id=response["order_id"],
            amount=request.net_amount,
            amount_minor=amount_minor,
            currency=response.get("currency") or self.currency,
            created_at=now,
            updated_at=now,
        )
        self.transaction_store.add(transaction)
        logger.info(
            f"Payment order {transaction.gateway_order_id} created for request {request.id}",
            request_id=request.id,
            order_id=transaction.gateway_order_id,
            amount_minor=amount_minor,
        )
        return GatewayOrder(
            gateway_order_id=transaction.gateway_order_id,
            amount=from_minor_units(amount_minor),
            currency=transaction.currency,
            amount_minor=amount_minor,
            transaction_id=transaction.id,
        )

    def verify_payment(self, request: ServiceRequest, payload: Union[PaymentPayload, Dict[str, Any]]) -> bool:
        """True when the payload carries a valid signature for one of the request's orders."""
        return self.reconcile(request, payload) is not None

    def reconcile(
        self, request: ServiceRequest, payload: Union[PaymentPayload, Dict[str, Any]]
    ) -> Optional[PaymentTransaction]:
        """
        Verify a payment callback and record its outcome.

        Returns the completed transaction, or None when the payload is
        malformed, names an order of another request, or fails the signature
        check. A failed check on a known pending transaction marks it failed.
        """
        if not isinstance(payload, PaymentPayload):
            payload = PaymentPayload.from_mapping(payload)
        if payload is None:
            logger.warning("Malformed payment payload", request_id=request.id)
            self.metrics.record_payment_verification(False)
            return None

        transaction = self.transaction_store.get_by_order_id(payload.order_id)
        if transaction is None or transaction.request_id != request.id:
            logger.warning(
                "Payment order does not belong to request",
                request_id=request.id,
                order_id=payload.order_id,
            )
            self.metrics.record_payment_verification(False)
            return None

        if not verify_signature(self.key_secret, payload.order_id, payload.payment_id, payload.signature):
            logger.warning(
                "Payment signature mismatch",
                request_id=request.id,
                order_id=payload.order_id,
                payment_id=payload.payment_id,
            )
            if not transaction.is_completed:
                self.transaction_store.save(
                    transaction.mark_failed("signature mismatch", self.clock(), payment_id=payload.payment_id)
                )
            self.metrics.record_payment_verification(False)
            return None

        if not transaction.is_completed:
            transaction = transaction.mark_completed(payload.payment_id, self.clock())
            self.transaction_store.save(transaction)
        self.metrics.record_payment_verification(True)
        logger.info(
            f"Payment {payload.payment_id} verified for request {request.id}",
            request_id=request.id,
            order_id=payload.order_id,
            payment_id=payload.payment_id,
        )
        return transaction

    def payment_status(self, gateway_order_id: str) -> Optional[PaymentTransaction]:
        return self.transaction_store.get_by_order_id(gateway_order_id)

    def _completed_transaction(self, request_id: str) -> Optional[PaymentTransaction]:
        for transaction in self.transaction_store.list_for_request(request_id):
            if transaction.is_completed:
                return transaction
        return None
