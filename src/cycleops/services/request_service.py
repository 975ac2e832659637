"""
Application facade over the request lifecycle.

RequestService is what the surrounding application calls. Every operation
runs in a correlation context tagged with the request id and returns
``Ok(value)`` or ``Err(error)``; expected business, lifecycle and
infrastructure failures never escape as exceptions.

Logging follows the error family: validation outcomes at debug, lifecycle
conflicts at warning, infrastructure and configuration failures at error.
"""

import uuid
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from cycleops.core.config import CycleOpsConfig
from cycleops.core.correlation import CorrelationIdManager
from cycleops.exceptions import (
    CycleOpsError,
    InvalidCouponError,
    InvalidSubmissionError,
    MissingConfigurationError,
    StateError,
    ValidationError,
)
from cycleops.infrastructure.gateway import PaymentGateway, RazorpayGateway
from cycleops.infrastructure.metrics import CycleOpsMetrics, get_metrics
from cycleops.infrastructure.resilience import RetryManager, conflict_retry_policy
from cycleops.infrastructure.storage import (
    CatalogStore,
    CouponStore,
    Database,
    PaymentTransactionStore,
    RequestStore,
    SqlCatalogStore,
    SqlCouponStore,
    SqlPaymentTransactionStore,
    SqlRequestStore,
)
from cycleops.logging import get_logger
from cycleops.models import (
    Coupon,
    GatewayOrder,
    LineItem,
    PaymentMethod,
    PaymentPayload,
    PaymentTransaction,
    PaymentVerification,
    PriceQuote,
    RequestKind,
    Result,
    ServiceRequest,
    StatusChange,
    TransitionEvent,
    build_request,
    request_type_for,
)
from cycleops.models.result import Err, Ok
from cycleops.utils.time import utc_now

from .coupon_validator import CouponValidator
from .expiry_sweeper import ExpirySweeper, SweepReport
from .payment_reconciler import PaymentReconciler
from .pricing_engine import PricingEngine
from .state_machine import RequestStateMachine
from .transition_executor import TransitionExecutor

logger = get_logger(__name__)

ItemsInput = Union[Mapping[str, int], Sequence[Tuple[str, int]]]


class RequestService:
    def __init__(
        self,
        catalog_store: CatalogStore,
        coupon_store: CouponStore,
        request_store: RequestStore,
        transaction_store: PaymentTransactionStore,
        gateway: Optional[PaymentGateway] = None,
        config: Optional[CycleOpsConfig] = None,
        clock: Callable[[], datetime] = utc_now,
        metrics: Optional[CycleOpsMetrics] = None,
    ):
        self.config = config or CycleOpsConfig()
        self.catalog_store = catalog_store
        self.coupon_store = coupon_store
        self.request_store = request_store
        self.transaction_store = transaction_store
        self.clock = clock
        self.metrics = metrics or get_metrics()

        retry_manager = RetryManager(
            conflict_retry_policy(
                max_attempts=self.config.concurrency.max_write_attempts,
                backoff_seconds=self.config.concurrency.backoff_seconds,
            )
        )
        self.coupon_validator = CouponValidator(
            coupon_store, clock=clock, retry_manager=retry_manager, metrics=self.metrics
        )
        self.pricing_engine = PricingEngine(coupon_store, self.coupon_validator)
        self.state_machine = RequestStateMachine(clock=clock)
        self.executor = TransitionExecutor(
            request_store,
            self.state_machine,
            self.coupon_validator,
            retry_manager=retry_manager,
            metrics=self.metrics,
        )
        self.sweeper = ExpirySweeper(
            request_store,
            self.executor,
            interval_seconds=self.config.sweeper.interval_seconds,
            clock=clock,
            metrics=self.metrics,
        )
        self.reconciler = self._build_reconciler(gateway)

    @classmethod
    def from_database(cls, database: Database, config: CycleOpsConfig, **kwargs) -> "RequestService":
        """Service backed by SQL stores sharing one database."""
        return cls(
            SqlCatalogStore(database),
            SqlCouponStore(database),
            SqlRequestStore(database),
            SqlPaymentTransactionStore(database),
            config=config,
            **kwargs,
        )

    def submit_request(
        self,
        kind: Union[RequestKind, str],
        user_id: str,
        items: ItemsInput,
        payment_method: Union[PaymentMethod, str] = PaymentMethod.ONLINE,
        coupon_code: Optional[str] = None,
        drop_invalid_coupon: bool = False,
    ) -> Result:
        """
        Price and create a pending request.

        Args:
            kind: ``repair`` or ``rental``
            user_id: Customer submitting the request
            items: Catalog item ids with quantities
            payment_method: ``online`` or ``cash`` (``offline`` is accepted)
            coupon_code: Optional coupon code
            drop_invalid_coupon: Submit without the coupon instead of failing

        Returns:
            Ok(ServiceRequest) in ``pending`` with its hold window set, or Err
        """

        def submit() -> ServiceRequest:
            request_kind, method = self._parse_kind_and_method(kind, payment_method)
            if not (user_id or "").strip():
                raise InvalidSubmissionError("user id is required")
            line_items = self._line_items(request_kind, items)
            surcharge = self.catalog_store.get_surcharge_rate(request_kind)

            try:
                quote = self.pricing_engine.compute_totals(
                    request_kind, line_items, surcharge, coupon_code, user_id=user_id
                )
            except InvalidCouponError as e:
                if not drop_invalid_coupon:
                    raise
                logger.info(
                    f"Dropping coupon {e.code}: {e.reason.value}", coupon_code=e.code, reason=e.reason.value
                )
                quote = self.pricing_engine.compute_totals(request_kind, line_items, surcharge)

            now = self.clock()
            hold = timedelta(minutes=self.config.holds.minutes_for(request_kind))
            request = build_request(
                request_kind,
                surcharge=surcharge,
                id=uuid.uuid4().hex,
                user_id=user_id,
                line_items=line_items,
                payment_method=method,
                coupon_code=quote.applied_coupon,
                gross_amount=quote.gross_amount,
                discount_amount=quote.discount_amount,
                net_amount=quote.net_amount,
                status="pending",
                created_at=now,
                updated_at=now,
                expires_at=now + hold,
                history=(StatusChange(None, "pending", TransitionEvent.SUBMIT, now),),
            )
            self.request_store.create(request)
            self.metrics.record_transition(request_kind.value, TransitionEvent.SUBMIT.value, "pending")
            logger.info(
                f"Submitted {request_kind.value} request {request.id} for {request.net_amount}",
                request_id=request.id,
                kind=request_kind.value,
                net_amount=str(request.net_amount),
                coupon_code=request.coupon_code,
            )
            return request

        return self._run("submit_request", submit)

    def quote_price(
        self,
        kind: Union[RequestKind, str],
        items: ItemsInput,
        coupon_code: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> Result:
        """Price items without creating anything; repeated quotes are identical."""

        def quote() -> PriceQuote:
            request_kind = self._parse_kind_and_method(kind, PaymentMethod.ONLINE)[0]
            line_items = self._line_items(request_kind, items)
            surcharge = self.catalog_store.get_surcharge_rate(request_kind)
            return self.pricing_engine.compute_totals(
                request_kind, line_items, surcharge, coupon_code, user_id=user_id
            )

        return self._run("quote_price", quote)

    def approve(self, request_id: str) -> Result:
        return self._transition("approve", request_id, TransitionEvent.APPROVE)

    def reject(self, request_id: str, note: Optional[str]) -> Result:
        return self._transition("reject", request_id, TransitionEvent.REJECT, note=note)

    def advance(self, request_id: str) -> Result:
        return self._transition("advance", request_id, TransitionEvent.ADVANCE)

    def complete(self, request_id: str) -> Result:
        return self._transition("complete", request_id, TransitionEvent.COMPLETE)

    def create_payment_order(self, request_id: str) -> Result:
        """Ok(GatewayOrder) for a request waiting for online payment."""

        def create() -> GatewayOrder:
            reconciler = self._require_reconciler()
            request = self.request_store.get_by_id(request_id)
            return reconciler.create_order(request)

        return self._run("create_payment_order", create, request_id)

    def confirm_payment(self, request_id: str, payload: Union[PaymentPayload, Dict[str, Any]]) -> Result:
        """
        Verify a payment callback and move the request into work.

        A signature that does not verify is ``Ok(PaymentVerification(False, ...))``
        with the request untouched. A verified payment for a request that
        expired meanwhile is an Err(IllegalTransitionError); the payment stays
        recorded as completed for refund.
        """

        def confirm() -> PaymentVerification:
            reconciler = self._require_reconciler()
            request = self.request_store.get_by_id(request_id)
            transaction = reconciler.reconcile(request, payload)
            if transaction is None:
                return PaymentVerification(verified=False, request=request)

            if request.payment_reference and request.payment_reference == transaction.payment_id:
                logger.debug("Payment already confirmed", request_id=request_id, payment_id=transaction.payment_id)
                return PaymentVerification(verified=True, request=request, transaction=transaction)

            try:
                updated = self.executor.apply(
                    request_id, TransitionEvent.PAYMENT_CONFIRMED, payment_reference=transaction.payment_id
                )
            except StateError:
                logger.warning(
                    f"Verified payment {transaction.payment_id} cannot be applied to request {request_id}",
                    request_id=request_id,
                    payment_id=transaction.payment_id,
                    order_id=transaction.gateway_order_id,
                )
                raise
            return PaymentVerification(verified=True, request=updated, transaction=transaction)

        return self._run("confirm_payment", confirm, request_id)

    def payment_status(self, gateway_order_id: str) -> Result:
        """Ok(PaymentTransaction), or Ok(None) for an unknown order."""

        def status() -> Optional[PaymentTransaction]:
            return self._require_reconciler().payment_status(gateway_order_id)

        return self._run("payment_status", status)

    def run_expiry_sweep(self) -> Result:
        def sweep() -> SweepReport:
            return self.sweeper.run_once()

        return self._run("run_expiry_sweep", sweep)

    def get_request(self, request_id: str) -> Result:
        return self._run("get_request", lambda: self.request_store.get_by_id(request_id), request_id)

    def available_coupons(self, user_id: Optional[str] = None) -> Result:
        def coupons() -> List[Coupon]:
            return self.coupon_validator.available_coupons(user_id)

        return self._run("available_coupons", coupons)

    def _transition(self, operation: str, request_id: str, event: TransitionEvent, **kwargs) -> Result:
        return self._run(operation, lambda: self.executor.apply(request_id, event, **kwargs), request_id)

    def _run(self, operation: str, func: Callable[[], Any], request_id: Optional[str] = None) -> Result:
        with CorrelationIdManager.correlation_context(operation=operation, request_id=request_id):
            try:
                return Ok(func())
            except ValidationError as e:
                logger.debug(f"{operation}: {e.message}", request_id=request_id, error_code=e.error_code)
                return Err(e)
            except StateError as e:
                logger.warning(f"{operation} refused: {e.message}", request_id=request_id, error_code=e.error_code)
                return Err(e)
            except CycleOpsError as e:
                logger.error(f"{operation} failed: {e.message}", request_id=request_id, error_code=e.error_code)
                self.metrics.record_error(type(e).__name__, operation)
                return Err(e)

    def _build_reconciler(self, gateway: Optional[PaymentGateway]) -> Optional[PaymentReconciler]:
        settings = self.config.gateway
        if not settings.configured:
            return None
        if gateway is None:
            gateway = RazorpayGateway(
                settings.key_id,
                settings.key_secret,
                base_url=settings.base_url,
                timeout=settings.timeout_seconds,
                metrics=self.metrics,
            )
        return PaymentReconciler(
            gateway,
            self.transaction_store,
            settings.key_secret,
            currency=settings.currency,
            clock=self.clock,
            metrics=self.metrics,
        )

    def _require_reconciler(self) -> PaymentReconciler:
        if self.reconciler is None:
            raise MissingConfigurationError("gateway.key_secret", "the [gateway] section of config.toml")
        return self.reconciler

    @staticmethod
    def _parse_kind_and_method(kind: Any, payment_method: Any) -> Tuple[RequestKind, PaymentMethod]:
        try:
            request_kind = RequestKind(kind)
        except ValueError:
            raise InvalidSubmissionError(f"unknown request kind {kind!r}", kind=str(kind)) from None
        try:
            method = PaymentMethod(payment_method)
        except ValueError:
            raise InvalidSubmissionError(
                f"unknown payment method {payment_method!r}", payment_method=str(payment_method)
            ) from None
        return request_kind, method

    def _line_items(self, kind: RequestKind, items: ItemsInput) -> List[LineItem]:
        pairs = list(items.items()) if isinstance(items, Mapping) else list(items)
        if not pairs:
            raise InvalidSubmissionError("at least one item is required")

        expected_category = request_type_for(kind).ITEM_CATEGORY
        line_items = []
        for item_id, quantity in pairs:
            if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
                raise InvalidSubmissionError(
                    f"quantity for {item_id} must be a positive integer", item_id=item_id, quantity=quantity
                )
            catalog_item = self.catalog_store.get_line_item(item_id)
            if catalog_item.category is not expected_category:
                raise InvalidSubmissionError(
                    f"{item_id} is not available for {kind.value} requests",
                    item_id=item_id,
                    category=catalog_item.category.value,
                )
            line_items.append(LineItem.from_catalog(catalog_item, quantity))
        return line_items
