"""
Unit tests for the CycleOps exception hierarchy.
"""

import json
from decimal import Decimal

import pytest

from cycleops.exceptions import (
    BelowMinimumAmountError,
    CatalogItemNotFoundError,
    ConcurrentModificationError,
    ConfigurationError,
    ConfigurationValidationError,
    CouponExhaustedError,
    CouponNotFoundError,
    CycleOpsError,
    DuplicateRecordError,
    ErrorCodes,
    ExceptionContext,
    GatewayRejectedError,
    GatewayUnavailableError,
    IllegalTransitionError,
    InfrastructureError,
    InvalidAmountError,
    InvalidCouponError,
    MissingConfigurationError,
    MissingRejectionReasonError,
    RequestNotFoundError,
    StateError,
    ValidationError,
    VersionConflict,
    coupon_error_for,
)
from cycleops.models.enums import CouponRejection, RentalStatus


@pytest.mark.unit
class TestCycleOpsError:
    def test_str_includes_context_and_help(self):
        """Test the rendered message carries the context, help and error id."""
        error = CycleOpsError(
            "Something failed",
            ExceptionContext(
                help_text="Try again",
                context={"request_id": "r-1", "ignored": None},
                correlation_id="abcd1234",
            ),
        )

        text = str(error)

        assert text.startswith("Something failed (request_id=r-1)")
        assert "Help: Try again" in text
        assert "ignored" not in text
        assert text.endswith("Error ID: abcd1234")

    def test_generated_correlation_id(self):
        error = CycleOpsError("plain")
        assert len(error.correlation_id) == 8
        assert error.context == {}
        assert str(error) == f"plain\nError ID: {error.correlation_id}"

    def test_to_dict(self):
        error = RequestNotFoundError("r-9")

        data = error.to_dict()

        assert data["error_type"] == "RequestNotFoundError"
        assert data["http_status"] == 404
        assert data["error_code"] == ErrorCodes.REQUEST_NOT_FOUND
        assert data["context"] == {"request_id": "r-9"}
        assert data["retryable"] is False
        assert data["correlation_id"] == error.correlation_id

    def test_to_dict_is_serializable(self):
        """Test decimals and enums in the context come out as strings."""
        error = coupon_error_for(CouponRejection.BELOW_MINIMUM, "BIGSAVE", minimum=Decimal("500.00"), amount=Decimal("120.00"))

        data = error.to_dict()

        assert json.loads(json.dumps(data)) == data
        assert data["context"]["min_amount"] == "500.00"
        assert data["help"] == error.help_text

    def test_add_context_is_chainable(self):
        error = CycleOpsError("plain").add_context(operation="approve")
        assert error.context == {"operation": "approve"}


@pytest.mark.unit
class TestHierarchy:
    @pytest.mark.parametrize(
        "error,family,status",
        [
            (CouponExhaustedError("TEN", used=5, limit=5), ValidationError, 400),
            (CouponNotFoundError("NOPE"), ValidationError, 404),
            (MissingRejectionReasonError("r-1"), ValidationError, 400),
            (CatalogItemNotFoundError("bike-x"), ValidationError, 404),
            (IllegalTransitionError("r-1", "rental", "expired", "approve"), StateError, 409),
            (RequestNotFoundError("r-1"), StateError, 404),
            (GatewayUnavailableError("razorpay", "timeout"), InfrastructureError, 503),
            (GatewayRejectedError("razorpay", "bad key", 401), InfrastructureError, 502),
            (InvalidAmountError("r-1", Decimal("0.00")), InfrastructureError, 422),
            (ConcurrentModificationError("request", "r-1", 3), InfrastructureError, 409),
            (DuplicateRecordError("requests", "r-1"), InfrastructureError, 409),
            (MissingConfigurationError("gateway.key_id"), ConfigurationError, 400),
        ],
    )
    def test_family_and_status(self, error, family, status):
        assert isinstance(error, family)
        assert isinstance(error, CycleOpsError)
        assert error.http_status == status

    def test_version_conflict_is_not_a_cycleops_error(self):
        """Test lost writes stay internal and never reach callers as CycleOpsError."""
        assert not isinstance(VersionConflict("coupon", "TEN"), CycleOpsError)

    def test_retryable_flags(self):
        assert GatewayUnavailableError("razorpay").retryable
        assert ConcurrentModificationError("coupon", "TEN", 3).retryable
        assert not GatewayRejectedError("razorpay").retryable


@pytest.mark.unit
class TestErrorDetails:
    def test_illegal_transition_records_statuses(self):
        error = IllegalTransitionError("r-1", "rental", RentalStatus.EXPIRED, "payment_confirmed")

        assert error.current == "expired"
        assert error.attempted == "payment_confirmed"
        assert str(error).startswith("Cannot payment_confirmed a rental request in status 'expired'")

    def test_missing_configuration_help_names_variable(self):
        error = MissingConfigurationError("gateway.key_id", "cycleops.toml")
        assert error.help_text == "Set CYCLEOPS_GATEWAY_KEY_ID in the environment or add it to cycleops.toml"
        assert error.error_code == ErrorCodes.CONFIG_MISSING

    def test_validation_error_lists_problems(self):
        error = ConfigurationValidationError(["holds.repair_minutes: too small", "sweeper.interval_seconds: too small"])
        assert "\n  - holds.repair_minutes: too small" in error.message
        assert len(error.errors) == 2


@pytest.mark.unit
class TestCouponErrors:
    @pytest.mark.parametrize("reason", list(CouponRejection))
    def test_every_rejection_maps_to_a_subclass(self, reason):
        error = coupon_error_for(reason, "TEN")

        assert isinstance(error, InvalidCouponError)
        assert error.reason is reason
        assert error.code == "TEN"
        assert error.context["reason"] == reason.value

    def test_details_reach_the_context(self):
        """Test rule details are kept for the caller."""
        error = coupon_error_for(CouponRejection.BELOW_MINIMUM, "BIGSAVE", minimum=Decimal("500.00"), amount=Decimal("120.00"))

        assert isinstance(error, BelowMinimumAmountError)
        assert error.context["min_amount"] == "500.00"
        assert error.context["eligible_amount"] == "120.00"
        assert "500.00" in error.message
