import enum


class RequestKind(str, enum.Enum):
    REPAIR = "repair"
    RENTAL = "rental"

    def __str__(self):
        return self.value


class RepairStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    WAITING_PAYMENT = "waiting_payment"
    ACTIVE = "active"
    COMPLETED = "completed"
    REJECTED = "rejected"
    EXPIRED = "expired"

    def __str__(self):
        return self.value


class RentalStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    WAITING_PAYMENT = "waiting_payment"
    ARRANGING_DELIVERY = "arranging_delivery"
    ACTIVE_RENTAL = "active_rental"
    COMPLETED = "completed"
    REJECTED = "rejected"
    EXPIRED = "expired"

    def __str__(self):
        return self.value


# Statuses in which expires_at still drives a transition
HOLDING_STATUS_VALUES = frozenset({"pending", "waiting_payment"})
TERMINAL_STATUS_VALUES = frozenset({"completed", "rejected", "expired"})


class PaymentMethod(str, enum.Enum):
    ONLINE = "online"
    CASH = "cash"

    def __str__(self):
        return self.value

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            normalized = value.strip().lower()
            if normalized == "offline":
                return cls.CASH
            for member in cls:
                if member.value == normalized:
                    return member
        return None


class DiscountType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"

    def __str__(self):
        return self.value


class ItemCategory(str, enum.Enum):
    REPAIR_SERVICES = "repair_services"
    RENTAL_BICYCLES = "rental_bicycles"
    DELIVERY_CHARGES = "delivery_charges"
    MECHANIC_CHARGE = "mechanic_charge"
    ALL = "all"

    def __str__(self):
        return self.value


class CouponRejection(str, enum.Enum):
    """First eligibility rule a coupon failed."""

    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    EXHAUSTED = "exhausted"
    NOT_APPLICABLE = "not_applicable"
    BELOW_MINIMUM = "below_minimum"
    ALREADY_REDEEMED = "already_redeemed"

    def __str__(self):
        return self.value


class TransitionEvent(str, enum.Enum):
    SUBMIT = "submit"
    APPROVE = "approve"
    REJECT = "reject"
    PAYMENT_CONFIRMED = "payment_confirmed"
    ADVANCE = "advance"
    COMPLETE = "complete"
    EXPIRE = "expire"

    def __str__(self):
        return self.value


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"

    def __str__(self):
        return self.value
