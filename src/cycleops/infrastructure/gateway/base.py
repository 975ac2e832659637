from abc import ABC, abstractmethod
from typing import Any, Dict


class PaymentGateway(ABC):
    """Creates payment orders at an external gateway.

    Implementations raise GatewayUnavailableError for transport failures and
    5xx answers, GatewayRejectedError for 4xx answers.
    """

    name: str = "gateway"

    @abstractmethod
    def create_order(self, amount_minor: int, currency: str, metadata: Dict[str, Any]) -> Dict[str, Any]:
        """Create an order and return the gateway's response; ``order_id`` is always present."""
