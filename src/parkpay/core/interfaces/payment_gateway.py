from abc import ABC, abstractmethod
from typing import List, Optional

from parkpay.core.models.customer import Customer
from parkpay.core.models.plan import Plan
from parkpay.core.models.subscription import Subscription
from parkpay.core.models.transaction import Transaction


class PaymentGatewayPort(ABC):
    """Asynchronous view of the external payment gateway.

    Implementations raise `GatewayError` subclasses: `NotFoundError` for
    unknown resources, `GatewayRejectedError` for unsuccessful results,
    `GatewayTimeoutError`/`UpstreamUnavailableError` for transient failures.
    """

    @abstractmethod
    async def __aenter__(self) -> "PaymentGatewayPort":
        pass

    @abstractmethod
    async def __aexit__(self, exc_type, exc_val, exc_tb):
        pass

    @abstractmethod
    async def generate_client_token(self, customer_id: Optional[str] = None) -> str:
        """Client authorization for the mobile drop-in UI."""
        pass

    @abstractmethod
    async def list_plans(self) -> List[Plan]:
        pass

    @abstractmethod
    async def find_customer(self, customer_id: str) -> Customer:
        pass

    @abstractmethod
    async def create_customer(
        self,
        customer_id: str,
        email: Optional[str] = None,
        payment_method_nonce: Optional[str] = None,
    ) -> Customer:
        pass

    @abstractmethod
    async def create_payment_method(self, customer_id: str, payment_method_nonce: str) -> str:
        """Vault a nonce for the customer and return the payment method token."""
        pass

    @abstractmethod
    async def create_subscription(self, payment_method_token: str, plan_id: str) -> Subscription:
        pass

    @abstractmethod
    async def update_subscription(self, subscription_id: str, plan_id: str) -> Subscription:
        pass

    @abstractmethod
    async def cancel_subscription(self, subscription_id: str) -> Subscription:
        pass

    @abstractmethod
    async def sale(
        self,
        amount: str,
        payment_method_nonce: str,
        customer_id: Optional[str] = None,
        submit_for_settlement: bool = True,
    ) -> Transaction:
        pass
