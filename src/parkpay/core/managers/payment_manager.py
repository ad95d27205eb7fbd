"""PaymentManager: orchestrates gateway calls behind the mobile API.

Every gateway call is a zero-argument closure executed through the injected
RetryPort, one call per closure, so transient failures of a single step are
retried without replaying the steps that already succeeded.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, List, Optional

from parkpay.core.config import RetryPolicy
from parkpay.core.exceptions import ErrorKind, GatewayError
from parkpay.core.interfaces.payment_gateway import PaymentGatewayPort
from parkpay.core.interfaces.retry import RetryPort
from parkpay.core.models.customer import Customer
from parkpay.core.models.plan import Plan
from parkpay.core.models.requests import (
    ParkingPaymentRequest,
    SubscribeRequest,
)
from parkpay.core.models.subscription import Subscription, SubscriptionState
from parkpay.core.models.transaction import Transaction
from parkpay.core.settings import logger


class PaymentManager:
    """Thin domain service between the web adapter and the payment gateway.

    Attributes:
        policy: Retry policy applied to every gateway call
    """

    def __init__(
        self,
        gateway: PaymentGatewayPort,
        retry_port: RetryPort,
        policy: RetryPolicy | None = None,
    ) -> None:
        self._gateway = gateway
        self._retry = retry_port
        self.policy = policy or RetryPolicy()

    async def _call(self, name: str, operation: Callable[[], Awaitable[Any]]) -> Any:
        logger.debug("[gateway:%s] start", name)
        result = await self._retry.execute(operation, policy=self.policy)
        logger.debug("[gateway:%s] done", name)
        return result

    async def generate_client_token(self, customer_id: Optional[str] = None) -> str:
        return await self._call(
            "client_token",
            lambda: self._gateway.generate_client_token(customer_id),
        )

    async def list_plans(self) -> List[Plan]:
        plans = await self._call("plans", self._gateway.list_plans)
        logger.info("[plans] %s plans fetched", len(plans))
        return plans

    async def _find_customer(self, customer_id: str) -> Optional[Customer]:
        """Look a customer up; None when the gateway does not know it."""
        try:
            return await self._call(
                "customer_find", lambda: self._gateway.find_customer(customer_id)
            )
        except GatewayError as exc:
            if exc.kind is ErrorKind.not_found:
                return None
            raise

    async def _ensure_customer(
        self,
        customer_id: str,
        email: Optional[str] = None,
        payment_method_nonce: Optional[str] = None,
    ) -> Customer:
        customer = await self._find_customer(customer_id)
        if customer is not None:
            logger.debug("[customer] found customer_id=%s", customer_id)
            return customer
        logger.info("[customer] creating customer_id=%s", customer_id)
        return await self._call(
            "customer_create",
            lambda: self._gateway.create_customer(
                customer_id, email=email, payment_method_nonce=payment_method_nonce
            ),
        )

    async def subscribe(self, request: SubscribeRequest) -> Subscription:
        """Create a subscription, creating the customer and payment method on demand."""
        logger.info(
            "[subscribe] user_id=%s plan_id=%s", request.userId, request.planId
        )
        customer = await self._ensure_customer(
            request.userId,
            email=request.email,
            payment_method_nonce=request.paymentMethodNonce,
        )

        token = customer.default_payment_method_token()
        if token is None:
            logger.debug("[subscribe] vaulting payment method user_id=%s", request.userId)
            token = await self._call(
                "payment_method_create",
                lambda: self._gateway.create_payment_method(
                    request.userId, request.paymentMethodNonce
                ),
            )

        subscription = await self._call(
            "subscription_create",
            lambda: self._gateway.create_subscription(token, request.planId),
        )
        logger.info(
            "[subscribe] created subscription_id=%s status=%s",
            subscription.id,
            subscription.status,
        )
        return subscription

    async def subscription_status(self, user_id: str) -> SubscriptionState:
        customer = await self._find_customer(user_id)
        if customer is None:
            return SubscriptionState.free(status="new_user")
        live = customer.live_subscriptions()
        if not live:
            return SubscriptionState.free()
        return SubscriptionState.premium(live[0])

    async def update_subscription(self, subscription_id: str, plan_id: str) -> Subscription:
        logger.info(
            "[subscription:update] subscription_id=%s plan_id=%s", subscription_id, plan_id
        )
        return await self._call(
            "subscription_update",
            lambda: self._gateway.update_subscription(subscription_id, plan_id),
        )

    async def cancel_subscription(self, subscription_id: str) -> Subscription:
        logger.info("[subscription:cancel] subscription_id=%s", subscription_id)
        return await self._call(
            "subscription_cancel",
            lambda: self._gateway.cancel_subscription(subscription_id),
        )

    async def charge_parking(self, request: ParkingPaymentRequest) -> Transaction:
        """One-off settlement of a parking fee."""
        logger.info(
            "[parking-payment] user_id=%s amount=%s entry_id=%s",
            request.userId,
            request.gateway_amount(),
            request.entryId,
        )
        await self._ensure_customer(request.userId)
        transaction = await self._call(
            "transaction_sale",
            lambda: self._gateway.sale(
                request.gateway_amount(),
                request.nonce,
                customer_id=request.userId,
                submit_for_settlement=True,
            ),
        )
        logger.info(
            "[parking-payment] transaction_id=%s status=%s", transaction.id, transaction.status
        )
        return transaction
