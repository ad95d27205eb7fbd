# parkpay/adapters/braintree_gateway_adapter.py
import asyncio
import functools
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional

import braintree

from parkpay.core.config import GatewayTransportConfig
from parkpay.core.exceptions import (
    ErrorKind,
    GatewayAuthenticationError,
    GatewayError,
    GatewayRejectedError,
    GatewayTimeoutError,
    NotFoundError,
    UpstreamUnavailableError,
)
from parkpay.core.interfaces.payment_gateway import PaymentGatewayPort
from parkpay.core.models.customer import Customer, PaymentMethod
from parkpay.core.models.plan import Plan
from parkpay.core.models.subscription import Subscription
from parkpay.core.models.transaction import Transaction
from parkpay.core.settings import logger

# SDK exception class name -> domain exception. Looked up along the MRO so
# subclasses (ReadTimeoutError -> TimeoutError, ...) resolve too.
_SDK_ERRORS: Dict[str, type[GatewayError]] = {
    "NotFoundError": NotFoundError,
    "TimeoutError": GatewayTimeoutError,
    "RequestTimeoutError": GatewayTimeoutError,
    "GatewayTimeoutError": GatewayTimeoutError,
    "UnexpectedError": UpstreamUnavailableError,
    "ServerError": UpstreamUnavailableError,
    "ServiceUnavailableError": UpstreamUnavailableError,
    "TooManyRequestsError": UpstreamUnavailableError,
    "ConnectionError": UpstreamUnavailableError,
    "InvalidResponseError": UpstreamUnavailableError,
    "AuthenticationError": GatewayAuthenticationError,
    "AuthorizationError": GatewayAuthenticationError,
}

_DEFAULT_MESSAGES: Dict[ErrorKind, str] = {
    ErrorKind.not_found: "Resource not found in payment gateway",
    ErrorKind.timeout: "Request to payment gateway timed out",
    ErrorKind.unexpected: "Unexpected error from payment gateway",
    ErrorKind.authentication: "Payment gateway rejected the merchant credentials",
    ErrorKind.gateway: "Payment gateway error",
}


def translate_sdk_error(exc: Exception) -> GatewayError:
    """Map a Braintree SDK exception onto the domain error family."""
    error_cls: type[GatewayError] = GatewayError
    for klass in type(exc).__mro__:
        if klass.__name__ in _SDK_ERRORS:
            error_cls = _SDK_ERRORS[klass.__name__]
            break
    # SDK errors frequently have an empty message
    message = str(exc) or _DEFAULT_MESSAGES.get(error_cls.kind, "Payment gateway error")
    return error_cls(message, details={"sdkError": type(exc).__name__})


def _is_sdk_error(exc: Exception) -> bool:
    return type(exc).__module__.startswith("braintree")


def _text(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _to_subscription(sdk_subscription: Any) -> Subscription:
    return Subscription(
        id=sdk_subscription.id,
        status=str(sdk_subscription.status),
        planId=getattr(sdk_subscription, "plan_id", None),
        price=_text(getattr(sdk_subscription, "price", None)),
        nextBillingDate=getattr(sdk_subscription, "next_billing_date", None),
        firstBillingDate=getattr(sdk_subscription, "first_billing_date", None),
    )


def _to_customer(sdk_customer: Any) -> Customer:
    methods = []
    for method in getattr(sdk_customer, "payment_methods", None) or []:
        methods.append(
            PaymentMethod(
                token=method.token,
                subscriptions=[
                    _to_subscription(sub)
                    for sub in getattr(method, "subscriptions", None) or []
                ],
            )
        )
    return Customer(
        id=sdk_customer.id,
        email=getattr(sdk_customer, "email", None),
        paymentMethods=methods,
    )


def _to_plan(sdk_plan: Any) -> Plan:
    return Plan(
        id=sdk_plan.id,
        name=getattr(sdk_plan, "name", None),
        description=getattr(sdk_plan, "description", None),
        price=_text(getattr(sdk_plan, "price", None)),
        currencyIsoCode=getattr(sdk_plan, "currency_iso_code", None),
        billingFrequency=getattr(sdk_plan, "billing_frequency", None),
        numberOfBillingCycles=getattr(sdk_plan, "number_of_billing_cycles", None),
        trialPeriod=bool(getattr(sdk_plan, "trial_period", False)),
        trialDuration=getattr(sdk_plan, "trial_duration", None),
        trialDurationUnit=getattr(sdk_plan, "trial_duration_unit", None),
    )


def _to_transaction(sdk_transaction: Any) -> Transaction:
    return Transaction(
        id=sdk_transaction.id,
        amount=_text(getattr(sdk_transaction, "amount", None)),
        status=getattr(sdk_transaction, "status", None),
    )


class BraintreeGatewayAdapter(PaymentGatewayPort):
    """PaymentGatewayPort backed by the official Braintree SDK.

    The SDK is blocking, so each call runs on a dedicated thread pool whose
    size comes from the transport config; the event loop never blocks. Use as
    an async context manager: leaving it shuts the pool down.
    """

    def __init__(
        self,
        merchant_id: str,
        public_key: str,
        private_key: str,
        environment: str = "sandbox",
        transport: GatewayTransportConfig | None = None,
        gateway: Any = None,
    ):
        self.transport = transport or GatewayTransportConfig()
        self.environment = environment
        if gateway is None:
            gateway = braintree.BraintreeGateway(
                braintree.Configuration(
                    environment=(
                        braintree.Environment.Production
                        if environment == "production"
                        else braintree.Environment.Sandbox
                    ),
                    merchant_id=merchant_id,
                    public_key=public_key,
                    private_key=private_key,
                    timeout=self.transport.timeout,
                    wrap_http_exceptions=True,
                )
            )
        self._gateway = gateway
        self._executor: Optional[ThreadPoolExecutor] = None

    @classmethod
    def from_app_settings(cls, settings) -> "BraintreeGatewayAdapter":
        return cls(
            merchant_id=settings.BRAINTREE_MERCHANT_ID,
            public_key=settings.BRAINTREE_PUBLIC_KEY,
            private_key=settings.BRAINTREE_PRIVATE_KEY.get_secret_value(),
            environment=settings.BRAINTREE_ENVIRONMENT,
            transport=GatewayTransportConfig.from_app_settings(settings),
        )

    async def __aenter__(self):
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self.transport.max_workers,
                thread_name_prefix="braintree",
            )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
        return False

    async def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None

    async def _call(self, fn: Callable[..., Any], *args) -> Any:
        """Run a blocking SDK call off the event loop and translate its errors."""
        if self._executor is None:
            raise RuntimeError("Gateway adapter not initialized. Use 'async with' context manager.")
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(self._executor, functools.partial(fn, *args))
        except Exception as exc:
            if not _is_sdk_error(exc):
                raise
            translated = translate_sdk_error(exc)
            logger.debug(
                "[gateway] %s failed sdk_error=%s kind=%s",
                getattr(fn, "__qualname__", repr(fn)),
                type(exc).__name__,
                translated.kind.value,
            )
            raise translated from exc

    @staticmethod
    def _require_success(result: Any, fallback: str) -> Any:
        """Raise GatewayRejectedError for unsuccessful SDK result objects."""
        if getattr(result, "is_success", False):
            return result
        message = getattr(result, "message", None) or fallback
        details: Dict[str, Any] = {}
        transaction = getattr(result, "transaction", None)
        if transaction is not None:
            details["processorResponseText"] = getattr(
                transaction, "processor_response_text", None
            )
        raise GatewayRejectedError(message, details=details)

    async def generate_client_token(self, customer_id: Optional[str] = None) -> str:
        params = {"customer_id": customer_id} if customer_id else {}
        try:
            return await self._call(self._gateway.client_token.generate, params)
        except ValueError as exc:
            # SDK reports an unknown customer_id this way
            raise GatewayRejectedError(str(exc) or "Client token could not be generated") from exc

    async def list_plans(self) -> List[Plan]:
        plans = await self._call(self._gateway.plan.all)
        return [_to_plan(plan) for plan in plans]

    async def find_customer(self, customer_id: str) -> Customer:
        sdk_customer = await self._call(self._gateway.customer.find, customer_id)
        return _to_customer(sdk_customer)

    async def create_customer(
        self,
        customer_id: str,
        email: Optional[str] = None,
        payment_method_nonce: Optional[str] = None,
    ) -> Customer:
        params: Dict[str, Any] = {"id": customer_id}
        if email:
            params["email"] = email
        if payment_method_nonce:
            params["payment_method_nonce"] = payment_method_nonce
        result = await self._call(self._gateway.customer.create, params)
        self._require_success(result, "Customer could not be created")
        return _to_customer(result.customer)

    async def create_payment_method(self, customer_id: str, payment_method_nonce: str) -> str:
        result = await self._call(
            self._gateway.payment_method.create,
            {"customer_id": customer_id, "payment_method_nonce": payment_method_nonce},
        )
        self._require_success(result, "Payment method could not be created")
        return result.payment_method.token

    async def create_subscription(self, payment_method_token: str, plan_id: str) -> Subscription:
        result = await self._call(
            self._gateway.subscription.create,
            {"payment_method_token": payment_method_token, "plan_id": plan_id},
        )
        self._require_success(result, "Subscription could not be created")
        return _to_subscription(result.subscription)

    async def update_subscription(self, subscription_id: str, plan_id: str) -> Subscription:
        result = await self._call(
            self._gateway.subscription.update, subscription_id, {"plan_id": plan_id}
        )
        self._require_success(result, "Subscription could not be updated")
        return _to_subscription(result.subscription)

    async def cancel_subscription(self, subscription_id: str) -> Subscription:
        result = await self._call(self._gateway.subscription.cancel, subscription_id)
        self._require_success(result, "Subscription could not be cancelled")
        return _to_subscription(result.subscription)

    async def sale(
        self,
        amount: str,
        payment_method_nonce: str,
        customer_id: Optional[str] = None,
        submit_for_settlement: bool = True,
    ) -> Transaction:
        params: Dict[str, Any] = {
            "amount": amount,
            "payment_method_nonce": payment_method_nonce,
            "options": {"submit_for_settlement": submit_for_settlement},
        }
        if customer_id:
            params["customer_id"] = customer_id
        result = await self._call(self._gateway.transaction.sale, params)
        self._require_success(result, "Payment declined")
        return _to_transaction(result.transaction)
