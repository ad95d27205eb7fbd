"""Tests for BraintreeGatewayAdapter.

The SDK gateway is replaced by a namespace of mocks returning SDK-shaped
objects, so we verify parameter mapping, result conversion and the
translation of SDK exceptions into the domain error family.
"""

from datetime import date
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import Mock

import braintree
import pytest
from braintree.exceptions import (
    AuthenticationError as SdkAuthenticationError,
    NotFoundError as SdkNotFoundError,
    ServiceUnavailableError as SdkServiceUnavailableError,
    UnexpectedError as SdkUnexpectedError,
)

from parkpay.adapters.braintree_gateway_adapter import (
    BraintreeGatewayAdapter,
    translate_sdk_error,
)
from parkpay.core.config import GatewayTransportConfig
from parkpay.core.exceptions import (
    ErrorKind,
    GatewayAuthenticationError,
    GatewayRejectedError,
    GatewayTimeoutError,
    NotFoundError,
    UpstreamUnavailableError,
    is_retryable,
)

# SDK-style timeout hierarchy (TimeoutError -> ReadTimeoutError)
SdkTimeoutError = type("TimeoutError", (Exception,), {"__module__": "braintree.exceptions.http.timeout_error"})
SdkReadTimeoutError = type("ReadTimeoutError", (SdkTimeoutError,), {"__module__": "braintree.exceptions.http.timeout_error"})


def sdk_subscription(**overrides):
    data = dict(
        id="sub-1",
        status="Active",
        plan_id="premium",
        price=Decimal("9.99"),
        next_billing_date=date(2026, 11, 19),
        first_billing_date=date(2026, 10, 19),
    )
    data.update(overrides)
    return SimpleNamespace(**data)


def success(**attrs):
    return SimpleNamespace(is_success=True, **attrs)


def failure(message, **attrs):
    return SimpleNamespace(is_success=False, message=message, **attrs)


@pytest.fixture
def sdk():
    return SimpleNamespace(
        client_token=SimpleNamespace(generate=Mock(return_value="client-token-xyz")),
        plan=SimpleNamespace(all=Mock(return_value=[])),
        customer=SimpleNamespace(find=Mock(), create=Mock()),
        payment_method=SimpleNamespace(create=Mock()),
        subscription=SimpleNamespace(create=Mock(), update=Mock(), cancel=Mock()),
        transaction=SimpleNamespace(sale=Mock()),
    )


@pytest.fixture
def adapter(sdk):
    return BraintreeGatewayAdapter(
        merchant_id="merchant",
        public_key="public",
        private_key="private",
        transport=GatewayTransportConfig(max_workers=2),
        gateway=sdk,
    )


# --- Error translation ---

class TestTranslateSdkError:

    def test_not_found(self):
        translated = translate_sdk_error(SdkNotFoundError())
        assert isinstance(translated, NotFoundError)
        assert translated.kind is ErrorKind.not_found
        assert translated.message  # default message for empty SDK errors
        assert translated.details["sdkError"] == "NotFoundError"

    def test_unexpected_is_retryable(self):
        translated = translate_sdk_error(SdkUnexpectedError("Unexpected HTTP_RESPONSE 502"))
        assert isinstance(translated, UpstreamUnavailableError)
        assert translated.message == "Unexpected HTTP_RESPONSE 502"
        assert is_retryable(translated)

    def test_service_unavailable_is_retryable(self):
        assert is_retryable(translate_sdk_error(SdkServiceUnavailableError()))

    def test_timeout_subclass_resolves_via_mro(self):
        translated = translate_sdk_error(SdkReadTimeoutError("read timed out"))
        assert isinstance(translated, GatewayTimeoutError)

    def test_authentication_is_not_retryable(self):
        translated = translate_sdk_error(SdkAuthenticationError())
        assert isinstance(translated, GatewayAuthenticationError)
        assert not is_retryable(translated)

    def test_unknown_sdk_error_is_generic_rejection(self):
        UpgradeRequired = type("UpgradeRequiredError", (Exception,), {"__module__": "braintree.exceptions"})
        translated = translate_sdk_error(UpgradeRequired())
        assert translated.kind is ErrorKind.gateway
        assert not is_retryable(translated)


# --- Calls ---

@pytest.mark.asyncio
async def test_requires_context_manager(adapter):
    with pytest.raises(RuntimeError):
        await adapter.list_plans()


@pytest.mark.asyncio
async def test_generate_client_token_params(adapter, sdk):
    async with adapter as client:
        assert await client.generate_client_token() == "client-token-xyz"
        await client.generate_client_token("user-1")

    assert sdk.client_token.generate.call_args_list[0].args == ({},)
    assert sdk.client_token.generate.call_args_list[1].args == ({"customer_id": "user-1"},)


@pytest.mark.asyncio
async def test_generate_client_token_unknown_customer(adapter, sdk):
    sdk.client_token.generate.side_effect = ValueError("Customer specified by customer_id does not exist")
    async with adapter as client:
        with pytest.raises(GatewayRejectedError) as excinfo:
            await client.generate_client_token("ghost")
    assert "does not exist" in excinfo.value.message


@pytest.mark.asyncio
async def test_sdk_errors_are_translated_with_cause(adapter, sdk):
    original = SdkNotFoundError()
    sdk.customer.find.side_effect = original
    async with adapter as client:
        with pytest.raises(NotFoundError) as excinfo:
            await client.find_customer("ghost")
    assert excinfo.value.__cause__ is original


@pytest.mark.asyncio
async def test_non_sdk_errors_propagate_unchanged(adapter, sdk):
    sdk.plan.all.side_effect = RuntimeError("bug")
    async with adapter as client:
        with pytest.raises(RuntimeError, match="bug"):
            await client.list_plans()


@pytest.mark.asyncio
async def test_list_plans_converts_sdk_objects(adapter, sdk):
    sdk.plan.all.return_value = [
        SimpleNamespace(
            id="premium",
            name="Premium",
            description="Unlimited parking",
            price=Decimal("9.99"),
            currency_iso_code="USD",
            billing_frequency=1,
            number_of_billing_cycles=None,
            trial_period=True,
            trial_duration=7,
            trial_duration_unit="day",
        )
    ]
    async with adapter as client:
        plans = await client.list_plans()

    plan = plans[0]
    assert plan.id == "premium"
    assert plan.price == "9.99"
    assert plan.currencyIsoCode == "USD"
    assert plan.trialPeriod is True
    assert plan.trialDuration == 7


@pytest.mark.asyncio
async def test_find_customer_converts_payment_methods(adapter, sdk):
    sdk.customer.find.return_value = SimpleNamespace(
        id="user-1",
        email="a@b.c",
        payment_methods=[
            SimpleNamespace(token="pm-1", subscriptions=[sdk_subscription()]),
            SimpleNamespace(token="paypal-1"),
        ],
    )
    async with adapter as client:
        customer = await client.find_customer("user-1")

    assert customer.default_payment_method_token() == "pm-1"
    assert [s.id for s in customer.live_subscriptions()] == ["sub-1"]
    assert customer.paymentMethods[1].subscriptions == []
    assert customer.paymentMethods[0].subscriptions[0].nextBillingDate == date(2026, 11, 19)


@pytest.mark.asyncio
async def test_create_customer_params_and_failure(adapter, sdk):
    sdk.customer.create.return_value = success(customer=SimpleNamespace(id="user-1", email=None, payment_methods=[]))
    async with adapter as client:
        customer = await client.create_customer("user-1", payment_method_nonce="nonce")
        assert customer.id == "user-1"
        sdk.customer.create.assert_called_once_with({"id": "user-1", "payment_method_nonce": "nonce"})

        sdk.customer.create.return_value = failure("Customer ID has already been taken.")
        with pytest.raises(GatewayRejectedError, match="already been taken"):
            await client.create_customer("user-1")


@pytest.mark.asyncio
async def test_subscription_lifecycle_calls(adapter, sdk):
    sdk.payment_method.create.return_value = success(payment_method=SimpleNamespace(token="pm-9"))
    sdk.subscription.create.return_value = success(subscription=sdk_subscription())
    sdk.subscription.update.return_value = success(subscription=sdk_subscription(plan_id="basic"))
    sdk.subscription.cancel.return_value = success(subscription=sdk_subscription(status="Canceled"))

    async with adapter as client:
        token = await client.create_payment_method("user-1", "nonce")
        created = await client.create_subscription(token, "premium")
        updated = await client.update_subscription("sub-1", "basic")
        cancelled = await client.cancel_subscription("sub-1")

    sdk.payment_method.create.assert_called_once_with({"customer_id": "user-1", "payment_method_nonce": "nonce"})
    sdk.subscription.create.assert_called_once_with({"payment_method_token": "pm-9", "plan_id": "premium"})
    sdk.subscription.update.assert_called_once_with("sub-1", {"plan_id": "basic"})
    assert created.price == "9.99"
    assert updated.planId == "basic"
    assert cancelled.status == "Canceled"


@pytest.mark.asyncio
async def test_sale_params_and_decline(adapter, sdk):
    sdk.transaction.sale.return_value = success(
        transaction=SimpleNamespace(id="tx-1", amount=Decimal("5.50"), status="submitted_for_settlement")
    )
    async with adapter as client:
        transaction = await client.sale("5.50", "fake-valid-nonce", customer_id="user-1")

        assert transaction.id == "tx-1"
        assert transaction.amount == "5.50"
        sdk.transaction.sale.assert_called_once_with(
            {
                "amount": "5.50",
                "payment_method_nonce": "fake-valid-nonce",
                "options": {"submit_for_settlement": True},
                "customer_id": "user-1",
            }
        )

        sdk.transaction.sale.return_value = failure(
            "Do Not Honor",
            transaction=SimpleNamespace(processor_response_text="Do Not Honor"),
        )
        with pytest.raises(GatewayRejectedError) as excinfo:
            await client.sale("2001.00", "fake-processor-declined-visa-nonce")

    assert excinfo.value.details["processorResponseText"] == "Do Not Honor"


@pytest.mark.asyncio
async def test_executor_is_released_on_exit(adapter):
    async with adapter:
        assert adapter._executor is not None
    assert adapter._executor is None


@pytest.mark.parametrize(
    "environment, expected",
    [("sandbox", braintree.Environment.Sandbox), ("production", braintree.Environment.Production)],
)
def test_real_gateway_environment_selection(environment, expected):
    adapter = BraintreeGatewayAdapter("merchant", "public", "private", environment=environment)
    assert adapter._gateway.config.environment == expected
