import logging

import pytest
from pydantic import ValidationError

from parkpay.core.config import ATTEMPT_TIMEOUT_SECONDS, GatewayTransportConfig, RetryPolicy
from parkpay.core.logging_config import coerce_level
from parkpay.core.settings import ParkpaySettings


def make_settings(**values):
    return ParkpaySettings(_env_file=None, **values)


class TestRetryPolicy:

    def test_defaults(self):
        policy = RetryPolicy()
        assert policy.max_retries == 3
        assert policy.initial_delay == 1.0
        assert ATTEMPT_TIMEOUT_SECONDS == 90.0

    def test_delays_double(self):
        policy = RetryPolicy(initial_delay=0.5)
        assert [policy.delay_for(i) for i in range(3)] == [0.5, 1.0, 2.0]

    @pytest.mark.parametrize("values", [{"max_retries": 0}, {"initial_delay": -1}, {"jitter": True}])
    def test_rejects_invalid_values(self, values):
        with pytest.raises(ValidationError):
            RetryPolicy(**values)

    def test_is_immutable(self):
        with pytest.raises(ValidationError):
            RetryPolicy().max_retries = 5

    def test_from_settings(self):
        settings = make_settings(PARKPAY_RETRY_MAX_ATTEMPTS=5, PARKPAY_RETRY_INITIAL_DELAY=0.25)
        assert RetryPolicy.from_app_settings(settings) == RetryPolicy(max_retries=5, initial_delay=0.25)


def test_transport_config_from_settings():
    settings = make_settings(PARKPAY_GATEWAY_TIMEOUT=30, PARKPAY_GATEWAY_MAX_WORKERS=8)
    config = GatewayTransportConfig.from_app_settings(settings)
    assert config.timeout == 30.0
    assert config.max_workers == 8


class TestSettings:

    @pytest.mark.parametrize("raw, expected", [("Production", "production"), ("sandbox", "sandbox"), ("staging", "sandbox")])
    def test_environment_is_normalized(self, raw, expected):
        settings = make_settings(BRAINTREE_ENVIRONMENT=raw)
        assert settings.BRAINTREE_ENVIRONMENT == expected
        assert settings.is_production is (expected == "production")

    def test_missing_credentials(self):
        settings = make_settings(BRAINTREE_MERCHANT_ID="m", BRAINTREE_PUBLIC_KEY="", BRAINTREE_PRIVATE_KEY=None)
        assert settings.missing_credentials() == ["BRAINTREE_PUBLIC_KEY", "BRAINTREE_PRIVATE_KEY"]

    def test_complete_credentials(self):
        settings = make_settings(BRAINTREE_MERCHANT_ID="m", BRAINTREE_PUBLIC_KEY="p", BRAINTREE_PRIVATE_KEY="super-secret")
        assert settings.missing_credentials() == []
        assert "super-secret" not in repr(settings.BRAINTREE_PRIVATE_KEY)


@pytest.mark.parametrize(
    "value, expected",
    [("debug", logging.DEBUG), ("WARNING", logging.WARNING), (logging.ERROR, logging.ERROR), ("nonsense", logging.INFO)],
)
def test_coerce_level(value, expected):
    assert coerce_level(value) == expected
