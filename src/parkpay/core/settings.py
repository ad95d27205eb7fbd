# Logging adapter for application-wide logging
from parkpay.adapters.logging_adapter import LoggingAdapter

from typing import Literal

from pydantic import SecretStr, computed_field, field_validator
from pydantic_settings import BaseSettings
from rich import print

from parkpay.core.interfaces.logging import LoggingPort


# using pydantic_settings to manage environment variables
# and do automatic type casting in a central place
class ParkpaySettings(BaseSettings):
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore",
    }
    # Braintree merchant credentials; absence is fatal at startup (see main)
    BRAINTREE_MERCHANT_ID: str | None = None
    BRAINTREE_PUBLIC_KEY: str | None = None
    BRAINTREE_PRIVATE_KEY: SecretStr | None = None
    BRAINTREE_ENVIRONMENT: Literal["sandbox", "production"] = "sandbox"
    PORT: int = 3000
    PARKPAY_HOST: str = "0.0.0.0"
    PARKPAY_LOG_LEVEL: str = "INFO"
    PARKPAY_API_VERSION: str = "2.0.0"
    PARKPAY_SITE_MESSAGE: str = "Parking Backend API - Subscription system"
    PARKPAY_GATEWAY_TIMEOUT: float = 60.0  # seconds
    PARKPAY_GATEWAY_MAX_WORKERS: int = 64
    PARKPAY_RETRY_MAX_ATTEMPTS: int = 3
    PARKPAY_RETRY_INITIAL_DELAY: float = 1.0  # seconds

    @field_validator("BRAINTREE_ENVIRONMENT", mode="before")
    def normalize_environment(cls, value: str) -> str:
        """Accept any casing; anything but 'production' means sandbox."""
        if isinstance(value, str) and value.strip().lower() == "production":
            return "production"
        return "sandbox"

    @computed_field
    @property
    def is_production(self) -> bool:
        return self.BRAINTREE_ENVIRONMENT == "production"

    def missing_credentials(self) -> list[str]:
        """Names of the Braintree credential variables that are not set."""
        values = {
            "BRAINTREE_MERCHANT_ID": self.BRAINTREE_MERCHANT_ID,
            "BRAINTREE_PUBLIC_KEY": self.BRAINTREE_PUBLIC_KEY,
            "BRAINTREE_PRIVATE_KEY": (
                self.BRAINTREE_PRIVATE_KEY.get_secret_value()
                if self.BRAINTREE_PRIVATE_KEY
                else None
            ),
        }
        return [name for name, value in values.items() if not value]

    def print_settings(self, logger: LoggingPort):
        """Prints the settings for debugging purposes"""
        logger.info("Parkpay Settings:")
        print(self)


app_settings = ParkpaySettings()

logger = LoggingAdapter("parkpay", app_settings.PARKPAY_LOG_LEVEL)
