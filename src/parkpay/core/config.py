"""Configuration models for core domain components.

Pydantic-based, immutable configuration objects that are built once in the
composition root and injected into managers and adapters.
"""

from pydantic import BaseModel, Field

# Hard deadline for a single outbound attempt; not part of the retry policy.
ATTEMPT_TIMEOUT_SECONDS: float = 90.0


class RetryPolicy(BaseModel):
    """Retry/backoff configuration for one wrapped gateway call.

    Attributes:
        max_retries: Maximum number of attempts (including the first one)
        initial_delay: Base delay in seconds; attempt ``i`` waits
            ``initial_delay * 2**i`` before the next one
    """

    max_retries: int = Field(
        default=3,
        ge=1,
        description="Maximum attempts for transient gateway failures",
    )

    initial_delay: float = Field(
        default=1.0,
        ge=0,
        description="Base wait time in seconds for exponential backoff between attempts",
    )

    model_config = {
        "frozen": True,
        "extra": "forbid",
    }

    def delay_for(self, attempt_index: int) -> float:
        """Backoff applied after the failed attempt with zero-based index."""
        return self.initial_delay * (2 ** attempt_index)

    @classmethod
    def from_app_settings(cls, settings) -> "RetryPolicy":
        return cls(
            max_retries=settings.PARKPAY_RETRY_MAX_ATTEMPTS,
            initial_delay=settings.PARKPAY_RETRY_INITIAL_DELAY,
        )


class GatewayTransportConfig(BaseModel):
    """Outbound transport tuning handed to the gateway client constructor.

    Attributes:
        timeout: Socket timeout in seconds applied by the gateway SDK
        max_workers: Size of the worker pool running blocking SDK calls;
            bounds the number of concurrent outbound connections
    """

    timeout: float = Field(default=60.0, gt=0)

    max_workers: int = Field(default=64, ge=1)

    model_config = {
        "frozen": True,
        "extra": "forbid",
    }

    @classmethod
    def from_app_settings(cls, settings) -> "GatewayTransportConfig":
        return cls(
            timeout=settings.PARKPAY_GATEWAY_TIMEOUT,
            max_workers=settings.PARKPAY_GATEWAY_MAX_WORKERS,
        )
