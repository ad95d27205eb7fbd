import asyncio
from typing import Any, Awaitable, Callable

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from parkpay.core.config import ATTEMPT_TIMEOUT_SECONDS, RetryPolicy
from parkpay.core.exceptions import GatewayTimeoutError, error_kind, is_retryable
from parkpay.core.interfaces.logging import LoggingPort
from parkpay.core.settings import logger as default_logger


class TenacityRetryAdapter:
    """Tenacity-based retry adapter implementing RetryPort.

    Every attempt races the operation against a fixed deadline
    (``asyncio.timeout``); whichever side loses is cancelled, so no timer
    outlives the call. Failures classified as transient by `is_retryable` are
    retried with exponential backoff (``initial_delay * 2**i``); anything else
    is re-raised at once. After the last attempt the final error is re-raised
    unchanged.

    A call-time ``policy`` kwarg overrides the adapter default.
    """

    def __init__(
        self,
        policy: RetryPolicy | None = None,
        attempt_timeout: float = ATTEMPT_TIMEOUT_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        logger: LoggingPort | None = None,
    ) -> None:
        self.policy = policy or RetryPolicy()
        self.attempt_timeout = attempt_timeout
        self._sleep = sleep
        self._logger = logger or default_logger

    async def execute(self, func: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:
        policy: RetryPolicy = kwargs.pop("policy", None) or self.policy

        retrying = AsyncRetrying(
            stop=stop_after_attempt(policy.max_retries),
            # attempt n (1-based) waits multiplier * 2**(n-1): 1x, 2x, 4x...
            wait=wait_exponential(multiplier=policy.initial_delay, exp_base=2),
            retry=retry_if_exception(is_retryable),
            before=lambda state: self._log_attempt(state, policy),
            before_sleep=self._log_backoff,
            sleep=self._sleep,
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    return await self._run_attempt(func, *args, **kwargs)
        except Exception as exc:
            if is_retryable(exc):
                self._logger.error(
                    "[retry] giving up after %s attempts kind=%s error=%s",
                    policy.max_retries,
                    _kind_label(exc),
                    exc,
                )
            else:
                self._logger.warning(
                    "[retry] non-retryable failure kind=%s error=%s",
                    _kind_label(exc),
                    exc,
                )
            raise

    async def _run_attempt(self, func: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:
        try:
            async with asyncio.timeout(self.attempt_timeout) as deadline:
                return await func(*args, **kwargs)
        except TimeoutError as exc:
            if deadline.expired():
                raise GatewayTimeoutError(
                    f"Request timed out after {self.attempt_timeout:g} seconds"
                ) from exc
            # the operation timed out on its own before the deadline
            raise GatewayTimeoutError(str(exc) or "Request timed out") from exc

    def _log_attempt(self, state: RetryCallState, policy: RetryPolicy) -> None:
        self._logger.debug(
            "[retry] attempt %s/%s", state.attempt_number, policy.max_retries
        )

    def _log_backoff(self, state: RetryCallState) -> None:
        exc = state.outcome.exception() if state.outcome else None
        delay = state.next_action.sleep if state.next_action else 0.0
        self._logger.warning(
            "[retry] attempt %s failed after %.2fs kind=%s error=%s; waiting %.2fs",
            state.attempt_number,
            state.seconds_since_start or 0.0,
            _kind_label(exc) if exc else "-",
            exc,
            delay,
        )


def _kind_label(exc: BaseException) -> str:
    kind = error_kind(exc)
    return kind.value if kind else type(exc).__name__


async def execute_with_retry(
    operation: Callable[[], Awaitable[Any]],
    policy: RetryPolicy | None = None,
) -> Any:
    """Run a zero-argument async operation under the standard retry envelope."""
    return await TenacityRetryAdapter(policy).execute(operation)
