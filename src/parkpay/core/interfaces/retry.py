from typing import Protocol, Any, Awaitable, Callable


class RetryPort(Protocol):
    """Abstract retry interface for async gateway operations.

    Implementations run an operation under a per-attempt deadline and retry
    transient failures with exponential backoff. The contract keeps the core
    decoupled from a specific library (tenacity/backoff).
    """
    async def execute(self, func: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:  # pragma: no cover - protocol
        """Execute an async callable with retry semantics.

        Args:
            func: Async callable returning a result.
            *args/**kwargs: Passed to the callable.
            Supported kw override (optional): policy (RetryPolicy).
        Returns:
            Result of the successful invocation.
        Raises:
            The error of the final attempt; non-retryable errors immediately.
        """
        ...
