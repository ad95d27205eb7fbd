from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Machine-readable failure categories.

    Values mirror the error type names used by the Braintree SDKs so that
    kinds reported by the gateway can be passed through unchanged.
    """

    timeout = "timeout"
    unexpected = "unexpectedError"
    not_found = "notFoundError"
    validation = "validationError"
    authentication = "authenticationError"
    gateway = "gatewayError"
    internal = "internalError"


# Transient network/availability failures. Explicit rejections are never retried.
RETRYABLE_KINDS = frozenset({ErrorKind.timeout, ErrorKind.unexpected})

# Fallback markers for errors that carry no structured kind.
TIMEOUT_MARKERS = ("timeout", "timed out")


class GatewayError(Exception):
    """Base exception for failures of outbound payment gateway calls.

    Attributes:
        message: Human-readable error description (safe to show to clients)
        kind: Machine-readable category used for retry and HTTP mapping
        details: Optional extra data returned by the gateway
    """

    kind: ErrorKind = ErrorKind.gateway

    def __init__(
        self,
        message: str,
        kind: Optional[ErrorKind] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        if kind is not None:
            self.kind = kind
        self.details = details or {}
        super().__init__(message)


class GatewayTimeoutError(GatewayError):
    """Raised when a single attempt exceeds its deadline."""

    kind = ErrorKind.timeout


class UpstreamUnavailableError(GatewayError):
    """Raised for opaque/unclassified gateway failures (5xx, rate limits...)."""

    kind = ErrorKind.unexpected


class NotFoundError(GatewayError):
    """Raised when the gateway reports that a resource does not exist."""

    kind = ErrorKind.not_found


class GatewayRejectedError(GatewayError):
    """Raised when the gateway answers with an unsuccessful result.

    Covers validation errors and processor declines; retrying will not
    change the answer.
    """

    kind = ErrorKind.validation


class GatewayAuthenticationError(GatewayError):
    """Raised when the merchant credentials are rejected."""

    kind = ErrorKind.authentication


def error_kind(exc: BaseException) -> Optional[ErrorKind]:
    """Return the structured kind of an exception, if it carries one.

    Accepts both ErrorKind members and the raw string values some clients
    attach as ``kind`` or ``type``. Unknown strings map to ``gateway`` so they
    are treated as explicit rejections.
    """
    raw = getattr(exc, "kind", None)
    if raw is None:
        raw = getattr(exc, "type", None)
    if raw is None:
        return None
    if isinstance(raw, ErrorKind):
        return raw
    if isinstance(raw, str):
        try:
            return ErrorKind(raw)
        except ValueError:
            return ErrorKind.gateway
    return None


def is_retryable(exc: BaseException) -> bool:
    """Decide whether a failed attempt is worth another try.

    A structured kind always wins. Only when an error has none do we look for
    timeout markers in its message.
    """
    kind = error_kind(exc)
    if kind is not None:
        return kind in RETRYABLE_KINDS
    message = str(exc).lower()
    return any(marker in message for marker in TIMEOUT_MARKERS)
