"""Request body models for the mobile-facing API.

Field names follow the JSON the mobile client sends (camelCase). Each model
exposes ``REQUIRED`` so validation failures can tell the client which fields
it has to provide.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, ClassVar, Optional, Tuple

from pydantic import BaseModel, Field, field_validator


def _strip(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


def _as_text(value: Any) -> Any:
    # mobile clients may send ids and references as JSON numbers
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


class ApiRequest(BaseModel):
    REQUIRED: ClassVar[Tuple[str, ...]] = ()

    model_config = {"extra": "ignore"}

    @classmethod
    def from_raw(cls, raw: Any):
        """Validate a decoded JSON body (anything that is not an object counts as empty)."""
        return cls.model_validate(raw if isinstance(raw, dict) else {})


class TokenRequest(ApiRequest):
    customerId: Optional[str] = None

    @field_validator("customerId", mode="before")
    def blank_is_none(cls, value: Any) -> Any:
        value = _strip(value)
        return value or None


class SubscribeRequest(ApiRequest):
    REQUIRED = ("paymentMethodNonce", "planId", "userId")

    paymentMethodNonce: str = Field(min_length=1)
    planId: str = Field(min_length=1)
    userId: str = Field(min_length=1)
    email: Optional[str] = None

    @field_validator("paymentMethodNonce", "planId", "userId", mode="before")
    def strip_text(cls, value: Any) -> Any:
        return _strip(value)

    @field_validator("email", mode="before")
    def email_as_text(cls, value: Any) -> Any:
        return _strip(_as_text(value))


class UpdateSubscriptionRequest(ApiRequest):
    REQUIRED = ("subscriptionId", "newPlanId")

    subscriptionId: str = Field(min_length=1)
    newPlanId: str = Field(min_length=1)

    @field_validator("subscriptionId", "newPlanId", mode="before")
    def strip_text(cls, value: Any) -> Any:
        return _strip(value)


class CancelSubscriptionRequest(ApiRequest):
    REQUIRED = ("subscriptionId",)

    subscriptionId: str = Field(min_length=1)

    @field_validator("subscriptionId", mode="before")
    def strip_text(cls, value: Any) -> Any:
        return _strip(value)


class ParkingPaymentRequest(ApiRequest):
    REQUIRED = ("nonce", "amount", "userId")

    nonce: str = Field(min_length=1)
    amount: Decimal = Field(gt=0)
    userId: str = Field(min_length=1)
    entryId: Optional[str] = None

    @field_validator("nonce", "userId", mode="before")
    def strip_text(cls, value: Any) -> Any:
        return _strip(value)

    @field_validator("entryId", mode="before")
    def entry_id_as_text(cls, value: Any) -> Any:
        return _as_text(value)

    def gateway_amount(self) -> str:
        """Amount formatted the way the gateway expects it (plain decimal string)."""
        return format(self.amount, "f")
