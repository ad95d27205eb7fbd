from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class SubscriptionStatus(str, Enum):
    active = "Active"
    canceled = "Canceled"
    expired = "Expired"
    past_due = "Past Due"
    pending = "Pending"


# Subscriptions that grant premium access
LIVE_STATUSES = frozenset({SubscriptionStatus.active, SubscriptionStatus.pending})


class Subscription(BaseModel):
    id: str
    status: str
    planId: Optional[str] = None
    price: Optional[str] = None
    nextBillingDate: Optional[date] = None
    firstBillingDate: Optional[date] = None

    @property
    def is_live(self) -> bool:
        return self.status in {s.value for s in LIVE_STATUSES}


class SubscriptionState(BaseModel):
    """Premium state of a user as reported by GET /api/subscription/status."""

    id: Optional[str] = None
    status: str
    planId: Optional[str] = None
    plan: Optional[str] = None
    price: Optional[str] = None
    nextBillingDate: Optional[date] = None
    isPremium: bool

    @classmethod
    def premium(cls, subscription: Subscription) -> "SubscriptionState":
        return cls(
            id=subscription.id,
            status=subscription.status,
            planId=subscription.planId,
            price=subscription.price,
            nextBillingDate=subscription.nextBillingDate,
            isPremium=True,
        )

    @classmethod
    def free(cls, status: str = "free") -> "SubscriptionState":
        return cls(status=status, plan="free", isPremium=False)
