from typing import List, Optional

from pydantic import BaseModel, Field

from parkpay.core.models.subscription import Subscription


class PaymentMethod(BaseModel):
    token: str
    subscriptions: List[Subscription] = Field(default_factory=list)


class Customer(BaseModel):
    id: str
    email: Optional[str] = None
    paymentMethods: List[PaymentMethod] = Field(default_factory=list)

    def default_payment_method_token(self) -> Optional[str]:
        """Token of the first vaulted payment method, if any."""
        if self.paymentMethods:
            return self.paymentMethods[0].token
        return None

    def live_subscriptions(self) -> List[Subscription]:
        return [
            sub
            for method in self.paymentMethods
            for sub in method.subscriptions
            if sub.is_live
        ]
