from typing import Optional

from pydantic import BaseModel


class Plan(BaseModel):
    """Billing plan as configured in the gateway control panel."""

    id: str
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[str] = None
    currencyIsoCode: Optional[str] = None
    billingFrequency: Optional[int] = None
    numberOfBillingCycles: Optional[int] = None
    trialPeriod: bool = False
    trialDuration: Optional[int] = None
    trialDurationUnit: Optional[str] = None
