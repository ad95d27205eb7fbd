from typing import Optional

from pydantic import BaseModel


class Transaction(BaseModel):
    id: str
    amount: Optional[str] = None
    status: Optional[str] = None
