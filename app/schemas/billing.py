from __future__ import annotations

from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class CreditCheckoutRequest(BaseModel):
    packageId: Optional[str] = None


class PaymentLinkRequest(BaseModel):
    projectId: Optional[UUID] = None
    leadId: Optional[UUID] = None
    amount: Optional[float] = None
    currency: str = "usd"
    description: Optional[str] = None
