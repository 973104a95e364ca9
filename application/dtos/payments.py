"""
Payment DTOs (Pydantic v2) used at application boundaries.
"""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional, Literal
from pydantic import BaseModel, ConfigDict

from application.dtos.base import DTOBase

# provider-normalized callback outcome
CallbackOutcome = Literal["succeeded", "cancelled", "pending"]


class ProviderSession(BaseModel):
    """Gateway answer to an open-payment request"""
    provider: str
    provider_ref: str
    redirect_url: str


class CallbackEvent(BaseModel):
    """Provider callback parsed into provider-neutral fields"""
    provider: str
    order_id: Optional[str] = None
    attempt_id: Optional[str] = None
    provider_ref: Optional[str] = None
    amount_minor: Optional[int] = None
    outcome: CallbackOutcome
    provider_status: Optional[str] = None
    # raw parameters for traceability
    raw: dict[str, Any] = {}

    model_config = ConfigDict(frozen=True)


class PaymentInitiationDTO(DTOBase):
    order_id: str
    order_status: str
    attempt_id: Optional[str] = None
    redirect_url: Optional[str] = None
    # true when the order was not payable; no gateway call was made
    conflict: bool = False


class CallbackResultDTO(DTOBase):
    outcome: Literal["applied", "duplicate", "ignored", "rejected", "pending"]
    trusted: bool = True
    order_id: Optional[str] = None
    order_status: Optional[str] = None
    attempt_id: Optional[str] = None


class PaymentAttemptDTO(DTOBase):
    id: str
    order_id: str
    provider: str
    provider_ref: Optional[str] = None
    amount: Decimal
    currency: str
    status: str
    redirect_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, attempt) -> "PaymentAttemptDTO":
        return cls(
            id=attempt.id,
            order_id=attempt.order_id,
            provider=attempt.provider,
            provider_ref=attempt.provider_ref,
            amount=attempt.amount,
            currency=attempt.currency,
            status=attempt.status.value,
            redirect_url=attempt.redirect_url,
            created_at=attempt.created_at,
            updated_at=attempt.updated_at,
        )


class PaymentStatusDTO(DTOBase):
    attempt: PaymentAttemptDTO
    order_status: str
