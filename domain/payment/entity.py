"""
Payment domain entities - payment attempt
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional
import uuid

from domain.common.exceptions import DomainValidationException
from domain.common.money import ensure_utc, quantize_amount, normalize_currency, to_minor_units


class AttemptStatus(str, Enum):
    """Payment attempt status"""
    CREATED = "created"      # built locally, gateway not yet answered
    ACTIVE = "active"        # gateway session open, awaiting the shopper
    CONFIRMED = "confirmed"  # verified success callback
    FAILED = "failed"        # cancelled by the shopper or the provider
    EXPIRED = "expired"      # no callback within the expiry window


@dataclass
class PaymentAttempt:
    """
    One gateway charge effort for an order.

    Business rules:
    1. amount equals the owning order's total when the attempt is created
    2. at most one ACTIVE attempt per order (enforced by the store)
    3. attempts are never deleted
    """

    id: str
    order_id: str
    amount: Decimal
    currency: str
    status: AttemptStatus = AttemptStatus.CREATED
    provider: str = "paytrail"
    provider_ref: Optional[str] = None
    redirect_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        self.amount = quantize_amount(self.amount)
        if self.amount <= 0:
            raise DomainValidationException(
                f"Payment amount must be positive: {self.amount}",
                field="amount",
            )
        self.currency = normalize_currency(self.currency)
        self.created_at = ensure_utc(self.created_at)
        self.updated_at = ensure_utc(self.updated_at)

    @classmethod
    def new_for(cls, order, *, provider: str, now: Optional[datetime] = None) -> "PaymentAttempt":
        now = now or datetime.now(timezone.utc)
        return cls(
            id=uuid.uuid4().hex,
            order_id=order.id,
            amount=order.total_amount,
            currency=order.currency,
            status=AttemptStatus.CREATED,
            provider=provider,
            created_at=now,
            updated_at=now,
        )

    @property
    def amount_minor(self) -> int:
        return to_minor_units(self.amount, self.currency)

    def activate(self, provider_ref: str, redirect_url: str) -> None:
        """Gateway accepted the payment; record its reference and hosted page."""
        if self.status != AttemptStatus.CREATED:
            raise DomainValidationException(
                f"Cannot activate attempt in status {self.status}",
                field="status",
            )
        self.status = AttemptStatus.ACTIVE
        self.provider_ref = provider_ref
        self.redirect_url = redirect_url
        self.updated_at = datetime.now(timezone.utc)
