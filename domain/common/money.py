"""Money and time helpers shared by domain entities."""
from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from domain.common.exceptions import DomainValidationException
from shared.codes.payment_codes import ZERO_DECIMAL_CURRENCIES

CENT = Decimal("0.01")


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Normalize a timestamp to UTC (naive values are assumed UTC)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def quantize_amount(amount: Decimal | int | str) -> Decimal:
    return Decimal(str(amount)).quantize(CENT, rounding=ROUND_HALF_UP)


def normalize_currency(currency: str) -> str:
    code = (currency or "").upper()
    if len(code) != 3 or not code.isalpha():
        raise DomainValidationException(f"Invalid currency code: {currency}", field="currency")
    return code


def to_minor_units(amount: Decimal, currency: str) -> int:
    """Convert a decimal amount to the integer smallest currency unit."""
    exponent = 0 if currency.upper() in ZERO_DECIMAL_CURRENCIES else 2
    return int((amount * (Decimal(10) ** exponent)).to_integral_value(rounding=ROUND_HALF_UP))
