"""
Catalog domain entities - products and cart items
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from domain.common.exceptions import DomainValidationException
from domain.common.money import ensure_utc, quantize_amount, normalize_currency


@dataclass
class Product:
    """
    Sellable catalog product.

    Business rules:
    1. Price is positive and kept at two decimal places
    2. Stock never goes below zero
    3. Inactive products cannot be added to carts or ordered
    """

    id: Optional[int]
    name: str
    price: Decimal
    currency: str
    stock: int
    description: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise DomainValidationException("Product name is required", field="name")
        self.price = quantize_amount(self.price)
        if self.price <= 0:
            raise DomainValidationException(f"Price must be positive: {self.price}", field="price")
        self.currency = normalize_currency(self.currency)
        if self.stock < 0:
            raise DomainValidationException(f"Stock cannot be negative: {self.stock}", field="stock")
        self.created_at = ensure_utc(self.created_at)
        self.updated_at = ensure_utc(self.updated_at)

    def can_supply(self, quantity: int) -> bool:
        return self.is_active and self.stock >= quantity

    def deactivate(self) -> None:
        self.is_active = False
        self.updated_at = datetime.now(timezone.utc)


@dataclass
class CartItem:
    """One line of a user's live cart. Prices are not stored here."""

    user_id: str
    product_id: int
    quantity: int
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if self.quantity <= 0:
            raise DomainValidationException(
                f"Quantity must be greater than 0: {self.quantity}",
                field="quantity",
            )
        self.created_at = ensure_utc(self.created_at)
        self.updated_at = ensure_utc(self.updated_at)
