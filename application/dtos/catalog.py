"""
Catalog and cart DTOs
"""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import Field, field_validator

from application.dtos.base import DTOBase


class ProductCreateDTO(DTOBase):
    """Product creation (admin)"""
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    price: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    currency: str = Field(default="EUR", min_length=3, max_length=3)
    stock: int = Field(default=0, ge=0)
    is_active: bool = True

    @field_validator("currency")
    @classmethod
    def _upper_currency(cls, v: str) -> str:
        u = (v or "").upper()
        if not u.isalpha():
            raise ValueError("currency must be ISO-4217 alpha-3")
        return u


class ProductUpdateDTO(DTOBase):
    """Partial product update (admin)"""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    price: Optional[Decimal] = Field(None, gt=0, max_digits=12, decimal_places=2)
    stock: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None


class ProductDTO(DTOBase):
    id: int
    name: str
    description: Optional[str] = None
    price: Decimal
    currency: str
    stock: int
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, product) -> "ProductDTO":
        return cls(
            id=product.id,
            name=product.name,
            description=product.description,
            price=product.price,
            currency=product.currency,
            stock=product.stock,
            is_active=product.is_active,
            created_at=product.created_at,
            updated_at=product.updated_at,
        )


class CartItemAddDTO(DTOBase):
    product_id: int = Field(..., ge=1)
    quantity: int = Field(default=1, ge=1, le=999)


class CartItemUpdateDTO(DTOBase):
    quantity: int = Field(..., ge=1, le=999)


class CartLineDTO(DTOBase):
    product_id: int
    product_name: str
    quantity: int
    unit_price: Decimal
    currency: str
    line_total: Decimal
    available: bool


class CartDTO(DTOBase):
    """Cart priced from the live catalog"""
    user_id: str
    items: List[CartLineDTO]
    item_count: int
    # None when lines carry more than one currency
    currency: Optional[str] = None
    subtotal: Optional[Decimal] = None
