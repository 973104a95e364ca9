"""
Order DTOs
"""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from application.dtos.base import DTOBase


class OrderLineDTO(DTOBase):
    product_id: int
    product_name: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal


class OrderDTO(DTOBase):
    """Order response"""
    id: str
    user_id: str
    status: str
    currency: str
    total_amount: Decimal
    customer_email: Optional[str] = None
    lines: List[OrderLineDTO]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, order) -> "OrderDTO":
        return cls(
            id=order.id,
            user_id=order.user_id,
            status=order.status.value,
            currency=order.currency,
            total_amount=order.total_amount,
            customer_email=order.customer_email,
            lines=[
                OrderLineDTO(
                    product_id=line.product_id,
                    product_name=line.product_name,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    line_total=line.line_total,
                )
                for line in order.lines
            ],
            created_at=order.created_at,
            updated_at=order.updated_at,
        )
