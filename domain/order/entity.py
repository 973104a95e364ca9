"""
Order domain entities - order aggregate root and cart snapshot
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple
import uuid

from domain.common.exceptions import DomainValidationException
from domain.common.money import ensure_utc, quantize_amount, normalize_currency, to_minor_units


class OrderStatus(str, Enum):
    """Order lifecycle states"""
    PENDING = "pending"                    # created, no payment opened yet
    AWAITING_PAYMENT = "awaiting_payment"  # payment opened at the gateway
    PAID = "paid"
    FAILED = "failed"                      # gateway refused to open a payment
    CANCELLED = "cancelled"
    EXPIRED = "expired"


TERMINAL_ORDER_STATUSES = frozenset({
    OrderStatus.PAID,
    OrderStatus.CANCELLED,
    OrderStatus.EXPIRED,
})

# from -> allowed targets
ORDER_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({
        OrderStatus.AWAITING_PAYMENT,
        OrderStatus.FAILED,
        OrderStatus.CANCELLED,
    }),
    OrderStatus.AWAITING_PAYMENT: frozenset({
        OrderStatus.PAID,
        OrderStatus.CANCELLED,
        OrderStatus.EXPIRED,
    }),
    OrderStatus.FAILED: frozenset({OrderStatus.CANCELLED}),
    OrderStatus.PAID: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
    OrderStatus.EXPIRED: frozenset(),
}


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in ORDER_TRANSITIONS.get(current, frozenset())


@dataclass(frozen=True)
class SnapshotLine:
    product_id: int
    product_name: str
    quantity: int
    unit_price: Decimal

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class CartSnapshot:
    """Immutable copy of cart contents priced from the catalog at checkout time."""
    user_id: str
    currency: str
    lines: Tuple[SnapshotLine, ...]

    @property
    def total_amount(self) -> Decimal:
        return quantize_amount(sum((line.line_total for line in self.lines), Decimal("0")))


@dataclass(frozen=True)
class OrderLine:
    """Order line item; immutable once written"""
    product_id: int
    product_name: str
    quantity: int
    unit_price: Decimal

    def __post_init__(self):
        if self.quantity <= 0:
            raise DomainValidationException(
                f"Quantity must be greater than 0: {self.quantity}",
                field="quantity",
            )
        if self.unit_price <= 0:
            raise DomainValidationException(
                f"Unit price must be positive: {self.unit_price}",
                field="unit_price",
            )
        object.__setattr__(self, "unit_price", quantize_amount(self.unit_price))

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass
class Order:
    """
    Order aggregate root.

    Business rules:
    1. total_amount == sum(quantity * unit_price) of its lines, derived once
    2. Lines are an immutable tuple; the order never edits them
    3. Status moves only along ORDER_TRANSITIONS; terminal states are final
    """

    id: str
    user_id: str
    currency: str
    lines: Tuple[OrderLine, ...]
    status: OrderStatus = OrderStatus.PENDING
    total_amount: Optional[Decimal] = None
    customer_email: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        self.lines = tuple(self.lines)
        if not self.lines:
            raise DomainValidationException("Order must contain at least one line", field="lines")
        self.currency = normalize_currency(self.currency)
        derived = quantize_amount(sum((line.line_total for line in self.lines), Decimal("0")))
        if self.total_amount is None:
            self.total_amount = derived
        elif quantize_amount(self.total_amount) != derived:
            raise DomainValidationException(
                f"Order total {self.total_amount} does not match line items {derived}",
                field="total_amount",
            )
        else:
            self.total_amount = derived
        self.created_at = ensure_utc(self.created_at)
        self.updated_at = ensure_utc(self.updated_at)

    @classmethod
    def from_snapshot(
        cls,
        snapshot: CartSnapshot,
        *,
        customer_email: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> "Order":
        lines = tuple(
            OrderLine(
                product_id=line.product_id,
                product_name=line.product_name,
                quantity=line.quantity,
                unit_price=line.unit_price,
            )
            for line in snapshot.lines
        )
        return cls(
            id=str(uuid.uuid4()),
            user_id=snapshot.user_id,
            currency=snapshot.currency,
            lines=lines,
            status=OrderStatus.PENDING,
            customer_email=customer_email,
            created_at=now,
            updated_at=now,
        )

    @property
    def total_minor(self) -> int:
        return to_minor_units(self.total_amount, self.currency)

    def is_terminal(self) -> bool:
        return self.status in TERMINAL_ORDER_STATUSES

    def is_owned_by(self, user_id: str) -> bool:
        return self.user_id == str(user_id)
