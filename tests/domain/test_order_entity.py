from decimal import Decimal

import pytest

from domain.common.exceptions import DomainValidationException
from domain.order.entity import (
    CartSnapshot,
    Order,
    OrderLine,
    OrderStatus,
    SnapshotLine,
    TERMINAL_ORDER_STATUSES,
    can_transition,
)
from domain.payment.entity import AttemptStatus, PaymentAttempt


def _snapshot() -> CartSnapshot:
    return CartSnapshot(
        user_id="u1",
        currency="usd",
        lines=(
            SnapshotLine(product_id=1, product_name="A", quantity=2, unit_price=Decimal("10.00")),
            SnapshotLine(product_id=2, product_name="B", quantity=1, unit_price=Decimal("5.00")),
        ),
    )


def test_order_total_is_derived_from_lines():
    order = Order.from_snapshot(_snapshot(), customer_email="a@example.com")
    assert order.total_amount == Decimal("25.00")
    assert order.total_minor == 2500
    assert order.currency == "USD"
    assert order.status == OrderStatus.PENDING
    assert order.customer_email == "a@example.com"
    assert len(order.id) == 36


def test_order_rejects_total_that_does_not_match_lines():
    lines = (OrderLine(product_id=1, product_name="A", quantity=3, unit_price=Decimal("1.10")),)
    with pytest.raises(DomainValidationException):
        Order(id="o1", user_id="u1", currency="EUR", lines=lines, total_amount=Decimal("3.31"))

    order = Order(id="o1", user_id="u1", currency="EUR", lines=lines, total_amount=Decimal("3.30"))
    assert order.total_amount == Decimal("3.30")


def test_order_requires_lines_and_positive_line_values():
    with pytest.raises(DomainValidationException):
        Order(id="o1", user_id="u1", currency="EUR", lines=())
    with pytest.raises(DomainValidationException):
        OrderLine(product_id=1, product_name="A", quantity=0, unit_price=Decimal("1.00"))
    with pytest.raises(DomainValidationException):
        OrderLine(product_id=1, product_name="A", quantity=1, unit_price=Decimal("0"))


def test_terminal_states_have_no_way_out():
    for terminal in TERMINAL_ORDER_STATUSES:
        for target in OrderStatus:
            assert not can_transition(terminal, target)


def test_allowed_transitions():
    assert can_transition(OrderStatus.PENDING, OrderStatus.AWAITING_PAYMENT)
    assert can_transition(OrderStatus.AWAITING_PAYMENT, OrderStatus.PAID)
    assert can_transition(OrderStatus.AWAITING_PAYMENT, OrderStatus.EXPIRED)
    assert can_transition(OrderStatus.FAILED, OrderStatus.CANCELLED)
    assert not can_transition(OrderStatus.PENDING, OrderStatus.PAID)
    assert not can_transition(OrderStatus.FAILED, OrderStatus.AWAITING_PAYMENT)


def test_payment_attempt_copies_order_amount_and_activates_once():
    order = Order.from_snapshot(_snapshot())
    attempt = PaymentAttempt.new_for(order, provider="paytrail")
    assert attempt.amount == order.total_amount
    assert attempt.amount_minor == 2500
    assert attempt.status == AttemptStatus.CREATED
    assert len(attempt.id) == 32

    attempt.activate("tx-1", "https://pay.example/1")
    assert attempt.status == AttemptStatus.ACTIVE
    assert attempt.provider_ref == "tx-1"
    with pytest.raises(DomainValidationException):
        attempt.activate("tx-2", "https://pay.example/2")
