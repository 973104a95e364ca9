"""
Order ORM models

Business rules live in domain.order.entity; these are table mappings only.
"""
from sqlalchemy import (
    Column, Integer, String, Numeric, DateTime,
    Index, ForeignKey, CheckConstraint,
)
from sqlalchemy.orm import relationship

from .base import Base, utcnow


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, comment="Order id (UUID)")
    user_id = Column(String(64), nullable=False, index=True, comment="Owner user id")
    # compare-and-swap target: only updated through a conditional UPDATE
    status = Column(String(32), nullable=False, default="pending", index=True)
    total_amount = Column(Numeric(precision=12, scale=2), nullable=False, comment="Derived once from lines")
    currency = Column(String(3), nullable=False)
    customer_email = Column(String(320), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    lines = relationship(
        "OrderLineModel",
        back_populates="order",
        order_by="OrderLineModel.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        Index("ix_orders_user_created", "user_id", "created_at"),
    )

    def __repr__(self):
        return f"<OrderModel(id='{self.id}', user_id='{self.user_id}', total={self.total_amount}, status='{self.status}')>"


class OrderLineModel(Base):
    __tablename__ = "order_lines"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(
        String(36),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position = Column(Integer, nullable=False)
    product_id = Column(Integer, nullable=False, comment="Product at order time (no FK, catalog may change)")
    product_name = Column(String(200), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(precision=12, scale=2), nullable=False, comment="Price snapshot")

    order = relationship("OrderModel", back_populates="lines")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_order_lines_quantity_positive"),
    )
