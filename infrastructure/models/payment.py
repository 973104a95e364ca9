"""
Payment attempt ORM model
"""
from sqlalchemy import (
    Column, String, Numeric, DateTime, Index, ForeignKey, text,
)

from .base import Base, utcnow


class PaymentAttemptModel(Base):
    """
    Payment attempt table.

    Rows are never deleted; they are the audit trail of gateway charges.
    """
    __tablename__ = "payment_attempts"

    id = Column(String(32), primary_key=True, comment="Attempt id, sent to the gateway as stamp")
    order_id = Column(
        String(36),
        ForeignKey("orders.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    provider = Column(String(50), nullable=False, default="paytrail")
    provider_ref = Column(String(200), nullable=True, index=True, comment="Gateway transaction id")
    amount = Column(Numeric(precision=12, scale=2), nullable=False)
    currency = Column(String(3), nullable=False)
    # compare-and-swap target
    status = Column(String(32), nullable=False, default="created", index=True)
    redirect_url = Column(String(1024), nullable=True, comment="Hosted payment page")
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        # at most one active attempt per order
        Index(
            "uq_payment_attempts_active_order",
            "order_id",
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
        Index("ix_payment_attempts_status_created", "status", "created_at"),
    )

    def __repr__(self):
        return (
            f"<PaymentAttemptModel(id='{self.id}', order_id='{self.order_id}', "
            f"amount={self.amount}, status='{self.status}')>"
        )
