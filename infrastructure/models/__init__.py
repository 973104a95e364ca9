"""Infrastructure models package exports."""
from .base import Base, metadata
from .catalog import ProductModel, CartItemModel
from .order import OrderModel, OrderLineModel
from .payment import PaymentAttemptModel

__all__ = [
    "Base",
    "metadata",
    "ProductModel",
    "CartItemModel",
    "OrderModel",
    "OrderLineModel",
    "PaymentAttemptModel",
]
