"""
Order repository interface
"""
from abc import ABC, abstractmethod
from typing import Optional, List

from .entity import Order, OrderStatus


class OrderRepository(ABC):
    """Order store abstraction; status changes go through compare-and-swap only"""

    @abstractmethod
    async def create(self, order: Order) -> Order:
        """Persist a new order with its lines"""
        pass

    @abstractmethod
    async def get_by_id(self, order_id: str) -> Optional[Order]:
        """Get order with lines"""
        pass

    @abstractmethod
    async def list_by_user(self, user_id: str, skip: int = 0, limit: int = 100) -> List[Order]:
        """User's orders, newest first"""
        pass

    @abstractmethod
    async def count_by_user(self, user_id: str) -> int:
        pass

    @abstractmethod
    async def update_status(
        self,
        order_id: str,
        from_status: OrderStatus,
        to_status: OrderStatus,
    ) -> bool:
        """Atomically move the order from `from_status` to `to_status`.

        Returns False (and writes nothing) when the stored status is not
        `from_status`.
        """
        pass
