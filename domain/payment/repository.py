"""
Payment attempt repository interface
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, List

from .entity import PaymentAttempt, AttemptStatus


class PaymentAttemptRepository(ABC):
    """Payment attempt store; attempts are only ever inserted or CAS-updated"""

    @abstractmethod
    async def create(self, attempt: PaymentAttempt) -> PaymentAttempt:
        """Insert a new attempt"""
        pass

    @abstractmethod
    async def get_by_id(self, attempt_id: str) -> Optional[PaymentAttempt]:
        pass

    @abstractmethod
    async def get_active_for_order(self, order_id: str) -> Optional[PaymentAttempt]:
        """The single ACTIVE attempt of an order, if any"""
        pass

    @abstractmethod
    async def update_status(
        self,
        attempt_id: str,
        from_status: AttemptStatus,
        to_status: AttemptStatus,
        *,
        provider_ref: Optional[str] = None,
    ) -> bool:
        """Compare-and-swap the attempt status; optionally records provider_ref"""
        pass

    @abstractmethod
    async def list_stale_active(self, created_before: datetime, limit: int = 100) -> List[PaymentAttempt]:
        """ACTIVE attempts created before the cutoff, oldest first"""
        pass
