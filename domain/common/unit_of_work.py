"""Unit of Work abstraction"""
from __future__ import annotations

from abc import ABC, abstractmethod

from domain.catalog.repository import ProductRepository, CartRepository
from domain.order.repository import OrderRepository
from domain.payment.repository import PaymentAttemptRepository


class AbstractUnitOfWork(ABC):
    """Transaction boundary used by application services"""

    product_repository: ProductRepository
    cart_repository: CartRepository
    order_repository: OrderRepository
    payment_attempt_repository: PaymentAttemptRepository

    def __init__(self, *, readonly: bool = False) -> None:
        self._finished = False
        self._readonly = readonly
        self.product_repository = None  # type: ignore[assignment]
        self.cart_repository = None  # type: ignore[assignment]
        self.order_repository = None  # type: ignore[assignment]
        self.payment_attempt_repository = None  # type: ignore[assignment]

    async def __aenter__(self) -> "AbstractUnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if exc:
            await self.rollback()
        else:
            # commit only when writable and not committed/rolled back explicitly
            if not self._readonly and not self._finished:
                await self.commit()

    @abstractmethod
    async def commit(self) -> None:
        """Commit the transaction"""
        ...

    @abstractmethod
    async def rollback(self) -> None:
        """Roll back the transaction"""
