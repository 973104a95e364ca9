"""
Catalog repository interfaces - products and carts
"""
from abc import ABC, abstractmethod
from typing import Optional, List

from .entity import Product, CartItem


class ProductRepository(ABC):
    """Product repository abstraction"""

    @abstractmethod
    async def create(self, product: Product) -> Product:
        """Persist a new product"""
        pass

    @abstractmethod
    async def get_by_id(self, product_id: int) -> Optional[Product]:
        """Get product by id"""
        pass

    @abstractmethod
    async def get_many(self, product_ids: List[int]) -> List[Product]:
        """Get several products in one round trip (missing ids are skipped)"""
        pass

    @abstractmethod
    async def list_active(self, skip: int = 0, limit: int = 100) -> List[Product]:
        """List active products"""
        pass

    @abstractmethod
    async def count_active(self) -> int:
        pass

    @abstractmethod
    async def update(self, product: Product) -> Product:
        """Update product attributes"""
        pass


class CartRepository(ABC):
    """Cart repository abstraction; one cart per user"""

    @abstractmethod
    async def list_items(self, user_id: str) -> List[CartItem]:
        """Cart lines in insertion order"""
        pass

    @abstractmethod
    async def get_item(self, user_id: str, product_id: int) -> Optional[CartItem]:
        pass

    @abstractmethod
    async def save_item(self, item: CartItem) -> CartItem:
        """Insert or replace the line for (user_id, product_id)"""
        pass

    @abstractmethod
    async def remove_item(self, user_id: str, product_id: int) -> bool:
        pass

    @abstractmethod
    async def clear(self, user_id: str) -> int:
        """Remove all lines, returning how many were removed"""
        pass
