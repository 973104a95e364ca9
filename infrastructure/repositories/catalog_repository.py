"""
Catalog repository implementations - products and carts
"""
from typing import Optional, List
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, func

from domain.catalog.entity import Product, CartItem
from domain.catalog.repository import ProductRepository, CartRepository
from infrastructure.models.catalog import ProductModel, CartItemModel
from core.logging_config import get_logger


logger = get_logger(__name__)


class SQLAlchemyProductRepository(ProductRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: ProductModel) -> Product:
        return Product(
            id=model.id,
            name=model.name,
            description=model.description,
            price=Decimal(str(model.price)),
            currency=model.currency,
            stock=model.stock,
            is_active=model.is_active,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    async def create(self, product: Product) -> Product:
        db_product = ProductModel(
            name=product.name,
            description=product.description,
            price=product.price,
            currency=product.currency,
            stock=product.stock,
            is_active=product.is_active,
        )
        self.session.add(db_product)
        await self.session.flush()
        logger.info("product_created", product_id=db_product.id, name=db_product.name)
        return self._to_entity(db_product)

    async def get_by_id(self, product_id: int) -> Optional[Product]:
        result = await self.session.execute(
            select(ProductModel).where(ProductModel.id == product_id)
        )
        db_product = result.scalar_one_or_none()
        return self._to_entity(db_product) if db_product else None

    async def get_many(self, product_ids: List[int]) -> List[Product]:
        if not product_ids:
            return []
        result = await self.session.execute(
            select(ProductModel).where(ProductModel.id.in_(set(product_ids)))
        )
        return [self._to_entity(p) for p in result.scalars().all()]

    async def list_active(self, skip: int = 0, limit: int = 100) -> List[Product]:
        result = await self.session.execute(
            select(ProductModel)
            .where(ProductModel.is_active.is_(True))
            .order_by(ProductModel.id.asc())
            .offset(skip)
            .limit(limit)
        )
        return [self._to_entity(p) for p in result.scalars().all()]

    async def count_active(self) -> int:
        result = await self.session.execute(
            select(func.count(ProductModel.id)).where(ProductModel.is_active.is_(True))
        )
        return result.scalar_one()

    async def update(self, product: Product) -> Product:
        result = await self.session.execute(
            select(ProductModel).where(ProductModel.id == product.id)
        )
        db_product = result.scalar_one_or_none()
        if not db_product:
            raise ValueError(f"Product with id {product.id} not found")

        db_product.name = product.name
        db_product.description = product.description
        db_product.price = product.price
        db_product.currency = product.currency
        db_product.stock = product.stock
        db_product.is_active = product.is_active

        await self.session.flush()
        await self.session.refresh(db_product)
        logger.info("product_updated", product_id=db_product.id, is_active=db_product.is_active)
        return self._to_entity(db_product)


class SQLAlchemyCartRepository(CartRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: CartItemModel) -> CartItem:
        return CartItem(
            id=model.id,
            user_id=model.user_id,
            product_id=model.product_id,
            quantity=model.quantity,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    async def list_items(self, user_id: str) -> List[CartItem]:
        result = await self.session.execute(
            select(CartItemModel)
            .where(CartItemModel.user_id == user_id)
            .order_by(CartItemModel.id.asc())
        )
        return [self._to_entity(i) for i in result.scalars().all()]

    async def get_item(self, user_id: str, product_id: int) -> Optional[CartItem]:
        result = await self.session.execute(
            select(CartItemModel).where(
                CartItemModel.user_id == user_id,
                CartItemModel.product_id == product_id,
            )
        )
        db_item = result.scalar_one_or_none()
        return self._to_entity(db_item) if db_item else None

    async def save_item(self, item: CartItem) -> CartItem:
        result = await self.session.execute(
            select(CartItemModel).where(
                CartItemModel.user_id == item.user_id,
                CartItemModel.product_id == item.product_id,
            )
        )
        db_item = result.scalar_one_or_none()
        if db_item is None:
            db_item = CartItemModel(
                user_id=item.user_id,
                product_id=item.product_id,
                quantity=item.quantity,
            )
            self.session.add(db_item)
        else:
            db_item.quantity = item.quantity
        await self.session.flush()
        return self._to_entity(db_item)

    async def remove_item(self, user_id: str, product_id: int) -> bool:
        result = await self.session.execute(
            delete(CartItemModel).where(
                CartItemModel.user_id == user_id,
                CartItemModel.product_id == product_id,
            )
        )
        return result.rowcount > 0

    async def clear(self, user_id: str) -> int:
        result = await self.session.execute(
            delete(CartItemModel).where(CartItemModel.user_id == user_id)
        )
        removed = result.rowcount or 0
        logger.info("cart_cleared", user_id=user_id, removed=removed)
        return removed
