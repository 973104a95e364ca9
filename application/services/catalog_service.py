"""
Catalog application service - product reads and admin maintenance
"""
from typing import Callable, List, Tuple

from application.dtos.catalog import ProductCreateDTO, ProductUpdateDTO, ProductDTO
from core.logging_config import get_logger
from domain.catalog.entity import Product
from domain.common.exceptions import ProductNotFoundError
from domain.common.unit_of_work import AbstractUnitOfWork


logger = get_logger(__name__)


class CatalogService:
    """Product catalog use-cases"""

    def __init__(self, uow_factory: Callable[..., AbstractUnitOfWork]):
        self._uow_factory = uow_factory

    async def list_products(self, page: int = 1, size: int = 20) -> Tuple[List[ProductDTO], int]:
        """Active products only, ordered by id"""
        skip = (max(page, 1) - 1) * size
        async with self._uow_factory(readonly=True) as uow:
            products = await uow.product_repository.list_active(skip=skip, limit=size)
            total = await uow.product_repository.count_active()
        return [ProductDTO.from_entity(p) for p in products], total

    async def get_product(self, product_id: int, *, include_inactive: bool = False) -> ProductDTO:
        async with self._uow_factory(readonly=True) as uow:
            product = await uow.product_repository.get_by_id(product_id)
        if product is None or (not product.is_active and not include_inactive):
            raise ProductNotFoundError(product_id)
        return ProductDTO.from_entity(product)

    async def create_product(self, data: ProductCreateDTO) -> ProductDTO:
        product = Product(
            id=None,
            name=data.name,
            description=data.description,
            price=data.price,
            currency=data.currency,
            stock=data.stock,
            is_active=data.is_active,
        )
        async with self._uow_factory() as uow:
            product = await uow.product_repository.create(product)
        return ProductDTO.from_entity(product)

    async def update_product(self, product_id: int, data: ProductUpdateDTO) -> ProductDTO:
        """Partial update; only fields present in the payload change"""
        changes = data.model_dump(exclude_unset=True)
        async with self._uow_factory() as uow:
            product = await uow.product_repository.get_by_id(product_id)
            if product is None:
                raise ProductNotFoundError(product_id)
            # rebuild through the constructor so entity validation runs
            merged = Product(
                id=product.id,
                name=changes.get("name", product.name),
                description=changes.get("description", product.description),
                price=changes.get("price", product.price),
                currency=product.currency,
                stock=changes.get("stock", product.stock),
                is_active=changes.get("is_active", product.is_active),
                created_at=product.created_at,
                updated_at=product.updated_at,
            )
            product = await uow.product_repository.update(merged)
        return ProductDTO.from_entity(product)

    async def delete_product(self, product_id: int) -> None:
        """Soft delete; order lines keep referencing the product"""
        async with self._uow_factory() as uow:
            product = await uow.product_repository.get_by_id(product_id)
            if product is None:
                raise ProductNotFoundError(product_id)
            product.deactivate()
            await uow.product_repository.update(product)
        logger.info("product_deactivated", product_id=product_id)
