"""
Cart application service
"""
from decimal import Decimal
from typing import Callable

from application.dtos.catalog import CartDTO, CartLineDTO
from core.logging_config import get_logger
from domain.catalog.entity import CartItem
from domain.common.exceptions import ProductNotFoundError, ProductUnavailableError
from domain.common.money import quantize_amount
from domain.common.unit_of_work import AbstractUnitOfWork


logger = get_logger(__name__)


class CartService:
    """Shopping cart use-cases; availability is checked on every write."""

    def __init__(self, uow_factory: Callable[..., AbstractUnitOfWork]):
        self._uow_factory = uow_factory

    async def _build_cart(self, uow: AbstractUnitOfWork, user_id: str) -> CartDTO:
        items = await uow.cart_repository.list_items(user_id)
        products = await uow.product_repository.get_many([i.product_id for i in items])
        by_id = {p.id: p for p in products}

        lines = []
        for item in items:
            product = by_id.get(item.product_id)
            if product is None:
                continue
            lines.append(
                CartLineDTO(
                    product_id=product.id,
                    product_name=product.name,
                    quantity=item.quantity,
                    unit_price=product.price,
                    currency=product.currency,
                    line_total=quantize_amount(product.price * item.quantity),
                    available=product.can_supply(item.quantity),
                )
            )

        currencies = {line.currency for line in lines}
        currency = currencies.pop() if len(currencies) == 1 else None
        subtotal = None
        if currency is not None:
            subtotal = quantize_amount(sum((line.line_total for line in lines), Decimal("0")))
        return CartDTO(
            user_id=user_id,
            items=lines,
            item_count=sum(line.quantity for line in lines),
            currency=currency,
            subtotal=subtotal,
        )

    async def _set_quantity(self, uow: AbstractUnitOfWork, user_id: str, product_id: int, quantity: int) -> None:
        product = await uow.product_repository.get_by_id(product_id)
        if product is None or not product.is_active:
            raise ProductNotFoundError(product_id)
        if not product.can_supply(quantity):
            raise ProductUnavailableError(product_id, requested=quantity, available=product.stock)
        await uow.cart_repository.save_item(CartItem(user_id=user_id, product_id=product_id, quantity=quantity))

    async def get_cart(self, user_id: str) -> CartDTO:
        async with self._uow_factory(readonly=True) as uow:
            return await self._build_cart(uow, str(user_id))

    async def add_item(self, user_id: str, product_id: int, quantity: int = 1) -> CartDTO:
        """Add a product, or increase the quantity already in the cart"""
        user_id = str(user_id)
        async with self._uow_factory() as uow:
            existing = await uow.cart_repository.get_item(user_id, product_id)
            total = quantity + (existing.quantity if existing else 0)
            await self._set_quantity(uow, user_id, product_id, total)
            cart = await self._build_cart(uow, user_id)
        logger.info("cart_item_added", user_id=user_id, product_id=product_id, quantity=total)
        return cart

    async def update_item(self, user_id: str, product_id: int, quantity: int) -> CartDTO:
        user_id = str(user_id)
        async with self._uow_factory() as uow:
            if await uow.cart_repository.get_item(user_id, product_id) is None:
                raise ProductNotFoundError(product_id)
            await self._set_quantity(uow, user_id, product_id, quantity)
            return await self._build_cart(uow, user_id)

    async def remove_item(self, user_id: str, product_id: int) -> CartDTO:
        user_id = str(user_id)
        async with self._uow_factory() as uow:
            removed = await uow.cart_repository.remove_item(user_id, product_id)
            if not removed:
                raise ProductNotFoundError(product_id)
            return await self._build_cart(uow, user_id)

    async def clear(self, user_id: str) -> int:
        async with self._uow_factory() as uow:
            return await uow.cart_repository.clear(str(user_id))
