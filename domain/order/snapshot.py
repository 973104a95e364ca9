"""
Cart snapshot resolver - turns a live cart into immutable order lines
"""
from __future__ import annotations

from domain.catalog.repository import CartRepository, ProductRepository
from domain.common.exceptions import (
    EmptyCartError,
    MixedCurrencyError,
    ProductUnavailableError,
)
from .entity import CartSnapshot, SnapshotLine


class CartSnapshotResolver:
    """
    Read-only resolver; stock is validated, not reserved.

    Prices are taken from the catalog at resolve time, never from the cart.
    """

    def __init__(self, products: ProductRepository, carts: CartRepository):
        self.products = products
        self.carts = carts

    async def resolve(self, user_id: str) -> CartSnapshot:
        items = await self.carts.list_items(user_id)
        if not items:
            raise EmptyCartError(user_id)

        found = await self.products.get_many([item.product_id for item in items])
        by_id = {p.id: p for p in found}

        lines: list[SnapshotLine] = []
        currencies: set[str] = set()
        for item in items:
            product = by_id.get(item.product_id)
            if product is None or not product.can_supply(item.quantity):
                raise ProductUnavailableError(
                    item.product_id,
                    requested=item.quantity,
                    available=product.stock if product and product.is_active else 0,
                )
            currencies.add(product.currency)
            lines.append(
                SnapshotLine(
                    product_id=product.id,
                    product_name=product.name,
                    quantity=item.quantity,
                    unit_price=product.price,
                )
            )

        if len(currencies) > 1:
            raise MixedCurrencyError(list(currencies))

        return CartSnapshot(user_id=user_id, currency=currencies.pop(), lines=tuple(lines))
