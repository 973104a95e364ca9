from decimal import Decimal

import pytest

from domain.common.exceptions import EmptyCartError, MixedCurrencyError, ProductUnavailableError
from domain.order.snapshot import CartSnapshotResolver


async def _resolve(store, user_id="u1"):
    async with store.uow_factory(readonly=True) as uow:
        return await CartSnapshotResolver(uow.product_repository, uow.cart_repository).resolve(user_id)


@pytest.mark.asyncio
async def test_snapshot_prices_lines_from_catalog(store):
    a = store.add_product("A", "10.00")
    b = store.add_product("B", "5.00")
    store.put_in_cart("u1", a, 2)
    store.put_in_cart("u1", b, 1)

    snapshot = await _resolve(store)

    assert snapshot.currency == "USD"
    assert snapshot.total_amount == Decimal("25.00")
    assert [(line.product_id, line.quantity, line.unit_price) for line in snapshot.lines] == [
        (a.id, 2, Decimal("10.00")),
        (b.id, 1, Decimal("5.00")),
    ]


@pytest.mark.asyncio
async def test_empty_cart_is_refused(store):
    with pytest.raises(EmptyCartError):
        await _resolve(store)


@pytest.mark.asyncio
@pytest.mark.parametrize("stock,is_active", [(1, True), (5, False)])
async def test_unavailable_product_is_named(store, stock, is_active):
    ok = store.add_product("ok", "1.00")
    short = store.add_product("short", "1.00", stock=stock, is_active=is_active)
    store.put_in_cart("u1", ok, 1)
    store.put_in_cart("u1", short, 2)

    with pytest.raises(ProductUnavailableError) as exc_info:
        await _resolve(store)
    assert exc_info.value.product_id == short.id


@pytest.mark.asyncio
async def test_deleted_product_is_unavailable(store):
    gone = store.add_product("gone", "1.00")
    store.put_in_cart("u1", gone, 1)
    del store.products[gone.id]

    with pytest.raises(ProductUnavailableError):
        await _resolve(store)


@pytest.mark.asyncio
async def test_mixed_currency_cart_is_refused(store):
    store.put_in_cart("u1", store.add_product("usd", "1.00", currency="USD"), 1)
    store.put_in_cart("u1", store.add_product("eur", "1.00", currency="EUR"), 1)

    with pytest.raises(MixedCurrencyError):
        await _resolve(store)


@pytest.mark.asyncio
async def test_resolver_does_not_touch_stock_or_cart(store):
    a = store.add_product("A", "3.00", stock=4)
    store.put_in_cart("u1", a, 4)

    await _resolve(store)

    assert store.products[a.id].stock == 4
    assert len(store.cart) == 1
