from decimal import Decimal

import pytest

from application.dtos.catalog import ProductCreateDTO, ProductUpdateDTO
from application.services.cart_service import CartService
from application.services.catalog_service import CatalogService
from domain.common.exceptions import (
    DomainValidationException,
    ProductNotFoundError,
    ProductUnavailableError,
)


@pytest.fixture
def cart_service(uow_factory):
    return CartService(uow_factory)


@pytest.fixture
def catalog_service(uow_factory):
    return CatalogService(uow_factory)


@pytest.mark.asyncio
async def test_add_item_accumulates_and_prices_from_catalog(cart_service, store):
    mug = store.add_product("Mug", "10.00", stock=5)

    await cart_service.add_item("u1", mug.id, 2)
    cart = await cart_service.add_item("u1", mug.id, 1)

    assert cart.item_count == 3
    assert cart.currency == "USD"
    assert cart.subtotal == Decimal("30.00")
    assert cart.items[0].line_total == Decimal("30.00")

    store.products[mug.id].price = Decimal("12.00")
    repriced = await cart_service.get_cart("u1")
    assert repriced.subtotal == Decimal("36.00")


@pytest.mark.asyncio
async def test_add_item_checks_stock_and_activity(cart_service, store):
    mug = store.add_product("Mug", "10.00", stock=2)
    hidden = store.add_product("Hidden", "1.00", is_active=False)

    with pytest.raises(ProductUnavailableError):
        await cart_service.add_item("u1", mug.id, 3)
    with pytest.raises(ProductNotFoundError):
        await cart_service.add_item("u1", hidden.id, 1)
    with pytest.raises(ProductNotFoundError):
        await cart_service.add_item("u1", 999, 1)
    assert store.cart == {}


@pytest.mark.asyncio
async def test_update_and_remove_items(cart_service, store):
    mug = store.add_product("Mug", "10.00")
    tea = store.add_product("Tea", "5.00")
    await cart_service.add_item("u1", mug.id, 1)
    await cart_service.add_item("u1", tea.id, 1)

    cart = await cart_service.update_item("u1", mug.id, 4)
    assert {line.product_id: line.quantity for line in cart.items} == {mug.id: 4, tea.id: 1}

    cart = await cart_service.remove_item("u1", tea.id)
    assert [line.product_id for line in cart.items] == [mug.id]

    with pytest.raises(ProductNotFoundError):
        await cart_service.remove_item("u1", tea.id)
    with pytest.raises(ProductNotFoundError):
        await cart_service.update_item("u1", tea.id, 2)

    assert await cart_service.clear("u1") == 1
    empty = await cart_service.get_cart("u1")
    assert empty.items == []
    assert empty.item_count == 0


@pytest.mark.asyncio
async def test_mixed_currency_cart_has_no_subtotal(cart_service, store):
    usd = store.add_product("Mug", "10.00")
    eur = store.add_product("Kuksa", "20.00", currency="EUR")
    await cart_service.add_item("u1", usd.id, 1)
    cart = await cart_service.add_item("u1", eur.id, 1)

    assert cart.currency is None
    assert cart.subtotal is None


@pytest.mark.asyncio
async def test_catalog_crud_and_soft_delete(catalog_service, store):
    created = await catalog_service.create_product(
        ProductCreateDTO(name="Kuksa", price=Decimal("20.00"), currency="eur", stock=3)
    )
    assert created.currency == "EUR"
    assert created.price == Decimal("20.00")

    updated = await catalog_service.update_product(created.id, ProductUpdateDTO(stock=7))
    assert updated.stock == 7
    assert updated.name == "Kuksa"

    products, total = await catalog_service.list_products()
    assert total == 1
    assert [p.id for p in products] == [created.id]

    await catalog_service.delete_product(created.id)
    products, total = await catalog_service.list_products()
    assert (products, total) == ([], 0)

    with pytest.raises(ProductNotFoundError):
        await catalog_service.get_product(created.id)
    hidden = await catalog_service.get_product(created.id, include_inactive=True)
    assert hidden.is_active is False
    # the row is kept for order history
    assert created.id in store.products


@pytest.mark.asyncio
async def test_update_validates_through_entity(catalog_service, store):
    mug = store.add_product("Mug", "10.00")

    with pytest.raises(DomainValidationException):
        await catalog_service.update_product(mug.id, ProductUpdateDTO(name="   "))
    with pytest.raises(ProductNotFoundError):
        await catalog_service.update_product(999, ProductUpdateDTO(stock=1))
    assert store.products[mug.id].name == "Mug"
