"""In-memory doubles for the unit of work and the payment gateway."""
from __future__ import annotations

import asyncio
import copy
from datetime import datetime
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Tuple

from application.dtos.payments import ProviderSession
from application.ports.payment_gateway import GatewayRejectedError, GatewayUnavailableError
from core.settings import PaymentSettings, PaytrailSettings
from domain.catalog.entity import CartItem, Product
from domain.catalog.repository import CartRepository, ProductRepository
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.order.entity import Order, OrderStatus
from domain.order.repository import OrderRepository
from domain.payment.entity import AttemptStatus, PaymentAttempt
from domain.payment.repository import PaymentAttemptRepository
from infrastructure.external.payments.paytrail_client import PaytrailClient, compute_signature

MERCHANT_ID = "375917"
SECRET = "SAIPPUAKAUPPIAS"


def make_payment_settings(**paytrail_overrides) -> PaymentSettings:
    cfg = dict(
        merchant_id=MERCHANT_ID,
        secret_key=SECRET,
        base_url="https://services.paytrail.test",
        success_url="https://shop.example.com/api/v1/payments/success",
        cancel_url="https://shop.example.com/api/v1/payments/cancel",
        callback_url="https://shop.example.com/api/v1/payments/callback",
        supported_currencies=["EUR", "USD"],
    )
    cfg.update(paytrail_overrides)
    return PaymentSettings(
        provider="paytrail",
        paytrail=PaytrailSettings(**cfg),
        retry={"max": 2, "base_backoff": 0.0},
    )


def signed_callback(
    attempt: PaymentAttempt,
    status: str,
    *,
    amount_minor: Optional[int] = None,
    transaction_id: str = "tx-1",
    secret: str = SECRET,
) -> Dict[str, str]:
    """Query parameters as Paytrail sends them to the callback URL."""
    params = {
        "checkout-account": MERCHANT_ID,
        "checkout-algorithm": "sha256",
        "checkout-amount": str(attempt.amount_minor if amount_minor is None else amount_minor),
        "checkout-stamp": attempt.id,
        "checkout-reference": attempt.order_id,
        "checkout-transaction-id": transaction_id,
        "checkout-status": status,
        "checkout-provider": "nordea",
    }
    params["signature"] = compute_signature(secret, params, "")
    return params


class InMemoryStore:
    """Committed state shared by every unit of work created from it."""

    def __init__(self) -> None:
        self.products: Dict[int, Product] = {}
        self.cart: Dict[Tuple[str, int], CartItem] = {}
        self.orders: Dict[str, Order] = {}
        self.attempts: Dict[str, PaymentAttempt] = {}
        self._next_product_id = 1
        self._next_cart_id = 1

    def uow_factory(self, readonly: bool = False) -> "InMemoryUnitOfWork":
        return InMemoryUnitOfWork(self, readonly=readonly)

    # seeding helpers

    def add_product(self, name: str, price: str, *, currency: str = "USD", stock: int = 10, is_active: bool = True) -> Product:
        product = Product(
            id=self._next_product_id,
            name=name,
            price=Decimal(price),
            currency=currency,
            stock=stock,
            is_active=is_active,
        )
        self.products[product.id] = product
        self._next_product_id += 1
        return product

    def put_in_cart(self, user_id: str, product: Product, quantity: int) -> None:
        self.cart[(user_id, product.id)] = CartItem(
            id=self._next_cart_id, user_id=user_id, product_id=product.id, quantity=quantity
        )
        self._next_cart_id += 1

    def active_attempts(self, order_id: str) -> List[PaymentAttempt]:
        return [a for a in self.attempts.values() if a.order_id == order_id and a.status == AttemptStatus.ACTIVE]


def _restore(mapping: dict, key, previous) -> Callable[[], None]:
    def undo() -> None:
        if previous is None:
            mapping.pop(key, None)
        else:
            mapping[key] = previous
    return undo


class _JournaledRepository:
    """Writes apply to the store at once and leave an undo step in the journal."""

    def __init__(self, store: InMemoryStore, journal: List[Callable[[], None]]):
        self.store = store
        self.journal = journal


class InMemoryProductRepository(_JournaledRepository, ProductRepository):

    async def create(self, product: Product) -> Product:
        product = copy.deepcopy(product)
        product.id = self.store._next_product_id
        self.store._next_product_id += 1
        self.store.products[product.id] = product
        self.journal.append(_restore(self.store.products, product.id, None))
        return copy.deepcopy(product)

    async def get_by_id(self, product_id: int) -> Optional[Product]:
        return copy.deepcopy(self.store.products.get(product_id))

    async def get_many(self, product_ids: List[int]) -> List[Product]:
        return [copy.deepcopy(self.store.products[i]) for i in set(product_ids) if i in self.store.products]

    async def list_active(self, skip: int = 0, limit: int = 100) -> List[Product]:
        active = sorted((p for p in self.store.products.values() if p.is_active), key=lambda p: p.id)
        return copy.deepcopy(active[skip:skip + limit])

    async def count_active(self) -> int:
        return sum(1 for p in self.store.products.values() if p.is_active)

    async def update(self, product: Product) -> Product:
        if product.id not in self.store.products:
            raise ValueError(f"Product with id {product.id} not found")
        self.journal.append(_restore(self.store.products, product.id, self.store.products[product.id]))
        self.store.products[product.id] = copy.deepcopy(product)
        return copy.deepcopy(product)


class InMemoryCartRepository(_JournaledRepository, CartRepository):

    async def list_items(self, user_id: str) -> List[CartItem]:
        items = [i for (uid, _), i in self.store.cart.items() if uid == user_id]
        return copy.deepcopy(sorted(items, key=lambda i: i.id or 0))

    async def get_item(self, user_id: str, product_id: int) -> Optional[CartItem]:
        return copy.deepcopy(self.store.cart.get((user_id, product_id)))

    async def save_item(self, item: CartItem) -> CartItem:
        key = (item.user_id, item.product_id)
        existing = self.store.cart.get(key)
        item = copy.deepcopy(item)
        if existing is not None:
            item.id = existing.id
        else:
            item.id = self.store._next_cart_id
            self.store._next_cart_id += 1
        self.journal.append(_restore(self.store.cart, key, existing))
        self.store.cart[key] = item
        return copy.deepcopy(item)

    async def remove_item(self, user_id: str, product_id: int) -> bool:
        removed = self.store.cart.pop((user_id, product_id), None)
        if removed is None:
            return False
        self.journal.append(_restore(self.store.cart, (user_id, product_id), removed))
        return True

    async def clear(self, user_id: str) -> int:
        keys = [k for k in self.store.cart if k[0] == user_id]
        for k in keys:
            self.journal.append(_restore(self.store.cart, k, self.store.cart.pop(k)))
        return len(keys)


class InMemoryOrderRepository(_JournaledRepository, OrderRepository):

    async def create(self, order: Order) -> Order:
        self.store.orders[order.id] = copy.deepcopy(order)
        self.journal.append(_restore(self.store.orders, order.id, None))
        return copy.deepcopy(order)

    async def get_by_id(self, order_id: str) -> Optional[Order]:
        return copy.deepcopy(self.store.orders.get(order_id))

    async def list_by_user(self, user_id: str, skip: int = 0, limit: int = 100) -> List[Order]:
        orders = [o for o in self.store.orders.values() if o.user_id == user_id]
        orders.sort(key=lambda o: o.created_at or datetime.min, reverse=True)
        return copy.deepcopy(orders[skip:skip + limit])

    async def count_by_user(self, user_id: str) -> int:
        return sum(1 for o in self.store.orders.values() if o.user_id == user_id)

    async def update_status(self, order_id: str, from_status: OrderStatus, to_status: OrderStatus) -> bool:
        # yield first so concurrent writers interleave between their read and the swap
        await asyncio.sleep(0)
        order = self.store.orders.get(order_id)
        if order is None or order.status != from_status:
            return False
        self.journal.append(_restore(self.store.orders, order_id, copy.deepcopy(order)))
        order.status = to_status
        return True


class InMemoryPaymentAttemptRepository(_JournaledRepository, PaymentAttemptRepository):

    async def create(self, attempt: PaymentAttempt) -> PaymentAttempt:
        if attempt.status == AttemptStatus.ACTIVE and self.store.active_attempts(attempt.order_id):
            # mirrors the partial unique index on active attempts
            raise RuntimeError(f"order {attempt.order_id} already has an active attempt")
        self.store.attempts[attempt.id] = copy.deepcopy(attempt)
        self.journal.append(_restore(self.store.attempts, attempt.id, None))
        return copy.deepcopy(attempt)

    async def get_by_id(self, attempt_id: str) -> Optional[PaymentAttempt]:
        return copy.deepcopy(self.store.attempts.get(attempt_id))

    async def get_active_for_order(self, order_id: str) -> Optional[PaymentAttempt]:
        active = self.store.active_attempts(order_id)
        return copy.deepcopy(active[0]) if active else None

    async def update_status(
        self,
        attempt_id: str,
        from_status: AttemptStatus,
        to_status: AttemptStatus,
        *,
        provider_ref: Optional[str] = None,
    ) -> bool:
        await asyncio.sleep(0)
        attempt = self.store.attempts.get(attempt_id)
        if attempt is None or attempt.status != from_status:
            return False
        self.journal.append(_restore(self.store.attempts, attempt_id, copy.deepcopy(attempt)))
        attempt.status = to_status
        if provider_ref:
            attempt.provider_ref = provider_ref
        return True

    async def list_stale_active(self, created_before: datetime, limit: int = 100) -> List[PaymentAttempt]:
        stale = [
            a for a in self.store.attempts.values()
            if a.status == AttemptStatus.ACTIVE and a.created_at < created_before
        ]
        return copy.deepcopy(sorted(stale, key=lambda a: a.created_at)[:limit])


class InMemoryUnitOfWork(AbstractUnitOfWork):
    """Rollback replays this unit's undo journal; other units' commits survive."""

    def __init__(self, store: InMemoryStore, *, readonly: bool = False):
        super().__init__(readonly=readonly)
        self.store = store
        self.commits = 0
        self._journal: List[Callable[[], None]] = []
        self.product_repository = InMemoryProductRepository(store, self._journal)
        self.cart_repository = InMemoryCartRepository(store, self._journal)
        self.order_repository = InMemoryOrderRepository(store, self._journal)
        self.payment_attempt_repository = InMemoryPaymentAttemptRepository(store, self._journal)

    async def __aenter__(self) -> "InMemoryUnitOfWork":
        self._finished = False
        self._journal.clear()
        return self

    async def commit(self) -> None:
        self.commits += 1
        self._journal.clear()
        self._finished = True

    async def rollback(self) -> None:
        while self._journal:
            self._journal.pop()()
        self._finished = True


class StubGateway(PaytrailClient):
    """Real Paytrail signing and parsing; open_payment never leaves the process."""

    def __init__(self, settings: Optional[PaymentSettings] = None):
        super().__init__(settings or make_payment_settings())
        self.opened: List[Tuple[str, str]] = []
        self.fail_with: Optional[Exception] = None

    async def open_payment(self, order: Order, attempt: PaymentAttempt) -> ProviderSession:  # type: ignore[override]
        # yield so concurrent callers interleave between read and write
        await asyncio.sleep(0)
        if self.fail_with is not None:
            raise self.fail_with
        self.opened.append((order.id, attempt.id))
        n = len(self.opened)
        return ProviderSession(
            provider=self.provider,
            provider_ref=f"tx-{n}",
            redirect_url=f"https://pay.paytrail.test/pay/{attempt.id}",
        )

    def reject_next(self) -> None:
        self.fail_with = GatewayRejectedError("invalid merchant", provider=self.provider, provider_code="400")

    def fail_next(self) -> None:
        self.fail_with = GatewayUnavailableError("Paytrail is unreachable", provider=self.provider)
