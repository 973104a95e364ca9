from decimal import Decimal

import httpx
import jwt
import pytest
from fastapi import FastAPI

from api.dependencies import get_cart_service, get_catalog_service, get_checkout_coordinator
from api.middleware.gateway_trust import GatewayTrustMiddleware
from application.services.cart_service import CartService
from application.services.catalog_service import CatalogService
from application.services.checkout_service import CheckoutCoordinator
from core.config import CheckoutSettings, GatewayTrustSettings, settings
from core.exceptions import register_exception_handlers
from main import app
from tests.fakes import signed_callback


def _token(sub="u1", **claims) -> str:
    return jwt.encode({"sub": sub, **claims}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def _auth(sub="u1", **claims) -> dict:
    return {"Authorization": f"Bearer {_token(sub, **claims)}"}


@pytest.fixture
def wired(store, gateway):
    app.dependency_overrides[get_checkout_coordinator] = lambda: CheckoutCoordinator(
        store.uow_factory, gateway, CheckoutSettings()
    )
    app.dependency_overrides[get_cart_service] = lambda: CartService(store.uow_factory)
    app.dependency_overrides[get_catalog_service] = lambda: CatalogService(store.uow_factory)
    yield store
    app.dependency_overrides.clear()


@pytest.fixture
async def client(wired):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.mark.asyncio
async def test_health_and_root_are_public(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["data"] == {"status": "healthy"}
    assert resp.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_protected_routes_require_a_valid_token(client):
    resp = await client.get("/api/v1/orders")
    assert resp.status_code == 401
    body = resp.json()
    assert body["code"] == 30001
    assert body["error"]["type"] == "Unauthorized"

    resp = await client.get("/api/v1/cart", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401

    forged = jwt.encode({"sub": "u1"}, "some-other-key", algorithm="HS256")
    resp = await client.get("/api/v1/cart", headers={"Authorization": f"Bearer {forged}"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_full_checkout_over_http(client, wired):
    a = wired.add_product("A", "10.00")
    b = wired.add_product("B", "5.00")

    resp = await client.post("/api/v1/cart", json={"product_id": a.id, "quantity": 2}, headers=_auth())
    assert resp.status_code == 200
    resp = await client.post("/api/v1/cart", json={"product_id": b.id, "quantity": 1}, headers=_auth())
    assert resp.json()["data"]["subtotal"] == "25.00"

    resp = await client.post("/api/v1/orders", headers=_auth(email="shopper@example.com"))
    assert resp.status_code == 201
    order = resp.json()["data"]
    assert order["status"] == "pending"
    assert order["total_amount"] == "25.00"
    assert order["customer_email"] == "shopper@example.com"

    resp = await client.post(f"/api/v1/orders/{order['id']}/pay", headers=_auth())
    assert resp.status_code == 200
    started = resp.json()["data"]
    assert started["conflict"] is False
    assert started["redirect_url"].startswith("https://pay.paytrail.test/pay/")

    attempt = wired.attempts[started["attempt_id"]]
    resp = await client.get("/api/v1/payments/callback", params=signed_callback(attempt, "ok"))
    assert resp.status_code == 200
    assert resp.json()["data"]["outcome"] == "applied"

    resp = await client.get(f"/api/v1/orders/{order['id']}", headers=_auth())
    assert resp.json()["data"]["status"] == "paid"

    resp = await client.get(f"/api/v1/payments/{attempt.id}/status", headers=_auth())
    assert resp.json()["data"]["attempt"]["status"] == "confirmed"

    resp = await client.get("/api/v1/orders", headers=_auth())
    page = resp.json()["data"]
    assert page["total"] == 1
    assert page["items"][0]["id"] == order["id"]


@pytest.mark.asyncio
async def test_success_redirect_applies_result_once(client, wired):
    a = wired.add_product("A", "10.00")
    wired.put_in_cart("u1", a, 1)
    order = (await client.post("/api/v1/orders", headers=_auth())).json()["data"]
    started = (await client.post(f"/api/v1/orders/{order['id']}/pay", headers=_auth())).json()["data"]
    params = signed_callback(wired.attempts[started["attempt_id"]], "ok")

    first = await client.get("/api/v1/payments/success", params=params)
    second = await client.get("/api/v1/payments/callback", params=params)
    assert first.json()["data"]["outcome"] == "applied"
    assert second.json()["data"]["outcome"] == "duplicate"


@pytest.mark.asyncio
async def test_forged_callback_is_acknowledged_but_untrusted(client, wired):
    a = wired.add_product("A", "10.00")
    wired.put_in_cart("u1", a, 1)
    order = (await client.post("/api/v1/orders", headers=_auth())).json()["data"]
    started = (await client.post(f"/api/v1/orders/{order['id']}/pay", headers=_auth())).json()["data"]
    attempt = wired.attempts[started["attempt_id"]]

    resp = await client.post("/api/v1/payments/callback", params=signed_callback(attempt, "ok", secret="guess"))
    assert resp.status_code == 200
    assert resp.json()["data"] == {
        "outcome": "rejected",
        "trusted": False,
        "order_id": None,
        "order_status": None,
        "attempt_id": None,
    }
    assert wired.orders[order["id"]].status.value == "awaiting_payment"


@pytest.mark.asyncio
async def test_paying_a_cancelled_order_reports_conflict(client, wired, gateway):
    a = wired.add_product("A", "10.00")
    wired.put_in_cart("u1", a, 1)
    order = (await client.post("/api/v1/orders", headers=_auth())).json()["data"]

    resp = await client.post(f"/api/v1/orders/{order['id']}/cancel", headers=_auth())
    assert resp.json()["data"]["status"] == "cancelled"

    resp = await client.post(f"/api/v1/orders/{order['id']}/pay", headers=_auth())
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["conflict"] is True
    assert data["order_status"] == "cancelled"
    assert gateway.opened == []


@pytest.mark.asyncio
async def test_business_errors_map_to_http_statuses(client, wired, gateway):
    resp = await client.post("/api/v1/orders", headers=_auth())
    assert resp.status_code == 400
    assert resp.json()["error"]["type"] == "EmptyCart"

    a = wired.add_product("A", "10.00", stock=1)
    resp = await client.post("/api/v1/cart", json={"product_id": a.id, "quantity": 5}, headers=_auth())
    assert resp.status_code == 409

    wired.put_in_cart("u1", a, 1)
    order = (await client.post("/api/v1/orders", headers=_auth())).json()["data"]
    resp = await client.get(f"/api/v1/orders/{order['id']}", headers=_auth("intruder"))
    assert resp.status_code == 403

    resp = await client.get("/api/v1/orders/does-not-exist", headers=_auth())
    assert resp.status_code == 404

    gateway.fail_next()
    resp = await client.post(f"/api/v1/orders/{order['id']}/pay", headers=_auth())
    assert resp.status_code == 502
    assert resp.json()["error"]["type"] == "GatewayUnavailable"
    assert wired.orders[order["id"]].status.value == "pending"


@pytest.mark.asyncio
async def test_request_validation_uses_envelope(client):
    resp = await client.post("/api/v1/cart", json={"product_id": 1, "quantity": 0}, headers=_auth())
    assert resp.status_code == 422
    body = resp.json()
    assert body["error"]["type"] == "ValidationError"
    assert body["error"]["field"] == "quantity"


@pytest.mark.asyncio
async def test_catalog_admin_routes_need_admin_role(client, wired):
    payload = {"name": "Kuksa", "price": "20.00", "currency": "EUR", "stock": 3}

    resp = await client.post("/api/v1/admin/products", json=payload, headers=_auth())
    assert resp.status_code == 403

    resp = await client.post("/api/v1/admin/products", json=payload, headers=_auth("boss", role="admin"))
    assert resp.status_code == 201
    product = resp.json()["data"]
    assert product["price"] == "20.00"

    resp = await client.get(f"/api/v1/products/{product['id']}")
    assert resp.status_code == 200

    resp = await client.delete(f"/api/v1/admin/products/{product['id']}", headers=_auth("boss", role="admin"))
    assert resp.status_code == 200
    resp = await client.get(f"/api/v1/products/{product['id']}")
    assert resp.status_code == 404
    assert Decimal(str(wired.products[product["id"]].price)) == Decimal("20.00")


@pytest.mark.asyncio
async def test_callback_with_undecodable_body_is_acknowledged(client, wired):
    a = wired.add_product("A", "10.00")
    wired.put_in_cart("u1", a, 1)
    order = (await client.post("/api/v1/orders", headers=_auth())).json()["data"]
    started = (await client.post(f"/api/v1/orders/{order['id']}/pay", headers=_auth())).json()["data"]
    attempt = wired.attempts[started["attempt_id"]]

    resp = await client.post(
        "/api/v1/payments/callback",
        params=signed_callback(attempt, "ok"),
        content=b"\xff\xfe\x80",
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["trusted"] is False
    assert wired.orders[order["id"]].status.value == "awaiting_payment"


@pytest.mark.asyncio
async def test_callback_with_non_ascii_signature_is_acknowledged(client, wired):
    a = wired.add_product("A", "10.00")
    wired.put_in_cart("u1", a, 1)
    order = (await client.post("/api/v1/orders", headers=_auth())).json()["data"]
    started = (await client.post(f"/api/v1/orders/{order['id']}/pay", headers=_auth())).json()["data"]
    params = signed_callback(wired.attempts[started["attempt_id"]], "ok")
    params["signature"] = "é" * 64

    resp = await client.get("/api/v1/payments/callback", params=params)
    assert resp.status_code == 200
    assert resp.json()["data"]["outcome"] == "rejected"
    assert resp.json()["data"]["trusted"] is False
    assert wired.orders[order["id"]].status.value == "awaiting_payment"


def _trusted_app(trust: GatewayTrustSettings) -> FastAPI:
    tiny = FastAPI()
    tiny.add_middleware(GatewayTrustMiddleware, trust=trust)
    register_exception_handlers(tiny)

    @tiny.get("/health")
    async def health():
        return {"ok": True}

    @tiny.get("/api/ping")
    async def ping():
        return {"pong": True}

    return tiny


async def _get(tiny: FastAPI, path: str, *, peer: str = "10.0.0.5", headers=None) -> httpx.Response:
    transport = httpx.ASGITransport(app=tiny, client=(peer, 40000))
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        return await c.get(path, headers=headers or {})


@pytest.mark.asyncio
async def test_gateway_trust_requires_shared_secret_and_allowed_peer():
    tiny = _trusted_app(GatewayTrustSettings(internal_auth="kong-secret", allowed_ips="10.0.0.0/8, 192.168.1.10"))
    good = {"X-Internal-Auth": "kong-secret"}

    assert (await _get(tiny, "/api/ping", headers=good)).status_code == 200
    assert (await _get(tiny, "/api/ping", peer="192.168.1.10", headers=good)).status_code == 200

    missing = await _get(tiny, "/api/ping")
    assert missing.status_code == 403
    assert missing.json()["error"]["type"] == "GatewayTrust"

    wrong = await _get(tiny, "/api/ping", headers={"X-Internal-Auth": "guess"})
    assert wrong.status_code == 403

    outsider = await _get(tiny, "/api/ping", peer="203.0.113.7", headers=good)
    assert outsider.status_code == 403

    # health probes bypass the gateway
    assert (await _get(tiny, "/health", peer="203.0.113.7")).status_code == 200


@pytest.mark.asyncio
async def test_gateway_trust_disabled_without_secret():
    tiny = _trusted_app(GatewayTrustSettings())
    assert (await _get(tiny, "/api/ping", peer="203.0.113.7")).status_code == 200
