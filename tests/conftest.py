"""Pytest bootstrap configuration.

Mandatory environment variables are set before test collection and module
imports that depend on application settings.
"""
import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE__URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("PAYMENT__PAYTRAIL__MERCHANT_ID", "375917")
os.environ.setdefault("PAYMENT__PAYTRAIL__SECRET_KEY", "SAIPPUAKAUPPIAS")
os.environ.setdefault("PAYMENT__PAYTRAIL__SUCCESS_URL", "https://shop.example.com/api/v1/payments/success")
os.environ.setdefault("PAYMENT__PAYTRAIL__CANCEL_URL", "https://shop.example.com/api/v1/payments/cancel")
os.environ.setdefault("PAYMENT__PAYTRAIL__CALLBACK_URL", "https://shop.example.com/api/v1/payments/callback")

import pytest  # noqa: E402

from tests.fakes import InMemoryStore, StubGateway, make_payment_settings  # noqa: E402


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def uow_factory(store):
    return store.uow_factory


@pytest.fixture
def payment_settings():
    return make_payment_settings()


@pytest.fixture
def gateway(payment_settings) -> StubGateway:
    return StubGateway(payment_settings)
