"""Payment lifecycle Celery tasks"""
from __future__ import annotations

import asyncio
from datetime import datetime, timezone

from celery import shared_task
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from application.services.checkout_service import CheckoutCoordinator
from core.config import settings
from core.logging_config import get_logger
from core.settings import payment_settings
from infrastructure.database import build_async_url
from infrastructure.external.payments import get_payment_gateway
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork
from ..utils.base_task import BaseTask

logger = get_logger(__name__)


async def run_expiry_sweep(now: datetime | None = None) -> int:
    """One sweep on a throwaway engine bound to the current event loop."""
    engine = create_async_engine(build_async_url(settings.database.url), poolclass=NullPool)
    session_factory = async_sessionmaker(bind=engine, expire_on_commit=False)
    gateway = get_payment_gateway(payment_settings)
    try:
        coordinator = CheckoutCoordinator(
            lambda readonly=False: SQLAlchemyUnitOfWork(session_factory, readonly=readonly),
            gateway,
            settings.checkout,
        )
        return await coordinator.expire_stale_payments(now or datetime.now(timezone.utc))
    finally:
        await gateway.aclose()
        await engine.dispose()


@shared_task(name="payments.expire_stale", bind=True, base=BaseTask, max_retries=0)
def expire_stale_payments(self) -> dict:
    """Expire AWAITING_PAYMENT orders whose payment window elapsed.

    Safe to overlap with callbacks and with itself: every transition is a
    compare-and-swap.
    """
    expired = asyncio.run(run_expiry_sweep())
    logger.info("expire_stale_payments_done", expired=expired)
    return {"expired": expired}
