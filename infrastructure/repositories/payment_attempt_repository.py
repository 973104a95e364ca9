"""
Payment attempt repository implementation - SQLAlchemy
"""
from typing import Optional, List
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update

from domain.payment.entity import PaymentAttempt, AttemptStatus
from domain.payment.repository import PaymentAttemptRepository
from infrastructure.models.payment import PaymentAttemptModel
from core.logging_config import get_logger


logger = get_logger(__name__)


class SQLAlchemyPaymentAttemptRepository(PaymentAttemptRepository):
    """Payment attempt store backed by SQLAlchemy"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: PaymentAttemptModel) -> PaymentAttempt:
        return PaymentAttempt(
            id=model.id,
            order_id=model.order_id,
            amount=Decimal(str(model.amount)),
            currency=model.currency,
            status=AttemptStatus(model.status),
            provider=model.provider,
            provider_ref=model.provider_ref,
            redirect_url=model.redirect_url,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, entity: PaymentAttempt) -> PaymentAttemptModel:
        return PaymentAttemptModel(
            id=entity.id,
            order_id=entity.order_id,
            provider=entity.provider,
            provider_ref=entity.provider_ref,
            amount=entity.amount,
            currency=entity.currency,
            status=entity.status.value,
            redirect_url=entity.redirect_url,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )

    async def create(self, attempt: PaymentAttempt) -> PaymentAttempt:
        db_attempt = self._to_model(attempt)
        self.session.add(db_attempt)
        await self.session.flush()
        logger.info(
            "payment_attempt_persisted",
            attempt_id=db_attempt.id,
            order_id=db_attempt.order_id,
            status=db_attempt.status,
        )
        return self._to_entity(db_attempt)

    async def get_by_id(self, attempt_id: str) -> Optional[PaymentAttempt]:
        result = await self.session.execute(
            select(PaymentAttemptModel)
            .where(PaymentAttemptModel.id == attempt_id)
            .execution_options(populate_existing=True)
        )
        db_attempt = result.scalar_one_or_none()
        return self._to_entity(db_attempt) if db_attempt else None

    async def get_active_for_order(self, order_id: str) -> Optional[PaymentAttempt]:
        result = await self.session.execute(
            select(PaymentAttemptModel)
            .where(
                PaymentAttemptModel.order_id == order_id,
                PaymentAttemptModel.status == AttemptStatus.ACTIVE.value,
            )
            .execution_options(populate_existing=True)
        )
        db_attempt = result.scalar_one_or_none()
        return self._to_entity(db_attempt) if db_attempt else None

    async def update_status(
        self,
        attempt_id: str,
        from_status: AttemptStatus,
        to_status: AttemptStatus,
        *,
        provider_ref: Optional[str] = None,
    ) -> bool:
        values = {"status": to_status.value, "updated_at": datetime.now(timezone.utc)}
        if provider_ref:
            values["provider_ref"] = provider_ref
        result = await self.session.execute(
            update(PaymentAttemptModel)
            .where(
                PaymentAttemptModel.id == attempt_id,
                PaymentAttemptModel.status == from_status.value,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def list_stale_active(self, created_before: datetime, limit: int = 100) -> List[PaymentAttempt]:
        result = await self.session.execute(
            select(PaymentAttemptModel)
            .where(
                PaymentAttemptModel.status == AttemptStatus.ACTIVE.value,
                PaymentAttemptModel.created_at < created_before,
            )
            .order_by(PaymentAttemptModel.created_at.asc())
            .limit(limit)
        )
        return [self._to_entity(a) for a in result.scalars().all()]
