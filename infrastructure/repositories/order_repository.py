"""
Order repository implementation - SQLAlchemy
"""
from typing import Optional, List
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func

from domain.order.entity import Order, OrderLine, OrderStatus
from domain.order.repository import OrderRepository
from infrastructure.models.order import OrderModel, OrderLineModel
from core.logging_config import get_logger


logger = get_logger(__name__)


class SQLAlchemyOrderRepository(OrderRepository):
    """Order store backed by SQLAlchemy"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: OrderModel) -> Order:
        """Map ORM model to domain entity"""
        return Order(
            id=model.id,
            user_id=model.user_id,
            currency=model.currency,
            lines=tuple(
                OrderLine(
                    product_id=line.product_id,
                    product_name=line.product_name,
                    quantity=line.quantity,
                    unit_price=Decimal(str(line.unit_price)),
                )
                for line in model.lines
            ),
            status=OrderStatus(model.status),
            total_amount=Decimal(str(model.total_amount)),
            customer_email=model.customer_email,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, entity: Order) -> OrderModel:
        """Map domain entity to ORM model"""
        return OrderModel(
            id=entity.id,
            user_id=entity.user_id,
            status=entity.status.value,
            total_amount=entity.total_amount,
            currency=entity.currency,
            customer_email=entity.customer_email,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
            lines=[
                OrderLineModel(
                    position=index,
                    product_id=line.product_id,
                    product_name=line.product_name,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                )
                for index, line in enumerate(entity.lines)
            ],
        )

    async def create(self, order: Order) -> Order:
        """Persist order and lines"""
        db_order = self._to_model(order)
        self.session.add(db_order)
        await self.session.flush()
        logger.info(
            "order_persisted",
            order_id=db_order.id,
            user_id=db_order.user_id,
            total=str(db_order.total_amount),
            lines=len(db_order.lines),
        )
        return self._to_entity(db_order)

    async def get_by_id(self, order_id: str) -> Optional[Order]:
        """Get order by id (fresh read, bypassing the identity map)"""
        result = await self.session.execute(
            select(OrderModel)
            .where(OrderModel.id == order_id)
            .execution_options(populate_existing=True)
        )
        db_order = result.scalar_one_or_none()
        return self._to_entity(db_order) if db_order else None

    async def list_by_user(self, user_id: str, skip: int = 0, limit: int = 100) -> List[Order]:
        """User's orders, newest first"""
        result = await self.session.execute(
            select(OrderModel)
            .where(OrderModel.user_id == user_id)
            .order_by(OrderModel.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return [self._to_entity(o) for o in result.scalars().all()]

    async def count_by_user(self, user_id: str) -> int:
        result = await self.session.execute(
            select(func.count(OrderModel.id)).where(OrderModel.user_id == user_id)
        )
        return result.scalar_one()

    async def update_status(
        self,
        order_id: str,
        from_status: OrderStatus,
        to_status: OrderStatus,
    ) -> bool:
        """Conditional UPDATE; the row lock serializes concurrent writers"""
        result = await self.session.execute(
            update(OrderModel)
            .where(OrderModel.id == order_id, OrderModel.status == from_status.value)
            .values(status=to_status.value, updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        swapped = result.rowcount == 1
        logger.debug(
            "order_status_cas",
            order_id=order_id,
            from_status=from_status.value,
            to_status=to_status.value,
            swapped=swapped,
        )
        return swapped
