"""
Checkout coordinator - order and payment lifecycle orchestration.

Every status change is a compare-and-swap keyed on the status the caller
observed, so duplicated or reordered gateway callbacks, user cancels and the
expiry sweep can race freely: exactly one transition wins and the rest become
no-ops. Gateway calls are made outside any database transaction.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable, List, Mapping, Optional, Tuple

from application.dtos.orders import OrderDTO
from application.dtos.payments import (
    CallbackResultDTO,
    PaymentAttemptDTO,
    PaymentInitiationDTO,
    PaymentStatusDTO,
)
from application.ports.payment_gateway import GatewayRejectedError, PaymentGateway
from core.config import CheckoutSettings
from core.logging_config import get_logger
from domain.common.exceptions import (
    AmountMismatchError,
    OrderAccessDeniedError,
    OrderNotFoundError,
    PaymentAttemptNotFoundError,
    UntrustedCallbackError,
)
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.order.entity import Order, OrderStatus, can_transition
from domain.order.snapshot import CartSnapshotResolver
from domain.payment.entity import AttemptStatus, PaymentAttempt


UnitOfWorkFactory = Callable[..., AbstractUnitOfWork]


class CheckoutCoordinator:
    """Drives an order from cart snapshot to a terminal payment outcome."""

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        gateway: PaymentGateway,
        checkout_settings: CheckoutSettings,
        logger=None,
    ) -> None:
        self._uow_factory = uow_factory
        self._gateway = gateway
        self._settings = checkout_settings
        self._logger = logger or get_logger(__name__)

    # ---- helpers ----

    @staticmethod
    async def _load_owned_order(uow: AbstractUnitOfWork, order_id: str, user_id: str) -> Order:
        order = await uow.order_repository.get_by_id(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        if not order.is_owned_by(user_id):
            raise OrderAccessDeniedError(order_id)
        return order

    async def _current_redirect(self, order_id: str) -> Tuple[Optional[Order], Optional[PaymentAttempt]]:
        async with self._uow_factory(readonly=True) as uow:
            order = await uow.order_repository.get_by_id(order_id)
            active = None
            if order is not None and order.status == OrderStatus.AWAITING_PAYMENT:
                active = await uow.payment_attempt_repository.get_active_for_order(order_id)
            return order, active

    @staticmethod
    def _initiation(order: Order, attempt: Optional[PaymentAttempt] = None) -> PaymentInitiationDTO:
        if attempt is not None:
            return PaymentInitiationDTO(
                order_id=order.id,
                order_status=order.status.value,
                attempt_id=attempt.id,
                redirect_url=attempt.redirect_url,
            )
        return PaymentInitiationDTO(order_id=order.id, order_status=order.status.value, conflict=True)

    # ---- orders ----

    async def create_order(self, user_id: str, customer_email: Optional[str] = None) -> OrderDTO:
        """Snapshot the cart into a PENDING order."""
        user_id = str(user_id)
        async with self._uow_factory() as uow:
            resolver = CartSnapshotResolver(uow.product_repository, uow.cart_repository)
            snapshot = await resolver.resolve(user_id)
            now = datetime.now(timezone.utc)
            order = Order.from_snapshot(snapshot, customer_email=customer_email, now=now)
            order = await uow.order_repository.create(order)
            if self._settings.clear_cart_on_order:
                await uow.cart_repository.clear(user_id)

        self._logger.info(
            "order_created",
            order_id=order.id,
            user_id=user_id,
            total=str(order.total_amount),
            currency=order.currency,
            lines=len(order.lines),
        )
        return OrderDTO.from_entity(order)

    async def get_order(self, order_id: str, user_id: str) -> OrderDTO:
        async with self._uow_factory(readonly=True) as uow:
            order = await self._load_owned_order(uow, order_id, str(user_id))
        return OrderDTO.from_entity(order)

    async def list_orders(self, user_id: str, page: int = 1, size: int = 20) -> Tuple[List[OrderDTO], int]:
        skip = (max(page, 1) - 1) * size
        async with self._uow_factory(readonly=True) as uow:
            orders = await uow.order_repository.list_by_user(str(user_id), skip=skip, limit=size)
            total = await uow.order_repository.count_by_user(str(user_id))
        return [OrderDTO.from_entity(o) for o in orders], total

    async def cancel_order(self, order_id: str, user_id: str) -> OrderDTO:
        """User cancel; terminal orders are returned unchanged."""
        user_id = str(user_id)
        swapped = False
        async with self._uow_factory() as uow:
            order = await self._load_owned_order(uow, order_id, user_id)
            if not can_transition(order.status, OrderStatus.CANCELLED):
                self._logger.info("order_cancel_noop", order_id=order_id, status=order.status.value)
                return OrderDTO.from_entity(order)

            swapped = await uow.order_repository.update_status(order_id, order.status, OrderStatus.CANCELLED)
            if swapped and order.status == OrderStatus.AWAITING_PAYMENT:
                active = await uow.payment_attempt_repository.get_active_for_order(order_id)
                if active is not None:
                    swapped = await uow.payment_attempt_repository.update_status(
                        active.id, AttemptStatus.ACTIVE, AttemptStatus.FAILED
                    )
            if not swapped:
                await uow.rollback()

        if swapped:
            self._logger.info("order_cancelled", order_id=order_id, from_status=order.status.value)
        else:
            self._logger.info("order_cancel_lost_race", order_id=order_id, observed=order.status.value)

        async with self._uow_factory(readonly=True) as uow:
            current = await uow.order_repository.get_by_id(order_id)
        return OrderDTO.from_entity(current)

    # ---- payments ----

    async def initiate_payment(self, order_id: str, user_id: str) -> PaymentInitiationDTO:
        """
        Open a gateway payment for a PENDING order.

        A concurrent request that already advanced the order wins; the loser's
        gateway session is discarded and the winner's redirect is returned.
        """
        user_id = str(user_id)
        async with self._uow_factory(readonly=True) as uow:
            order = await self._load_owned_order(uow, order_id, user_id)
            active = None
            if order.status == OrderStatus.AWAITING_PAYMENT:
                active = await uow.payment_attempt_repository.get_active_for_order(order_id)

        if order.status == OrderStatus.AWAITING_PAYMENT and active is not None:
            return self._initiation(order, active)
        if order.status != OrderStatus.PENDING:
            self._logger.info("payment_initiation_conflict", order_id=order_id, status=order.status.value)
            return self._initiation(order)

        attempt = PaymentAttempt.new_for(order, provider=self._gateway.provider)
        try:
            session = await self._gateway.open_payment(order, attempt)
        except GatewayRejectedError as e:
            async with self._uow_factory() as uow:
                failed = await uow.order_repository.update_status(order_id, OrderStatus.PENDING, OrderStatus.FAILED)
            self._logger.warning(
                "payment_rejected",
                order_id=order_id,
                attempt_id=attempt.id,
                order_failed=failed,
                error=e.message,
            )
            raise

        attempt.activate(session.provider_ref, session.redirect_url)
        async with self._uow_factory() as uow:
            swapped = await uow.order_repository.update_status(
                order_id, OrderStatus.PENDING, OrderStatus.AWAITING_PAYMENT
            )
            if swapped:
                await uow.payment_attempt_repository.create(attempt)
            else:
                await uow.rollback()

        if swapped:
            self._logger.info(
                "payment_initiated",
                order_id=order_id,
                attempt_id=attempt.id,
                provider=attempt.provider,
                provider_ref=attempt.provider_ref,
                amount=str(attempt.amount),
            )
            order.status = OrderStatus.AWAITING_PAYMENT
            return self._initiation(order, attempt)

        # lost the race: the provider session just opened is abandoned
        self._logger.info(
            "payment_session_discarded",
            order_id=order_id,
            attempt_id=attempt.id,
            provider_ref=attempt.provider_ref,
        )
        current, active = await self._current_redirect(order_id)
        if current is not None and active is not None:
            return self._initiation(current, active)
        return self._initiation(current or order)

    async def handle_callback(self, params: Mapping[str, str], body: bytes = b"") -> CallbackResultDTO:
        """
        Apply a gateway notification.

        Raises UntrustedCallbackError when the signature does not verify; every
        other outcome is reported in the result and never raised.
        """
        if not self._gateway.verify_signature(params, body):
            self._logger.warning(
                "callback_rejected",
                provider=self._gateway.provider,
                reason="signature_mismatch",
                stamp=params.get("checkout-stamp"),
            )
            raise UntrustedCallbackError("signature mismatch", provider=self._gateway.provider)

        event = self._gateway.parse_callback(params)
        log = self._logger.bind(
            attempt_id=event.attempt_id,
            order_id=event.order_id,
            provider_status=event.provider_status,
        )
        if not event.attempt_id:
            log.info("callback_ignored", reason="missing_stamp")
            return CallbackResultDTO(outcome="ignored", order_id=event.order_id)

        try:
            async with self._uow_factory() as uow:
                attempt = await uow.payment_attempt_repository.get_by_id(event.attempt_id)
                if attempt is None or (event.order_id and attempt.order_id != event.order_id):
                    log.info("callback_ignored", reason="unknown_attempt")
                    return CallbackResultDTO(outcome="ignored", order_id=event.order_id)

                order = await uow.order_repository.get_by_id(attempt.order_id)
                if order is None:
                    log.info("callback_ignored", reason="unknown_order")
                    return CallbackResultDTO(outcome="ignored", attempt_id=attempt.id)

                if event.amount_minor is not None and event.amount_minor != attempt.amount_minor:
                    raise AmountMismatchError(expected=attempt.amount_minor, received=event.amount_minor)

                result = CallbackResultDTO(
                    outcome="duplicate",
                    order_id=order.id,
                    order_status=order.status.value,
                    attempt_id=attempt.id,
                )
                if order.is_terminal():
                    log.info("callback_duplicate", status=order.status.value)
                    return result
                if event.outcome == "pending":
                    log.info("callback_pending")
                    return result.model_copy(update={"outcome": "pending"})
                if order.status != OrderStatus.AWAITING_PAYMENT or attempt.status != AttemptStatus.ACTIVE:
                    log.info("callback_stale", status=order.status.value, attempt_status=attempt.status.value)
                    return result

                if event.outcome == "succeeded":
                    order_target, attempt_target = OrderStatus.PAID, AttemptStatus.CONFIRMED
                else:
                    order_target, attempt_target = OrderStatus.CANCELLED, AttemptStatus.FAILED

                swapped = await uow.order_repository.update_status(
                    order.id, OrderStatus.AWAITING_PAYMENT, order_target
                )
                if swapped:
                    swapped = await uow.payment_attempt_repository.update_status(
                        attempt.id,
                        AttemptStatus.ACTIVE,
                        attempt_target,
                        provider_ref=event.provider_ref,
                    )
                if not swapped:
                    await uow.rollback()
                    log.info("callback_lost_race")
                    return result
        except AmountMismatchError as e:
            log.error("callback_amount_mismatch", **e.details)
            return CallbackResultDTO(outcome="rejected", order_id=event.order_id, attempt_id=event.attempt_id)

        log.info("callback_applied", order_status=order_target.value, attempt_status=attempt_target.value)
        return CallbackResultDTO(
            outcome="applied",
            order_id=order.id,
            order_status=order_target.value,
            attempt_id=attempt.id,
        )

    async def get_payment_status(self, attempt_id: str, user_id: str) -> PaymentStatusDTO:
        async with self._uow_factory(readonly=True) as uow:
            attempt = await uow.payment_attempt_repository.get_by_id(attempt_id)
            if attempt is None:
                raise PaymentAttemptNotFoundError(attempt_id)
            order = await uow.order_repository.get_by_id(attempt.order_id)
            if order is None or not order.is_owned_by(str(user_id)):
                # hide attempts of other users behind not-found
                raise PaymentAttemptNotFoundError(attempt_id)
        return PaymentStatusDTO(attempt=PaymentAttemptDTO.from_entity(attempt), order_status=order.status.value)

    async def expire_stale_payments(self, now: Optional[datetime] = None) -> int:
        """Expire AWAITING_PAYMENT orders whose active attempt outlived the window."""
        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(seconds=self._settings.payment_expiry_seconds)
        async with self._uow_factory(readonly=True) as uow:
            stale = await uow.payment_attempt_repository.list_stale_active(
                cutoff, limit=self._settings.expiry_batch_size
            )

        expired = 0
        for attempt in stale:
            async with self._uow_factory() as uow:
                swapped = await uow.order_repository.update_status(
                    attempt.order_id, OrderStatus.AWAITING_PAYMENT, OrderStatus.EXPIRED
                )
                if swapped:
                    swapped = await uow.payment_attempt_repository.update_status(
                        attempt.id, AttemptStatus.ACTIVE, AttemptStatus.EXPIRED
                    )
                if not swapped:
                    await uow.rollback()
            if swapped:
                expired += 1
                self._logger.info("payment_expired", order_id=attempt.order_id, attempt_id=attempt.id)

        if stale:
            self._logger.info("expiry_sweep_finished", candidates=len(stale), expired=expired, cutoff=cutoff.isoformat())
        return expired
