"""
Payments API routes.

Callback ingress for the payment gateway plus the shopper redirect targets.
Keep this thin: no provider details here.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from api.dependencies import Principal, get_current_principal, get_checkout_coordinator
from application.dtos.payments import CallbackResultDTO, PaymentStatusDTO
from application.services.checkout_service import CheckoutCoordinator
from core.logging_config import get_logger
from core.response import success_response, Response as ApiResponse
from domain.common.exceptions import UntrustedCallbackError


router = APIRouter(prefix="/payments", tags=["Payments"])
logger = get_logger(__name__)


async def _ingest(request: Request, coordinator: CheckoutCoordinator, source: str) -> CallbackResultDTO:
    # headers first so query parameters win on a name clash
    params = {k.lower(): v for k, v in request.headers.items()}
    params.update({k.lower(): v for k, v in request.query_params.items()})
    body = await request.body()
    try:
        return await coordinator.handle_callback(params, body)
    except UntrustedCallbackError as exc:
        logger.warning("callback_untrusted", source=source, reason=exc.details.get("reason"))
        return CallbackResultDTO(outcome="rejected", trusted=False)


@router.api_route(
    "/callback",
    methods=["GET", "POST"],
    summary="Gateway payment notification",
    response_model=ApiResponse[CallbackResultDTO],
)
async def payment_callback(
    request: Request,
    coordinator: CheckoutCoordinator = Depends(get_checkout_coordinator),
):
    """
    Always acknowledged with 200 so the provider stops redelivering; the
    outcome tells whether anything changed.
    """
    result = await _ingest(request, coordinator, "callback")
    return success_response(data=result, message="Callback received")


@router.get("/success", summary="Shopper returned after paying", response_model=ApiResponse[CallbackResultDTO])
async def payment_success(
    request: Request,
    coordinator: CheckoutCoordinator = Depends(get_checkout_coordinator),
):
    result = await _ingest(request, coordinator, "success_redirect")
    return success_response(data=result, message="Payment processed")


@router.get("/cancel", summary="Shopper cancelled on the payment page", response_model=ApiResponse[CallbackResultDTO])
async def payment_cancel(
    request: Request,
    coordinator: CheckoutCoordinator = Depends(get_checkout_coordinator),
):
    result = await _ingest(request, coordinator, "cancel_redirect")
    return success_response(data=result, message="Payment cancelled")


@router.get("/{attempt_id}/status", summary="Payment attempt status", response_model=ApiResponse[PaymentStatusDTO])
async def payment_status(
    attempt_id: str,
    principal: Principal = Depends(get_current_principal),
    coordinator: CheckoutCoordinator = Depends(get_checkout_coordinator),
):
    status = await coordinator.get_payment_status(attempt_id, principal.user_id)
    return success_response(data=status)
