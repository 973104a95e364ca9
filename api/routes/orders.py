"""
Order API routes
"""
from fastapi import APIRouter, Depends, Query, status

from api.dependencies import Principal, get_current_principal, get_checkout_coordinator
from application.dtos.orders import OrderDTO
from application.dtos.payments import PaymentInitiationDTO
from application.services.checkout_service import CheckoutCoordinator
from core.config import settings
from core.response import success_response, paginated_response, Response as ApiResponse

router = APIRouter(
    prefix="/orders",
    tags=["Orders"]
)


@router.post(
    "",
    summary="Place an order from the cart",
    response_model=ApiResponse[OrderDTO],
    status_code=status.HTTP_201_CREATED,
)
async def create_order(
    principal: Principal = Depends(get_current_principal),
    coordinator: CheckoutCoordinator = Depends(get_checkout_coordinator),
):
    """
    Snapshot the caller's cart into a PENDING order.

    Prices are read from the catalog at this moment; stock is checked but not reserved.
    """
    order = await coordinator.create_order(principal.user_id, customer_email=principal.email)
    return success_response(data=order, message="Order created")


@router.get("", summary="List my orders")
async def list_orders(
    page: int = Query(1, ge=1),
    size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    principal: Principal = Depends(get_current_principal),
    coordinator: CheckoutCoordinator = Depends(get_checkout_coordinator),
):
    orders, total = await coordinator.list_orders(principal.user_id, page=page, size=size)
    return paginated_response(
        items=[o.model_dump(mode="json") for o in orders],
        total=total,
        page=page,
        size=size,
    )


@router.get("/{order_id}", summary="Get an order", response_model=ApiResponse[OrderDTO])
async def get_order(
    order_id: str,
    principal: Principal = Depends(get_current_principal),
    coordinator: CheckoutCoordinator = Depends(get_checkout_coordinator),
):
    order = await coordinator.get_order(order_id, principal.user_id)
    return success_response(data=order)


@router.post("/{order_id}/pay", summary="Start payment", response_model=ApiResponse[PaymentInitiationDTO])
async def initiate_payment(
    order_id: str,
    principal: Principal = Depends(get_current_principal),
    coordinator: CheckoutCoordinator = Depends(get_checkout_coordinator),
):
    """
    Open a hosted payment page for a PENDING order.

    Repeated calls return the payment already in progress. An order that can no
    longer be paid is reported with `conflict: true` and its current status.
    """
    result = await coordinator.initiate_payment(order_id, principal.user_id)
    message = "Order is not payable" if result.conflict else "Redirect the shopper to redirect_url"
    return success_response(data=result, message=message)


@router.post("/{order_id}/cancel", summary="Cancel an order", response_model=ApiResponse[OrderDTO])
async def cancel_order(
    order_id: str,
    principal: Principal = Depends(get_current_principal),
    coordinator: CheckoutCoordinator = Depends(get_checkout_coordinator),
):
    order = await coordinator.cancel_order(order_id, principal.user_id)
    return success_response(data=order, message="Order cancelled" if order.status == "cancelled" else "Order unchanged")
