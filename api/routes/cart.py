"""
Cart API routes
"""
from fastapi import APIRouter, Depends

from api.dependencies import Principal, get_current_principal, get_cart_service
from application.dtos.catalog import CartDTO, CartItemAddDTO, CartItemUpdateDTO
from application.services.cart_service import CartService
from core.response import success_response, Response as ApiResponse

router = APIRouter(
    prefix="/cart",
    tags=["Cart"]
)


@router.get("", summary="Get my cart", response_model=ApiResponse[CartDTO])
async def get_cart(
    principal: Principal = Depends(get_current_principal),
    service: CartService = Depends(get_cart_service),
):
    cart = await service.get_cart(principal.user_id)
    return success_response(data=cart)


@router.post("", summary="Add a product to the cart", response_model=ApiResponse[CartDTO])
async def add_item(
    payload: CartItemAddDTO,
    principal: Principal = Depends(get_current_principal),
    service: CartService = Depends(get_cart_service),
):
    """Adds to the quantity already in the cart; the total must be in stock."""
    cart = await service.add_item(principal.user_id, payload.product_id, payload.quantity)
    return success_response(data=cart, message="Item added")


@router.put("/items/{product_id}", summary="Set item quantity", response_model=ApiResponse[CartDTO])
async def update_item(
    product_id: int,
    payload: CartItemUpdateDTO,
    principal: Principal = Depends(get_current_principal),
    service: CartService = Depends(get_cart_service),
):
    cart = await service.update_item(principal.user_id, product_id, payload.quantity)
    return success_response(data=cart, message="Item updated")


@router.delete("/items/{product_id}", summary="Remove an item", response_model=ApiResponse[CartDTO])
async def remove_item(
    product_id: int,
    principal: Principal = Depends(get_current_principal),
    service: CartService = Depends(get_cart_service),
):
    cart = await service.remove_item(principal.user_id, product_id)
    return success_response(data=cart, message="Item removed")


@router.delete("/clear", summary="Empty the cart")
async def clear_cart(
    principal: Principal = Depends(get_current_principal),
    service: CartService = Depends(get_cart_service),
):
    removed = await service.clear(principal.user_id)
    return success_response(data={"removed": removed}, message="Cart cleared")
