"""Domain-level business exceptions shared by domain and infrastructure.

The core layer only maps these to HTTP responses; the domain never imports
from core.
"""
from __future__ import annotations

from typing import Optional
from shared.codes import BusinessCode


class BusinessException(Exception):
    """Base class for business exceptions"""

    def __init__(
        self,
        code: int,
        message: str,
        error_type: str = "BusinessError",
        details: Optional[dict] = None,
        field: Optional[str] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.error_type = error_type
        self.details = details
        self.field = field
        super().__init__(self.message)


class DomainValidationException(BusinessException):
    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(
            code=BusinessCode.PARAM_VALIDATION_ERROR,
            message=message,
            error_type="DomainValidationError",
            details=details,
            field=field,
        )


class EmptyCartError(BusinessException):
    def __init__(self, user_id: str):
        super().__init__(
            code=BusinessCode.CART_EMPTY,
            message="Cart is empty",
            error_type="EmptyCart",
            details={"user_id": user_id},
        )


class MixedCurrencyError(BusinessException):
    def __init__(self, currencies: list[str]):
        super().__init__(
            code=BusinessCode.MIXED_CURRENCY,
            message="Cart contains products priced in different currencies",
            error_type="MixedCurrency",
            details={"currencies": sorted(currencies)},
        )


class ProductNotFoundError(BusinessException):
    def __init__(self, product_id: int):
        super().__init__(
            code=BusinessCode.PRODUCT_NOT_FOUND,
            message=f"Product {product_id} not found",
            error_type="ProductNotFound",
            details={"product_id": product_id},
        )


class ProductUnavailableError(BusinessException):
    """Product missing, inactive or without enough stock for the requested quantity."""

    def __init__(self, product_id: int, *, requested: int, available: int):
        super().__init__(
            code=BusinessCode.PRODUCT_UNAVAILABLE,
            message=f"Product {product_id} is not available in quantity {requested}",
            error_type="ProductUnavailable",
            details={"product_id": product_id, "requested": requested, "available": available},
        )
        self.product_id = product_id


class OrderNotFoundError(BusinessException):
    def __init__(self, order_id: str):
        super().__init__(
            code=BusinessCode.ORDER_NOT_FOUND,
            message=f"Order {order_id} not found",
            error_type="OrderNotFound",
            details={"order_id": order_id},
        )


class OrderAccessDeniedError(BusinessException):
    def __init__(self, order_id: str):
        super().__init__(
            code=BusinessCode.FORBIDDEN,
            message="Order belongs to another user",
            error_type="OrderAccessDenied",
            details={"order_id": order_id},
        )


class PaymentAttemptNotFoundError(BusinessException):
    def __init__(self, attempt_id: str):
        super().__init__(
            code=BusinessCode.PAYMENT_NOT_FOUND,
            message=f"Payment {attempt_id} not found",
            error_type="PaymentNotFound",
            details={"attempt_id": attempt_id},
        )


class AmountMismatchError(BusinessException):
    def __init__(self, *, expected: int, received: int):
        super().__init__(
            code=BusinessCode.AMOUNT_MISMATCH,
            message="Payment amount does not match the order total",
            error_type="AmountMismatch",
            details={"expected_minor": expected, "received_minor": received},
        )


class UntrustedCallbackError(BusinessException):
    """Inbound callback failed signature verification."""

    def __init__(self, reason: str, *, provider: str):
        super().__init__(
            code=BusinessCode.UNTRUSTED_CALLBACK,
            message=f"Untrusted payment callback: {reason}",
            error_type="UntrustedCallback",
            details={"provider": provider, "reason": reason},
        )
