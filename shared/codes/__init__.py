"""
Shared business codes used across layers (Domain/Core/API).

This package exposes BusinessCode at `shared.codes` and keeps
payment-specific codes under `shared.codes.payment_codes`.
"""
from enum import IntEnum


class BusinessCode(IntEnum):
    """Unified business status codes (single source of truth)."""

    # Success
    SUCCESS = 0

    # Parameter errors (1xxxx)
    PARAM_ERROR = 10000
    PARAM_MISSING = 10001
    PARAM_TYPE_ERROR = 10002
    PARAM_VALIDATION_ERROR = 10003
    CART_EMPTY = 10100
    MIXED_CURRENCY = 10101

    # Business errors (2xxxx)
    BUSINESS_ERROR = 20000
    NOT_FOUND = 20006  # Generic resource not found
    PRODUCT_NOT_FOUND = 20200
    PRODUCT_UNAVAILABLE = 20201
    ORDER_NOT_FOUND = 20300
    PAYMENT_NOT_FOUND = 20400
    AMOUNT_MISMATCH = 20401

    # Authorization errors (3xxxx)
    PERMISSION_ERROR = 30000
    UNAUTHORIZED = 30001
    FORBIDDEN = 30002
    TOKEN_INVALID = 30003
    UNTRUSTED_CALLBACK = 30100

    # System errors (4xxxx)
    SYSTEM_ERROR = 40000
    DATABASE_ERROR = 40001
    NETWORK_ERROR = 40002
    SERVICE_UNAVAILABLE = 40003

    # Upstream gateway errors (6xxxx)
    GATEWAY_UNAVAILABLE = 60000
    GATEWAY_TIMEOUT = 60001
    GATEWAY_REJECTED = 60002
    GATEWAY_SIGNATURE_ERROR = 60003


__all__ = ["BusinessCode"]
