"""
Payment gateway port (application/ports) exposing a replaceable protocol.

Application depends on this Protocol and its error types; infrastructure
implements adapters.
"""
from __future__ import annotations

from typing import Mapping, Optional, Protocol, runtime_checkable

from application.dtos.payments import ProviderSession, CallbackEvent
from domain.common.exceptions import BusinessException
from domain.order.entity import Order
from domain.payment.entity import PaymentAttempt
from shared.codes import BusinessCode


class GatewayError(BusinessException):
    """Base class for gateway failures"""

    code_value = BusinessCode.GATEWAY_UNAVAILABLE
    error_type_name = "GatewayError"

    def __init__(
        self,
        message: str,
        *,
        provider: str,
        provider_code: str | None = None,
        details: Optional[dict] = None,
    ):
        full_details = {"provider": provider, "provider_code": provider_code}
        if details:
            full_details.update(details)
        super().__init__(
            code=self.code_value,
            message=message,
            error_type=self.error_type_name,
            details=full_details,
        )
        self.provider = provider


class GatewayUnavailableError(GatewayError):
    """Transport failure or 5xx; the payment may be retried later"""
    code_value = BusinessCode.GATEWAY_UNAVAILABLE
    error_type_name = "GatewayUnavailable"


class GatewayTimeoutError(GatewayUnavailableError):
    code_value = BusinessCode.GATEWAY_TIMEOUT
    error_type_name = "GatewayTimeout"


class GatewayRejectedError(GatewayError):
    """Provider refused the request (4xx); retrying will not help"""
    code_value = BusinessCode.GATEWAY_REJECTED
    error_type_name = "GatewayRejected"


class GatewaySignatureError(GatewayError):
    """Provider response failed signature verification"""
    code_value = BusinessCode.GATEWAY_SIGNATURE_ERROR
    error_type_name = "GatewaySignatureError"


@runtime_checkable
class PaymentGateway(Protocol):
    """Gateway protocol for hosted-payment providers.

    Implementations are async and side-effect free beyond IO.
    """

    provider: str

    async def open_payment(self, order: Order, attempt: PaymentAttempt) -> ProviderSession: ...

    def verify_signature(self, params: Mapping[str, str], body: bytes = b"") -> bool: ...

    def parse_callback(self, params: Mapping[str, str]) -> CallbackEvent: ...

    async def aclose(self) -> None: ...
