"""
API dependencies - authentication and service wiring
"""
from dataclasses import dataclass
from typing import Optional

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from application.ports.payment_gateway import PaymentGateway
from application.services.cart_service import CartService
from application.services.catalog_service import CatalogService
from application.services.checkout_service import CheckoutCoordinator
from core.config import settings
from core.exceptions import UnauthorizedException, ForbiddenException
from core.logging_config import get_logger
from core.settings import payment_settings
from infrastructure.external.payments import get_payment_gateway
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork

import structlog


logger = get_logger(__name__)

# HTTP Bearer for direct API calls; tokens are issued elsewhere
http_bearer = HTTPBearer(
    scheme_name="Bearer",
    description="JWT Bearer token authentication",
    auto_error=False,
)


@dataclass(frozen=True)
class Principal:
    """Authenticated caller taken from the JWT claims"""
    user_id: str
    email: Optional[str] = None
    role: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def decode_principal(token: str) -> Principal:
    try:
        claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise UnauthorizedException("Token expired")
    except jwt.InvalidTokenError:
        raise UnauthorizedException("Invalid authentication credentials")
    subject = claims.get("sub")
    if not subject:
        raise UnauthorizedException("Token has no subject")
    return Principal(user_id=str(subject), email=claims.get("email"), role=claims.get("role"))


async def get_current_principal(
    bearer_token: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer),
) -> Principal:
    """Resolve the caller from the bearer token"""
    if bearer_token is None or not bearer_token.credentials:
        raise UnauthorizedException("Authentication credentials were not provided")
    principal = decode_principal(bearer_token.credentials)
    structlog.contextvars.bind_contextvars(user_id=principal.user_id)
    return principal


async def require_admin(principal: Principal = Depends(get_current_principal)) -> Principal:
    if not principal.is_admin:
        raise ForbiddenException("Administrator role required")
    return principal


def get_gateway(request: Request) -> PaymentGateway:
    """Gateway client kept on app.state so its HTTP connection pool is reused"""
    gateway = getattr(request.app.state, "payment_gateway", None)
    if gateway is None:
        gateway = get_payment_gateway(payment_settings)
        request.app.state.payment_gateway = gateway
    return gateway


async def get_checkout_coordinator(
    gateway: PaymentGateway = Depends(get_gateway),
) -> CheckoutCoordinator:
    return CheckoutCoordinator(
        uow_factory=SQLAlchemyUnitOfWork,
        gateway=gateway,
        checkout_settings=settings.checkout,
    )


async def get_cart_service() -> CartService:
    return CartService(uow_factory=SQLAlchemyUnitOfWork)


async def get_catalog_service() -> CatalogService:
    return CatalogService(uow_factory=SQLAlchemyUnitOfWork)
