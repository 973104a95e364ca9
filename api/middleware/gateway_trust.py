"""
Upstream API gateway (Kong) trust boundary.

When a shared secret is configured every request must carry it, and when an
allowlist is configured the peer must be inside it. /health stays open for
probes.
"""
import hmac
import ipaddress
from typing import Iterable, List, Optional, Union

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from core.config import GatewayTrustSettings
from core.logging_config import get_logger
from core.response import error_response
from shared.codes import BusinessCode


logger = get_logger(__name__)

_Network = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]


def parse_allowlist(entries: Iterable[str]) -> List[_Network]:
    """Plain addresses become /32 (or /128) networks."""
    networks: List[_Network] = []
    for entry in entries:
        networks.append(ipaddress.ip_network(entry.strip(), strict=False))
    return networks


def ip_allowed(remote_ip: Optional[str], networks: List[_Network]) -> bool:
    if not networks:
        return True
    if not remote_ip:
        return False
    try:
        rip = ipaddress.ip_address(remote_ip)
    except ValueError:
        return False
    return any(rip in net for net in networks)


class GatewayTrustMiddleware(BaseHTTPMiddleware):

    OPEN_PATHS = {"/health"}

    def __init__(self, app: ASGIApp, trust: GatewayTrustSettings):
        super().__init__(app)
        self.secret = trust.internal_auth
        self.header_name = trust.header_name
        self.networks = parse_allowlist(trust.allowed_ips)

    async def dispatch(self, request: Request, call_next):
        if not self.secret or request.url.path in self.OPEN_PATHS:
            return await call_next(request)

        provided = request.headers.get(self.header_name) or ""
        # the socket peer is the gateway itself; forwarded headers are not trusted here
        peer = request.client.host if request.client else None
        if not hmac.compare_digest(provided.encode("utf-8"), self.secret.encode("utf-8")):
            return self._forbidden(request, "missing or invalid internal auth header", peer)
        if not ip_allowed(peer, self.networks):
            return self._forbidden(request, "peer address not allowed", peer)
        return await call_next(request)

    def _forbidden(self, request: Request, reason: str, peer: Optional[str]) -> JSONResponse:
        logger.warning("gateway_trust_denied", reason=reason, peer=peer, path=request.url.path)
        body = error_response(
            code=BusinessCode.FORBIDDEN,
            message="Request did not come through the API gateway",
            error_type="GatewayTrust",
            details={"reason": reason},
            request_id=getattr(request.state, "request_id", None),
        )
        return JSONResponse(status_code=403, content=body.model_dump(mode="json"))
