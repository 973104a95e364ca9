from .request_id import RequestIDMiddleware, get_request_id, get_client_ip
from .logging import LoggingMiddleware
from .gateway_trust import GatewayTrustMiddleware

__all__ = [
    "RequestIDMiddleware",
    "LoggingMiddleware",
    "GatewayTrustMiddleware",
    "get_request_id",
    "get_client_ip",
]
