"""
Factory for payment gateway clients.
"""
from __future__ import annotations

from typing import Optional

import httpx

from core.settings import PaymentSettings, payment_settings
from application.ports.payment_gateway import PaymentGateway


def get_payment_gateway(
    settings: Optional[PaymentSettings] = None,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> PaymentGateway:
    settings = settings or payment_settings
    name = settings.provider.lower()
    if name == "paytrail":
        from .paytrail_client import PaytrailClient
        return PaytrailClient(settings, transport=transport)
    raise ValueError(f"Unsupported payment provider: {name}")
