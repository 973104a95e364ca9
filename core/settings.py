"""
Payment gateway settings using pydantic-settings v2 with nested env keys.

Kept apart from core.config.Settings so the gateway client can be built from
this object alone.
"""
from __future__ import annotations

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, Field


class PaymentTimeouts(BaseModel):
    connect: float = 1.0
    read: float = 5.0
    write: float = 5.0
    total: float = 10.0


class PaymentRetry(BaseModel):
    max: int = 2
    base_backoff: float = 0.2


class PaytrailSettings(BaseModel):
    merchant_id: Optional[str] = None
    secret_key: Optional[str] = None
    base_url: str = "https://services.paytrail.com"
    algorithm: str = "sha256"
    language: str = "EN"
    vat_percentage: int = 24
    default_customer_email: str = "customer@example.com"
    # provider → server notifications
    callback_url: Optional[str] = None
    cancel_callback_url: Optional[str] = None
    # shopper browser redirects
    success_url: Optional[str] = None
    cancel_url: Optional[str] = None
    supported_currencies: list[str] = Field(default_factory=lambda: ["EUR"])


class PaymentSettings(BaseSettings):
    provider: str = Field(default="paytrail")
    timeouts: PaymentTimeouts = Field(default_factory=PaymentTimeouts)
    retry: PaymentRetry = Field(default_factory=PaymentRetry)
    paytrail: PaytrailSettings = Field(default_factory=PaytrailSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="PAYMENT__",
        case_sensitive=False,
        extra="allow",
        env_nested_delimiter="__",
    )


payment_settings = PaymentSettings()
