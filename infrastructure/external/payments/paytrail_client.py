"""
Paytrail Payment API adapter over httpx.

Notes on the Paytrail protocol:
- Every request and response is authenticated with an HMAC over the sorted
  `checkout-*` headers (`key:value` lines) followed by the body, sent in the
  `signature` header.
- Callbacks and browser redirects carry the same `checkout-*` fields as query
  parameters and are signed the same way with an empty body.
- Amounts are integers in the smallest currency unit.
"""
from __future__ import annotations

import hashlib
import hmac
import json
import uuid
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

import httpx

from application.dtos.payments import ProviderSession, CallbackEvent
from core.settings import PaymentSettings
from core.logging_config import get_logger
from domain.common.money import to_minor_units
from domain.order.entity import Order
from domain.payment.entity import PaymentAttempt
from infrastructure.external.payments.base import BasePaymentClient
from application.ports.payment_gateway import (
    GatewayRejectedError,
    GatewaySignatureError,
    GatewayTimeoutError,
    GatewayUnavailableError,
)


logger = get_logger(__name__)

SUPPORTED_ALGORITHMS = {
    "sha256": hashlib.sha256,
    "sha512": hashlib.sha512,
}


def compute_signature(secret: str, params: Mapping[str, Any], body: str | bytes = "", algorithm: str = "sha256") -> str:
    """HMAC over sorted `checkout-*` entries and the body, hex encoded."""
    digest = SUPPORTED_ALGORITHMS.get(algorithm)
    if digest is None:
        raise ValueError(f"Unsupported signature algorithm: {algorithm}")
    if isinstance(body, str):
        body = body.encode("utf-8")
    # raw body bytes are signed as received, never decoded
    parts = [
        f"{key}:{params[key]}".encode("utf-8")
        for key in sorted(k for k in params if k.startswith("checkout-"))
    ]
    parts.append(body or b"")
    return hmac.new(secret.encode("utf-8"), b"\n".join(parts), digest).hexdigest()


def _utc_timestamp() -> str:
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


class PaytrailClient(BasePaymentClient):
    provider = "paytrail"

    def __init__(self, settings: PaymentSettings, *, transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(
            timeouts=settings.timeouts.model_dump(),
            retry={"max": settings.retry.max, "base": settings.retry.base_backoff},
            transport=transport,
        )
        cfg = settings.paytrail
        if not cfg.merchant_id or not cfg.secret_key:
            raise RuntimeError("PAYMENT__PAYTRAIL__MERCHANT_ID / SECRET_KEY not configured")
        if cfg.algorithm not in SUPPORTED_ALGORITHMS:
            raise RuntimeError(f"Unsupported PAYMENT__PAYTRAIL__ALGORITHM: {cfg.algorithm}")
        if not cfg.success_url or not cfg.cancel_url:
            raise RuntimeError("PAYMENT__PAYTRAIL__SUCCESS_URL / CANCEL_URL not configured")
        self._cfg = cfg
        self._base_url = cfg.base_url.rstrip("/")

    # ---- signing ----

    def _sign(self, params: Mapping[str, Any], body: str | bytes = "", algorithm: Optional[str] = None) -> str:
        return compute_signature(self._cfg.secret_key, params, body, algorithm or self._cfg.algorithm)

    def _request_headers(self, method: str, body: str) -> dict[str, str]:
        headers = {
            "checkout-account": str(self._cfg.merchant_id),
            "checkout-algorithm": self._cfg.algorithm,
            "checkout-method": method,
            "checkout-nonce": uuid.uuid4().hex,
            "checkout-timestamp": _utc_timestamp(),
        }
        headers["signature"] = self._sign(headers, body)
        headers["content-type"] = "application/json; charset=utf-8"
        return headers

    def verify_signature(self, params: Mapping[str, str], body: bytes = b"") -> bool:  # type: ignore[override]
        normalized = {str(k).lower(): str(v) for k, v in params.items()}
        received = normalized.get("signature")
        algorithm = normalized.get("checkout-algorithm", "")
        if not received or algorithm not in SUPPORTED_ALGORITHMS:
            return False
        account = normalized.get("checkout-account")
        if account is not None and account != str(self._cfg.merchant_id):
            return False
        expected = self._sign(normalized, body, algorithm)
        return hmac.compare_digest(expected.encode("ascii"), received.lower().encode("utf-8"))

    # ---- outbound ----

    def _build_payment_body(self, order: Order, attempt: PaymentAttempt) -> dict[str, Any]:
        currency = attempt.currency
        callback_cancel = self._cfg.cancel_callback_url or self._cfg.callback_url
        body: dict[str, Any] = {
            "stamp": attempt.id,
            "reference": order.id,
            "amount": attempt.amount_minor,
            "currency": currency,
            "language": self._cfg.language,
            "items": [
                {
                    "unitPrice": to_minor_units(line.unit_price, currency),
                    "units": line.quantity,
                    "vatPercentage": self._cfg.vat_percentage,
                    "productCode": str(line.product_id),
                    "description": line.product_name[:1000],
                }
                for line in order.lines
            ],
            "customer": {"email": order.customer_email or self._cfg.default_customer_email},
            "redirectUrls": {"success": self._cfg.success_url, "cancel": self._cfg.cancel_url},
        }
        if self._cfg.callback_url:
            body["callbackUrls"] = {"success": self._cfg.callback_url, "cancel": callback_cancel}
        return body

    def _verify_response(self, resp: httpx.Response) -> None:
        headers = {k.lower(): v for k, v in resp.headers.items()}
        if not self.verify_signature(headers, resp.content):
            raise GatewaySignatureError(
                "Paytrail response signature mismatch",
                provider=self.provider,
                details={"status_code": resp.status_code},
            )

    async def open_payment(self, order: Order, attempt: PaymentAttempt) -> ProviderSession:  # type: ignore[override]
        if attempt.currency not in self._cfg.supported_currencies:
            raise GatewayRejectedError(
                f"Currency {attempt.currency} is not supported by Paytrail",
                provider=self.provider,
                provider_code="unsupported_currency",
            )

        payload = json.dumps(self._build_payment_body(order, attempt), separators=(",", ":"), ensure_ascii=False)
        url = f"{self._base_url}/payments"

        async def _do() -> httpx.Response:
            async with self.client() as c:
                return await c.post(url, content=payload.encode("utf-8"), headers=self._request_headers("POST", payload))

        try:
            resp = await self._retry(_do)
        except httpx.TimeoutException as e:
            logger.warning("paytrail_timeout", order_id=order.id, attempt_id=attempt.id, error=str(e))
            raise GatewayTimeoutError("Paytrail did not answer in time", provider=self.provider) from e
        except httpx.TransportError as e:
            logger.warning("paytrail_unreachable", order_id=order.id, attempt_id=attempt.id, error=str(e))
            raise GatewayUnavailableError("Paytrail is unreachable", provider=self.provider) from e

        if resp.status_code >= 500:
            raise GatewayUnavailableError(
                "Paytrail server error",
                provider=self.provider,
                provider_code=str(resp.status_code),
            )
        if resp.status_code >= 400:
            try:
                message = resp.json().get("message") or resp.text
            except ValueError:
                message = resp.text
            logger.warning(
                "paytrail_rejected",
                order_id=order.id,
                attempt_id=attempt.id,
                status_code=resp.status_code,
                error=message,
            )
            raise GatewayRejectedError(
                f"Paytrail rejected the payment: {message}",
                provider=self.provider,
                provider_code=str(resp.status_code),
            )

        self._verify_response(resp)
        data = resp.json()
        transaction_id = data.get("transactionId")
        href = data.get("href")
        if not transaction_id or not href:
            raise GatewayUnavailableError(
                "Paytrail response is missing transactionId or href",
                provider=self.provider,
            )
        self._log("paytrail_payment_opened", order_id=order.id, attempt_id=attempt.id, transaction_id=transaction_id)
        return ProviderSession(provider=self.provider, provider_ref=str(transaction_id), redirect_url=str(href))

    # ---- inbound ----

    def parse_callback(self, params: Mapping[str, str]) -> CallbackEvent:  # type: ignore[override]
        normalized = {str(k).lower(): str(v) for k, v in params.items()}
        raw_amount = normalized.get("checkout-amount")
        try:
            amount_minor = int(raw_amount) if raw_amount is not None else None
        except ValueError:
            amount_minor = None
        provider_status = normalized.get("checkout-status", "")
        return CallbackEvent(
            provider=self.provider,
            order_id=normalized.get("checkout-reference"),
            attempt_id=normalized.get("checkout-stamp"),
            provider_ref=normalized.get("checkout-transaction-id"),
            amount_minor=amount_minor,
            outcome=self._map_status(provider_status),
            provider_status=provider_status,
            raw={k: v for k, v in normalized.items() if k.startswith("checkout-")},
        )
