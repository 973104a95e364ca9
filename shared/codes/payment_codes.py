"""
Payment specific constants and provider status mapping.
"""
from __future__ import annotations


# Paytrail `checkout-status` values → internal callback outcome
PROVIDER_STATUS_TO_INTERNAL = {
    "paytrail": {
        "ok": "succeeded",
        "fail": "cancelled",
        "pending": "pending",
        "delayed": "pending",
        "new": "pending",
    },
}

# Currencies using zero minor-unit exponent (ISO-4217)
ZERO_DECIMAL_CURRENCIES = {"JPY", "KRW", "ISK"}
