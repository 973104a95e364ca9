"""Celery beat schedule configuration.

Entries follow the structure in the Celery docs; intervals come from settings.
"""
from __future__ import annotations

from core.config import settings

CELERY_BEAT_SCHEDULE = {
    "payments-expire-stale": {
        "task": "payments.expire_stale",
        "schedule": float(settings.checkout.expiry_sweep_interval_seconds),
        # a sweep that waited longer than one interval is superseded by the next
        "options": {"expires": float(settings.checkout.expiry_sweep_interval_seconds)},
    },
}
