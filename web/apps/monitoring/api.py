"""Liveness/readiness probe.

Reports the database and, when the HTTP payment provider is wired in, the
payments service health and the state of its circuit breaker. Only the
database decides the status code: a degraded provider still lets customers
browse and fill carts.
"""

import logging

import httpx
from django.conf import settings
from django.db import DatabaseError, connection
from django.http import JsonResponse

from apps.payments.http_adapters import HttpPaymentGateway
from apps.payments.providers import get_payment_gateway

logger = logging.getLogger("monitoring")


def _db_component() -> dict:
    try:
        with connection.cursor() as cur:
            cur.execute("SELECT 1;")
        return {"ok": True}
    except DatabaseError:
        logger.exception("health: database check failed")
        return {"ok": False}


def _payments_component() -> dict:
    gateway = get_payment_gateway()
    if not isinstance(gateway, HttpPaymentGateway):
        return {"ok": True, "provider": settings.PAYMENT_PROVIDER}
    try:
        resp = httpx.get(f"{gateway.base_url}/health", timeout=1.0)
        ok = resp.status_code == 200
    except httpx.HTTPError:
        ok = False
    return {"ok": ok, "provider": "http", "circuit": gateway.breaker.state}


def health_view(_request):
    db = _db_component()
    payments = _payments_component()
    return JsonResponse(
        {"ok": db["ok"], "components": {"db": db, "payments": payments}},
        status=200 if db["ok"] else 503,
    )
