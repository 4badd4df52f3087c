"""Payments provider service.

Plays the live payment provider behind the web project's
``HttpPaymentGateway``: PIX charges, tokenized card charges with
deterministic decline tokens, boleto issuance and boleto confirmation.

Every charging endpoint honours ``Idempotency-Key``: the first request
reserves the key and stores its response; a retry with the same payload
gets the stored response back, a retry with a different payload gets 409.
"""

import logging
import random
import secrets
import time
import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Annotated, Callable, Optional

from fastapi import FastAPI, Header, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from pythonjsonlogger import jsonlogger
from sqlalchemy import select, text
from sqlalchemy.exc import IntegrityError

from repo import IdempotencyKey, PaymentsRepo, canonical_hash, engine, get_session, init_db

app = FastAPI(title="Payments Provider")

logger = logging.getLogger("payments")
if not logger.handlers:
    h = logging.StreamHandler()
    h.setFormatter(jsonlogger.JsonFormatter("%(asctime)s %(levelname)s %(name)s %(message)s %(request_id)s"))
    logger.addHandler(h)
    logger.setLevel(logging.INFO)

CARD_DECLINES = {
    "0000": ("card_declined", "Your card was declined."),
    "1111": ("insufficient_funds", "Your card has insufficient funds."),
    "2222": ("expired_card", "Your card has expired."),
}
BOLETO_MIN_DAYS, BOLETO_MAX_DAYS = 3, 7
BOLETO_LINE_LENGTH = 47


@app.on_event("startup")
def _startup_db():
    # The database container may still be booting.
    deadline = time.time() + 30
    while True:
        try:
            with engine.connect() as conn:
                conn.execute(text("select 1"))
            break
        except Exception:
            if time.time() > deadline:
                raise
            time.sleep(1)
    init_db()


Amount = Annotated[Decimal, Field(gt=0, max_digits=12, decimal_places=2)]


class PixRequest(BaseModel):
    order_id: str = Field(min_length=1, max_length=64)
    amount: Amount


class CardRequest(PixRequest):
    card_token: str = Field(min_length=4, max_length=128)


class BoletoRequest(PixRequest):
    payer_name: str = Field(default="", max_length=200)
    payer_email: str = Field(default="", max_length=254)


class BoletoConfirmRequest(BaseModel):
    digital_line: str = Field(min_length=1, max_length=64)


def _result(status: str, reference: str | None = None, artifacts: dict | None = None) -> dict:
    return {"status": status, "reference": reference, "artifacts": artifacts or {}}


def _declined(error_code: str, message: str) -> tuple[int, dict]:
    return 402, {"detail": "PAYMENT_DECLINED", "status": "failed", "error_code": error_code, "message": message}


def _idempotent(path: str, key: Optional[str], payload: dict, handler: Callable[[], tuple[int, dict]]) -> JSONResponse:
    """Run ``handler`` at most once per ``key``.

    Args:
        path: Endpoint path, part of the request fingerprint.
        key: ``Idempotency-Key`` header value, or None.
        payload: Validated request body.
        handler: Performs the operation and returns ``(status, body)``.
    """
    if not key:
        code, body = handler()
        return JSONResponse(body, status_code=code)

    request_hash = canonical_hash({"path": path, **payload})
    with get_session() as s:
        try:
            s.add(IdempotencyKey(key=key, request_hash=request_hash))
            s.commit()
        except IntegrityError:
            s.rollback()
            rec = s.execute(select(IdempotencyKey).where(IdempotencyKey.key == key).with_for_update()).scalars().first()
            if not rec:
                raise HTTPException(status_code=500, detail="IDEMPOTENCY_LOOKUP_ERROR")
            if rec.request_hash != request_hash:
                return JSONResponse(
                    {"detail": "IDEMPOTENCY_CONFLICT", "error_code": "idempotency_conflict"}, status_code=409
                )
            if rec.response_status:
                return JSONResponse(
                    rec.response_body, status_code=rec.response_status, headers={"Idempotent-Replay": "true"}
                )
            # Reserved but never completed: run it now.

        code, body = handler()
        rec = s.get(IdempotencyKey, key)
        rec.response_status = code
        rec.response_body = body
        s.commit()
        return JSONResponse(body, status_code=code)


@app.get("/health")
def health():
    return {"ok": True}


@app.post("/pix")
def pix(req: PixRequest, idempotency_key: Annotated[Optional[str], Header(alias="Idempotency-Key")] = None):
    def run():
        ref = f"pix_{uuid.uuid4().hex}"
        PaymentsRepo().create_payment(reference=ref, method="PIX", order_id=req.order_id, amount=req.amount,
                                      status="succeeded", paid_at=datetime.now(timezone.utc))
        logger.info("pix captured", extra={"order_id": req.order_id, "reference": ref})
        return 200, _result("succeeded", ref, {"qr_payload": f"00020126PIX{ref}5406{req.amount:.2f}"})

    return _idempotent("/pix", idempotency_key, req.model_dump(mode="json"), run)


@app.post("/card")
def card(req: CardRequest, idempotency_key: Annotated[Optional[str], Header(alias="Idempotency-Key")] = None):
    def run():
        decline = CARD_DECLINES.get(req.card_token[-4:])
        ref = f"pi_{uuid.uuid4().hex}"
        if decline:
            PaymentsRepo().create_payment(reference=ref, method="CARD", order_id=req.order_id, amount=req.amount,
                                          status="failed", error_code=decline[0])
            logger.info("card declined", extra={"order_id": req.order_id, "error_code": decline[0]})
            return _declined(*decline)
        PaymentsRepo().create_payment(reference=ref, method="CARD", order_id=req.order_id, amount=req.amount,
                                      status="succeeded", paid_at=datetime.now(timezone.utc))
        logger.info("card captured", extra={"order_id": req.order_id, "reference": ref})
        return 200, _result("succeeded", ref)

    return _idempotent("/card", idempotency_key, req.model_dump(mode="json"), run)


@app.post("/boleto")
def boleto(req: BoletoRequest, idempotency_key: Annotated[Optional[str], Header(alias="Idempotency-Key")] = None):
    def run():
        ref = f"bol_{uuid.uuid4().hex}"
        line = "".join(str(secrets.randbelow(10)) for _ in range(BOLETO_LINE_LENGTH))
        expires_at = datetime.now(timezone.utc) + timedelta(days=random.randint(BOLETO_MIN_DAYS, BOLETO_MAX_DAYS))
        PaymentsRepo().create_payment(reference=ref, method="BOLETO", order_id=req.order_id, amount=req.amount,
                                      status="pending", digital_line=line, expires_at=expires_at)
        logger.info("boleto issued", extra={"order_id": req.order_id, "reference": ref})
        return 200, _result("pending", ref, {"digital_line": line, "expires_at": expires_at.isoformat()})

    return _idempotent("/boleto", idempotency_key, req.model_dump(mode="json"), run)


@app.post("/boleto/confirm")
def boleto_confirm(req: BoletoConfirmRequest):
    payment = PaymentsRepo().mark_boleto_paid(req.digital_line)
    if payment is None:
        raise HTTPException(status_code=404, detail="BOLETO_NOT_FOUND")
    logger.info("boleto confirmed", extra={"order_id": payment.order_id, "reference": payment.reference})
    return _result("succeeded", payment.reference)


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = rid
    try:
        response = await call_next(request)
    finally:
        logger.info("request handled", extra={"request_id": rid, "path": request.url.path, "method": request.method})
    response.headers["X-Request-ID"] = rid
    return response
