import uuid

import pytest


def _order():
    return str(uuid.uuid4())


def test_health(provider):
    r = provider.get("/health")
    assert r.status_code == 200
    assert r.json() == {"ok": True}
    assert r.headers["X-Request-ID"]


def test_pix_succeeds_with_reference_and_qr(provider):
    r = provider.post("/pix", json={"order_id": _order(), "amount": "1799.98"})
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "succeeded"
    assert body["reference"].startswith("pix_")
    assert "qr_payload" in body["artifacts"]


@pytest.mark.parametrize(
    "token, code",
    [("tok_4000000000000000", "card_declined"), ("tok_1111", "insufficient_funds"), ("tok_2222", "expired_card")],
)
def test_card_decline_tokens(provider, token, code):
    r = provider.post("/card", json={"order_id": _order(), "amount": "10.00", "card_token": token})
    assert r.status_code == 402
    assert r.json()["error_code"] == code


def test_card_success(provider):
    r = provider.post("/card", json={"order_id": _order(), "amount": "10.00", "card_token": "tok_4242"})
    assert r.status_code == 200
    assert r.json()["reference"].startswith("pi_")


def test_invalid_amount_is_422(provider):
    r = provider.post("/pix", json={"order_id": _order(), "amount": "-1"})
    assert r.status_code == 422


def test_idempotent_replay_returns_same_reference(provider):
    body = {"order_id": _order(), "amount": "50.00"}
    headers = {"Idempotency-Key": f"k-{uuid.uuid4()}"}
    r1 = provider.post("/pix", json=body, headers=headers)
    r2 = provider.post("/pix", json=body, headers=headers)
    assert r1.status_code == r2.status_code == 200
    assert r1.json()["reference"] == r2.json()["reference"]
    assert r2.headers.get("Idempotent-Replay") == "true"


def test_idempotency_key_reuse_with_other_payload_conflicts(provider):
    headers = {"Idempotency-Key": f"k-{uuid.uuid4()}"}
    provider.post("/pix", json={"order_id": _order(), "amount": "50.00"}, headers=headers)
    r = provider.post("/pix", json={"order_id": _order(), "amount": "51.00"}, headers=headers)
    assert r.status_code == 409
    assert r.json()["error_code"] == "idempotency_conflict"


def test_boleto_issue_then_confirm(provider):
    r = provider.post("/boleto", json={"order_id": _order(), "amount": "99.90", "payer_name": "Ana"})
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "pending"
    line = body["artifacts"]["digital_line"]
    assert line.isdigit() and len(line) == 47
    assert body["artifacts"]["expires_at"]

    r = provider.post("/boleto/confirm", json={"digital_line": line})
    assert r.status_code == 200
    assert r.json()["status"] == "succeeded"
    assert r.json()["reference"] == body["reference"]

    # confirming twice is harmless
    assert provider.post("/boleto/confirm", json={"digital_line": line}).status_code == 200


def test_unknown_boleto_is_404(provider):
    r = provider.post("/boleto/confirm", json={"digital_line": "123"})
    assert r.status_code == 404
