from datetime import timedelta
from decimal import Decimal
from uuid import uuid4

import pytest
from django.utils import timezone

from apps.payments.adapters import SimulatedPaymentGateway
from apps.payments.domain import PaymentStatus


@pytest.fixture
def gateway():
    return SimulatedPaymentGateway(delay_secs=0)


def test_pix_always_succeeds(gateway):
    r = gateway.process_pix(uuid4(), Decimal("1799.98"))
    assert r.succeeded is True
    assert r.status is PaymentStatus.SUCCEEDED
    assert r.provider_reference.startswith("pix_sim_")
    assert "1799.98" in r.artifacts["qr_payload"]


@pytest.mark.parametrize(
    "token, code",
    [
        ("tok_visa_0000", "card_declined"),
        ("tok_visa_1111", "insufficient_funds"),
        ("tok_visa_2222", "expired_card"),
    ],
)
def test_card_decline_scenarios(gateway, token, code):
    r = gateway.process_card(uuid4(), Decimal("10.00"), token)
    assert r.succeeded is False
    assert r.status is PaymentStatus.FAILED
    assert r.error_code == code
    assert r.error_message


def test_card_success(gateway):
    r = gateway.process_card(uuid4(), Decimal("10.00"), "tok_visa_4242")
    assert r.succeeded is True
    assert r.provider_reference.startswith("pi_sim_")


def test_boleto_is_pending_with_line_and_expiry(gateway):
    before = timezone.now()
    r = gateway.generate_boleto(uuid4(), Decimal("99.90"), customer=None)
    assert r.succeeded is True
    assert r.status is PaymentStatus.PENDING
    line = r.artifacts["digital_line"]
    assert line.isdigit() and len(line) == 47
    expires = r.artifacts["expires_at"]
    assert before + timedelta(days=3) <= expires <= timezone.now() + timedelta(days=7)


def test_confirm_boleto(gateway):
    assert gateway.confirm_boleto("1234").succeeded is True
    assert gateway.confirm_boleto("").succeeded is False


def test_delay_is_bounded_by_timeout():
    slept = []
    gw = SimulatedPaymentGateway(delay_secs=30, timeout_secs=2, sleep=slept.append)
    gw.process_pix(uuid4(), Decimal("1.00"))
    assert slept == [2]
