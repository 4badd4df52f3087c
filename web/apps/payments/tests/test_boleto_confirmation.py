from decimal import Decimal

import pytest

from apps.common import errors
from apps.notifications.models import Notification
from apps.orders.models import OrderModel
from apps.orders.providers import get_state_machine
from apps.payments.models import PaymentModel
from apps.payments.providers import get_payment_gateway
from apps.payments.services import BoletoService

CONFIRM_URL = "/api/payments/boleto/confirm/{line}"


@pytest.fixture
def boleto_order(user, address, fill_cart, orchestrator, pay_with):
    fill_cart(2)
    return orchestrator.confirm(user.pk, address.id, pay_with("BOLETO")).order


def _service():
    return BoletoService(get_payment_gateway(), get_state_machine())


@pytest.mark.django_db
def test_boleto_checkout_leaves_order_processing(boleto_order):
    assert boleto_order.status == "PROCESSING"
    assert boleto_order.payment_status == "pending"
    payment = PaymentModel.objects.get(order=boleto_order)
    assert payment.status == "pending"
    assert payment.boleto_line and payment.boleto_expires_at
    assert payment.amount == Decimal("1799.98")


@pytest.mark.django_db
def test_confirm_moves_order_to_paid(boleto_order):
    line = boleto_order.payment.boleto_line
    payment = _service().confirm(line)

    assert payment.status == "succeeded"
    assert payment.paid_at is not None
    order = OrderModel.objects.get(pk=boleto_order.pk)
    assert order.status == "PAID"
    assert order.paid_at is not None
    assert order.payment_status == "succeeded"
    assert Notification.objects.filter(order=order, kind="STATUS", status="PAID").count() == 1


@pytest.mark.django_db
def test_second_confirmation_is_invalid_transition(boleto_order):
    line = boleto_order.payment.boleto_line
    _service().confirm(line)
    with pytest.raises(errors.InvalidTransition):
        _service().confirm(line)


@pytest.mark.django_db
def test_unknown_line_is_not_found():
    with pytest.raises(errors.NotFound):
        _service().confirm("0" * 47)


@pytest.mark.django_db
def test_confirm_canceled_order_is_rejected(boleto_order):
    get_state_machine().transition(boleto_order, "CANCELED")
    with pytest.raises(errors.InvalidTransition):
        _service().confirm(boleto_order.payment.boleto_line)


@pytest.mark.django_db
def test_confirm_endpoint_is_operator_only(api, staff_api, boleto_order):
    url = CONFIRM_URL.format(line=boleto_order.payment.boleto_line)

    r = api.put(url)
    assert r.status_code == 403

    r = staff_api.put(url)
    assert r.status_code == 200
    body = r.json()
    assert body["order_status"] == "PAID"
    assert body["payment_status"] == "succeeded"

    r = staff_api.put(url)
    assert r.status_code == 409
    assert r.json()["detail"] == "INVALID_TRANSITION"


@pytest.mark.django_db
def test_confirm_endpoint_unknown_line_404(staff_api):
    r = staff_api.put(CONFIRM_URL.format(line="999"))
    assert r.status_code == 404
