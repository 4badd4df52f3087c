from datetime import timedelta
from decimal import Decimal
from io import StringIO

import pytest
from django.core.management import call_command
from django.utils import timezone

from apps.notifications.adapters import DatabaseNotificationGateway, purge_older_than
from apps.notifications.domain import confirmation_message, status_message
from apps.notifications.models import Notification

LIST_URL = "/api/notifications/"


def test_status_messages_are_keyed_by_status():
    assert status_message("ORD-20260101-0001", "NEW") == (
        "Your order ORD-20260101-0001 was received and is awaiting confirmation."
    )
    assert "shipped" in status_message("X", "SHIPPED")
    assert "canceled" in status_message("X", "CANCELED")


def test_confirmation_message_carries_total():
    assert confirmation_message("ORD-1", Decimal("1799.98")).endswith("R$ 1799.98")


@pytest.fixture
def order(user, address, fill_cart, orchestrator, pay_with):
    fill_cart(2)
    return orchestrator.confirm(user.pk, address.id, pay_with("PIX")).order


@pytest.mark.django_db
def test_checkout_records_status_and_confirmation(order):
    kinds = list(Notification.objects.filter(order=order).order_by("created_at").values_list("kind", "status"))
    assert ("STATUS", "PROCESSING") in kinds
    assert ("STATUS", "PAID") in kinds
    assert ("CONFIRMATION", "") in kinds
    assert len(kinds) == 3


@pytest.mark.django_db
def test_gateway_records_customer_and_message(order):
    DatabaseNotificationGateway().notify_status(order, "SHIPPED")
    n = Notification.objects.get(order=order, status="SHIPPED")
    assert n.customer_id == order.customer_id
    assert order.number in n.message


@pytest.mark.django_db
def test_purge_deletes_only_old_rows(order):
    old = Notification.objects.filter(order=order).first()
    Notification.objects.filter(pk=old.pk).update(created_at=timezone.now() - timedelta(days=120))

    assert purge_older_than(90) == 1
    assert Notification.objects.filter(order=order).count() == 2


@pytest.mark.django_db
def test_purge_rejects_negative_days():
    with pytest.raises(ValueError):
        purge_older_than(-1)


@pytest.mark.django_db
def test_purge_command(order):
    Notification.objects.filter(order=order).update(created_at=timezone.now() - timedelta(days=40))
    out = StringIO()
    call_command("purge_notifications", "--days", "30", stdout=out)
    assert "deleted 3" in out.getvalue()
    assert not Notification.objects.exists()


@pytest.mark.django_db
def test_list_returns_only_own_notifications(api, order, make_user):
    from apps.customers.models import Customer

    other = Customer.objects.create(email="bob@example.com", display_name="bob")
    Notification.objects.create(customer=other, kind="STATUS", status="NEW", message="not yours")

    r = api.get(LIST_URL)
    assert r.status_code == 200
    body = r.json()
    assert body["count"] == 3
    assert all(n["order_id"] == str(order.id) for n in body["results"])

    r = api.get(LIST_URL, {"kind": "confirmation"})
    assert r.json()["count"] == 1
