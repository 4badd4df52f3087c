from uuid import uuid4

import pytest
from rest_framework.test import APIClient

from apps.orders.models import OrderModel
from apps.orders.providers import get_state_machine
from apps.orders.services import OrderService

LIST_URL = "/api/orders/"
DETAIL_URL = "/api/orders/{oid}/"
STATUS_URL = "/api/orders/{oid}/status"
CANCEL_URL = "/api/orders/{oid}/cancel/{cid}"


@pytest.fixture
def paid_order(user, address, fill_cart, orchestrator, pay_with):
    fill_cart(2)
    return orchestrator.confirm(user.pk, address.id, pay_with("PIX")).order


@pytest.fixture
def pending_order(user, address, fill_cart, orchestrator, pay_with):
    fill_cart(1)
    return orchestrator.confirm(user.pk, address.id, pay_with("BOLETO")).order


@pytest.fixture
def mallory_api(make_user):
    c = APIClient()
    c.force_authenticate(user=make_user("mallory@example.com"))
    return c


@pytest.mark.django_db
def test_ping(client):
    r = client.get("/api/orders/ping/")
    assert r.status_code == 200
    assert r.json() == {"ok": True}


@pytest.mark.django_db
def test_health(client):
    r = client.get("/health/")
    assert r.status_code == 200
    assert r.json()["components"]["db"]["ok"] is True


@pytest.mark.django_db
def test_detail_returns_lines_and_payment(api, paid_order):
    r = api.get(DETAIL_URL.format(oid=paid_order.id))
    assert r.status_code == 200
    body = r.json()
    assert body["number"] == paid_order.number
    assert body["lines"][0]["unit_price"] == "899.99"
    assert body["payment"]["status"] == "succeeded"


@pytest.mark.django_db
def test_detail_not_found(api):
    r = api.get(DETAIL_URL.format(oid=uuid4()))
    assert r.status_code == 404
    assert r.json()["detail"] == "NOT_FOUND"


@pytest.mark.django_db
def test_detail_of_foreign_order_is_403(mallory_api, paid_order):
    r = mallory_api.get(DETAIL_URL.format(oid=paid_order.id))
    assert r.status_code == 403


@pytest.mark.django_db
def test_list_is_scoped_to_caller(api, mallory_api, staff_api, paid_order):
    body = api.get(LIST_URL).json()
    assert body["count"] == 1
    assert body["results"][0]["id"] == str(paid_order.id)
    assert "lines" not in body["results"][0]

    assert mallory_api.get(LIST_URL).json()["count"] == 0
    assert staff_api.get(LIST_URL).json()["count"] == 1


@pytest.mark.django_db
@pytest.mark.parametrize("query", ["?page=abc", "?page_size=lots"])
def test_list_with_non_numeric_paging_is_400(api, query):
    r = api.get(LIST_URL + query)
    assert r.status_code == 400
    assert r.json()["detail"] == "VALIDATION_ERROR"


@pytest.mark.django_db
def test_list_page_size_is_clamped(api, paid_order):
    body = api.get(LIST_URL + "?page_size=1000").json()
    assert body["page_size"] == 100
    assert body["count"] == 1


@pytest.mark.django_db
def test_list_loads_payments_with_the_orders(user, paid_order, django_assert_max_num_queries):
    orders = list(OrderService(get_state_machine()).visible_to(user))
    with django_assert_max_num_queries(0):
        assert orders[0].payment.method == "PIX"


@pytest.mark.django_db
def test_operator_ships_and_delivers(staff_api, paid_order):
    r = staff_api.patch(STATUS_URL.format(oid=paid_order.id), {"status": "shipped"}, format="json")
    assert r.status_code == 200
    assert r.json()["status"] == "SHIPPED"

    r = staff_api.patch(STATUS_URL.format(oid=paid_order.id), {"status": "DELIVERED"}, format="json")
    assert r.json()["status"] == "DELIVERED"


@pytest.mark.django_db
def test_customer_cannot_advance_status(api, paid_order):
    r = api.patch(STATUS_URL.format(oid=paid_order.id), {"status": "SHIPPED"}, format="json")
    assert r.status_code == 403


@pytest.mark.django_db
def test_operator_cannot_set_other_statuses(staff_api, pending_order):
    r = staff_api.patch(STATUS_URL.format(oid=pending_order.id), {"status": "PAID"}, format="json")
    assert r.status_code == 400


@pytest.mark.django_db
def test_shipping_unpaid_order_is_409(staff_api, pending_order):
    r = staff_api.patch(STATUS_URL.format(oid=pending_order.id), {"status": "SHIPPED"}, format="json")
    assert r.status_code == 409
    body = r.json()
    assert body["from"] == "PROCESSING" and body["to"] == "SHIPPED"


@pytest.mark.django_db
def test_owner_cancels_processing_order(api, customer, pending_order):
    r = api.put(CANCEL_URL.format(oid=pending_order.id, cid=customer.id))
    assert r.status_code == 200
    assert r.json()["status"] == "CANCELED"
    assert OrderModel.objects.get(pk=pending_order.pk).canceled_at is not None


@pytest.mark.django_db
def test_paid_order_cannot_be_canceled(api, customer, paid_order):
    r = api.put(CANCEL_URL.format(oid=paid_order.id, cid=customer.id))
    assert r.status_code == 409


@pytest.mark.django_db
def test_stranger_cannot_cancel(mallory_api, customer, pending_order):
    r = mallory_api.put(CANCEL_URL.format(oid=pending_order.id, cid=customer.id))
    assert r.status_code == 403


@pytest.mark.django_db
def test_operator_can_cancel_for_customer(staff_api, customer, pending_order):
    r = staff_api.put(CANCEL_URL.format(oid=pending_order.id, cid=customer.id))
    assert r.status_code == 200


@pytest.mark.django_db
def test_cancel_with_wrong_customer_id_is_403(staff_api, pending_order):
    r = staff_api.put(CANCEL_URL.format(oid=pending_order.id, cid=uuid4()))
    assert r.status_code == 403
