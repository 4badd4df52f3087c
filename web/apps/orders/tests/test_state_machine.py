import itertools
from decimal import Decimal

import pytest

from apps.common import errors
from apps.notifications.models import Notification
from apps.orders.domain import TERMINAL, TRANSITIONS, OrderStatus, allowed_targets, can_transition
from apps.orders.models import OrderModel
from apps.orders.providers import get_state_machine

LEGAL = {
    ("NEW", "PROCESSING"),
    ("NEW", "CANCELED"),
    ("PROCESSING", "PAID"),
    ("PROCESSING", "CANCELED"),
    ("PAID", "SHIPPED"),
    ("SHIPPED", "DELIVERED"),
}


@pytest.mark.parametrize("src, dst", list(itertools.product([s.value for s in OrderStatus], repeat=2)))
def test_transition_table_is_closed(src, dst):
    assert can_transition(src, dst) is ((src, dst) in LEGAL)


def test_terminal_states_have_no_exits():
    assert TERMINAL == {OrderStatus.DELIVERED, OrderStatus.CANCELED}
    assert allowed_targets("PAID") == {OrderStatus.SHIPPED}
    assert set(TRANSITIONS) == set(OrderStatus)


@pytest.fixture
def order(customer):
    return OrderModel.objects.create(number="ORD-20260101-0001", customer=customer, total=Decimal("10.00"))


@pytest.mark.django_db
def test_paid_timestamp_is_set_once(order):
    sm = get_state_machine()
    sm.transition(order, OrderStatus.PROCESSING)
    paid = sm.transition(order, OrderStatus.PAID)
    first_paid_at = paid.paid_at
    assert first_paid_at is not None

    shipped = sm.transition(order, OrderStatus.SHIPPED)
    delivered = sm.transition(shipped, OrderStatus.DELIVERED)
    assert delivered.paid_at == first_paid_at
    assert delivered.status == "DELIVERED"


@pytest.mark.django_db
def test_cancel_sets_canceled_at(order):
    canceled = get_state_machine().transition(order.pk, "CANCELED")
    assert canceled.canceled_at is not None
    assert canceled.paid_at is None


@pytest.mark.django_db
def test_illegal_transition_names_both_states(order):
    with pytest.raises(errors.InvalidTransition) as exc:
        get_state_machine().transition(order, OrderStatus.SHIPPED)
    assert exc.value.from_status == "NEW"
    assert exc.value.to_status == "SHIPPED"
    assert exc.value.as_body()["detail"] == "INVALID_TRANSITION"
    order.refresh_from_db()
    assert order.status == "NEW"


@pytest.mark.django_db
def test_each_transition_emits_one_status_notification(order):
    sm = get_state_machine()
    sm.transition(order, OrderStatus.PROCESSING)
    sm.transition(order, OrderStatus.CANCELED)
    statuses = list(Notification.objects.filter(order=order, kind="STATUS").values_list("status", flat=True))
    assert sorted(statuses) == ["CANCELED", "PROCESSING"]


@pytest.mark.django_db
def test_extra_fields_are_saved_with_the_transition(order):
    updated = get_state_machine().transition(order, "PROCESSING", payment_method="PIX")
    order.refresh_from_db()
    assert order.payment_method == "PIX" == updated.payment_method


@pytest.mark.django_db
def test_notification_failure_does_not_undo_transition(order):
    from apps.orders.state_machine import OrderStateMachine

    class Broken:
        def notify_status(self, order, status):
            raise RuntimeError("smtp down")

    OrderStateMachine(Broken()).transition(order, "PROCESSING")
    order.refresh_from_db()
    assert order.status == "PROCESSING"
