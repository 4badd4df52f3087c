from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from rest_framework.test import APIClient


@pytest.fixture(autouse=True)
def use_simulated_provider(settings):
    from apps.orders.providers import reset_providers

    settings.PAYMENT_PROVIDER = "simulated"
    settings.PAYMENT_SIMULATED_DELAY_SECS = 0
    # Throttle history lives in the cache.
    cache.clear()
    reset_providers()
    yield
    reset_providers()


@pytest.fixture
def make_user(db):
    def _make(email="ana@example.com", is_staff=False):
        User = get_user_model()
        return User.objects.create_user(username=email, email=email, password="x", is_staff=is_staff)
    return _make


@pytest.fixture
def user(make_user):
    return make_user()


@pytest.fixture
def staff_user(make_user):
    return make_user("ops@example.com", is_staff=True)


@pytest.fixture
def api(user):
    c = APIClient()
    c.force_authenticate(user=user)
    return c


@pytest.fixture
def staff_api(staff_user):
    c = APIClient()
    c.force_authenticate(user=staff_user)
    return c


@pytest.fixture
def customer(user):
    from apps.customers.resolver import resolve_customer
    return resolve_customer(user.pk)


@pytest.fixture
def make_product(db):
    from apps.catalog.models import Product

    def _make(name="Headphones", price="899.99", active=True):
        return Product.objects.create(name=name, price=Decimal(price), active=active)
    return _make


@pytest.fixture
def product(make_product):
    return make_product()


@pytest.fixture
def address(customer):
    from apps.customers.models import Address
    return Address.objects.create(
        customer=customer,
        recipient="Ana Silva",
        street="Rua das Flores",
        number="100",
        district="Centro",
        city="Sao Paulo",
        state="SP",
        postal_code="01001000",
    )


@pytest.fixture
def fill_cart(customer, product):
    from apps.cart.service import CartService

    def _fill(quantity=2, item=None):
        return CartService().add_item(customer.id, (item or product).id, quantity)
    return _fill


@pytest.fixture
def orchestrator():
    from apps.orders.providers import get_checkout_orchestrator
    return get_checkout_orchestrator()


@pytest.fixture
def pay_with():
    from apps.payments.domain import PaymentMethod, PaymentSelection

    def _sel(method="PIX", card_token=None):
        return PaymentSelection(method=PaymentMethod(method), card_token=card_token)
    return _sel
