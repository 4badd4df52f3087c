import pytest

from apps.common import errors
from apps.customers.models import Customer
from apps.customers.resolver import CustomerIdentityResolver, default_display_name


def test_default_display_name_is_email_local_part():
    assert default_display_name("ana.silva@example.com") == "ana.silva"


@pytest.mark.django_db
def test_first_resolution_creates_customer(user):
    customer = CustomerIdentityResolver().resolve(user.pk)
    assert customer.email == "ana@example.com"
    assert customer.display_name == "ana"
    assert Customer.objects.count() == 1


@pytest.mark.django_db
def test_resolution_is_stable(user):
    resolver = CustomerIdentityResolver()
    first = resolver.resolve(user.pk)
    second = resolver.resolve(user.pk)
    assert first.id == second.id
    assert Customer.objects.count() == 1


@pytest.mark.django_db
def test_email_match_is_case_insensitive(make_user):
    upper = make_user("Ana@Example.com")
    Customer.objects.create(email="ana@example.com", display_name="Ana")
    assert CustomerIdentityResolver().resolve(upper.pk).display_name == "Ana"


@pytest.mark.django_db
def test_unknown_principal_raises_not_found():
    with pytest.raises(errors.NotFound):
        CustomerIdentityResolver().resolve(987654)


@pytest.mark.django_db
def test_principal_without_email_raises_not_found(make_user):
    u = make_user("nobody")
    u.email = ""
    u.save()
    with pytest.raises(errors.NotFound):
        CustomerIdentityResolver().resolve(u.pk)
