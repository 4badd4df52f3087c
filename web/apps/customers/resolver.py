"""Map an authenticated principal to its canonical Customer.

The principal is a Django auth user id. Customers are keyed by the login
identity's email: the first interaction creates the Customer, every later
one finds it. Creation is an atomic find-or-insert against the unique
``email`` constraint, so two concurrent first requests for the same login
still end up with a single Customer.
"""

import logging

from django.contrib.auth import get_user_model

from apps.common import errors
from .models import Customer

logger = logging.getLogger("customers")


def default_display_name(email: str) -> str:
    """Return the local part of ``email`` (``ana.silva@x.com`` -> ``ana.silva``)."""
    return email.split("@", 1)[0]


class CustomerIdentityResolver:
    """Resolve login identities to Customer records, creating them lazily."""

    def resolve(self, principal_id) -> Customer:
        """Return the Customer for ``principal_id``.

        Args:
            principal_id: Primary key of the authenticated login identity.

        Returns:
            Customer: The canonical customer, re-read by id.

        Raises:
            errors.NotFound: When the login identity does not exist or has
                no email to key the customer by.
        """
        User = get_user_model()
        try:
            user = User.objects.get(pk=principal_id)
        except (User.DoesNotExist, ValueError, TypeError):
            raise errors.NotFound("principal", principal_id)

        email = (getattr(user, "email", "") or "").strip().lower()
        if not email:
            raise errors.NotFound("principal email", principal_id)

        # get_or_create retries the lookup on IntegrityError, which makes
        # the unique email the arbiter between concurrent creators.
        customer, created = Customer.objects.get_or_create(
            email=email,
            defaults={"display_name": default_display_name(email)},
        )
        if created:
            logger.info("customer created", extra={"customer_id": str(customer.id)})
        return Customer.objects.get(pk=customer.pk)


def resolve_customer(principal_id) -> Customer:
    return CustomerIdentityResolver().resolve(principal_id)
