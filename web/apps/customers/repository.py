"""Address book persistence.

Address records are plain reads and writes; the only rule enforced here
is ownership: an address is visible and editable only through the
customer it belongs to.
"""

from apps.common import errors
from .models import Address, Customer


class AddressRepository:
    """Repository for a customer's delivery addresses."""

    def list_for(self, customer: Customer) -> list[Address]:
        return list(Address.objects.filter(customer=customer))

    def create(self, customer: Customer, fields: dict) -> Address:
        return Address.objects.create(customer=customer, **fields)

    def get_owned(self, customer: Customer, address_id) -> Address:
        """Return the address when it exists and belongs to ``customer``.

        Raises:
            errors.NotFound: No address with that id.
            errors.OwnershipViolation: The address belongs to another customer.
        """
        try:
            address = Address.objects.get(pk=address_id)
        except (Address.DoesNotExist, ValueError, TypeError):
            raise errors.NotFound("address", address_id)
        if address.customer_id != customer.id:
            raise errors.OwnershipViolation("Address does not belong to this customer")
        return address

    def update(self, address: Address, changes: dict) -> Address:
        if not changes:
            return address
        for field, value in changes.items():
            setattr(address, field, value)
        address.save(update_fields=[*changes.keys(), "updated_at"])
        return address
