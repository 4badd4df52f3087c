from rest_framework import status
from rest_framework.response import Response

from apps.common import errors
from apps.common.views import DomainAPIView, parse
from .repository import AddressRepository
from .resolver import resolve_customer
from .schemas import AddressIn, AddressOut, AddressPatchDTO


class AddressCollectionView(DomainAPIView):
    """List or create delivery addresses of the authenticated customer."""

    def get(self, request):
        customer = resolve_customer(request.user.pk)
        rows = AddressRepository().list_for(customer)
        return Response([AddressOut.from_model(a).model_dump(mode="json") for a in rows])

    def post(self, request):
        dto = parse(AddressIn, request.data)
        customer = resolve_customer(request.user.pk)
        address = AddressRepository().create(customer, dto.model_dump())
        body = AddressOut.from_model(address).model_dump(mode="json")
        return Response(body, status=status.HTTP_201_CREATED, headers={"Location": f"/api/addresses/{address.id}/"})


class AddressDetailView(DomainAPIView):
    def patch(self, request, address_id):
        dto = parse(AddressPatchDTO, request.data)
        try:
            changes = dto.changes()
        except ValueError as e:
            raise errors.ValidationError(str(e))
        customer = resolve_customer(request.user.pk)
        repo = AddressRepository()
        address = repo.update(repo.get_owned(customer, address_id), changes)
        return Response(AddressOut.from_model(address).model_dump(mode="json"))
