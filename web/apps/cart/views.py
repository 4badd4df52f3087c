from rest_framework import status
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle

from apps.common.views import DomainAPIView, parse
from apps.customers.resolver import resolve_customer
from .schemas import AddItemDTO, CartOut
from .service import CartService


def _render(view, code=status.HTTP_200_OK):
    return Response(CartOut.from_view(view).model_dump(mode="json"), status=code)


class CartDetailView(DomainAPIView):
    """Read or empty the authenticated customer's cart."""

    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "cart"

    def get(self, request):
        customer = resolve_customer(request.user.pk)
        return _render(CartService().get_or_create(customer.id))

    def delete(self, request):
        customer = resolve_customer(request.user.pk)
        CartService().clear(customer.id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class CartItemsView(DomainAPIView):
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "cart"

    def post(self, request):
        dto = parse(AddItemDTO, request.data)
        customer = resolve_customer(request.user.pk)
        return _render(CartService().add_item(customer.id, dto.product_id, dto.quantity))


class CartItemDetailView(DomainAPIView):
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "cart"

    def delete(self, request, product_id):
        customer = resolve_customer(request.user.pk)
        return _render(CartService().remove_item(customer.id, product_id))
