"""HTTP views for checkout and orders.

Views stay small: they validate the body with a pydantic DTO, delegate to
the checkout orchestrator or the order service and render an
``OrderReadDTO``. Domain errors are rendered by ``DomainAPIView``.

Idempotency: ``POST /api/checkout/confirm`` accepts the key in the
``Idempotency-Key`` header or in the body; the header wins. A new order
answers 201 with ``Location``; a replay answers 200 with the original order
and ``Idempotent-Replay: true``.
"""

from django.core.paginator import Paginator
from rest_framework import status
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView

from apps.common.views import NO_STORE, DomainAPIView, page_params, parse
from .providers import get_checkout_orchestrator, get_state_machine
from .schemas import CheckoutConfirmDTO, FinalizeCartDTO, OrderReadDTO, StatusUpdateDTO
from .services import OrderService


def _idempotency_key(request, body_key):
    return request.headers.get("Idempotency-Key") or body_key


def _render_checkout(result):
    body = OrderReadDTO.from_model(result.order).model_dump(mode="json")
    if result.replayed:
        return Response(body, status=status.HTTP_200_OK, headers={**NO_STORE, "Idempotent-Replay": "true"})
    headers = {**NO_STORE, "Location": f"/api/orders/{result.order.id}/"}
    return Response(body, status=status.HTTP_201_CREATED, headers=headers)


def _order_service():
    return OrderService(get_state_machine())


class OrdersPingView(APIView):
    """Liveness probe for the orders module; no authentication required."""

    permission_classes = []

    def get(self, request):
        return Response({"ok": True})


class CheckoutConfirmView(DomainAPIView):
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "checkout"

    def post(self, request):
        """Confirm checkout of the caller's cart.

        Returns:
            Response: 201 with the order for a new checkout, 200 for an
            idempotent replay. Errors: 400 validation/empty cart, 402 payment
            declined, 403 foreign address, 404 unknown address, 503 provider
            unavailable.
        """
        dto = parse(CheckoutConfirmDTO, request.data)
        result = get_checkout_orchestrator().confirm(
            principal_id=request.user.pk,
            address_id=dto.address_id,
            selection=dto.payment.to_selection(),
            idempotency_key=_idempotency_key(request, dto.idempotency_key),
        )
        return _render_checkout(result)


class CheckoutFinalizeView(DomainAPIView):
    """Single-step checkout: order the cart as-is, no address or payment."""

    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "checkout"

    def post(self, request):
        dto = parse(FinalizeCartDTO, request.data or {})
        result = get_checkout_orchestrator().finalize_cart(
            principal_id=request.user.pk,
            idempotency_key=_idempotency_key(request, dto.idempotency_key),
        )
        return _render_checkout(result)


class OrdersCollectionView(DomainAPIView):
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "orders_list"

    def get(self, request):
        qs = _order_service().visible_to(request.user)
        status_filter = request.GET.get("status")
        if status_filter:
            qs = qs.filter(status=status_filter.upper())

        page, page_size = page_params(request)
        p = Paginator(qs, page_size)
        page_obj = p.get_page(page)

        results = [
            OrderReadDTO.from_model(o, with_lines=False).model_dump(mode="json", exclude={"lines", "payment"})
            for o in page_obj.object_list
        ]
        return Response(
            {
                "count": p.count,
                "page": page_obj.number,
                "page_size": page_size,
                "results": results,
            },
            status=200,
        )


class RetrieveOrderView(DomainAPIView):
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "orders_detail"

    def get(self, request, oid):
        order = _order_service().get_for(oid, request.user)
        return Response(OrderReadDTO.from_model(order).model_dump(mode="json"), headers=NO_STORE)


class OrderStatusView(DomainAPIView):
    def patch(self, request, oid):
        dto = parse(StatusUpdateDTO, request.data)
        order = _order_service().advance(oid, dto.status, request.user)
        return Response(OrderReadDTO.from_model(order).model_dump(mode="json"), headers=NO_STORE)


class CancelOrderView(DomainAPIView):
    def put(self, request, oid, customer_id):
        order = _order_service().cancel(oid, customer_id, request.user)
        return Response(OrderReadDTO.from_model(order).model_dump(mode="json"), headers=NO_STORE)
