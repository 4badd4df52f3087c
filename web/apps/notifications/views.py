from django.core.paginator import Paginator
from rest_framework.response import Response

from apps.common.views import DomainAPIView, page_params
from apps.customers.resolver import resolve_customer
from .models import Notification
from .schemas import NotificationOut


class NotificationListView(DomainAPIView):
    """Notifications of the authenticated customer, newest first."""

    def get(self, request):
        customer = resolve_customer(request.user.pk)
        qs = Notification.objects.filter(customer=customer).order_by("-created_at")
        kind = request.GET.get("kind")
        if kind:
            qs = qs.filter(kind=kind.upper())

        page, page_size = page_params(request)
        p = Paginator(qs, page_size)
        page_obj = p.get_page(page)
        return Response(
            {
                "count": p.count,
                "page": page_obj.number,
                "page_size": page_size,
                "results": [NotificationOut.from_model(n).model_dump(mode="json") for n in page_obj.object_list],
            }
        )
