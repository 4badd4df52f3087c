from django.urls import path
from .views import CancelOrderView, OrdersCollectionView, OrdersPingView, OrderStatusView, RetrieveOrderView

app_name = "orders"

urlpatterns = [
    path("ping/", OrdersPingView.as_view(), name="ping"),
    path("", OrdersCollectionView.as_view(), name="orders-collection"),
    path("<uuid:oid>/", RetrieveOrderView.as_view(), name="orders-detail"),
    path("<uuid:oid>/status", OrderStatusView.as_view(), name="orders-status"),
    path("<uuid:oid>/cancel/<uuid:customer_id>", CancelOrderView.as_view(), name="orders-cancel"),
]
