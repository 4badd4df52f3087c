from django.urls import include, path

urlpatterns = [
    path("", include("apps.monitoring.urls")),
    path("api/", include("apps.orders.checkout_urls")),
    path("api/orders/", include("apps.orders.urls")),
    path("api/cart/", include("apps.cart.urls")),
    path("api/payments/", include("apps.payments.urls")),
    path("api/addresses/", include("apps.customers.urls")),
    path("api/notifications/", include("apps.notifications.urls")),
]
