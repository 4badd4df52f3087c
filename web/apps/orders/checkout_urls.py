from django.urls import path
from .views import CheckoutConfirmView, CheckoutFinalizeView

app_name = "checkout"

urlpatterns = [
    path("checkout", CheckoutFinalizeView.as_view(), name="checkout"),
    path("checkout/confirm", CheckoutConfirmView.as_view(), name="checkout-confirm"),
]
