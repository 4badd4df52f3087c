from django.urls import path
from .views import BoletoConfirmView

app_name = "payments"

urlpatterns = [
    path("boleto/confirm/<str:digital_line>", BoletoConfirmView.as_view(), name="boleto-confirm"),
]
