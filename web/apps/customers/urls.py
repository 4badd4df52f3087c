from django.urls import path
from .views import AddressCollectionView, AddressDetailView

app_name = "customers"

urlpatterns = [
    path("", AddressCollectionView.as_view(), name="addresses-collection"),
    path("<uuid:address_id>/", AddressDetailView.as_view(), name="addresses-detail"),
]
