from django.urls import path
from .views import CartDetailView, CartItemDetailView, CartItemsView

app_name = "cart"

urlpatterns = [
    path("", CartDetailView.as_view(), name="cart"),
    path("items/", CartItemsView.as_view(), name="cart-items"),
    path("items/<uuid:product_id>/", CartItemDetailView.as_view(), name="cart-item-detail"),
]
