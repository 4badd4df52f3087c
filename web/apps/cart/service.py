"""Cart operations for one customer.

All mutations of a customer's cart run inside a transaction holding a row
lock on the ``Cart`` (``SELECT ... FOR UPDATE``), and quantity merges are
computed by the database (``LEAST(quantity + n, 999)``), so concurrent
"add the same product" requests are both reflected instead of one
overwriting the other.
"""

import logging
from decimal import Decimal

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import F
from django.db.models.functions import Least
from django.utils import timezone

from apps.catalog.models import Product
from apps.common import errors
from .domain import CartLineView, CartView, clamp_quantity
from .models import MAX_LINE_QUANTITY, Cart, CartLine

logger = logging.getLogger("cart")


class CartService:
    """Service over the per-customer cart.

    ``customer_id`` arguments are Customer ids already resolved from the
    authenticated principal.
    """

    def get_or_create(self, customer_id) -> CartView:
        """Return the customer's cart, creating an empty one if needed."""
        Cart.objects.get_or_create(customer_id=customer_id)
        return self.view(customer_id)

    def view(self, customer_id) -> CartView:
        lines = (
            CartLine.objects.filter(cart__customer_id=customer_id)
            .select_related("product")
            .order_by("added_at", "id")
        )
        return CartView(
            customer_id=customer_id,
            lines=[
                CartLineView(
                    product_id=line.product_id,
                    name=line.product.name,
                    unit_price=line.product.price,
                    quantity=line.quantity,
                )
                for line in lines
            ],
        )

    def add_item(self, customer_id, product_id, quantity: int) -> CartView:
        """Add ``quantity`` of a product, merging with an existing line.

        The quantity is clamped to ``[1, 999]``; an existing line is summed
        with it and re-clamped to 999.

        Raises:
            errors.ValidationError: Unknown or inactive product, or a
                non-integer quantity.
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise errors.ValidationError("Quantity must be an integer")
        qty = clamp_quantity(quantity)
        product = self._sellable_product(product_id)

        with transaction.atomic():
            cart = self.lock(customer_id, create=True)
            updated = CartLine.objects.filter(cart=cart, product=product).update(
                quantity=Least(F("quantity") + qty, MAX_LINE_QUANTITY)
            )
            if not updated:
                CartLine.objects.create(cart=cart, product=product, quantity=qty)
            Cart.objects.filter(pk=cart.pk).update(updated_at=timezone.now())

        logger.info(
            "cart item added",
            extra={"customer_id": str(customer_id), "product_id": str(product.id), "quantity": qty},
        )
        return self.view(customer_id)

    def remove_item(self, customer_id, product_id) -> CartView:
        """Remove the line for ``product_id``; no-op when absent."""
        with transaction.atomic():
            cart = self.lock(customer_id)
            if cart is not None:
                CartLine.objects.filter(cart=cart, product_id=product_id).delete()
        return self.view(customer_id)

    def clear(self, customer_id) -> None:
        """Delete every line of the customer's cart. Idempotent."""
        with transaction.atomic():
            cart = self.lock(customer_id)
            if cart is not None:
                cart.lines.all().delete()

    def remove_purchased(self, customer_id, quantities: dict) -> None:
        """Take checked-out quantities off the cart.

        ``quantities`` maps product id to the quantity that went into the
        order. Lines added or grown after that snapshot keep the difference.
        """
        with transaction.atomic():
            cart = self.lock(customer_id)
            if cart is None:
                return
            for line in cart.lines.filter(product_id__in=list(quantities)):
                taken = quantities[line.product_id]
                if line.quantity > taken:
                    CartLine.objects.filter(pk=line.pk).update(quantity=F("quantity") - taken)
                else:
                    line.delete()
        logger.info("cart checked out", extra={"customer_id": str(customer_id), "lines": len(quantities)})

    def value_total(self, customer_id) -> Decimal:
        """Live value of the cart; zero when the customer has no cart."""
        return self.view(customer_id).total

    def item_count(self, customer_id) -> int:
        return self.view(customer_id).item_count

    def lock(self, customer_id, create: bool = False) -> Cart | None:
        """Return the customer's cart row locked for update.

        Must be called inside ``transaction.atomic``.

        Args:
            customer_id: Owner of the cart.
            create: Create the cart first when it does not exist.
        """
        if create:
            Cart.objects.get_or_create(customer_id=customer_id)
        return Cart.objects.select_for_update().filter(customer_id=customer_id).first()

    def _sellable_product(self, product_id) -> Product:
        try:
            return Product.objects.get(pk=product_id, active=True)
        except (Product.DoesNotExist, DjangoValidationError, ValueError):
            raise errors.ValidationError(f"Unknown product: {product_id}")
