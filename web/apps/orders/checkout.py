"""Checkout orchestration: cart -> order -> payment -> notification.

``CheckoutOrchestrator.confirm`` is the only place where an order is created
from a cart with a payment attached. Guarantees:

- At most one order per idempotency key. The key is looked up first, and
  the unique constraint on ``orders.idempotency_key`` settles concurrent
  requests: the loser catches ``IntegrityError`` and returns the winner's
  order as a replay.
- The order total and lines are a snapshot of the cart, taken under the
  cart row lock, and never repriced afterwards.
- A declined card/PIX payment leaves the order CANCELED (never PAID) with
  the provider code recorded, and the cart untouched. A gateway failure of
  any other kind also leaves it CANCELED.
- After a successful checkout only the ordered quantities leave the cart,
  so items added while the payment was in flight stay there.
- A boleto order stays PROCESSING until the slip is confirmed.
- Collaborator failures leave this module as ``apps.common.errors`` kinds.
"""

import logging
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone

from apps.cart.service import CartService
from apps.common import errors
from apps.customers.repository import AddressRepository
from apps.customers.resolver import CustomerIdentityResolver
from apps.notifications.domain import NotificationGateway
from apps.payments.domain import (
    GatewayUnavailable,
    PaymentGateway,
    PaymentMethod,
    PaymentResult,
    PaymentSelection,
    PaymentStatus,
)
from apps.payments.models import PaymentModel
from .domain import CheckoutResult, OrderStatus
from .models import OrderLine, OrderModel
from .numbering import MAX_ATTEMPTS, next_order_number
from .state_machine import OrderStateMachine

logger = logging.getLogger("orders")


def load_order(order_id) -> OrderModel:
    return OrderModel.objects.select_related("payment").prefetch_related("lines").get(pk=order_id)


class CheckoutOrchestrator:
    """Turns the authenticated customer's cart into a paid (or pending) order."""

    def __init__(
        self,
        payments: PaymentGateway,
        notifier: NotificationGateway,
        cart: CartService | None = None,
        resolver: CustomerIdentityResolver | None = None,
        addresses: AddressRepository | None = None,
    ):
        self.payments = payments
        self.notifier = notifier
        self.cart = cart or CartService()
        self.resolver = resolver or CustomerIdentityResolver()
        self.addresses = addresses or AddressRepository()
        self.states = OrderStateMachine(notifier)

    def confirm(self, principal_id, address_id, selection: PaymentSelection, idempotency_key: str | None = None) -> CheckoutResult:
        """Confirm checkout for ``principal_id``.

        Args:
            principal_id: Authenticated login identity.
            address_id: Delivery address; must belong to the customer.
            selection: Payment method and card details.
            idempotency_key: Optional client token; blank means no dedup.

        Returns:
            CheckoutResult: The order and whether it was a replay.

        Raises:
            errors.NotFound: Unknown principal or address.
            errors.OwnershipViolation: Address (or replayed key) belongs to
                another customer.
            errors.ValidationError: Card payment without a token.
            errors.EmptyCart: Nothing to check out.
            errors.PaymentDeclined: Provider declined; order left CANCELED.
            errors.UpstreamUnavailable: Provider unreachable; order left CANCELED.
            errors.InternalError: Storage failure, or an unexpected gateway error;
                order left CANCELED.
        """
        key = (idempotency_key or "").strip() or None
        try:
            replay = self._replay(principal_id, key)
            if replay is not None:
                return replay

            customer = self.resolver.resolve(principal_id)
            address = self.addresses.get_owned(customer, address_id)
            if selection.method is PaymentMethod.CARD and not selection.card_token:
                raise errors.ValidationError("card_token is required for card payments")

            order, replayed = self._create_order(customer, key, address=address)
            if replayed:
                return CheckoutResult(load_order(order.pk), replayed=True)

            self._dispatch_payment(order, customer, selection, key)
            self._release_cart(customer, order)
            self._notify_confirmation(order)
            return CheckoutResult(load_order(order.pk))
        except errors.DomainError:
            raise
        except DatabaseError as e:
            logger.exception("checkout storage failure", extra={"idempotency_key": key})
            raise errors.InternalError() from e

    def finalize_cart(self, principal_id, idempotency_key: str | None = None) -> CheckoutResult:
        """Create an order from the cart without address or payment.

        Kept for clients of the single-step flow; the order stays NEW.
        """
        key = (idempotency_key or "").strip() or None
        try:
            replay = self._replay(principal_id, key)
            if replay is not None:
                return replay

            customer = self.resolver.resolve(principal_id)
            order, replayed = self._create_order(customer, key)
            if replayed:
                return CheckoutResult(load_order(order.pk), replayed=True)

            self._release_cart(customer, order)
            self._notify_confirmation(order)
            return CheckoutResult(load_order(order.pk))
        except errors.DomainError:
            raise
        except DatabaseError as e:
            logger.exception("finalize storage failure", extra={"idempotency_key": key})
            raise errors.InternalError() from e

    # ---- steps ----

    def _replay(self, principal_id, key) -> CheckoutResult | None:
        if not key:
            return None
        existing = OrderModel.objects.filter(idempotency_key=key).only("id", "customer_id").first()
        if existing is None:
            return None
        customer = self.resolver.resolve(principal_id)
        if existing.customer_id != customer.id:
            raise errors.OwnershipViolation("Idempotency key belongs to another customer")
        logger.info("checkout replayed", extra={"order_id": str(existing.id)})
        return CheckoutResult(load_order(existing.pk), replayed=True)

    def _create_order(self, customer, key, address=None) -> tuple[OrderModel, bool]:
        """Snapshot the locked cart into a NEW order with its lines.

        Returns:
            tuple[OrderModel, bool]: The order and True when a concurrent
            request with the same key created it first.
        """
        for attempt in range(1, MAX_ATTEMPTS + 1):
            try:
                with transaction.atomic():
                    return self._insert_order(customer, key, address), False
            except IntegrityError:
                if key:
                    winner = OrderModel.objects.filter(idempotency_key=key).first()
                    if winner is not None:
                        if winner.customer_id != customer.id:
                            raise errors.OwnershipViolation("Idempotency key belongs to another customer")
                        logger.info("checkout lost idempotency race", extra={"order_id": str(winner.id)})
                        return winner, True
                logger.warning("order number collision", extra={"attempt": attempt})
        raise errors.InternalError()

    def _insert_order(self, customer, key, address) -> OrderModel:
        cart = self.cart.lock(customer.id)
        lines = list(cart.lines.select_related("product").order_by("added_at", "id")) if cart else []
        if not lines:
            raise errors.EmptyCart()

        snapshot = [
            OrderLine(
                product_id=line.product_id,
                product_name=line.product.name,
                unit_price=line.product.price,
                quantity=line.quantity,
                subtotal=line.product.price * line.quantity,
            )
            for line in lines
        ]
        now = timezone.now()
        order = OrderModel.objects.create(
            number=next_order_number(now),
            customer=customer,
            address=address,
            status=OrderStatus.NEW.value,
            total=sum((s.subtotal for s in snapshot), Decimal("0.00")),
            idempotency_key=key,
            estimated_delivery=(now + timedelta(days=settings.ORDER_DELIVERY_ETA_DAYS)).date(),
        )
        for s in snapshot:
            s.order = order
        OrderLine.objects.bulk_create(snapshot)
        logger.info(
            "order created",
            extra={"order_id": str(order.id), "number": order.number, "total": str(order.total), "lines": len(snapshot)},
        )
        return order

    def _dispatch_payment(self, order, customer, selection: PaymentSelection, key) -> OrderModel:
        order = self.states.transition(order, OrderStatus.PROCESSING, payment_method=selection.method.value)
        try:
            result = self._invoke_gateway(order, customer, selection, key)
        except GatewayUnavailable as e:
            self.states.transition(
                order,
                OrderStatus.CANCELED,
                payment_status=PaymentStatus.FAILED.value,
                decline_code="provider_unavailable",
            )
            logger.warning("payment provider unavailable", extra={"order_id": str(order.id)})
            raise errors.UpstreamUnavailable("Payment provider is unavailable") from e
        except Exception as e:
            logger.exception("payment gateway failed", extra={"order_id": str(order.id)})
            self.states.transition(
                order,
                OrderStatus.CANCELED,
                payment_status=PaymentStatus.FAILED.value,
                decline_code="provider_error",
            )
            raise errors.InternalError() from e

        if not result.succeeded:
            self.states.transition(
                order,
                OrderStatus.CANCELED,
                payment_status=PaymentStatus.FAILED.value,
                decline_code=result.error_code or "",
            )
            logger.info("payment declined", extra={"order_id": str(order.id), "error_code": result.error_code})
            raise errors.PaymentDeclined(result.error_message, provider_code=result.error_code, order_id=order.id)

        self._record_payment(order, selection, result)
        if result.status is PaymentStatus.PENDING:
            order.payment_status = PaymentStatus.PENDING.value
            order.payment_reference = result.provider_reference or ""
            order.save(update_fields=["payment_status", "payment_reference", "updated_at"])
            return order
        return self.states.transition(
            order,
            OrderStatus.PAID,
            payment_status=PaymentStatus.SUCCEEDED.value,
            payment_reference=result.provider_reference or "",
        )

    def _invoke_gateway(self, order, customer, selection, key) -> PaymentResult:
        if selection.method is PaymentMethod.CARD:
            return self.payments.process_card(order.id, order.total, selection.card_token, idempotency_key=key)
        if selection.method is PaymentMethod.PIX:
            return self.payments.process_pix(order.id, order.total, idempotency_key=key)
        return self.payments.generate_boleto(order.id, order.total, customer, idempotency_key=key)

    def _record_payment(self, order, selection, result: PaymentResult) -> PaymentModel:
        paid = result.status is PaymentStatus.SUCCEEDED
        return PaymentModel.objects.create(
            order=order,
            method=selection.method.value,
            status=result.status.value,
            amount=order.total,
            provider_reference=result.provider_reference or "",
            card_token=selection.card_token or "",
            card_brand=selection.card_brand or "",
            card_last4=selection.card_last4 or (selection.card_token or "")[-4:],
            boleto_line=result.artifacts.get("digital_line"),
            boleto_expires_at=result.artifacts.get("expires_at"),
            qr_payload=result.artifacts.get("qr_payload", ""),
            paid_at=timezone.now() if paid else None,
        )

    def _release_cart(self, customer, order):
        # The cart lock is gone by now; only what the order took leaves the cart.
        purchased = dict(order.lines.values_list("product_id", "quantity"))
        self.cart.remove_purchased(customer.id, purchased)

    def _notify_confirmation(self, order):
        try:
            self.notifier.notify_confirmation(order)
        except Exception:
            logger.exception("confirmation notification failed", extra={"order_id": str(order.id)})
