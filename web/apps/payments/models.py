import uuid
from django.db import models


class PaymentModel(models.Model):
    METHOD_CHOICES = [("PIX", "PIX"), ("CARD", "CARD"), ("BOLETO", "BOLETO")]
    STATUS_CHOICES = [("pending", "pending"), ("succeeded", "succeeded"), ("failed", "failed")]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    # Exactly one payment per order.
    order = models.OneToOneField("orders.OrderModel", on_delete=models.CASCADE, related_name="payment")
    method = models.CharField(max_length=8, choices=METHOD_CHOICES)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, db_index=True)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    provider_reference = models.CharField(max_length=128, blank=True, default="")

    card_token = models.CharField(max_length=128, blank=True, default="")
    card_brand = models.CharField(max_length=32, blank=True, default="")
    card_last4 = models.CharField(max_length=4, blank=True, default="")

    boleto_line = models.CharField(max_length=64, null=True, blank=True, unique=True)
    boleto_expires_at = models.DateTimeField(null=True, blank=True)
    qr_payload = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    paid_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "payments"
