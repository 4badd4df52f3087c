import uuid
from django.db import models


class OrderModel(models.Model):
    class Status(models.TextChoices):
        NEW = "NEW"
        PROCESSING = "PROCESSING"
        PAID = "PAID"
        SHIPPED = "SHIPPED"
        DELIVERED = "DELIVERED"
        CANCELED = "CANCELED"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    # Human readable, ORD-YYYYMMDD-NNNN; assigned by numbering.next_order_number
    number = models.CharField(max_length=32, unique=True)
    customer = models.ForeignKey("customers.Customer", on_delete=models.PROTECT, related_name="orders")
    # Null for orders finalized without checkout (legacy flow).
    address = models.ForeignKey("customers.Address", null=True, blank=True, on_delete=models.SET_NULL, related_name="+")

    status = models.CharField(max_length=16, choices=Status.choices, default=Status.NEW, db_index=True)
    total = models.DecimalField(max_digits=12, decimal_places=2)
    idempotency_key = models.CharField(max_length=128, null=True, blank=True, unique=True)

    payment_method = models.CharField(max_length=8, blank=True, default="")
    payment_status = models.CharField(max_length=10, blank=True, default="")
    payment_reference = models.CharField(max_length=128, blank=True, default="")
    decline_code = models.CharField(max_length=64, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    canceled_at = models.DateTimeField(null=True, blank=True)
    estimated_delivery = models.DateField(null=True, blank=True)

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [models.Index(fields=["customer", "-created_at"], name="ix_orders_customer_created")]

    def __str__(self):
        return self.number


class OrderLine(models.Model):
    # Snapshot of the cart line at confirmation time; never repriced.
    id = models.BigAutoField(primary_key=True)
    order = models.ForeignKey(OrderModel, on_delete=models.CASCADE, related_name="lines")
    product_id = models.UUIDField()
    product_name = models.CharField(max_length=200)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    quantity = models.PositiveIntegerField()
    subtotal = models.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        db_table = "order_lines"
        ordering = ["id"]
