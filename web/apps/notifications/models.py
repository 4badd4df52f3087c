import uuid
from django.db import models


class Notification(models.Model):
    KIND_CHOICES = [("CONFIRMATION", "CONFIRMATION"), ("STATUS", "STATUS")]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    customer = models.ForeignKey("customers.Customer", on_delete=models.CASCADE, related_name="notifications")
    order = models.ForeignKey("orders.OrderModel", null=True, blank=True, on_delete=models.CASCADE, related_name="notifications")
    kind = models.CharField(max_length=16, choices=KIND_CHOICES)
    # Order status being reported; empty for confirmations.
    status = models.CharField(max_length=16, blank=True, default="")
    message = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        db_table = "notifications"
        ordering = ["-created_at"]
