from django.db import models


class OrderModel(models.Model):
    # 32-char hex id, shared with the gateway as merchant transaction id
    order_id = models.CharField(primary_key=True, max_length=64, editable=False)

    class Status(models.TextChoices):
        PENDING = "PENDING"
        SUCCESS = "SUCCESS"
        FAILED = "FAILED"

    status = models.CharField(max_length=16, choices=Status.choices, default=Status.PENDING, db_index=True)
    amount_minor = models.PositiveBigIntegerField()
    currency = models.CharField(max_length=3, default="INR")
    gateway = models.CharField(max_length=16, blank=True, default="")

    customer_name = models.CharField(max_length=200)
    customer_phone = models.CharField(max_length=20)
    customer_email = models.EmailField(blank=True, null=True)
    customer_address = models.TextField(blank=True, null=True)
    service = models.CharField(max_length=200, blank=True, null=True)

    transaction_id = models.CharField(max_length=128, blank=True, null=True)
    payment_method = models.CharField(max_length=64, blank=True, null=True)
    failure_reason = models.CharField(max_length=64, blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.order_id} ({self.status})"
