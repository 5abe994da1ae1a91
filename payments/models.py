from datetime import timedelta

from django.db import models
from django.utils import timezone


class Order(models.Model):
    """One attempted payment.

    The row is addressable by the gateway-assigned ``order_id`` and by our own
    ``order_number``; both columns are unique so a lookup by either key always
    lands on the same record.

    Expiry deletes the row; a cancelled order lives on only as a
    ``DeclinedOrder``. ``cancelled_by_expiry`` is therefore never True on a
    stored row and only keeps the active and stale filters explicit.
    """

    order_number = models.CharField(max_length=32, unique=True)
    order_id = models.CharField(max_length=64, unique=True, null=True, blank=True)  # Alfa orderId

    created_at = models.DateTimeField(default=timezone.now)
    ttl_seconds = models.PositiveIntegerField(default=300)
    expires_at = models.DateTimeField(db_index=True)

    service_id = models.CharField(max_length=64)
    service_name = models.CharField(max_length=255)
    price_minor = models.PositiveIntegerField()  # kopecks
    phone = models.CharField(max_length=32, db_index=True)
    client_address = models.CharField(max_length=64, blank=True, default="", db_index=True)
    back_url = models.CharField(max_length=512, blank=True, default="")
    return_url = models.CharField(max_length=1024, blank=True, default="")
    form_url = models.CharField(max_length=1024, blank=True, default="")
    register_payload = models.JSONField(blank=True, null=True)

    settlement_sent = models.BooleanField(default=False)
    settlement_doc_id = models.CharField(max_length=64, blank=True, default="")
    settlement_at = models.DateTimeField(blank=True, null=True)
    settlement_result = models.JSONField(blank=True, null=True)

    finalized = models.BooleanField(default=False)
    cancelled_by_expiry = models.BooleanField(default=False)
    marked_paid_manually = models.BooleanField(default=False)

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("-created_at",)

    def __str__(self):
        return f"{self.order_number} ({self.order_id or 'unregistered'})"

    def save(self, *args, **kwargs):
        if self.expires_at is None:
            self.expires_at = self.created_at + timedelta(seconds=self.ttl_seconds)
        super().save(*args, **kwargs)

    @property
    def price_major(self):
        rub, kop = divmod(self.price_minor, 100)
        return rub if not kop else self.price_minor / 100

    def is_active(self, now) -> bool:
        if self.cancelled_by_expiry or self.finalized:
            return False
        return now - self.created_at <= timedelta(seconds=self.ttl_seconds)

    def to_meta(self) -> dict:
        return {
            "orderId": self.order_id,
            "orderNumber": self.order_number,
            "created": self.created_at.isoformat() if self.created_at else None,
            "expiresAt": self.expires_at.isoformat() if self.expires_at else None,
            "ttlSeconds": self.ttl_seconds,
            "serviceId": self.service_id,
            "serviceName": self.service_name,
            "priceMinor": self.price_minor,
            "phone": self.phone,
            "clientAddress": self.client_address,
            "backUrl": self.back_url,
            "formUrl": self.form_url,
            "settlementSent": self.settlement_sent,
            "settlementDocId": self.settlement_doc_id,
            "settlementAt": self.settlement_at.isoformat() if self.settlement_at else None,
            "finalized": self.finalized,
            "cancelledByExpiry": self.cancelled_by_expiry,
            "markedPaidManually": self.marked_paid_manually,
        }


class AppendOnlyModel(models.Model):
    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        if self.pk is not None and not self._state.adding:
            raise ValueError(f"{type(self).__name__} records are append-only")
        super().save(*args, **kwargs)


class DeclinedOrder(AppendOnlyModel):
    REASONS = [("ttl", "TTL expired on status check"), ("sweep", "TTL expired on sweep")]

    created_at = models.DateTimeField(default=timezone.now)
    reason = models.CharField(max_length=16, choices=REASONS, default="ttl")
    order_id = models.CharField(max_length=64, blank=True, default="", db_index=True)
    order_number = models.CharField(max_length=32, db_index=True)
    phone = models.CharField(max_length=32, blank=True, default="")
    client_address = models.CharField(max_length=64, blank=True, default="")
    price_minor = models.PositiveIntegerField(default=0)
    decline_result = models.JSONField(blank=True, null=True)

    class Meta:
        ordering = ("-created_at",)

    def __str__(self):
        return f"{self.order_number} declined ({self.reason})"


class SettlementAttempt(AppendOnlyModel):
    CONTEXTS = [("status", "Status poll"), ("manual", "Manual mark paid")]

    created_at = models.DateTimeField(default=timezone.now)
    order_id = models.CharField(max_length=64, blank=True, default="", db_index=True)
    order_number = models.CharField(max_length=32, db_index=True)
    doc_id = models.CharField(max_length=64, blank=True, default="")
    context = models.CharField(max_length=16, choices=CONTEXTS, default="status")
    request_body = models.JSONField(blank=True, null=True)
    response_status = models.PositiveIntegerField(blank=True, null=True)
    response_body = models.JSONField(blank=True, null=True)
    ok = models.BooleanField(default=False)
    error = models.TextField(blank=True, default="")

    class Meta:
        ordering = ("-created_at",)

    def __str__(self):
        return f"{self.order_number} {self.doc_id} {'ok' if self.ok else 'failed'}"
