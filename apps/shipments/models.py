"""
Shipment models: one UK → Ghana parcel per Shipment.
Status and warehouse transitions are enforced by ShipmentStateMachine; the
enums and their ordering live in apps.shipments.states.
"""

import uuid
from django.db import models
from django.conf import settings
from django.core.validators import MinValueValidator

from apps.pricing.models import ParcelType
from .states import Status, WarehouseStatus, WarehouseLocation


class Shipment(models.Model):
    """Core parcel record. Never hard-deleted, only cancelled."""

    Status            = Status
    WarehouseStatus   = WarehouseStatus
    WarehouseLocation = WarehouseLocation

    class SizeClass(models.TextChoices):
        SMALL       = "small",       "Small"
        MEDIUM      = "medium",      "Medium"
        LARGE       = "large",       "Large"
        EXTRA_LARGE = "extra_large", "Extra Large"

    class PaymentMethod(models.TextChoices):
        CARD = "card", "Card"
        CASH = "cash", "Cash on pickup"

    class PaymentStatus(models.TextChoices):
        PENDING  = "pending",  "Pending"
        PAID     = "paid",     "Paid"
        REFUNDED = "refunded", "Refunded"

    id              = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tracking_number = models.CharField(max_length=20, unique=True, db_index=True)
    customer        = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT,
                                        related_name="shipments")

    # Sender (UK)
    sender_name     = models.CharField(max_length=120)
    sender_phone    = models.CharField(max_length=20)
    sender_email    = models.EmailField(blank=True)
    sender_address  = models.CharField(max_length=255)
    sender_city     = models.CharField(max_length=80)
    sender_postcode = models.CharField(max_length=12)

    # Receiver (Ghana)
    receiver_name    = models.CharField(max_length=120)
    receiver_phone   = models.CharField(max_length=20)
    receiver_address = models.CharField(max_length=255)
    receiver_city    = models.CharField(max_length=80)
    receiver_region  = models.CharField(max_length=80, blank=True)

    # Parcel
    parcel_type    = models.CharField(max_length=24, choices=ParcelType.choices)
    weight_kg      = models.DecimalField(max_digits=8, decimal_places=2,
                                         validators=[MinValueValidator(0.01)])
    size_class     = models.CharField(max_length=12, choices=SizeClass.choices, blank=True)
    description    = models.CharField(max_length=255, blank=True)
    declared_value = models.DecimalField(max_digits=10, decimal_places=2, default=0,
                                         validators=[MinValueValidator(0)])

    # Price snapshot captured at booking, never re-read from the catalog
    unit_price      = models.DecimalField(max_digits=10, decimal_places=2)
    promo_code      = models.CharField(max_length=40, blank=True)
    discount_amount = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    final_price     = models.DecimalField(max_digits=10, decimal_places=2,
                                          validators=[MinValueValidator(0)])
    currency        = models.CharField(max_length=3, default="GBP")

    payment_method    = models.CharField(max_length=4, choices=PaymentMethod.choices)
    payment_status    = models.CharField(max_length=8, choices=PaymentStatus.choices,
                                         default=PaymentStatus.PENDING)
    payment_reference = models.CharField(max_length=80, blank=True)

    # Lifecycle
    status             = models.CharField(max_length=16, choices=Status.choices, default=Status.BOOKED)
    warehouse_status   = models.CharField(max_length=10, choices=WarehouseStatus.choices,
                                          default=WarehouseStatus.NONE)
    warehouse_location = models.CharField(max_length=12, choices=WarehouseLocation.choices,
                                          default=WarehouseLocation.NONE)

    pickup_driver   = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT,
                                        null=True, blank=True, related_name="pickup_shipments")
    delivery_driver = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT,
                                        null=True, blank=True, related_name="delivery_shipments")
    pickup_assigned_at   = models.DateTimeField(null=True, blank=True)
    delivery_assigned_at = models.DateTimeField(null=True, blank=True)

    created_at          = models.DateTimeField(auto_now_add=True)
    updated_at          = models.DateTimeField(auto_now=True)
    status_updated_at   = models.DateTimeField(null=True, blank=True)
    picked_up_at        = models.DateTimeField(null=True, blank=True)
    in_transit_at       = models.DateTimeField(null=True, blank=True)
    customs_at          = models.DateTimeField(null=True, blank=True)
    out_for_delivery_at = models.DateTimeField(null=True, blank=True)
    delivered_at        = models.DateTimeField(null=True, blank=True)
    cancelled_at        = models.DateTimeField(null=True, blank=True)

    # Client-side idempotency key for booking retries
    sync_id = models.CharField(max_length=64, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes  = [
            models.Index(fields=["status"], name="shipment_status_idx"),
            models.Index(fields=["customer", "status"], name="shipment_customer_status_idx"),
            models.Index(fields=["pickup_driver", "status"], name="shipment_pickup_idx"),
            models.Index(fields=["delivery_driver", "status"], name="shipment_delivery_idx"),
            models.Index(fields=["created_at"], name="shipment_created_idx"),
        ]
        constraints = [
            models.UniqueConstraint(fields=["sync_id"], condition=~models.Q(sync_id=""),
                                    name="shipment_unique_sync_id"),
        ]

    def __str__(self):
        return f"{self.tracking_number} [{self.status}]"


class ShipmentEvent(models.Model):
    """Immutable audit trail for status, warehouse and assignment changes."""

    class Kind(models.TextChoices):
        STATUS     = "status",     "Status"
        WAREHOUSE  = "warehouse",  "Warehouse"
        ASSIGNMENT = "assignment", "Assignment"
        PAYMENT    = "payment",    "Payment"

    shipment    = models.ForeignKey(Shipment, on_delete=models.CASCADE, related_name="events")
    kind        = models.CharField(max_length=10, choices=Kind.choices)
    from_value  = models.CharField(max_length=64, blank=True)
    to_value    = models.CharField(max_length=64, blank=True)
    actor       = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True)
    note        = models.CharField(max_length=255, blank=True)
    occurred_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["occurred_at", "id"]
