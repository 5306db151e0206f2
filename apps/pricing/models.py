"""
Pricing models: parcel price catalog and promo codes.
Prices are captured on the Shipment at booking; catalog edits are prospective only.
"""

import uuid
from django.db import models
from django.conf import settings
from django.core.validators import MinValueValidator


class ParcelType(models.TextChoices):
    SMALL_BOX          = "small_box",          "Small Box"
    MEDIUM_BOX         = "medium_box",         "Medium Box"
    LARGE_BOX          = "large_box",          "Large Box"
    EXTRA_LARGE_BOX    = "extra_large_box",    "Extra-Large Box"
    BARREL             = "barrel",             "Barrel"
    DRUM               = "drum",               "Drum"
    TV                 = "tv",                 "TV"
    CUSTOM_SMALL       = "custom_small",       "Custom Item - Small (up to 5kg)"
    CUSTOM_MEDIUM      = "custom_medium",      "Custom Item - Medium (5-15kg)"
    CUSTOM_LARGE       = "custom_large",       "Custom Item - Large (15-30kg)"
    CUSTOM_EXTRA_LARGE = "custom_extra_large", "Custom Item - Extra Large (30kg+)"


class ParcelPrice(models.Model):
    """Exactly one row per parcel type; writes are upserts keyed by type."""
    type         = models.CharField(max_length=24, choices=ParcelType.choices, unique=True)
    label        = models.CharField(max_length=80)
    price        = models.DecimalField(max_digits=10, decimal_places=2,
                                       validators=[MinValueValidator(0)])
    currency     = models.CharField(max_length=3, default="GBP")
    last_updated = models.DateTimeField()

    class Meta:
        ordering = ["type"]

    def __str__(self):
        return f"{self.label}: {self.price} {self.currency}"


class PromoCode(models.Model):

    class DiscountType(models.TextChoices):
        PERCENTAGE = "percentage", "Percentage"
        FIXED      = "fixed",      "Fixed amount"

    class Status(models.TextChoices):
        ACTIVE   = "active",   "Active"
        INACTIVE = "inactive", "Inactive"

    class Applicability(models.TextChoices):
        ALL       = "all",       "All orders"
        SHIPPING  = "shipping",  "Shipping"
        PACKAGING = "packaging", "Packaging"
        GROCERY   = "grocery",   "Grocery"

    code            = models.CharField(max_length=40, unique=True)
    discount_type   = models.CharField(max_length=10, choices=DiscountType.choices)
    value           = models.DecimalField(max_digits=10, decimal_places=2,
                                          validators=[MinValueValidator(0)])
    description     = models.CharField(max_length=255, blank=True)
    expiry_date     = models.DateTimeField()
    usage_limit     = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    used_count      = models.PositiveIntegerField(default=0)
    min_order_value = models.DecimalField(max_digits=10, decimal_places=2, default=0,
                                          validators=[MinValueValidator(0)])
    max_discount    = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True,
                                          validators=[MinValueValidator(0)])
    status          = models.CharField(max_length=10, choices=Status.choices, default=Status.ACTIVE)
    applicable_to   = models.CharField(max_length=10, choices=Applicability.choices,
                                       default=Applicability.ALL)
    created_by      = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL,
                                        null=True, blank=True, related_name="+")
    created_at      = models.DateTimeField(auto_now_add=True)
    updated_at      = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes  = [models.Index(fields=["status", "expiry_date"], name="promo_status_expiry_idx")]

    def __str__(self):
        return f"{self.code} ({self.discount_type} {self.value})"

    @staticmethod
    def normalize(code: str) -> str:
        return (code or "").strip().upper()

    def save(self, *args, **kwargs):
        self.code = self.normalize(self.code)
        super().save(*args, **kwargs)


class PromoRedemption(models.Model):
    """One row per successful redemption. The idempotency key makes retries free."""
    id              = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    idempotency_key = models.CharField(max_length=80, unique=True)
    promo_code      = models.ForeignKey(PromoCode, on_delete=models.PROTECT, related_name="redemptions")
    subtotal        = models.DecimalField(max_digits=10, decimal_places=2)
    discount        = models.DecimalField(max_digits=10, decimal_places=2)
    final_amount    = models.DecimalField(max_digits=10, decimal_places=2)
    redeemed_at     = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-redeemed_at"]

    def __str__(self):
        return f"{self.promo_code.code} – {self.idempotency_key}"
