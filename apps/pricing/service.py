"""
Pricing services.

PriceCatalog  : parcel-type → unit price, upsert keyed by type.
PromoEngine   : the only place a discount is ever computed.

Redemption flow:  normalise code  →  policy checks  →  compute discount
                  →  conditional increment (used_count < usage_limit)  →  record redemption
"""

import logging
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import F, Sum
from django.utils import timezone

from apps.common.exceptions import ValidationError, NotFoundError, ConflictError, PolicyRejection
from apps.pricing.models import ParcelType, ParcelPrice, PromoCode, PromoRedemption

logger = logging.getLogger("manime.pricing")

PENNY = Decimal("0.01")
ZERO  = Decimal("0.00")


def to_money(value) -> Decimal:
    return Decimal(str(value)).quantize(PENNY, rounding=ROUND_HALF_UP)


class PriceCatalog:
    """Catalog of unit prices per parcel type."""

    def list_prices(self):
        return ParcelPrice.objects.all()

    def get_price(self, parcel_type: str) -> ParcelPrice:
        try:
            return ParcelPrice.objects.get(type=parcel_type)
        except ParcelPrice.DoesNotExist:
            raise NotFoundError(f"No price configured for parcel type '{parcel_type}'.",
                                reason="PriceNotFound")

    def upsert_price(self, parcel_type: str, label: str, price, currency: str = None) -> ParcelPrice:
        """
        Create the entry for `parcel_type` or overwrite its label/price.
        Existing shipments are untouched; they hold the price captured at booking.
        """
        if parcel_type not in ParcelType.values:
            raise ValidationError(f"'{parcel_type}' is not a recognised parcel type.",
                                  reason="InvalidParcelType")
        price = to_money(price)
        if price < 0:
            raise ValidationError("Price cannot be negative.", reason="InvalidPrice")

        entry, created = ParcelPrice.objects.update_or_create(
            type=parcel_type,
            defaults={
                "label":        label or ParcelType(parcel_type).label,
                "price":        price,
                "currency":     currency or settings.DEFAULT_CURRENCY,
                "last_updated": timezone.now(),
            },
        )
        logger.info("Parcel price %s %s: %s %s",
                    parcel_type, "created" if created else "updated", entry.price, entry.currency)
        return entry

    def delete_price(self, parcel_type: str) -> None:
        deleted, _ = ParcelPrice.objects.filter(type=parcel_type).delete()
        if not deleted:
            raise NotFoundError(f"No price configured for parcel type '{parcel_type}'.",
                                reason="PriceNotFound")
        logger.info("Parcel price %s deleted", parcel_type)


class PromoEngine:
    """
    Validates promo codes and applies them to an order subtotal.
    validate_and_apply() is idempotent per idempotency key: a retried request
    returns the stored redemption and never counts twice.
    """

    # ── lookups / checks ──────────────────────────────────────────────────────
    def _lookup(self, code: str) -> PromoCode:
        normalized = PromoCode.normalize(code)
        if not normalized:
            raise ValidationError("Promo code is required.", reason="CodeRequired")
        try:
            return PromoCode.objects.get(code=normalized)
        except PromoCode.DoesNotExist:
            raise NotFoundError("Invalid promo code.", reason="CodeNotFound")

    def _check_policy(self, promo: PromoCode, subtotal: Decimal, order_type: str = None):
        if promo.status != PromoCode.Status.ACTIVE:
            raise PolicyRejection("Promo code is not active.", reason="CodeInactive")
        if timezone.now() > promo.expiry_date:
            raise PolicyRejection("Promo code has expired.", reason="CodeExpired")
        if promo.used_count >= promo.usage_limit:
            raise PolicyRejection("Promo code usage limit reached.", reason="UsageLimitReached")
        if (order_type and promo.applicable_to != PromoCode.Applicability.ALL
                and promo.applicable_to != order_type):
            raise PolicyRejection(
                f"This promo code is only valid for {promo.applicable_to} orders.",
                reason="NotApplicable",
            )
        if subtotal < promo.min_order_value:
            raise PolicyRejection(
                f"Minimum order value of £{promo.min_order_value} required.",
                reason="BelowMinimumOrder",
            )

    @staticmethod
    def compute_discount(promo: PromoCode, subtotal: Decimal):
        """Return (discount, final_amount). Discount never exceeds the subtotal."""
        if promo.discount_type == PromoCode.DiscountType.PERCENTAGE:
            discount = to_money(subtotal * promo.value / Decimal("100"))
            if promo.max_discount is not None and discount > promo.max_discount:
                discount = to_money(promo.max_discount)
        else:
            discount = to_money(promo.value)
        discount = min(discount, subtotal)
        return discount, max(subtotal - discount, ZERO)

    def _validated_subtotal(self, subtotal) -> Decimal:
        subtotal = to_money(subtotal)
        if subtotal < 0:
            raise ValidationError("Order subtotal cannot be negative.", reason="InvalidSubtotal")
        return subtotal

    # ── public API ────────────────────────────────────────────────────────────
    def preview(self, code: str, subtotal, order_type: str = None) -> dict:
        """Run every check and compute the discount without redeeming the code."""
        subtotal = self._validated_subtotal(subtotal)
        promo = self._lookup(code)
        self._check_policy(promo, subtotal, order_type)
        discount, final = self.compute_discount(promo, subtotal)
        return {
            "code":         promo.code,
            "subtotal":     subtotal,
            "discount":     discount,
            "final_amount": final,
        }

    def validate_and_apply(self, code: str, subtotal, idempotency_key: str,
                           order_type: str = None) -> dict:
        subtotal = self._validated_subtotal(subtotal)
        key = (idempotency_key or "").strip()
        if not key:
            raise ValidationError("An idempotency key is required to redeem a promo code.",
                                  reason="IdempotencyKeyRequired")

        existing = self._existing_redemption(key, code)
        if existing:
            return existing

        promo = self._lookup(code)
        self._check_policy(promo, subtotal, order_type)
        discount, final = self.compute_discount(promo, subtotal)

        try:
            with transaction.atomic():
                won = (
                    PromoCode.objects
                    .filter(pk=promo.pk,
                            status=PromoCode.Status.ACTIVE,
                            expiry_date__gte=timezone.now(),
                            used_count__lt=F("usage_limit"))
                    .update(used_count=F("used_count") + 1)
                )
                if not won:
                    # lost the race, report the rule that now fails
                    promo.refresh_from_db()
                    self._check_policy(promo, subtotal, order_type)
                    raise PolicyRejection("Promo code usage limit reached.", reason="UsageLimitReached")

                redemption = PromoRedemption.objects.create(
                    idempotency_key=key, promo_code=promo,
                    subtotal=subtotal, discount=discount, final_amount=final,
                )
        except IntegrityError:
            # same key redeemed concurrently; our increment was rolled back
            existing = self._existing_redemption(key, code)
            if existing is None:
                raise
            return existing

        logger.info("Promo %s redeemed (key=%s): -%s on %s", promo.code, key, discount, subtotal)
        return self._as_result(redemption)

    def _existing_redemption(self, key: str, code: str):
        redemption = (
            PromoRedemption.objects.select_related("promo_code")
            .filter(idempotency_key=key).first()
        )
        if redemption is None:
            return None
        if redemption.promo_code.code != PromoCode.normalize(code):
            raise ConflictError("Idempotency key already used for a different promo code.",
                                reason="IdempotencyKeyReused")
        logger.info("Idempotent redemption, returning existing %s", key)
        return self._as_result(redemption)

    @staticmethod
    def _as_result(redemption: PromoRedemption) -> dict:
        return {
            "code":          redemption.promo_code.code,
            "subtotal":      redemption.subtotal,
            "discount":      redemption.discount,
            "final_amount":  redemption.final_amount,
            "redemption_id": redemption.id,
        }

    def overview(self) -> dict:
        now = timezone.now()
        codes = PromoCode.objects.all()
        total   = codes.count()
        active  = codes.filter(status=PromoCode.Status.ACTIVE, expiry_date__gte=now).count()
        expired = codes.filter(expiry_date__lt=now).count()
        return {
            "total":       total,
            "active":      active,
            "expired":     expired,
            "inactive":    total - active - expired,
            "total_usage": codes.aggregate(t=Sum("used_count"))["t"] or 0,
        }
