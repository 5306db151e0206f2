"""
Management command: seed the parcel price catalog and launch promo codes.

Usage:
    python manage.py seed_pricing
"""

from datetime import datetime
from decimal import Decimal
from django.core.management.base import BaseCommand
from django.utils import timezone

from apps.pricing.models import ParcelType, PromoCode
from apps.pricing.service import PriceCatalog


PRICES = [
    (ParcelType.SMALL_BOX,  "15.00"),
    (ParcelType.MEDIUM_BOX, "25.00"),
    (ParcelType.LARGE_BOX,  "35.00"),
    (ParcelType.TV,         "50.00"),
    (ParcelType.DRUM,       "45.00"),
]

# code, type, value, description, expiry, limit, min order, max discount, applies to
PROMOS = [
    ("WELCOME10", "percentage", "10", "Welcome offer for new customers - 10% off your first order",
     (2026, 12, 31), 1000, "20", "50", "all"),
    ("FESTIVE25", "percentage", "25", "Festive season special - 25% off",
     (2026, 12, 25), 500, "50", "100", "shipping"),
    ("FLAT5", "fixed", "5", "Flat £5 off on all orders",
     (2027, 1, 31), 2000, "15", None, "all"),
    ("FREESHIP", "fixed", "10", "Free shipping on orders over £30",
     (2026, 12, 31), 500, "30", None, "grocery"),
    ("SUMMER20", "percentage", "20", "Summer sale - 20% off",
     (2026, 8, 31), 300, "25", "75", "all"),
]


class Command(BaseCommand):
    help = "Seed parcel prices and the launch promo codes"

    def handle(self, *args, **options):
        catalog = PriceCatalog()
        for parcel_type, price in PRICES:
            catalog.upsert_price(parcel_type, label=parcel_type.label, price=Decimal(price))

        created_promos = 0
        for code, kind, value, desc, expiry, limit, min_order, cap, applies in PROMOS:
            _, created = PromoCode.objects.get_or_create(
                code=code,
                defaults={
                    "discount_type":   kind,
                    "value":           Decimal(value),
                    "description":     desc,
                    "expiry_date":     timezone.make_aware(datetime(*expiry, 23, 59, 59)),
                    "usage_limit":     limit,
                    "min_order_value": Decimal(min_order),
                    "max_discount":    Decimal(cap) if cap else None,
                    "applicable_to":   applies,
                },
            )
            if created:
                created_promos += 1

        self.stdout.write(self.style.SUCCESS(
            f"Seeded {len(PRICES)} parcel prices and {created_promos} promo codes."
        ))
