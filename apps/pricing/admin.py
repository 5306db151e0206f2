from django.contrib import admin
from .models import ParcelPrice, PromoCode, PromoRedemption


@admin.register(ParcelPrice)
class ParcelPriceAdmin(admin.ModelAdmin):
    list_display  = ("type", "label", "price", "currency", "last_updated")
    readonly_fields = ("last_updated",)


@admin.register(PromoCode)
class PromoCodeAdmin(admin.ModelAdmin):
    list_display  = ("code", "discount_type", "value", "status", "used_count", "usage_limit", "expiry_date")
    list_filter   = ("status", "discount_type", "applicable_to")
    search_fields = ("code", "description")
    readonly_fields = ("used_count", "created_at", "updated_at")


@admin.register(PromoRedemption)
class PromoRedemptionAdmin(admin.ModelAdmin):
    list_display  = ("idempotency_key", "promo_code", "subtotal", "discount", "final_amount", "redeemed_at")
    readonly_fields = ("redeemed_at",)
