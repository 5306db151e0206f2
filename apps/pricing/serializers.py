"""Pricing serializers."""

from rest_framework import serializers
from .models import ParcelPrice, PromoCode


class ParcelPriceSerializer(serializers.ModelSerializer):
    class Meta:
        model  = ParcelPrice
        fields = ["type", "label", "price", "currency", "last_updated"]


class ParcelPriceUpsertSerializer(serializers.Serializer):
    label    = serializers.CharField(max_length=80, required=False, allow_blank=True)
    price    = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    currency = serializers.CharField(max_length=3, required=False)


class PromoCodeSerializer(serializers.ModelSerializer):
    remaining_uses = serializers.SerializerMethodField()

    class Meta:
        model  = PromoCode
        fields = [
            "id", "code", "discount_type", "value", "description", "expiry_date",
            "usage_limit", "used_count", "remaining_uses", "min_order_value",
            "max_discount", "status", "applicable_to", "created_at", "updated_at",
        ]
        read_only_fields = ["id", "used_count", "created_at", "updated_at"]

    def get_remaining_uses(self, obj):
        return max(obj.usage_limit - obj.used_count, 0)

    def validate_code(self, value):
        code = PromoCode.normalize(value)
        if not code:
            raise serializers.ValidationError("Code cannot be blank.")
        clash = PromoCode.objects.filter(code=code)
        if self.instance:
            clash = clash.exclude(pk=self.instance.pk)
        if clash.exists():
            raise serializers.ValidationError("Promo code already exists.")
        return code

    def validate(self, data):
        discount_type = data.get("discount_type", getattr(self.instance, "discount_type", None))
        value = data.get("value", getattr(self.instance, "value", None))
        if discount_type == PromoCode.DiscountType.PERCENTAGE and value is not None and value > 100:
            raise serializers.ValidationError({"value": "Percentage discount cannot exceed 100."})
        return data


class PromoPreviewSerializer(serializers.Serializer):
    code       = serializers.CharField(max_length=40)
    subtotal   = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    order_type = serializers.ChoiceField(choices=PromoCode.Applicability.choices, required=False)


class PromoApplySerializer(PromoPreviewSerializer):
    idempotency_key = serializers.CharField(max_length=80)


class PromoResultSerializer(serializers.Serializer):
    code          = serializers.CharField()
    subtotal      = serializers.DecimalField(max_digits=10, decimal_places=2)
    discount      = serializers.DecimalField(max_digits=10, decimal_places=2)
    final_amount  = serializers.DecimalField(max_digits=10, decimal_places=2)
    redemption_id = serializers.UUIDField(required=False)
