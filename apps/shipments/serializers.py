"""Shipment serializers."""

from rest_framework import serializers
from apps.pricing.models import ParcelType
from .models import Shipment, ShipmentEvent
from .states import Status, WarehouseStatus, WarehouseLocation, STATUS_TABLE


class ShipmentEventSerializer(serializers.ModelSerializer):
    actor_name = serializers.CharField(source="actor.full_name", read_only=True, default=None)

    class Meta:
        model  = ShipmentEvent
        fields = ["kind", "from_value", "to_value", "actor_name", "note", "occurred_at"]


class ShipmentCreateSerializer(serializers.ModelSerializer):
    parcel_type = serializers.ChoiceField(choices=ParcelType.choices)
    promo_code  = serializers.CharField(max_length=40, required=False, allow_blank=True)
    sync_id     = serializers.CharField(max_length=64, required=False, allow_blank=True)

    class Meta:
        model  = Shipment
        fields = [
            "sender_name", "sender_phone", "sender_email", "sender_address",
            "sender_city", "sender_postcode",
            "receiver_name", "receiver_phone", "receiver_address",
            "receiver_city", "receiver_region",
            "parcel_type", "weight_kg", "size_class", "description", "declared_value",
            "payment_method", "promo_code", "sync_id",
        ]


class ShipmentDetailSerializer(serializers.ModelSerializer):
    events               = ShipmentEventSerializer(many=True, read_only=True)
    status_label         = serializers.CharField(source="get_status_display", read_only=True)
    status_colour        = serializers.SerializerMethodField()
    customer_name        = serializers.CharField(source="customer.full_name", read_only=True)
    pickup_driver_name   = serializers.CharField(source="pickup_driver.full_name", read_only=True, default=None)
    pickup_driver_phone  = serializers.CharField(source="pickup_driver.phone", read_only=True, default=None)
    delivery_driver_name = serializers.CharField(source="delivery_driver.full_name", read_only=True, default=None)
    delivery_driver_phone = serializers.CharField(source="delivery_driver.phone", read_only=True, default=None)

    class Meta:
        model  = Shipment
        fields = [
            "id", "tracking_number", "status", "status_label", "status_colour",
            "warehouse_status", "warehouse_location", "customer_name",
            "sender_name", "sender_phone", "sender_email", "sender_address",
            "sender_city", "sender_postcode",
            "receiver_name", "receiver_phone", "receiver_address",
            "receiver_city", "receiver_region",
            "parcel_type", "weight_kg", "size_class", "description", "declared_value",
            "unit_price", "promo_code", "discount_amount", "final_price", "currency",
            "payment_method", "payment_status", "payment_reference",
            "pickup_driver", "pickup_driver_name", "pickup_driver_phone", "pickup_assigned_at",
            "delivery_driver", "delivery_driver_name", "delivery_driver_phone", "delivery_assigned_at",
            "created_at", "status_updated_at", "picked_up_at", "in_transit_at",
            "customs_at", "out_for_delivery_at", "delivered_at", "cancelled_at",
            "events",
        ]

    def get_status_colour(self, obj):
        return STATUS_TABLE[Status(obj.status)]["colour"]


class ShipmentSummarySerializer(serializers.ModelSerializer):
    """Compact row for queues and driver job lists."""
    class Meta:
        model  = Shipment
        fields = [
            "id", "tracking_number", "status", "warehouse_status", "warehouse_location",
            "parcel_type", "sender_name", "sender_city", "sender_postcode",
            "receiver_name", "receiver_city", "receiver_region",
            "payment_method", "final_price", "currency",
            "pickup_driver", "delivery_driver", "created_at",
        ]


class StatusTransitionSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Status.choices)
    note   = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")


class WarehouseUpdateSerializer(serializers.Serializer):
    warehouse_status = serializers.ChoiceField(
        choices=[c for c in WarehouseStatus.choices if c[0] != WarehouseStatus.NONE]
    )
    location = serializers.ChoiceField(
        choices=[WarehouseLocation.ORIGIN, WarehouseLocation.DESTINATION], required=False
    )
    note = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")


class AssignDriverSerializer(serializers.Serializer):
    driver_id = serializers.UUIDField()


class UnassignDriverSerializer(serializers.Serializer):
    slot = serializers.ChoiceField(choices=["pickup", "delivery"])


class PaymentAuthorizedSerializer(serializers.Serializer):
    reference = serializers.CharField(max_length=80)
