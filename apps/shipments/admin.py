from django.contrib import admin
from .models import Shipment, ShipmentEvent


class ShipmentEventInline(admin.TabularInline):
    model = ShipmentEvent
    extra = 0
    readonly_fields = ("kind", "from_value", "to_value", "actor", "note", "occurred_at")
    can_delete = False


@admin.register(Shipment)
class ShipmentAdmin(admin.ModelAdmin):
    list_display  = ("tracking_number", "parcel_type", "status", "warehouse_status", "warehouse_location",
                     "customer", "pickup_driver", "delivery_driver", "final_price", "created_at")
    list_filter   = ("status", "warehouse_status", "warehouse_location", "payment_method", "parcel_type")
    search_fields = ("tracking_number", "customer__phone", "sender_name", "receiver_name")
    # lifecycle fields are owned by the state machine
    readonly_fields = ("id", "tracking_number", "status", "warehouse_status", "warehouse_location",
                       "unit_price", "discount_amount", "final_price", "created_at", "updated_at")
    ordering      = ("-created_at",)
    inlines       = [ShipmentEventInline]

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(ShipmentEvent)
class ShipmentEventAdmin(admin.ModelAdmin):
    list_display  = ("shipment", "kind", "from_value", "to_value", "actor", "occurred_at")
    list_filter   = ("kind",)
    readonly_fields = ("occurred_at",)
