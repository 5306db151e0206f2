"""
Authoritative shipment status tables.

Every status and warehouse status is described exactly once here: label,
badge colour and the push notification the customer receives. Serializers,
the state machine and notifications all read from these tables.
"""

from django.db import models


class Status(models.TextChoices):
    BOOKED           = "booked",           "Booked"
    PICKED_UP        = "picked_up",        "Picked Up"
    IN_TRANSIT       = "in_transit",       "In Transit"
    CUSTOMS          = "customs",          "Customs"
    OUT_FOR_DELIVERY = "out_for_delivery", "Out for Delivery"
    DELIVERED        = "delivered",        "Delivered"
    CANCELLED        = "cancelled",        "Cancelled"


class WarehouseStatus(models.TextChoices):
    NONE     = "none",     "Not at warehouse"
    RECEIVED = "received", "Received"
    SORTED   = "sorted",   "Sorted"
    PACKED   = "packed",   "Packed"
    SHIPPED  = "shipped",  "Shipped"


class WarehouseLocation(models.TextChoices):
    NONE        = "none",        "None"
    ORIGIN      = "origin",      "UK warehouse"
    DESTINATION = "destination", "Ghana warehouse"


# Main track, in order. CANCELLED sits outside it.
STATUS_SEQUENCE = [
    Status.BOOKED,
    Status.PICKED_UP,
    Status.IN_TRANSIT,
    Status.CUSTOMS,
    Status.OUT_FOR_DELIVERY,
    Status.DELIVERED,
]
TERMINAL_STATUSES = {Status.DELIVERED, Status.CANCELLED}

WAREHOUSE_SEQUENCE = [
    WarehouseStatus.NONE,
    WarehouseStatus.RECEIVED,
    WarehouseStatus.SORTED,
    WarehouseStatus.PACKED,
    WarehouseStatus.SHIPPED,
]
LOCATION_SEQUENCE = [
    WarehouseLocation.NONE,
    WarehouseLocation.ORIGIN,
    WarehouseLocation.DESTINATION,
]

# Per-status timestamp column written with the transition.
STATUS_TIMESTAMP_FIELDS = {
    Status.PICKED_UP:        "picked_up_at",
    Status.IN_TRANSIT:       "in_transit_at",
    Status.CUSTOMS:          "customs_at",
    Status.OUT_FOR_DELIVERY: "out_for_delivery_at",
    Status.DELIVERED:        "delivered_at",
    Status.CANCELLED:        "cancelled_at",
}

STATUS_NOTIFICATION_TITLE    = "Parcel Update"
WAREHOUSE_NOTIFICATION_TITLE = "Warehouse Update"

STATUS_TABLE = {
    Status.BOOKED:           {"colour": "#6B7280", "body": "Your parcel has been booked successfully! 📝"},
    Status.PICKED_UP:        {"colour": "#3B82F6", "body": "Your parcel has been picked up! 📦"},
    Status.IN_TRANSIT:       {"colour": "#8B5CF6", "body": "Your parcel is now in transit to Ghana! ✈️"},
    Status.CUSTOMS:          {"colour": "#F59E0B", "body": "Your parcel is going through customs clearance 🛃"},
    Status.OUT_FOR_DELIVERY: {"colour": "#F97316", "body": "Your parcel is out for delivery! 🚚"},
    Status.DELIVERED:        {"colour": "#10B981", "body": "Your parcel has been delivered! ✅"},
    Status.CANCELLED:        {"colour": "#EF4444", "body": "Your parcel booking has been cancelled ❌"},
}

WAREHOUSE_TABLE = {
    WarehouseStatus.NONE:     {"colour": "#9CA3AF", "body": None},
    WarehouseStatus.RECEIVED: {"colour": "#3B82F6", "body": "Your parcel has arrived at our warehouse 📦"},
    WarehouseStatus.SORTED:   {"colour": "#8B5CF6", "body": "Your parcel has been sorted for shipping 📋"},
    WarehouseStatus.PACKED:   {"colour": "#10B981", "body": "Your parcel has been packed and is ready for dispatch ✅"},
    WarehouseStatus.SHIPPED:  {"colour": "#F97316", "body": "Your parcel has been shipped to Ghana! ✈️"},
}


def allowed_status_targets(current):
    """Targets reachable from `current` in one step."""
    current = Status(current)
    if current in TERMINAL_STATUSES:
        return set()
    idx = STATUS_SEQUENCE.index(current)
    return {STATUS_SEQUENCE[idx + 1], Status.CANCELLED}


def can_transition(current, target) -> bool:
    return Status(target) in allowed_status_targets(current)


def warehouse_rank(value) -> int:
    return WAREHOUSE_SEQUENCE.index(value)


def location_rank(value) -> int:
    return LOCATION_SEQUENCE.index(value)


def status_notification(status):
    return STATUS_NOTIFICATION_TITLE, STATUS_TABLE[Status(status)]["body"]


def warehouse_notification(warehouse_status):
    body = WAREHOUSE_TABLE[WarehouseStatus(warehouse_status)]["body"]
    return (WAREHOUSE_NOTIFICATION_TITLE, body) if body else None


def describe():
    """Read-only rendering of both tables for the statuses endpoint."""
    return {
        "statuses": [
            {
                "value":     s.value,
                "label":     s.label,
                "colour":    STATUS_TABLE[s]["colour"],
                "title":     STATUS_NOTIFICATION_TITLE,
                "body":      STATUS_TABLE[s]["body"],
                "terminal":  s in TERMINAL_STATUSES,
                "next":      sorted(t.value for t in allowed_status_targets(s)),
            }
            for s in Status
        ],
        "warehouse_statuses": [
            {
                "value":  w.value,
                "label":  w.label,
                "colour": WAREHOUSE_TABLE[w]["colour"],
                "title":  WAREHOUSE_NOTIFICATION_TITLE if WAREHOUSE_TABLE[w]["body"] else None,
                "body":   WAREHOUSE_TABLE[w]["body"],
            }
            for w in WarehouseStatus
        ],
    }
