"""
AssignmentCoordinator binds drivers to a shipment's pickup or delivery slot.

Pickup drivers (UK, PICKUP scope) and delivery drivers (Ghana, DELIVERY scope)
are disjoint pools. Every slot write runs under a row lock and a compare-and-set
UPDATE keyed on the slot's current holder, so two admins racing for the same
slot cannot both win.
"""

import logging

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from apps.authentication.models import DriverProfile
from apps.common.exceptions import ValidationError, NotFoundError, ConflictError, PolicyRejection
from apps.notifications.tasks import enqueue_after_commit, send_assignment_notification
from apps.shipments.models import Shipment, ShipmentEvent
from apps.shipments.states import Status, WarehouseStatus, WarehouseLocation, TERMINAL_STATUSES

Agent = get_user_model()
logger = logging.getLogger("manime.assignment")

PICKUP   = "pickup"
DELIVERY = "delivery"
SLOTS    = (PICKUP, DELIVERY)

PICKUP_ASSIGNABLE   = [Status.BOOKED, Status.PICKED_UP]
DELIVERY_ASSIGNABLE = [Status.CUSTOMS, Status.OUT_FOR_DELIVERY]
WAREHOUSE_CLEARED   = [WarehouseStatus.RECEIVED, WarehouseStatus.SORTED,
                       WarehouseStatus.PACKED, WarehouseStatus.SHIPPED]
# Delivery slot stays editable until the driver leaves with the parcel
DELIVERY_LOCKED     = [Status.OUT_FOR_DELIVERY, Status.DELIVERED, Status.CANCELLED]

SLOT_FIELDS = {
    PICKUP:   ("pickup_driver",   "pickup_assigned_at"),
    DELIVERY: ("delivery_driver", "delivery_assigned_at"),
}


def is_received_at_destination(shipment: Shipment) -> bool:
    return (
        shipment.warehouse_status in WAREHOUSE_CLEARED
        and shipment.warehouse_location == WarehouseLocation.DESTINATION
    )


def is_delivery_cleared(shipment: Shipment) -> bool:
    """Ready for a Ghana driver: at customs or beyond and received at the destination warehouse."""
    return shipment.status in DELIVERY_ASSIGNABLE and is_received_at_destination(shipment)


class AssignmentCoordinator:

    # ── queries ───────────────────────────────────────────────────────────────
    @staticmethod
    def drivers(region_scope: str = None, is_active: bool = None):
        qs = Agent.objects.drivers().filter(driver_profile__isnull=False).select_related("driver_profile")
        if region_scope:
            qs = qs.filter(driver_profile__region_scope=region_scope)
        if is_active is not None:
            qs = qs.filter(is_active=is_active)
        return qs.order_by("full_name")

    @staticmethod
    def pending_pickups():
        return (
            Shipment.objects
            .filter(status=Status.BOOKED, pickup_driver__isnull=True)
            .select_related("customer")
            .order_by("created_at")
        )

    @staticmethod
    def pending_deliveries():
        return (
            Shipment.objects
            .filter(status__in=DELIVERY_ASSIGNABLE,
                    warehouse_status__in=WAREHOUSE_CLEARED,
                    warehouse_location=WarehouseLocation.DESTINATION,
                    delivery_driver__isnull=True)
            .select_related("customer")
            .order_by("created_at")
        )

    @staticmethod
    def driver_assignments(driver, active_only: bool = False):
        qs = Shipment.objects.filter(Q(pickup_driver=driver) | Q(delivery_driver=driver))
        if active_only:
            qs = qs.exclude(status__in=list(TERMINAL_STATUSES))
        return qs.select_related("customer").order_by("-created_at")

    # ── helpers ───────────────────────────────────────────────────────────────
    def _resolve_driver(self, driver_id, scope: str):
        try:
            driver = Agent.objects.select_related("driver_profile").get(pk=driver_id)
            profile = driver.driver_profile
        except (Agent.DoesNotExist, DriverProfile.DoesNotExist, DjangoValidationError, ValueError):
            raise NotFoundError(f"Driver {driver_id} not found.", reason="DriverNotFound")
        if not driver.is_active:
            raise ConflictError(f"Driver {driver.full_name} is inactive.", reason="DriverInactive")
        if profile.region_scope != scope:
            raise ConflictError(
                f"Driver {driver.full_name} works {profile.region_scope}, not {scope}.",
                reason="WrongRegionScope",
            )
        return driver

    def _lock(self, shipment: Shipment) -> Shipment:
        return Shipment.objects.select_for_update().get(pk=shipment.pk)

    def _fill_slot(self, shipment: Shipment, slot: str, driver, actor) -> Shipment:
        field, stamp = SLOT_FIELDS[slot]
        holder_id = getattr(shipment, f"{field}_id")
        if holder_id == driver.pk:
            logger.info("%s driver %s already on %s", slot, driver.phone, shipment.tracking_number)
            return shipment
        if holder_id is not None:
            raise ConflictError(f"A {slot} driver is already assigned. Unassign first.",
                                reason="SlotAlreadyAssigned")

        now = timezone.now()
        won = (
            Shipment.objects
            .filter(pk=shipment.pk, status=shipment.status, **{f"{field}__isnull": True})
            .update(**{field: driver, stamp: now, "updated_at": now})
        )
        if not won:
            raise ConflictError(f"The {slot} slot changed concurrently.", reason="SlotAlreadyAssigned")
        setattr(shipment, field, driver)
        setattr(shipment, stamp, now)

        ShipmentEvent.objects.create(
            shipment=shipment, kind=ShipmentEvent.Kind.ASSIGNMENT,
            from_value="", to_value=f"{slot}:{driver.pk}", actor=actor,
            note=f"{slot.capitalize()} driver {driver.full_name} assigned",
        )
        enqueue_after_commit(send_assignment_notification, str(shipment.id), slot)
        logger.info("%s driver %s assigned to %s", slot.capitalize(), driver.phone, shipment.tracking_number)
        return shipment

    # ── commands ──────────────────────────────────────────────────────────────
    @transaction.atomic
    def assign_pickup_driver(self, shipment: Shipment, driver_id, actor=None) -> Shipment:
        driver = self._resolve_driver(driver_id, DriverProfile.RegionScope.PICKUP)
        shipment = self._lock(shipment)
        if shipment.status not in PICKUP_ASSIGNABLE:
            raise ConflictError(f"Cannot assign a pickup driver to a {shipment.status} shipment.",
                                reason="InvalidState")
        return self._fill_slot(shipment, PICKUP, driver, actor)

    @transaction.atomic
    def assign_delivery_driver(self, shipment: Shipment, driver_id, actor=None) -> Shipment:
        driver = self._resolve_driver(driver_id, DriverProfile.RegionScope.DELIVERY)
        shipment = self._lock(shipment)
        # the warehouse gate applies whatever the shipment status
        if is_received_at_destination(shipment) and Status(shipment.status) in TERMINAL_STATUSES:
            raise ConflictError(f"Cannot assign a delivery driver to a {shipment.status} shipment.",
                                reason="InvalidState")
        if not is_delivery_cleared(shipment):
            raise PolicyRejection(
                "Parcel must be at customs or later and received at the Ghana warehouse "
                f"(currently {shipment.status}, {shipment.warehouse_status}@{shipment.warehouse_location}).",
                reason="WarehouseNotCleared",
            )
        return self._fill_slot(shipment, DELIVERY, driver, actor)

    @transaction.atomic
    def unassign_driver(self, shipment: Shipment, slot: str, actor=None) -> Shipment:
        if slot not in SLOTS:
            raise ValidationError(f"Slot must be one of {', '.join(SLOTS)}.", reason="InvalidSlot")
        shipment = self._lock(shipment)
        field, stamp = SLOT_FIELDS[slot]
        holder_id = getattr(shipment, f"{field}_id")
        if holder_id is None:
            return shipment

        locked = (shipment.status != Status.BOOKED if slot == PICKUP
                  else shipment.status in DELIVERY_LOCKED)
        if locked:
            raise ConflictError(
                f"Cannot unassign the {slot} driver once the shipment is {shipment.status}.",
                reason="CannotUnassignAfterPickedUp",
            )

        won = (
            Shipment.objects
            .filter(pk=shipment.pk, status=shipment.status, **{f"{field}_id": holder_id})
            .update(**{field: None, stamp: None, "updated_at": timezone.now()})
        )
        if not won:
            raise ConflictError(f"The {slot} slot changed concurrently.", reason="StaleAssignment")
        setattr(shipment, field, None)
        setattr(shipment, stamp, None)

        ShipmentEvent.objects.create(
            shipment=shipment, kind=ShipmentEvent.Kind.ASSIGNMENT,
            from_value=f"{slot}:{holder_id}", to_value="", actor=actor,
            note=f"{slot.capitalize()} driver unassigned",
        )
        logger.info("%s driver unassigned from %s", slot.capitalize(), shipment.tracking_number)
        return shipment
