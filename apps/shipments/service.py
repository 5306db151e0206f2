"""
Shipment services.

BookingService       : create_shipment  →  price lookup  →  promo redemption  →  booked
ShipmentStateMachine : the only writer of status / warehouse_status / warehouse_location

Every write is a compare-and-set UPDATE keyed on the value the caller read,
so a concurrent writer loses with ConflictError instead of overwriting.
Customer notifications are enqueued after commit and never fail a transition.
"""

import logging
import random
import string

from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.common.exceptions import ValidationError, ConflictError
from apps.notifications.tasks import (
    enqueue_after_commit, send_shipment_status_notification, send_warehouse_notification,
)
from apps.pricing.models import PromoCode
from apps.pricing.service import PriceCatalog, PromoEngine
from apps.shipments import states
from apps.shipments.models import Shipment, ShipmentEvent
from apps.shipments.states import Status, WarehouseStatus, WarehouseLocation

logger = logging.getLogger("manime.booking")

TRACKING_PREFIX = "MM"


def _generate_tracking_number():
    chars = string.ascii_uppercase + string.digits
    suffix = "".join(random.choices(chars, k=10))
    return f"{TRACKING_PREFIX}{suffix}"


class BookingService:
    """
    Booking orchestration.
    Dependencies are injected so they can be swapped in tests.
    """

    def __init__(self, price_catalog=None, promo_engine=None):
        self.catalog = price_catalog or PriceCatalog()
        self.promos  = promo_engine  or PromoEngine()

    @transaction.atomic
    def create_shipment(self, customer, validated_data: dict) -> Shipment:
        """
        Create a `booked` shipment with its price snapshot.
        Idempotent per customer: a replayed sync_id returns the existing shipment.
        """
        data = dict(validated_data)
        sync_id = data.pop("sync_id", "") or ""
        if sync_id:
            existing = self._replayed(customer, sync_id)
            if existing:
                return existing

        tracking_number = _generate_tracking_number()
        while Shipment.objects.filter(tracking_number=tracking_number).exists():
            tracking_number = _generate_tracking_number()

        price = self.catalog.get_price(data["parcel_type"])
        unit_price = price.price
        discount, final_price = 0, unit_price

        code = PromoCode.normalize(data.pop("promo_code", ""))
        if code:
            redemption = self.promos.validate_and_apply(
                code, unit_price,
                idempotency_key=f"booking:{sync_id or tracking_number}",
                order_type=PromoCode.Applicability.SHIPPING,
            )
            discount, final_price = redemption["discount"], redemption["final_amount"]

        now = timezone.now()
        try:
            with transaction.atomic():
                shipment = Shipment.objects.create(
                    tracking_number   = tracking_number,
                    customer          = customer,
                    unit_price        = unit_price,
                    promo_code        = code,
                    discount_amount   = discount,
                    final_price       = final_price,
                    currency          = price.currency,
                    status            = Status.BOOKED,
                    status_updated_at = now,
                    sync_id           = sync_id,
                    **data,
                )
        except IntegrityError:
            # same sync_id booked concurrently
            existing = self._replayed(customer, sync_id) if sync_id else None
            if existing is None:
                raise
            return existing

        ShipmentEvent.objects.create(
            shipment=shipment, kind=ShipmentEvent.Kind.STATUS,
            from_value="", to_value=Status.BOOKED, actor=customer,
            note=f"Booked {shipment.parcel_type} at {unit_price} {shipment.currency}",
        )
        enqueue_after_commit(send_shipment_status_notification, str(shipment.id), Status.BOOKED.value)
        logger.info("Shipment %s booked for %s: %s - %s = %s %s",
                    tracking_number, customer.phone, unit_price, discount, final_price, shipment.currency)
        return shipment

    @staticmethod
    def _replayed(customer, sync_id: str):
        existing = Shipment.objects.filter(sync_id=sync_id).first()
        if existing is None:
            return None
        if existing.customer_id != customer.pk:
            raise ConflictError("sync_id already used by another booking.", reason="SyncIdReused")
        logger.info("Idempotent create, returning existing %s", existing.tracking_number)
        return existing

    @transaction.atomic
    def record_payment_authorized(self, shipment: Shipment, reference: str, actor=None) -> Shipment:
        """Mark the booking paid. Re-delivery of the same event is a no-op."""
        reference = (reference or "").strip()
        if not reference:
            raise ValidationError("Payment reference is required.", reason="ReferenceRequired")
        if shipment.payment_status == Shipment.PaymentStatus.PAID:
            if shipment.payment_reference != reference:
                raise ConflictError("Shipment is already paid under another reference.",
                                    reason="AlreadyPaid")
            return shipment
        if shipment.payment_status != Shipment.PaymentStatus.PENDING:
            raise ConflictError(f"Cannot authorize payment for a {shipment.payment_status} shipment.",
                                reason="InvalidPaymentState")

        won = (
            Shipment.objects
            .filter(pk=shipment.pk, payment_status=Shipment.PaymentStatus.PENDING)
            .update(payment_status=Shipment.PaymentStatus.PAID,
                    payment_reference=reference, updated_at=timezone.now())
        )
        if not won:
            shipment.refresh_from_db()
            return self.record_payment_authorized(shipment, reference, actor)

        shipment.payment_status = Shipment.PaymentStatus.PAID
        shipment.payment_reference = reference
        ShipmentEvent.objects.create(
            shipment=shipment, kind=ShipmentEvent.Kind.PAYMENT,
            from_value=Shipment.PaymentStatus.PENDING, to_value=Shipment.PaymentStatus.PAID,
            actor=actor, note=f"Payment {reference} authorized",
        )
        logger.info("Payment %s authorized for %s", reference, shipment.tracking_number)
        return shipment


class ShipmentStateMachine:
    """
    Main track:  booked → picked_up → in_transit → customs → out_for_delivery → delivered
                 (cancelled from any non-terminal status)
    Warehouse:   none → received → sorted → packed → shipped, one step at a time,
                 location none → origin → destination
    """

    @transaction.atomic
    def transition_status(self, shipment: Shipment, target: str, actor=None, note: str = "") -> Shipment:
        if target not in Status.values:
            raise ValidationError(f"'{target}' is not a shipment status.", reason="InvalidStatus")

        current = shipment.status
        if not states.can_transition(current, target):
            raise ConflictError(f"Cannot move shipment from {current} to {target}.",
                                reason="InvalidTransition")

        now = timezone.now()
        changes = {"status": target, "status_updated_at": now, "updated_at": now}
        stamp = states.STATUS_TIMESTAMP_FIELDS.get(Status(target))
        if stamp:
            changes[stamp] = now

        won = Shipment.objects.filter(pk=shipment.pk, status=current).update(**changes)
        if not won:
            raise ConflictError("Shipment status changed concurrently. Reload and retry.",
                                reason="StaleStatus")
        for field, value in changes.items():
            setattr(shipment, field, value)

        ShipmentEvent.objects.create(
            shipment=shipment, kind=ShipmentEvent.Kind.STATUS,
            from_value=current, to_value=target, actor=actor, note=note,
        )
        enqueue_after_commit(send_shipment_status_notification, str(shipment.id), target)
        logger.info("Shipment %s: %s → %s", shipment.tracking_number, current, target)
        return shipment

    @transaction.atomic
    def advance_warehouse_status(self, shipment: Shipment, target: str, location: str = None,
                                 actor=None, note: str = "") -> Shipment:
        """
        Move one step along the warehouse track. Re-stating the current
        warehouse status is accepted only to record arrival at the
        destination warehouse.
        """
        if target not in WarehouseStatus.values or target == WarehouseStatus.NONE:
            raise ValidationError(f"'{target}' is not a warehouse status.", reason="InvalidWarehouseStatus")
        if location is not None and location not in (WarehouseLocation.ORIGIN, WarehouseLocation.DESTINATION):
            raise ValidationError(f"'{location}' is not a warehouse location.", reason="InvalidLocation")
        if Status(shipment.status) in states.TERMINAL_STATUSES:
            raise ConflictError(f"Shipment is {shipment.status}.", reason="InvalidState")

        current, current_location = shipment.warehouse_status, shipment.warehouse_location
        new_location = location or current_location

        if states.location_rank(new_location) < states.location_rank(current_location):
            raise ConflictError("Parcel cannot move back to the origin warehouse.",
                                reason="LocationRegression")

        step = states.warehouse_rank(target) - states.warehouse_rank(current)
        arriving = (new_location == WarehouseLocation.DESTINATION
                    and current_location != WarehouseLocation.DESTINATION)
        if not (step == 1 or (step == 0 and arriving)):
            raise ConflictError(f"Cannot move warehouse status from {current} to {target}.",
                                reason="InvalidWarehouseTransition")
        if target == WarehouseStatus.RECEIVED and new_location == WarehouseLocation.NONE:
            raise ValidationError("A warehouse location is required when receiving a parcel.",
                                  reason="LocationRequired")

        now = timezone.now()
        won = (
            Shipment.objects
            .filter(pk=shipment.pk, warehouse_status=current, warehouse_location=current_location)
            .update(warehouse_status=target, warehouse_location=new_location, updated_at=now)
        )
        if not won:
            raise ConflictError("Warehouse status changed concurrently. Reload and retry.",
                                reason="StaleStatus")
        shipment.warehouse_status, shipment.warehouse_location = target, new_location

        ShipmentEvent.objects.create(
            shipment=shipment, kind=ShipmentEvent.Kind.WAREHOUSE,
            from_value=f"{current}@{current_location}", to_value=f"{target}@{new_location}",
            actor=actor, note=note,
        )
        if step:
            enqueue_after_commit(send_warehouse_notification, str(shipment.id), target)
        logger.info("Shipment %s warehouse: %s@%s → %s@%s", shipment.tracking_number,
                    current, current_location, target, new_location)
        return shipment
