"""
Shipment lifecycle tests: booking, status state machine, warehouse track, payment.
"""

from decimal import Decimal
from unittest.mock import patch

import pytest

from apps.common.exceptions import ValidationError, NotFoundError, ConflictError, PolicyRejection


def advance(shipment, *targets):
    from apps.shipments.service import ShipmentStateMachine
    sm = ShipmentStateMachine()
    for target in targets:
        shipment = sm.transition_status(shipment, target)
    return shipment


# ═══════════════════════════════════════════════════════════════════════════════
# BOOKING
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.mark.django_db
class TestBooking:

    def test_booking_snapshots_catalog_price(self, make_shipment):
        from apps.shipments.models import ShipmentEvent
        shipment = make_shipment(parcel_type="medium_box")

        assert shipment.status == "booked"
        assert shipment.warehouse_status == "none"
        assert shipment.warehouse_location == "none"
        assert shipment.unit_price == Decimal("25.00")
        assert shipment.discount_amount == 0
        assert shipment.final_price == Decimal("25.00")
        assert shipment.currency == "GBP"
        assert shipment.tracking_number.startswith("MM")
        assert len(shipment.tracking_number) == 12
        assert shipment.events.filter(kind=ShipmentEvent.Kind.STATUS, to_value="booked").exists()

    def test_booking_with_promo_applies_discount_once(self, make_shipment, make_promo):
        from apps.pricing.models import PromoRedemption
        promo = make_promo("WELCOME10", "percentage", "10", min_order_value=Decimal("10.00"))
        shipment = make_shipment(parcel_type="medium_box", promo_code="welcome10")

        assert shipment.promo_code == "WELCOME10"
        assert shipment.discount_amount == Decimal("2.50")
        assert shipment.final_price == Decimal("22.50")
        promo.refresh_from_db()
        assert promo.used_count == 1
        assert PromoRedemption.objects.filter(
            idempotency_key=f"booking:{shipment.tracking_number}"
        ).exists()

    def test_duplicate_sync_id_returns_existing(self, make_shipment, make_promo):
        from apps.shipments.models import Shipment
        promo = make_promo()
        first  = make_shipment(sync_id="offline-001", promo_code="WELCOME10")
        second = make_shipment(sync_id="offline-001", promo_code="WELCOME10")

        assert first.pk == second.pk
        assert Shipment.objects.filter(sync_id="offline-001").count() == 1
        promo.refresh_from_db()
        assert promo.used_count == 1

    def test_sync_id_of_another_customer_conflicts(self, make_shipment, make_agent, booking_payload):
        from apps.shipments.models import Shipment
        from apps.shipments.service import BookingService
        make_shipment(sync_id="device-1", receiver_name="Kwame Mensah")
        mallory = make_agent(full_name="Mallory")
        data = booking_payload(sync_id="device-1")
        data["weight_kg"] = Decimal(data["weight_kg"])

        with pytest.raises(ConflictError) as exc:
            BookingService().create_shipment(mallory, data)
        assert exc.value.reason == "SyncIdReused"
        assert not Shipment.objects.filter(customer=mallory).exists()

    def test_unpriced_parcel_type_rejected(self, make_shipment):
        from apps.shipments.models import Shipment
        with pytest.raises(NotFoundError) as exc:
            make_shipment(parcel_type="drum")
        assert exc.value.reason == "PriceNotFound"
        assert not Shipment.objects.exists()

    def test_rejected_promo_aborts_booking(self, make_shipment, make_promo):
        from apps.shipments.models import Shipment
        make_promo(min_order_value=Decimal("30.00"))
        with pytest.raises(PolicyRejection) as exc:
            make_shipment(parcel_type="medium_box", promo_code="WELCOME10")
        assert exc.value.reason == "BelowMinimumOrder"
        assert not Shipment.objects.exists()

    def test_grocery_only_promo_not_applicable_to_shipping(self, make_shipment, make_promo):
        make_promo("FREESHIP", "fixed", "10", applicable_to="grocery")
        with pytest.raises(PolicyRejection) as exc:
            make_shipment(promo_code="FREESHIP")
        assert exc.value.reason == "NotApplicable"

    def test_booking_notifies_after_commit(self, make_shipment, django_capture_on_commit_callbacks):
        with patch("apps.shipments.service.send_shipment_status_notification") as task:
            with django_capture_on_commit_callbacks(execute=True):
                shipment = make_shipment()
        task.delay.assert_called_once_with(str(shipment.id), "booked")


# ═══════════════════════════════════════════════════════════════════════════════
# STATUS STATE MACHINE
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.mark.django_db
class TestStatusTransitions:

    def setup_method(self):
        from apps.shipments.service import ShipmentStateMachine
        self.sm = ShipmentStateMachine()

    def test_full_main_track(self, make_shipment):
        shipment = advance(make_shipment(), "picked_up", "in_transit", "customs",
                           "out_for_delivery", "delivered")
        shipment.refresh_from_db()

        assert shipment.status == "delivered"
        for stamp in ("picked_up_at", "in_transit_at", "customs_at", "out_for_delivery_at", "delivered_at"):
            assert getattr(shipment, stamp) is not None
        assert shipment.cancelled_at is None
        assert list(shipment.events.filter(kind="status").values_list("to_value", flat=True)) == [
            "booked", "picked_up", "in_transit", "customs", "out_for_delivery", "delivered",
        ]

    def test_skipping_steps_rejected(self, make_shipment):
        shipment = make_shipment()
        with pytest.raises(ConflictError) as exc:
            self.sm.transition_status(shipment, "delivered")
        assert exc.value.reason == "InvalidTransition"
        shipment.refresh_from_db()
        assert shipment.status == "booked"

    def test_moving_backwards_rejected(self, make_shipment):
        shipment = advance(make_shipment(), "picked_up", "in_transit")
        with pytest.raises(ConflictError):
            self.sm.transition_status(shipment, "picked_up")

    def test_unknown_status_rejected(self, make_shipment):
        with pytest.raises(ValidationError) as exc:
            self.sm.transition_status(make_shipment(), "lost")
        assert exc.value.reason == "InvalidStatus"

    @pytest.mark.parametrize("path", [
        [],
        ["picked_up"],
        ["picked_up", "in_transit", "customs"],
        ["picked_up", "in_transit", "customs", "out_for_delivery"],
    ])
    def test_cancel_from_any_active_status(self, make_shipment, path):
        shipment = advance(make_shipment(), *path, "cancelled")
        shipment.refresh_from_db()
        assert shipment.status == "cancelled"
        assert shipment.cancelled_at is not None

    @pytest.mark.parametrize("terminal_path", [
        ["cancelled"],
        ["picked_up", "in_transit", "customs", "out_for_delivery", "delivered"],
    ])
    @pytest.mark.parametrize("target", ["booked", "picked_up", "delivered", "cancelled"])
    def test_nothing_leaves_a_terminal_status(self, make_shipment, terminal_path, target):
        shipment = advance(make_shipment(), *terminal_path)
        with pytest.raises(ConflictError) as exc:
            self.sm.transition_status(shipment, target)
        assert exc.value.reason == "InvalidTransition"

    def test_stale_copy_loses(self, make_shipment):
        from apps.shipments.models import Shipment
        shipment = make_shipment()
        stale = Shipment.objects.get(pk=shipment.pk)

        self.sm.transition_status(shipment, "picked_up")
        with pytest.raises(ConflictError) as exc:
            self.sm.transition_status(stale, "picked_up")
        assert exc.value.reason == "StaleStatus"
        assert shipment.events.filter(to_value="picked_up").count() == 1

    def test_transition_enqueues_customer_notification(self, make_shipment,
                                                       django_capture_on_commit_callbacks):
        shipment = make_shipment()
        with patch("apps.shipments.service.send_shipment_status_notification") as task:
            with django_capture_on_commit_callbacks(execute=True):
                self.sm.transition_status(shipment, "picked_up")
        task.delay.assert_called_once_with(str(shipment.id), "picked_up")

    def test_broker_failure_does_not_fail_transition(self, make_shipment,
                                                     django_capture_on_commit_callbacks):
        shipment = make_shipment()
        with patch("apps.shipments.service.send_shipment_status_notification") as task:
            task.delay.side_effect = ConnectionError("broker down")
            with django_capture_on_commit_callbacks(execute=True):
                self.sm.transition_status(shipment, "picked_up")
        shipment.refresh_from_db()
        assert shipment.status == "picked_up"


# ═══════════════════════════════════════════════════════════════════════════════
# WAREHOUSE TRACK
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.mark.django_db
class TestWarehouseTrack:

    def setup_method(self):
        from apps.shipments.service import ShipmentStateMachine
        self.sm = ShipmentStateMachine()

    def test_origin_warehouse_steps(self, make_shipment):
        shipment = advance(make_shipment(), "picked_up")
        shipment = self.sm.advance_warehouse_status(shipment, "received", location="origin")
        for step in ("sorted", "packed", "shipped"):
            shipment = self.sm.advance_warehouse_status(shipment, step)

        shipment.refresh_from_db()
        assert shipment.warehouse_status == "shipped"
        assert shipment.warehouse_location == "origin"
        assert shipment.events.filter(kind="warehouse").count() == 4

    def test_receiving_requires_location(self, make_shipment):
        with pytest.raises(ValidationError) as exc:
            self.sm.advance_warehouse_status(make_shipment(), "received")
        assert exc.value.reason == "LocationRequired"

    def test_skipping_warehouse_step_rejected(self, make_shipment):
        shipment = self.sm.advance_warehouse_status(make_shipment(), "received", location="origin")
        with pytest.raises(ConflictError) as exc:
            self.sm.advance_warehouse_status(shipment, "packed")
        assert exc.value.reason == "InvalidWarehouseTransition"

    def test_warehouse_status_never_goes_back(self, make_shipment):
        shipment = self.sm.advance_warehouse_status(make_shipment(), "received", location="origin")
        shipment = self.sm.advance_warehouse_status(shipment, "sorted")
        with pytest.raises(ConflictError):
            self.sm.advance_warehouse_status(shipment, "received")

    def test_arrival_at_destination_restates_status(self, make_shipment,
                                                     django_capture_on_commit_callbacks):
        shipment = self.sm.advance_warehouse_status(make_shipment(), "received", location="origin")
        for step in ("sorted", "packed", "shipped"):
            shipment = self.sm.advance_warehouse_status(shipment, step)

        with patch("apps.shipments.service.send_warehouse_notification") as task:
            with django_capture_on_commit_callbacks(execute=True):
                shipment = self.sm.advance_warehouse_status(shipment, "shipped", location="destination")
        assert shipment.warehouse_location == "destination"
        task.delay.assert_not_called()

        # same status at the same place is not a step
        with pytest.raises(ConflictError):
            self.sm.advance_warehouse_status(shipment, "shipped", location="destination")

    def test_location_cannot_regress(self, make_shipment):
        shipment = self.sm.advance_warehouse_status(make_shipment(), "received", location="destination")
        with pytest.raises(ConflictError) as exc:
            self.sm.advance_warehouse_status(shipment, "sorted", location="origin")
        assert exc.value.reason == "LocationRegression"

    def test_terminal_shipment_frozen(self, make_shipment):
        shipment = advance(make_shipment(), "cancelled")
        with pytest.raises(ConflictError) as exc:
            self.sm.advance_warehouse_status(shipment, "received", location="origin")
        assert exc.value.reason == "InvalidState"

    def test_invalid_values_rejected(self, make_shipment):
        shipment = make_shipment()
        with pytest.raises(ValidationError):
            self.sm.advance_warehouse_status(shipment, "none")
        with pytest.raises(ValidationError):
            self.sm.advance_warehouse_status(shipment, "received", location="accra")

    def test_warehouse_step_notifies(self, make_shipment, django_capture_on_commit_callbacks):
        shipment = make_shipment()
        with patch("apps.shipments.service.send_warehouse_notification") as task:
            with django_capture_on_commit_callbacks(execute=True):
                self.sm.advance_warehouse_status(shipment, "received", location="origin")
        task.delay.assert_called_once_with(str(shipment.id), "received")


# ═══════════════════════════════════════════════════════════════════════════════
# PAYMENT AUTHORIZATION
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.mark.django_db
class TestPaymentAuthorized:

    def setup_method(self):
        from apps.shipments.service import BookingService
        self.svc = BookingService()

    def test_marks_paid_once(self, make_shipment):
        shipment = make_shipment()
        self.svc.record_payment_authorized(shipment, "pi_123")
        self.svc.record_payment_authorized(shipment, "pi_123")

        shipment.refresh_from_db()
        assert shipment.payment_status == "paid"
        assert shipment.payment_reference == "pi_123"
        assert shipment.events.filter(kind="payment").count() == 1

    def test_other_reference_conflicts(self, make_shipment):
        shipment = self.svc.record_payment_authorized(make_shipment(), "pi_123")
        with pytest.raises(ConflictError) as exc:
            self.svc.record_payment_authorized(shipment, "pi_999")
        assert exc.value.reason == "AlreadyPaid"

    def test_reference_required(self, make_shipment):
        with pytest.raises(ValidationError) as exc:
            self.svc.record_payment_authorized(make_shipment(), "   ")
        assert exc.value.reason == "ReferenceRequired"

    def test_refunded_cannot_be_paid(self, make_shipment):
        shipment = make_shipment()
        shipment.payment_status = "refunded"
        with pytest.raises(ConflictError) as exc:
            self.svc.record_payment_authorized(shipment, "pi_123")
        assert exc.value.reason == "InvalidPaymentState"
