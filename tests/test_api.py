"""
API tests: shipment endpoints, RBAC, drivers, ops, error shape.
"""

from decimal import Decimal

import pytest
from rest_framework import status
from rest_framework.test import APIClient


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
class TestShipmentEndpoints:

    def test_customer_books_parcel(self, auth_client, prices, booking_payload):
        resp = auth_client.post("/api/shipments/create/", booking_payload(), format="json")
        assert resp.status_code == status.HTTP_201_CREATED
        body = resp.json()
        assert body["status"] == "booked"
        assert body["status_label"] == "Booked"
        assert body["unit_price"] == "25.00"
        assert body["final_price"] == "25.00"
        assert body["payment_status"] == "pending"
        assert body["customer_name"] == "Ama Mensah"

    def test_booking_with_promo(self, auth_client, prices, booking_payload, make_promo):
        make_promo()
        resp = auth_client.post("/api/shipments/create/",
                                booking_payload(promo_code="welcome10"), format="json")
        assert resp.status_code == status.HTTP_201_CREATED
        assert resp.json()["discount_amount"] == "2.50"
        assert resp.json()["final_price"] == "22.50"

    def test_offline_sync_is_idempotent(self, auth_client, prices, booking_payload):
        payload = booking_payload(sync_id="phone-sync-001")
        first  = auth_client.post("/api/shipments/create/", payload, format="json")
        second = auth_client.post("/api/shipments/create/", payload, format="json")
        assert first.json()["tracking_number"] == second.json()["tracking_number"]

    def test_sync_id_of_another_customer_is_409(self, make_shipment, make_agent, booking_payload):
        make_shipment(sync_id="phone-sync-002")
        client = APIClient()
        client.force_authenticate(user=make_agent(full_name="Mallory"))
        resp = client.post("/api/shipments/create/", booking_payload(sync_id="phone-sync-002"),
                           format="json")
        assert resp.status_code == status.HTTP_409_CONFLICT
        assert resp.json()["reason"] == "SyncIdReused"
        assert "receiver_name" not in resp.json()

    def test_unknown_parcel_type_is_400(self, auth_client, prices, booking_payload):
        resp = auth_client.post("/api/shipments/create/",
                                booking_payload(parcel_type="piano"), format="json")
        assert resp.status_code == status.HTTP_400_BAD_REQUEST

    def test_unpriced_parcel_type_is_404(self, auth_client, prices, booking_payload):
        resp = auth_client.post("/api/shipments/create/",
                                booking_payload(parcel_type="barrel"), format="json")
        assert resp.status_code == status.HTTP_404_NOT_FOUND
        assert resp.json()["reason"] == "PriceNotFound"

    def test_unauthenticated_cannot_book(self, api_client, prices, booking_payload):
        resp = api_client.post("/api/shipments/create/", booking_payload(), format="json")
        assert resp.status_code == status.HTTP_401_UNAUTHORIZED

    def test_customer_sees_only_own_shipments(self, api_client, make_shipment, make_agent):
        mine = make_shipment()
        other = make_agent(full_name="Someone Else")
        api_client.force_authenticate(user=other)

        resp = api_client.get("/api/shipments/")
        assert resp.json()["count"] == 0
        resp = api_client.get(f"/api/shipments/{mine.tracking_number}/")
        assert resp.status_code == status.HTTP_404_NOT_FOUND

    def test_detail_includes_events(self, auth_client, make_shipment):
        shipment = make_shipment()
        resp = auth_client.get(f"/api/shipments/{shipment.tracking_number}/")
        assert resp.status_code == status.HTTP_200_OK
        assert [e["to_value"] for e in resp.json()["events"]] == ["booked"]

    def test_status_table_is_public(self, api_client):
        resp = api_client.get("/api/shipments/statuses/")
        assert resp.status_code == status.HTTP_200_OK
        statuses = {s["value"]: s for s in resp.json()["statuses"]}
        assert statuses["booked"]["next"] == ["cancelled", "picked_up"]
        assert statuses["delivered"]["terminal"] is True
        assert statuses["delivered"]["next"] == []
        warehouse = {w["value"]: w for w in resp.json()["warehouse_statuses"]}
        assert warehouse["none"]["body"] is None
        assert warehouse["shipped"]["title"] == "Warehouse Update"


# ═══════════════════════════════════════════════════════════════════════════════
# LIFECYCLE: RBAC and error shape
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.mark.django_db
class TestLifecycleEndpoints:

    def test_customer_cannot_change_status(self, auth_client, make_shipment):
        shipment = make_shipment()
        resp = auth_client.post(f"/api/shipments/{shipment.tracking_number}/status/",
                                {"status": "picked_up"}, format="json")
        assert resp.status_code == status.HTTP_403_FORBIDDEN

    def test_assigned_driver_advances_status(self, api_client, make_shipment, pickup_driver):
        from apps.shipments.assignment import AssignmentCoordinator
        shipment = AssignmentCoordinator().assign_pickup_driver(make_shipment(), pickup_driver.pk)
        api_client.force_authenticate(user=pickup_driver)

        resp = api_client.post(f"/api/shipments/{shipment.tracking_number}/status/",
                               {"status": "picked_up", "note": "Collected from sender"}, format="json")
        assert resp.status_code == status.HTTP_200_OK
        assert resp.json()["status"] == "picked_up"
        assert resp.json()["events"][-1]["actor_name"] == "Driver Dave"

    def test_unassigned_driver_forbidden(self, api_client, make_shipment, make_driver):
        shipment = make_shipment()
        api_client.force_authenticate(user=make_driver("PICKUP"))
        resp = api_client.post(f"/api/shipments/{shipment.tracking_number}/status/",
                               {"status": "picked_up"}, format="json")
        assert resp.status_code == status.HTTP_403_FORBIDDEN
        assert resp.json()["reason"] == "Forbidden"

    def test_illegal_transition_error_shape(self, admin_client, make_shipment):
        shipment = make_shipment()
        resp = admin_client.post(f"/api/shipments/{shipment.tracking_number}/status/",
                                 {"status": "delivered"}, format="json")
        assert resp.status_code == status.HTTP_409_CONFLICT
        assert resp.json() == {"error": "Cannot move shipment from booked to delivered.",
                               "reason": "InvalidTransition"}

    def test_unknown_shipment(self, admin_client):
        resp = admin_client.post("/api/shipments/MMNOPE/status/", {"status": "picked_up"}, format="json")
        assert resp.status_code == status.HTTP_404_NOT_FOUND
        assert resp.json()["reason"] == "ShipmentNotFound"

    def test_warehouse_update_admin_only(self, api_client, make_shipment, pickup_driver):
        shipment = make_shipment()
        api_client.force_authenticate(user=pickup_driver)
        resp = api_client.post(f"/api/shipments/{shipment.tracking_number}/warehouse/",
                               {"warehouse_status": "received", "location": "origin"}, format="json")
        assert resp.status_code == status.HTTP_403_FORBIDDEN

    def test_admin_records_warehouse_step(self, admin_client, make_shipment):
        shipment = make_shipment()
        resp = admin_client.post(f"/api/shipments/{shipment.tracking_number}/warehouse/",
                                 {"warehouse_status": "received", "location": "origin"}, format="json")
        assert resp.status_code == status.HTTP_200_OK
        assert resp.json()["warehouse_status"] == "received"
        assert resp.json()["warehouse_location"] == "origin"

    def test_payment_authorized(self, admin_client, make_shipment):
        shipment = make_shipment()
        url = f"/api/shipments/{shipment.tracking_number}/payment-authorized/"
        assert admin_client.post(url, {"reference": "pi_1"}, format="json").status_code == status.HTTP_200_OK
        assert admin_client.post(url, {"reference": "pi_1"}, format="json").status_code == status.HTTP_200_OK
        resp = admin_client.post(url, {"reference": "pi_2"}, format="json")
        assert resp.status_code == status.HTTP_409_CONFLICT
        assert resp.json()["reason"] == "AlreadyPaid"


# ═══════════════════════════════════════════════════════════════════════════════
# ASSIGNMENT
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.mark.django_db
class TestAssignmentEndpoints:

    def test_assign_and_unassign_pickup(self, admin_client, make_shipment, pickup_driver):
        shipment = make_shipment()
        base = f"/api/shipments/{shipment.tracking_number}"

        resp = admin_client.post(f"{base}/assign-pickup-driver/", {"driver_id": str(pickup_driver.pk)},
                                 format="json")
        assert resp.status_code == status.HTTP_200_OK
        assert resp.json()["pickup_driver_name"] == "Driver Dave"

        resp = admin_client.post(f"{base}/unassign-driver/", {"slot": "pickup"}, format="json")
        assert resp.status_code == status.HTTP_200_OK
        assert resp.json()["pickup_driver"] is None

    def test_delivery_gate_is_422(self, admin_client, make_shipment, delivery_driver):
        shipment = advance(make_shipment(), "picked_up", "in_transit", "customs")
        resp = admin_client.post(f"/api/shipments/{shipment.tracking_number}/assign-delivery-driver/",
                                 {"driver_id": str(delivery_driver.pk)}, format="json")
        assert resp.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert resp.json()["reason"] == "WarehouseNotCleared"

    def test_customer_cannot_assign(self, auth_client, make_shipment, pickup_driver):
        shipment = make_shipment()
        resp = auth_client.post(f"/api/shipments/{shipment.tracking_number}/assign-pickup-driver/",
                                {"driver_id": str(pickup_driver.pk)}, format="json")
        assert resp.status_code == status.HTTP_403_FORBIDDEN

    def test_pending_queues(self, admin_client, make_shipment):
        shipment = make_shipment()
        resp = admin_client.get("/api/assignments/pending-pickups/")
        assert resp.status_code == status.HTTP_200_OK
        assert [s["tracking_number"] for s in resp.json()["results"]] == [shipment.tracking_number]
        assert admin_client.get("/api/assignments/pending-deliveries/").json()["count"] == 0

    def test_driver_sees_own_assignments_only(self, api_client, make_shipment, pickup_driver, make_driver):
        from apps.shipments.assignment import AssignmentCoordinator
        shipment = AssignmentCoordinator().assign_pickup_driver(make_shipment(), pickup_driver.pk)
        other = make_driver("PICKUP")

        api_client.force_authenticate(user=pickup_driver)
        resp = api_client.get(f"/api/drivers/{pickup_driver.pk}/assignments/?active=true")
        assert [s["tracking_number"] for s in resp.json()["results"]] == [shipment.tracking_number]
        assert api_client.get(f"/api/drivers/{other.pk}/assignments/").json()["count"] == 0

        resp = api_client.get("/api/shipments/")
        assert resp.json()["count"] == 1


# ═══════════════════════════════════════════════════════════════════════════════
# DRIVERS
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.mark.django_db
class TestDriverEndpoints:

    def test_admin_registers_ghana_driver(self, admin_client):
        resp = admin_client.post("/api/auth/drivers/", {
            "phone": "+233201234567", "full_name": "Kwesi Boateng",
            "password": "Driver@1234", "role": "GH_DRIVER", "vehicle_number": "GR-1234-22",
        }, format="json")
        assert resp.status_code == status.HTTP_201_CREATED
        assert resp.json()["region_scope"] == "DELIVERY"

    def test_bad_phone_rejected(self, admin_client):
        resp = admin_client.post("/api/auth/drivers/", {
            "phone": "12345", "full_name": "X", "password": "Driver@1234", "role": "UK_DRIVER",
        }, format="json")
        assert resp.status_code == status.HTTP_400_BAD_REQUEST

    def test_filter_by_scope_and_active(self, admin_client, pickup_driver, delivery_driver, make_driver):
        make_driver("PICKUP", is_active=False)
        resp = admin_client.get("/api/auth/drivers/?region_scope=PICKUP&is_active=true")
        assert [d["id"] for d in resp.json()["results"]] == [str(pickup_driver.pk)]

    def test_deactivate_driver(self, admin_client, pickup_driver):
        resp = admin_client.patch(f"/api/auth/drivers/{pickup_driver.pk}/status/",
                                  {"is_active": False}, format="json")
        assert resp.status_code == status.HTTP_200_OK
        pickup_driver.refresh_from_db()
        assert pickup_driver.is_active is False

    def test_customer_cannot_list_drivers(self, auth_client):
        assert auth_client.get("/api/auth/drivers/").status_code == status.HTTP_403_FORBIDDEN

    def test_register_customer(self, api_client):
        resp = api_client.post("/api/auth/register/", {
            "phone": "07700900123", "full_name": "New Customer", "password": "Secret@123",
        }, format="json")
        assert resp.status_code == status.HTTP_201_CREATED


# ═══════════════════════════════════════════════════════════════════════════════
# OPS
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.mark.django_db
class TestOpsEndpoints:

    def test_health_deep_accessible_without_auth(self, api_client):
        resp = api_client.get("/api/health/deep/")
        assert resp.status_code == status.HTTP_200_OK
        body = resp.json()
        assert body["status"] in ("ok", "degraded")
        assert body["checks"]["database"] == "ok"
        assert body["checks"]["cache"] == "ok"

    def test_dashboard_requires_admin(self, auth_client):
        assert auth_client.get("/api/admin/dashboard/summary/").status_code == status.HTTP_403_FORBIDDEN

    def test_admin_dashboard_returns_summary(self, admin_client, make_shipment):
        make_shipment()
        advance(make_shipment(), "cancelled")
        resp = admin_client.get("/api/admin/dashboard/summary/")
        assert resp.status_code == status.HTTP_200_OK
        body = resp.json()
        assert body["shipments_by_status"]["booked"] == 1
        assert body["shipments_by_status"]["cancelled"] == 1
        assert body["booked_today"] == 2
        assert Decimal(body["revenue_today"]) == Decimal("25.00")
        assert body["pending_pickups"] == 1
        assert body["pending_cash_reports"] == 0
