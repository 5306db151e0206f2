"""Shipment API views: booking, lifecycle, assignment."""

import logging
from django.contrib.auth import get_user_model
from django.shortcuts import get_object_or_404
from rest_framework import generics, status, permissions
from rest_framework.response import Response
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema

from apps.common.exceptions import NotFoundError
from apps.common.permissions import IsAdmin, IsAdminOrDriver
from . import states
from .assignment import AssignmentCoordinator
from .models import Shipment
from .service import BookingService, ShipmentStateMachine
from . import serializers as sz

Agent = get_user_model()
logger = logging.getLogger("manime.shipments")
booking_service = BookingService()
state_machine = ShipmentStateMachine()
coordinator = AssignmentCoordinator()

DETAIL_RELATED = ("customer", "pickup_driver", "delivery_driver")


def _shipment(tracking_number):
    try:
        return Shipment.objects.select_related(*DETAIL_RELATED).get(tracking_number=tracking_number)
    except Shipment.DoesNotExist:
        raise NotFoundError(f"Shipment {tracking_number} not found.", reason="ShipmentNotFound")


def _detail(shipment):
    shipment = Shipment.objects.select_related(*DETAIL_RELATED).prefetch_related("events__actor").get(pk=shipment.pk)
    return Response(sz.ShipmentDetailSerializer(shipment).data)


# ── POST /api/shipments/create/ ───────────────────────────────────────────────
@extend_schema(tags=["Shipments"], summary="Book a parcel (UK → Ghana)")
class ShipmentCreateView(generics.CreateAPIView):
    serializer_class = sz.ShipmentCreateSerializer
    permission_classes = [permissions.IsAuthenticated]

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        shipment = booking_service.create_shipment(
            customer=request.user,
            validated_data=serializer.validated_data,
        )
        out = sz.ShipmentDetailSerializer(shipment)
        return Response(out.data, status=status.HTTP_201_CREATED)


# ── GET /api/shipments/ ────────────────────────────────────────────────────────
@extend_schema(tags=["Shipments"], summary="List shipments visible to the authenticated agent")
class ShipmentListView(generics.ListAPIView):
    serializer_class = sz.ShipmentSummarySerializer
    permission_classes = [permissions.IsAuthenticated]
    filterset_fields = ["status", "warehouse_status", "warehouse_location", "payment_method", "parcel_type"]
    search_fields = ["tracking_number", "sender_name", "receiver_name"]

    def get_queryset(self):
        user = self.request.user
        qs = Shipment.objects.select_related("customer")
        if user.role == Agent.Role.ADMIN:
            return qs
        if user.is_driver:
            return coordinator.driver_assignments(user)
        return qs.filter(customer=user)


# ── GET /api/shipments/statuses/ ──────────────────────────────────────────────
@extend_schema(tags=["Shipments"], summary="Status and warehouse status reference table")
class StatusTableView(APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        return Response(states.describe())


# ── GET /api/shipments/{tracking_number}/ ─────────────────────────────────────
@extend_schema(tags=["Shipments"], summary="Retrieve shipment by tracking number")
class ShipmentDetailView(generics.RetrieveAPIView):
    serializer_class   = sz.ShipmentDetailSerializer
    permission_classes = [permissions.IsAuthenticated]
    lookup_field = "tracking_number"

    def get_queryset(self):
        user = self.request.user
        qs = Shipment.objects.select_related(*DETAIL_RELATED).prefetch_related("events__actor")
        if user.role == Agent.Role.ADMIN:
            return qs
        if user.is_driver:
            return qs.filter(pk__in=coordinator.driver_assignments(user).values("pk"))
        return qs.filter(customer=user)


# ── POST /api/shipments/{tracking_number}/status/ ─────────────────────────────
@extend_schema(tags=["Lifecycle"], request=sz.StatusTransitionSerializer,
               responses=sz.ShipmentDetailSerializer, summary="Advance or cancel a shipment")
class StatusTransitionView(APIView):
    permission_classes = [IsAdminOrDriver]

    def post(self, request, tracking_number):
        ser = sz.StatusTransitionSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        shipment = _shipment(tracking_number)
        user = request.user
        if user.is_driver and user.pk not in (shipment.pickup_driver_id, shipment.delivery_driver_id):
            return Response({"error": "Shipment is not assigned to you.", "reason": "Forbidden"},
                            status=status.HTTP_403_FORBIDDEN)
        shipment = state_machine.transition_status(
            shipment, ser.validated_data["status"],
            actor=request.user, note=ser.validated_data["note"],
        )
        return _detail(shipment)


# ── POST /api/shipments/{tracking_number}/warehouse/ ──────────────────────────
@extend_schema(tags=["Lifecycle"], request=sz.WarehouseUpdateSerializer,
               responses=sz.ShipmentDetailSerializer, summary="Record a warehouse step (Admin)")
class WarehouseUpdateView(APIView):
    permission_classes = [IsAdmin]

    def post(self, request, tracking_number):
        ser = sz.WarehouseUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        d = ser.validated_data
        shipment = state_machine.advance_warehouse_status(
            _shipment(tracking_number), d["warehouse_status"],
            location=d.get("location"), actor=request.user, note=d["note"],
        )
        return _detail(shipment)


# ── POST /api/shipments/{tracking_number}/payment-authorized/ ─────────────────
@extend_schema(tags=["Shipments"], request=sz.PaymentAuthorizedSerializer,
               responses=sz.ShipmentDetailSerializer, summary="Record an authorized payment (Admin)")
class PaymentAuthorizedView(APIView):
    permission_classes = [IsAdmin]

    def post(self, request, tracking_number):
        ser = sz.PaymentAuthorizedSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        shipment = booking_service.record_payment_authorized(
            _shipment(tracking_number), ser.validated_data["reference"], actor=request.user,
        )
        return _detail(shipment)


# ── Assignment ────────────────────────────────────────────────────────────────
@extend_schema(tags=["Assignment"], request=sz.AssignDriverSerializer,
               responses=sz.ShipmentDetailSerializer, summary="Assign the UK pickup driver (Admin)")
class AssignPickupDriverView(APIView):
    permission_classes = [IsAdmin]

    def post(self, request, tracking_number):
        ser = sz.AssignDriverSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        shipment = coordinator.assign_pickup_driver(
            _shipment(tracking_number), ser.validated_data["driver_id"], actor=request.user,
        )
        return _detail(shipment)


@extend_schema(tags=["Assignment"], request=sz.AssignDriverSerializer,
               responses=sz.ShipmentDetailSerializer, summary="Assign the Ghana delivery driver (Admin)")
class AssignDeliveryDriverView(APIView):
    permission_classes = [IsAdmin]

    def post(self, request, tracking_number):
        ser = sz.AssignDriverSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        shipment = coordinator.assign_delivery_driver(
            _shipment(tracking_number), ser.validated_data["driver_id"], actor=request.user,
        )
        return _detail(shipment)


@extend_schema(tags=["Assignment"], request=sz.UnassignDriverSerializer,
               responses=sz.ShipmentDetailSerializer, summary="Clear a driver slot (Admin)")
class UnassignDriverView(APIView):
    permission_classes = [IsAdmin]

    def post(self, request, tracking_number):
        ser = sz.UnassignDriverSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        shipment = coordinator.unassign_driver(
            _shipment(tracking_number), ser.validated_data["slot"], actor=request.user,
        )
        return _detail(shipment)


@extend_schema(tags=["Assignment"], summary="Booked shipments waiting for a pickup driver (Admin)")
class PendingPickupsView(generics.ListAPIView):
    serializer_class   = sz.ShipmentSummarySerializer
    permission_classes = [IsAdmin]
    filter_backends    = []

    def get_queryset(self):
        return coordinator.pending_pickups()


@extend_schema(tags=["Assignment"], summary="Warehouse-cleared shipments waiting for a delivery driver (Admin)")
class PendingDeliveriesView(generics.ListAPIView):
    serializer_class   = sz.ShipmentSummarySerializer
    permission_classes = [IsAdmin]
    filter_backends    = []

    def get_queryset(self):
        return coordinator.pending_deliveries()


@extend_schema(tags=["Drivers"], summary="Shipments assigned to a driver")
class DriverAssignmentsView(generics.ListAPIView):
    serializer_class   = sz.ShipmentSummarySerializer
    permission_classes = [IsAdminOrDriver]
    filter_backends    = []

    def get_queryset(self):
        user = self.request.user
        if user.role != Agent.Role.ADMIN and str(user.pk) != str(self.kwargs["pk"]):
            return Shipment.objects.none()
        driver = get_object_or_404(Agent.objects.drivers(), pk=self.kwargs["pk"])
        active = self.request.query_params.get("active", "").lower() in ("1", "true", "yes")
        return coordinator.driver_assignments(driver, active_only=active)
