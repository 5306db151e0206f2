"""Cash settlement API views."""

import logging
from rest_framework import generics, status
from rest_framework.response import Response
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema

from apps.common.permissions import IsAdmin, IsAdminOrDriver, IsDriver
from .service import CashSettlementLedger
from . import serializers as sz

logger = logging.getLogger("manime.settlements")
ledger = CashSettlementLedger()


# ── GET / POST /api/cash-reports/ ────────────────────────────────────────────
@extend_schema(tags=["Cash Settlement"])
class CashReportListCreateView(generics.ListCreateAPIView):
    """
    POST: driver submits an end-of-shift cash report.
    GET:  admins see every report (filterable); drivers see their own history.
    """
    serializer_class = sz.CashReportSerializer
    filter_backends  = []

    def get_permissions(self):
        if self.request.method == "POST":
            return [IsDriver()]
        return [IsAdminOrDriver()]

    def get_queryset(self):
        params = sz.CashReportFilterSerializer(data=self.request.query_params)
        params.is_valid(raise_exception=True)
        f = params.validated_data
        driver_id = f.get("driver")
        if self.request.user.role != "ADMIN":
            driver_id = self.request.user.pk
        return ledger.list_reports(
            status=f.get("status"), driver_id=driver_id,
            start_date=f.get("start_date"), end_date=f.get("end_date"),
        )

    @extend_schema(request=sz.CashReportCreateSerializer, responses=sz.CashReportSerializer,
                   summary="Submit a cash report (Driver)")
    def post(self, request, *args, **kwargs):
        ser = sz.CashReportCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        d = ser.validated_data
        report = ledger.open_report(
            driver=request.user,
            reported_amount=d["reported_amount"],
            photo_ref=d["photo_ref"],
            shift_date=d.get("shift_date"),
            tracking_numbers=d["tracking_numbers"],
        )
        return Response(sz.CashReportSerializer(report).data, status=status.HTTP_201_CREATED)


# ── GET /api/cash-reports/{id}/ ──────────────────────────────────────────────
@extend_schema(tags=["Cash Settlement"], responses=sz.CashReportSerializer,
               summary="Retrieve a cash report")
class CashReportDetailView(APIView):
    permission_classes = [IsAdminOrDriver]

    def get(self, request, pk):
        report = ledger.get_report(pk)
        if request.user.role != "ADMIN" and report.driver_id != request.user.pk:
            return Response({"error": "Not your report.", "reason": "Forbidden"},
                            status=status.HTTP_403_FORBIDDEN)
        return Response(sz.CashReportSerializer(report).data)


# ── POST /api/cash-reports/{id}/resolve/ ─────────────────────────────────────
@extend_schema(tags=["Cash Settlement"], request=sz.CashReportResolveSerializer,
               responses=sz.CashReportSerializer, summary="Approve or reject a cash report (Admin)")
class CashReportResolveView(APIView):
    permission_classes = [IsAdmin]

    def post(self, request, pk):
        ser = sz.CashReportResolveSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        d = ser.validated_data
        report = ledger.resolve_report(pk, d["decision"], reviewer=request.user, notes=d["notes"])
        return Response(sz.CashReportSerializer(report).data)


# ── GET /api/cash-reports/stats/ ─────────────────────────────────────────────
@extend_schema(tags=["Cash Settlement"], summary="Cash report totals per status (Admin)")
class CashReportStatsView(APIView):
    permission_classes = [IsAdmin]

    def get(self, request):
        return Response(ledger.summary())
