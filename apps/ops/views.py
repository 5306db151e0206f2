"""
Operations views:
  - Deep health check (DB, cache, disk)
  - Admin dashboard summary
"""

import os
import logging

from django.core.cache import cache
from django.db import connection, DatabaseError
from django.db.models import Count, Sum
from django.utils import timezone
from django_redis.exceptions import ConnectionInterrupted
from redis.exceptions import RedisError
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import AllowAny
from drf_spectacular.utils import extend_schema

from apps.common.permissions import IsAdmin

logger = logging.getLogger("manime.ops")


# ── GET /api/health/deep/ ─────────────────────────────────────────────────────
@extend_schema(tags=["Ops"], summary="Deep health check (DB, cache, disk)")
class DeepHealthView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request):
        checks = {}

        try:
            with connection.cursor() as cur:
                cur.execute("SELECT 1")
            checks["database"] = "ok"
        except DatabaseError as exc:
            logger.error("Health check: database unreachable: %s", exc)
            checks["database"] = f"error: {exc}"

        try:
            cache.set("healthcheck", "1", 5)
            checks["cache"] = "ok" if cache.get("healthcheck") == "1" else "miss"
        except (RedisError, ConnectionInterrupted) as exc:
            logger.error("Health check: cache unreachable: %s", exc)
            checks["cache"] = f"error: {exc}"

        try:
            stat = os.statvfs("/")
            free_gb = (stat.f_bavail * stat.f_frsize) / (1024 ** 3)
            checks["disk_free_gb"] = round(free_gb, 2)
            checks["disk"] = "ok" if free_gb > 1 else "low"
        except OSError as exc:
            checks["disk"] = f"error: {exc}"

        overall = "ok" if all(v == "ok" or isinstance(v, float) for v in checks.values()) else "degraded"
        return Response({"status": overall, "checks": checks})


# ── GET /api/admin/dashboard/summary/ ────────────────────────────────────────
@extend_schema(tags=["Admin"], summary="Control Tower: parcels, queues and cash at a glance")
class DashboardSummaryView(APIView):
    permission_classes = [IsAdmin]

    def get(self, request):
        from apps.shipments.models import Shipment
        from apps.shipments.assignment import AssignmentCoordinator
        from apps.settlements.models import CashSettlementReport

        today = timezone.localdate()
        shipment_summary = {s: 0 for s in Shipment.Status.values}
        shipment_summary.update(
            Shipment.objects.values_list("status").annotate(c=Count("id"))
        )
        booked_today = Shipment.objects.filter(created_at__date=today)
        pending_cash = CashSettlementReport.objects.filter(status=CashSettlementReport.Status.PENDING)

        return Response({
            "shipments_by_status":    shipment_summary,
            "booked_today":           booked_today.count(),
            "revenue_today":          str(booked_today.exclude(status=Shipment.Status.CANCELLED)
                                          .aggregate(t=Sum("final_price"))["t"] or 0),
            "pending_pickups":        AssignmentCoordinator.pending_pickups().count(),
            "pending_deliveries":     AssignmentCoordinator.pending_deliveries().count(),
            "pending_cash_reports":   pending_cash.count(),
            "pending_cash_discrepancy": str(pending_cash.aggregate(t=Sum("discrepancy"))["t"] or 0),
        })
