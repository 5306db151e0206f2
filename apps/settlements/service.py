"""
CashSettlementLedger opens and resolves driver cash reports.

open_report    → expected = Σ final_price of the covered cash shipments,
                 discrepancy = reported − expected, status pending
resolve_report → pending → approved | rejected, exactly once
"""

import logging
from decimal import Decimal

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Count, Sum
from django.utils import timezone

from apps.common.exceptions import ValidationError, NotFoundError, ConflictError
from apps.pricing.service import to_money
from apps.settlements.models import CashSettlementReport
from apps.shipments.models import Shipment

Agent = get_user_model()
logger = logging.getLogger("manime.settlements")


class CashSettlementLedger:

    @transaction.atomic
    def open_report(self, driver, reported_amount, photo_ref: str, shift_date,
                    tracking_numbers=None) -> CashSettlementReport:
        if not getattr(driver, "is_driver", False):
            raise ValidationError("Only drivers can submit cash reports.", reason="NotADriver")
        reported = to_money(reported_amount)
        if reported < 0:
            raise ValidationError("Reported amount cannot be negative.", reason="InvalidAmount")
        if not (photo_ref or "").strip():
            raise ValidationError("A photo of the cash is required.", reason="PhotoRequired")

        tracking_numbers = list(dict.fromkeys(tracking_numbers or []))
        # row locks serialize two reports claiming the same shipment
        shipments = list(Shipment.objects.select_for_update().filter(tracking_number__in=tracking_numbers))
        missing = set(tracking_numbers) - {s.tracking_number for s in shipments}
        if missing:
            raise NotFoundError(f"Unknown shipments: {', '.join(sorted(missing))}.",
                                reason="ShipmentNotFound")
        foreign = [s.tracking_number for s in shipments
                   if driver.pk not in (s.pickup_driver_id, s.delivery_driver_id)]
        if foreign:
            raise ValidationError(f"Shipments not assigned to you: {', '.join(sorted(foreign))}.",
                                  reason="ShipmentNotAssigned")

        settled = list(
            Shipment.objects
            .filter(pk__in=[s.pk for s in shipments],
                    cash_reports__status__in=[CashSettlementReport.Status.PENDING,
                                              CashSettlementReport.Status.APPROVED])
            .values_list("tracking_number", flat=True).distinct()
        )
        if settled:
            raise ConflictError(f"Shipments already in a cash report: {', '.join(sorted(settled))}.",
                                reason="ShipmentAlreadySettled")

        cash = [s for s in shipments if s.payment_method == Shipment.PaymentMethod.CASH]
        currencies = {s.currency for s in cash}
        if len(currencies) > 1:
            raise ValidationError(f"Cash shipments mix currencies: {', '.join(sorted(currencies))}.",
                                  reason="MixedCurrency")
        currency = currencies.pop() if currencies else settings.DEFAULT_CURRENCY

        expected = sum((s.final_price for s in cash), Decimal("0.00"))
        report = CashSettlementReport.objects.create(
            driver=driver,
            reported_amount=reported,
            expected_amount=expected,
            discrepancy=reported - expected,
            currency=currency,
            photo_ref=photo_ref.strip(),
            shift_date=shift_date or timezone.localdate(),
        )
        report.shipments.set(shipments)
        logger.info("Cash report #%s by %s: reported %s, expected %s, discrepancy %s",
                    report.pk, driver.phone, reported, expected, report.discrepancy)
        return report

    @transaction.atomic
    def resolve_report(self, report_id, decision: str, reviewer, notes: str = "") -> CashSettlementReport:
        if decision not in (CashSettlementReport.Status.APPROVED, CashSettlementReport.Status.REJECTED):
            raise ValidationError("Decision must be 'approved' or 'rejected'.", reason="InvalidDecision")
        notes = (notes or "").strip()
        if decision == CashSettlementReport.Status.REJECTED and not notes:
            raise ValidationError("A note is required when rejecting a cash report.", reason="NoteRequired")

        now = timezone.now()
        won = (
            CashSettlementReport.objects
            .filter(pk=report_id, status=CashSettlementReport.Status.PENDING)
            .update(status=decision, reviewed_by=reviewer, reviewed_at=now, notes=notes)
        )
        report = self.get_report(report_id)
        if not won:
            raise ConflictError(f"Cash report #{report_id} was already {report.status}.",
                                reason="AlreadyResolved")
        logger.info("Cash report #%s %s by %s", report_id, decision, reviewer.phone)
        return report

    # ── queries ───────────────────────────────────────────────────────────────
    def get_report(self, report_id) -> CashSettlementReport:
        try:
            return (CashSettlementReport.objects
                    .select_related("driver", "reviewed_by")
                    .prefetch_related("shipments")
                    .get(pk=report_id))
        except CashSettlementReport.DoesNotExist:
            raise NotFoundError(f"Cash report #{report_id} not found.", reason="ReportNotFound")

    def list_reports(self, status=None, driver_id=None, start_date=None, end_date=None):
        qs = CashSettlementReport.objects.select_related("driver", "reviewed_by").prefetch_related("shipments")
        if status:
            qs = qs.filter(status=status)
        if driver_id:
            qs = qs.filter(driver_id=driver_id)
        if start_date:
            qs = qs.filter(shift_date__gte=start_date)
        if end_date:
            qs = qs.filter(shift_date__lte=end_date)
        return qs

    def summary(self) -> dict:
        rows = (
            CashSettlementReport.objects
            .values("status")
            .annotate(count=Count("id"), reported=Sum("reported_amount"),
                      expected=Sum("expected_amount"), discrepancy=Sum("discrepancy"))
        )
        by_status = {s: {"count": 0, "reported": Decimal("0.00"), "expected": Decimal("0.00"),
                         "discrepancy": Decimal("0.00")}
                     for s in CashSettlementReport.Status.values}
        for row in rows:
            by_status[row["status"]] = {
                "count":       row["count"],
                "reported":    row["reported"] or Decimal("0.00"),
                "expected":    row["expected"] or Decimal("0.00"),
                "discrepancy": row["discrepancy"] or Decimal("0.00"),
            }
        return {
            "total_reports": sum(v["count"] for v in by_status.values()),
            "by_status":     by_status,
        }
