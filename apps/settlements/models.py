"""
Cash settlement reports: a driver's end-of-shift declaration of cash collected.
The discrepancy is informational; resolving a report never touches shipment status.
"""

from django.db import models
from django.conf import settings


class CashSettlementReport(models.Model):

    class Status(models.TextChoices):
        PENDING  = "pending",  "Pending review"
        APPROVED = "approved", "Approved"
        REJECTED = "rejected", "Rejected"

    driver          = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT,
                                        related_name="cash_reports")
    reported_amount = models.DecimalField(max_digits=10, decimal_places=2)
    expected_amount = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    # reported − expected; positive means the driver handed in more than expected
    discrepancy     = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    currency        = models.CharField(max_length=3, default="GBP")
    photo_ref       = models.CharField(max_length=500)
    shift_date      = models.DateField()
    shipments       = models.ManyToManyField("shipments.Shipment", blank=True,
                                             related_name="cash_reports")

    status      = models.CharField(max_length=8, choices=Status.choices, default=Status.PENDING)
    submitted_at = models.DateTimeField(auto_now_add=True)
    reviewed_at = models.DateTimeField(null=True, blank=True)
    reviewed_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL,
                                    null=True, blank=True, related_name="+")
    notes       = models.TextField(blank=True)

    class Meta:
        ordering = ["-submitted_at"]
        indexes  = [
            models.Index(fields=["status"], name="cash_report_status_idx"),
            models.Index(fields=["driver", "shift_date"], name="cash_report_driver_shift_idx"),
        ]

    def __str__(self):
        return f"Cash report #{self.pk} – {self.driver} {self.reported_amount} [{self.status}]"
