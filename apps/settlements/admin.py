from django.contrib import admin
from .models import CashSettlementReport


@admin.register(CashSettlementReport)
class CashSettlementReportAdmin(admin.ModelAdmin):
    list_display  = ("id", "driver", "shift_date", "reported_amount", "expected_amount",
                     "discrepancy", "status", "submitted_at")
    list_filter   = ("status", "shift_date")
    search_fields = ("driver__phone", "driver__full_name")
    readonly_fields = ("expected_amount", "discrepancy", "submitted_at", "reviewed_at", "reviewed_by")
