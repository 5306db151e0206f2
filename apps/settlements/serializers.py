"""Cash settlement serializers."""

from rest_framework import serializers
from .models import CashSettlementReport


class CashReportSerializer(serializers.ModelSerializer):
    driver_name      = serializers.CharField(source="driver.full_name", read_only=True)
    reviewed_by_name = serializers.CharField(source="reviewed_by.full_name", read_only=True, default=None)
    shipments        = serializers.SlugRelatedField(slug_field="tracking_number", many=True, read_only=True)

    class Meta:
        model  = CashSettlementReport
        fields = [
            "id", "driver", "driver_name", "reported_amount", "expected_amount", "discrepancy",
            "currency", "photo_ref", "shift_date", "shipments", "status",
            "submitted_at", "reviewed_at", "reviewed_by_name", "notes",
        ]


class CashReportCreateSerializer(serializers.Serializer):
    reported_amount  = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    photo_ref        = serializers.CharField(max_length=500)
    shift_date       = serializers.DateField(required=False)
    tracking_numbers = serializers.ListField(child=serializers.CharField(max_length=20),
                                             required=False, default=list)


class CashReportResolveSerializer(serializers.Serializer):
    decision = serializers.ChoiceField(choices=[CashSettlementReport.Status.APPROVED,
                                                CashSettlementReport.Status.REJECTED])
    notes    = serializers.CharField(required=False, allow_blank=True, default="")


class CashReportFilterSerializer(serializers.Serializer):
    status     = serializers.ChoiceField(choices=CashSettlementReport.Status.choices, required=False)
    driver     = serializers.UUIDField(required=False)
    start_date = serializers.DateField(required=False)
    end_date   = serializers.DateField(required=False)
