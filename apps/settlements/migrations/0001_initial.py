import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("shipments", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="CashSettlementReport",
            fields=[
                ("id",              models.BigAutoField(auto_created=True, primary_key=True, serialize=False)),
                ("reported_amount", models.DecimalField(decimal_places=2, max_digits=10)),
                ("expected_amount", models.DecimalField(decimal_places=2, default=0, max_digits=10)),
                ("discrepancy",     models.DecimalField(decimal_places=2, default=0, max_digits=10)),
                ("currency",        models.CharField(default="GBP", max_length=3)),
                ("photo_ref",       models.CharField(max_length=500)),
                ("shift_date",      models.DateField()),
                ("status",          models.CharField(
                    choices=[("pending", "Pending review"), ("approved", "Approved"), ("rejected", "Rejected")],
                    default="pending", max_length=8)),
                ("submitted_at",    models.DateTimeField(auto_now_add=True)),
                ("reviewed_at",     models.DateTimeField(blank=True, null=True)),
                ("notes",           models.TextField(blank=True)),
                ("driver",          models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT, related_name="cash_reports",
                    to=settings.AUTH_USER_MODEL)),
                ("reviewed_by",     models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name="+", to=settings.AUTH_USER_MODEL)),
                ("shipments",       models.ManyToManyField(
                    blank=True, related_name="cash_reports", to="shipments.shipment")),
            ],
            options={"ordering": ["-submitted_at"]},
        ),
        migrations.AddIndex(
            model_name="cashsettlementreport",
            index=models.Index(fields=["status"], name="cash_report_status_idx"),
        ),
        migrations.AddIndex(
            model_name="cashsettlementreport",
            index=models.Index(fields=["driver", "shift_date"], name="cash_report_driver_shift_idx"),
        ),
    ]
