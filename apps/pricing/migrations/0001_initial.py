import django.core.validators
import django.db.models.deletion
import uuid
from django.conf import settings
from django.db import migrations, models


PARCEL_TYPES = [
    ("small_box", "Small Box"),
    ("medium_box", "Medium Box"),
    ("large_box", "Large Box"),
    ("extra_large_box", "Extra-Large Box"),
    ("barrel", "Barrel"),
    ("drum", "Drum"),
    ("tv", "TV"),
    ("custom_small", "Custom Item - Small (up to 5kg)"),
    ("custom_medium", "Custom Item - Medium (5-15kg)"),
    ("custom_large", "Custom Item - Large (15-30kg)"),
    ("custom_extra_large", "Custom Item - Extra Large (30kg+)"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="ParcelPrice",
            fields=[
                ("id",           models.BigAutoField(auto_created=True, primary_key=True, serialize=False)),
                ("type",         models.CharField(choices=PARCEL_TYPES, max_length=24, unique=True)),
                ("label",        models.CharField(max_length=80)),
                ("price",        models.DecimalField(decimal_places=2, max_digits=10,
                                                     validators=[django.core.validators.MinValueValidator(0)])),
                ("currency",     models.CharField(default="GBP", max_length=3)),
                ("last_updated", models.DateTimeField()),
            ],
            options={"ordering": ["type"]},
        ),
        migrations.CreateModel(
            name="PromoCode",
            fields=[
                ("id",              models.BigAutoField(auto_created=True, primary_key=True, serialize=False)),
                ("code",            models.CharField(max_length=40, unique=True)),
                ("discount_type",   models.CharField(
                    choices=[("percentage", "Percentage"), ("fixed", "Fixed amount")], max_length=10)),
                ("value",           models.DecimalField(decimal_places=2, max_digits=10,
                                                        validators=[django.core.validators.MinValueValidator(0)])),
                ("description",     models.CharField(blank=True, max_length=255)),
                ("expiry_date",     models.DateTimeField()),
                ("usage_limit",     models.PositiveIntegerField(
                    validators=[django.core.validators.MinValueValidator(1)])),
                ("used_count",      models.PositiveIntegerField(default=0)),
                ("min_order_value", models.DecimalField(decimal_places=2, default=0, max_digits=10,
                                                        validators=[django.core.validators.MinValueValidator(0)])),
                ("max_discount",    models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True,
                                                        validators=[django.core.validators.MinValueValidator(0)])),
                ("status",          models.CharField(
                    choices=[("active", "Active"), ("inactive", "Inactive")], default="active", max_length=10)),
                ("applicable_to",   models.CharField(
                    choices=[("all", "All orders"), ("shipping", "Shipping"),
                             ("packaging", "Packaging"), ("grocery", "Grocery")],
                    default="all", max_length=10)),
                ("created_at",      models.DateTimeField(auto_now_add=True)),
                ("updated_at",      models.DateTimeField(auto_now=True)),
                ("created_by",      models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name="+", to=settings.AUTH_USER_MODEL)),
            ],
            options={"ordering": ["-created_at"]},
        ),
        migrations.AddIndex(
            model_name="promocode",
            index=models.Index(fields=["status", "expiry_date"], name="promo_status_expiry_idx"),
        ),
        migrations.CreateModel(
            name="PromoRedemption",
            fields=[
                ("id",              models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("idempotency_key", models.CharField(max_length=80, unique=True)),
                ("subtotal",        models.DecimalField(decimal_places=2, max_digits=10)),
                ("discount",        models.DecimalField(decimal_places=2, max_digits=10)),
                ("final_amount",    models.DecimalField(decimal_places=2, max_digits=10)),
                ("redeemed_at",     models.DateTimeField(auto_now_add=True)),
                ("promo_code",      models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT, related_name="redemptions",
                    to="pricing.promocode")),
            ],
            options={"ordering": ["-redeemed_at"]},
        ),
    ]
