import django.core.validators
import django.db.models.deletion
import uuid
from django.conf import settings
from django.db import migrations, models


STATUS_CHOICES = [
    ("booked", "Booked"),
    ("picked_up", "Picked Up"),
    ("in_transit", "In Transit"),
    ("customs", "Customs"),
    ("out_for_delivery", "Out for Delivery"),
    ("delivered", "Delivered"),
    ("cancelled", "Cancelled"),
]
WAREHOUSE_CHOICES = [
    ("none", "Not at warehouse"),
    ("received", "Received"),
    ("sorted", "Sorted"),
    ("packed", "Packed"),
    ("shipped", "Shipped"),
]
LOCATION_CHOICES = [
    ("none", "None"),
    ("origin", "UK warehouse"),
    ("destination", "Ghana warehouse"),
]
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


def _stamp():
    return models.DateTimeField(blank=True, null=True)


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("pricing", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Shipment",
            fields=[
                ("id",               models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("tracking_number",  models.CharField(db_index=True, max_length=20, unique=True)),
                ("sender_name",      models.CharField(max_length=120)),
                ("sender_phone",     models.CharField(max_length=20)),
                ("sender_email",     models.EmailField(blank=True, max_length=254)),
                ("sender_address",   models.CharField(max_length=255)),
                ("sender_city",      models.CharField(max_length=80)),
                ("sender_postcode",  models.CharField(max_length=12)),
                ("receiver_name",    models.CharField(max_length=120)),
                ("receiver_phone",   models.CharField(max_length=20)),
                ("receiver_address", models.CharField(max_length=255)),
                ("receiver_city",    models.CharField(max_length=80)),
                ("receiver_region",  models.CharField(blank=True, max_length=80)),
                ("parcel_type",      models.CharField(choices=PARCEL_TYPES, max_length=24)),
                ("weight_kg",        models.DecimalField(decimal_places=2, max_digits=8,
                                                         validators=[django.core.validators.MinValueValidator(0.01)])),
                ("size_class",       models.CharField(
                    blank=True, max_length=12,
                    choices=[("small", "Small"), ("medium", "Medium"), ("large", "Large"),
                             ("extra_large", "Extra Large")])),
                ("description",      models.CharField(blank=True, max_length=255)),
                ("declared_value",   models.DecimalField(decimal_places=2, default=0, max_digits=10,
                                                         validators=[django.core.validators.MinValueValidator(0)])),
                ("unit_price",       models.DecimalField(decimal_places=2, max_digits=10)),
                ("promo_code",       models.CharField(blank=True, max_length=40)),
                ("discount_amount",  models.DecimalField(decimal_places=2, default=0, max_digits=10)),
                ("final_price",      models.DecimalField(decimal_places=2, max_digits=10,
                                                         validators=[django.core.validators.MinValueValidator(0)])),
                ("currency",         models.CharField(default="GBP", max_length=3)),
                ("payment_method",   models.CharField(choices=[("card", "Card"), ("cash", "Cash on pickup")],
                                                      max_length=4)),
                ("payment_status",   models.CharField(
                    choices=[("pending", "Pending"), ("paid", "Paid"), ("refunded", "Refunded")],
                    default="pending", max_length=8)),
                ("payment_reference", models.CharField(blank=True, max_length=80)),
                ("status",             models.CharField(choices=STATUS_CHOICES, default="booked", max_length=16)),
                ("warehouse_status",   models.CharField(choices=WAREHOUSE_CHOICES, default="none", max_length=10)),
                ("warehouse_location", models.CharField(choices=LOCATION_CHOICES, default="none", max_length=12)),
                ("pickup_assigned_at",   _stamp()),
                ("delivery_assigned_at", _stamp()),
                ("created_at",           models.DateTimeField(auto_now_add=True)),
                ("updated_at",           models.DateTimeField(auto_now=True)),
                ("status_updated_at",    _stamp()),
                ("picked_up_at",         _stamp()),
                ("in_transit_at",        _stamp()),
                ("customs_at",           _stamp()),
                ("out_for_delivery_at",  _stamp()),
                ("delivered_at",         _stamp()),
                ("cancelled_at",         _stamp()),
                ("sync_id",              models.CharField(blank=True, max_length=64)),
                ("customer",        models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT, related_name="shipments",
                    to=settings.AUTH_USER_MODEL)),
                ("pickup_driver",   models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.PROTECT,
                    related_name="pickup_shipments", to=settings.AUTH_USER_MODEL)),
                ("delivery_driver", models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.PROTECT,
                    related_name="delivery_shipments", to=settings.AUTH_USER_MODEL)),
            ],
            options={"ordering": ["-created_at"]},
        ),
        migrations.AddIndex(
            model_name="shipment",
            index=models.Index(fields=["status"], name="shipment_status_idx"),
        ),
        migrations.AddIndex(
            model_name="shipment",
            index=models.Index(fields=["customer", "status"], name="shipment_customer_status_idx"),
        ),
        migrations.AddIndex(
            model_name="shipment",
            index=models.Index(fields=["pickup_driver", "status"], name="shipment_pickup_idx"),
        ),
        migrations.AddIndex(
            model_name="shipment",
            index=models.Index(fields=["delivery_driver", "status"], name="shipment_delivery_idx"),
        ),
        migrations.AddIndex(
            model_name="shipment",
            index=models.Index(fields=["created_at"], name="shipment_created_idx"),
        ),
        migrations.AddConstraint(
            model_name="shipment",
            constraint=models.UniqueConstraint(
                condition=~models.Q(sync_id=""), fields=("sync_id",), name="shipment_unique_sync_id"),
        ),
        migrations.CreateModel(
            name="ShipmentEvent",
            fields=[
                ("id",          models.BigAutoField(auto_created=True, primary_key=True, serialize=False)),
                ("kind",        models.CharField(
                    choices=[("status", "Status"), ("warehouse", "Warehouse"),
                             ("assignment", "Assignment"), ("payment", "Payment")],
                    max_length=10)),
                ("from_value",  models.CharField(blank=True, max_length=64)),
                ("to_value",    models.CharField(blank=True, max_length=64)),
                ("note",        models.CharField(blank=True, max_length=255)),
                ("occurred_at", models.DateTimeField(auto_now_add=True)),
                ("actor",       models.ForeignKey(
                    null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL)),
                ("shipment",    models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name="events",
                    to="shipments.shipment")),
            ],
            options={"ordering": ["occurred_at", "id"]},
        ),
    ]
