import django.db.models.deletion
import uuid
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("auth", "0012_alter_user_first_name_max_length"),
    ]

    operations = [
        migrations.CreateModel(
            name="Agent",
            fields=[
                ("password",     models.CharField(max_length=128, verbose_name="password")),
                ("last_login",   models.DateTimeField(blank=True, null=True, verbose_name="last login")),
                ("is_superuser", models.BooleanField(default=False)),
                ("id",           models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("phone",        models.CharField(max_length=20, unique=True)),
                ("email",        models.EmailField(blank=True, max_length=254)),
                ("full_name",    models.CharField(max_length=120)),
                ("role",         models.CharField(
                    choices=[
                        ("CUSTOMER", "Customer"),
                        ("UK_DRIVER", "UK Pickup Driver"),
                        ("GH_DRIVER", "Ghana Delivery Driver"),
                        ("ADMIN", "Admin"),
                    ],
                    default="CUSTOMER",
                    max_length=12,
                )),
                ("is_active",     models.BooleanField(default=True)),
                ("is_staff",      models.BooleanField(default=False)),
                ("created_at",    models.DateTimeField(auto_now_add=True)),
                ("push_token",    models.CharField(blank=True, max_length=255)),
                ("groups",        models.ManyToManyField(blank=True, related_name="agent_set", to="auth.group")),
                ("user_permissions", models.ManyToManyField(blank=True, related_name="agent_perm_set", to="auth.permission")),
            ],
            options={"verbose_name": "Agent"},
        ),
        migrations.AddIndex(
            model_name="agent",
            index=models.Index(fields=["phone"], name="auth_agent_phone_idx"),
        ),
        migrations.AddIndex(
            model_name="agent",
            index=models.Index(fields=["role", "is_active"], name="auth_agent_role_active_idx"),
        ),
        migrations.CreateModel(
            name="DriverProfile",
            fields=[
                ("id",             models.BigAutoField(auto_created=True, primary_key=True, serialize=False)),
                ("region_scope",   models.CharField(
                    choices=[("PICKUP", "UK pickup (origin)"), ("DELIVERY", "Ghana delivery (destination)")],
                    max_length=10,
                )),
                ("vehicle_number", models.CharField(blank=True, max_length=20)),
                ("driver_license", models.CharField(blank=True, max_length=30)),
                ("is_verified",    models.BooleanField(default=False)),
                ("created_at",     models.DateTimeField(auto_now_add=True)),
                ("agent",          models.OneToOneField(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="driver_profile",
                    to="authentication.agent",
                )),
            ],
        ),
        migrations.AddIndex(
            model_name="driverprofile",
            index=models.Index(fields=["region_scope"], name="auth_driver_scope_idx"),
        ),
    ]
