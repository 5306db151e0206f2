"""
Authentication models.
Agent is the custom User: covers Customer, UK Driver, Ghana Driver and Admin roles.
"""

import uuid
from django.db import models
from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin, BaseUserManager


class AgentManager(BaseUserManager):
    def create_user(self, phone, password=None, **extra):
        if not phone:
            raise ValueError("Phone number is required.")
        user = self.model(phone=phone, **extra)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, phone, password, **extra):
        extra.setdefault("is_staff", True)
        extra.setdefault("is_superuser", True)
        extra.setdefault("role", Agent.Role.ADMIN)
        return self.create_user(phone, password, **extra)

    def drivers(self):
        return self.filter(role__in=[Agent.Role.UK_DRIVER, Agent.Role.GH_DRIVER])


class Agent(AbstractBaseUser, PermissionsMixin):
    """Every human actor in Mani-Me, identified by phone."""

    class Role(models.TextChoices):
        CUSTOMER  = "CUSTOMER",  "Customer"
        UK_DRIVER = "UK_DRIVER", "UK Pickup Driver"
        GH_DRIVER = "GH_DRIVER", "Ghana Delivery Driver"
        ADMIN     = "ADMIN",     "Admin"

    id         = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    phone      = models.CharField(max_length=20, unique=True)
    email      = models.EmailField(blank=True)
    full_name  = models.CharField(max_length=120)
    role       = models.CharField(max_length=12, choices=Role.choices, default=Role.CUSTOMER)
    is_active  = models.BooleanField(default=True)
    is_staff   = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    # Expo push token registered by the mobile apps
    push_token = models.CharField(max_length=255, blank=True)

    USERNAME_FIELD  = "phone"
    REQUIRED_FIELDS = ["full_name"]

    objects = AgentManager()

    class Meta:
        verbose_name = "Agent"
        indexes = [
            models.Index(fields=["phone"], name="auth_agent_phone_idx"),
            models.Index(fields=["role", "is_active"], name="auth_agent_role_active_idx"),
        ]

    def __str__(self):
        return f"{self.full_name} ({self.role})"

    @property
    def is_driver(self) -> bool:
        return self.role in (self.Role.UK_DRIVER, self.Role.GH_DRIVER)


class DriverProfile(models.Model):
    """
    Extended info for driver agents.
    region_scope decides which assignment pool the driver belongs to; the pools are disjoint.
    """

    class RegionScope(models.TextChoices):
        PICKUP   = "PICKUP",   "UK pickup (origin)"
        DELIVERY = "DELIVERY", "Ghana delivery (destination)"

    ROLE_SCOPES = {
        Agent.Role.UK_DRIVER: RegionScope.PICKUP,
        Agent.Role.GH_DRIVER: RegionScope.DELIVERY,
    }

    agent          = models.OneToOneField(Agent, on_delete=models.CASCADE, related_name="driver_profile")
    region_scope   = models.CharField(max_length=10, choices=RegionScope.choices)
    vehicle_number = models.CharField(max_length=20, blank=True)
    driver_license = models.CharField(max_length=30, blank=True)
    is_verified    = models.BooleanField(default=False)
    created_at     = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [models.Index(fields=["region_scope"], name="auth_driver_scope_idx")]

    def __str__(self):
        return f"{self.agent.full_name} – {self.region_scope}"

    @classmethod
    def scope_for_role(cls, role):
        return cls.ROLE_SCOPES.get(role)
