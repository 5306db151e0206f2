"""Authentication: registration, profile, driver pool management."""

import re
import logging
from django.contrib.auth import get_user_model
from django.db import transaction
from rest_framework import generics, status
from rest_framework.response import Response
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework import serializers
from drf_spectacular.utils import extend_schema

from apps.common.permissions import IsAdmin
from .models import DriverProfile

Agent = get_user_model()
logger = logging.getLogger("manime.auth")

# ── Validators ────────────────────────────────────────────────────────────────
UK_PHONE_PATTERN = re.compile(r"^(\+44|0)7\d{9}$")
GH_PHONE_PATTERN = re.compile(r"^(\+233|0)[235]\d{8}$")


def validate_phone(value):
    compact = value.replace(" ", "")
    if not (UK_PHONE_PATTERN.match(compact) or GH_PHONE_PATTERN.match(compact)):
        raise serializers.ValidationError("Enter a valid UK (+44 / 07…) or Ghana (+233 / 0…) mobile number.")


# ── Serializers ───────────────────────────────────────────────────────────────
class AgentRegisterSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, min_length=8)
    phone    = serializers.CharField(validators=[validate_phone])

    class Meta:
        model  = Agent
        fields = ["phone", "full_name", "email", "password"]

    def create(self, validated_data):
        password = validated_data.pop("password")
        agent = Agent(role=Agent.Role.CUSTOMER, **validated_data)
        agent.set_password(password)
        agent.save()
        return agent


class AgentProfileSerializer(serializers.ModelSerializer):
    class Meta:
        model  = Agent
        fields = ["id", "phone", "full_name", "email", "role", "push_token", "created_at"]
        read_only_fields = ["id", "phone", "role", "created_at"]


class DriverSerializer(serializers.ModelSerializer):
    region_scope   = serializers.CharField(source="driver_profile.region_scope", read_only=True)
    vehicle_number = serializers.CharField(source="driver_profile.vehicle_number", read_only=True)
    is_verified    = serializers.BooleanField(source="driver_profile.is_verified", read_only=True)

    class Meta:
        model  = Agent
        fields = ["id", "phone", "full_name", "email", "role", "is_active",
                  "region_scope", "vehicle_number", "is_verified", "created_at"]


class DriverCreateSerializer(serializers.Serializer):
    phone          = serializers.CharField(validators=[validate_phone])
    full_name      = serializers.CharField(max_length=120)
    email          = serializers.EmailField(required=False, allow_blank=True)
    password       = serializers.CharField(write_only=True, min_length=8)
    role           = serializers.ChoiceField(choices=[Agent.Role.UK_DRIVER, Agent.Role.GH_DRIVER])
    vehicle_number = serializers.CharField(max_length=20, required=False, allow_blank=True)
    driver_license = serializers.CharField(max_length=30, required=False, allow_blank=True)

    def validate_phone(self, value):
        if Agent.objects.filter(phone=value).exists():
            raise serializers.ValidationError("An account with this phone already exists.")
        return value

    @transaction.atomic
    def create(self, validated_data):
        vehicle = validated_data.pop("vehicle_number", "")
        licence = validated_data.pop("driver_license", "")
        agent = Agent.objects.create_user(**validated_data)
        DriverProfile.objects.create(
            agent=agent,
            region_scope=DriverProfile.scope_for_role(agent.role),
            vehicle_number=vehicle,
            driver_license=licence,
        )
        return agent


class DriverStatusSerializer(serializers.Serializer):
    is_active = serializers.BooleanField()


# ── Views ─────────────────────────────────────────────────────────────────────
@extend_schema(tags=["Auth"])
class RegisterView(generics.CreateAPIView):
    """POST /api/auth/register/: create a new customer account."""
    queryset         = Agent.objects.all()
    serializer_class = AgentRegisterSerializer
    permission_classes = [AllowAny]

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        agent = serializer.save()
        return Response(
            {"message": "Account created. Please log in.", "id": str(agent.id)},
            status=status.HTTP_201_CREATED,
        )


@extend_schema(tags=["Auth"])
class ProfileView(generics.RetrieveUpdateAPIView):
    """GET/PATCH /api/auth/me/: retrieve or update own profile (incl. push token)."""
    serializer_class   = AgentProfileSerializer
    permission_classes = [IsAuthenticated]

    def get_object(self):
        return self.request.user


@extend_schema(tags=["Drivers"], summary="List drivers by region scope and active flag / register a driver (Admin)")
class DriverListCreateView(generics.ListCreateAPIView):
    permission_classes = [IsAdmin]

    def get_serializer_class(self):
        return DriverCreateSerializer if self.request.method == "POST" else DriverSerializer

    def get_queryset(self):
        from apps.shipments.assignment import AssignmentCoordinator

        params = self.request.query_params
        is_active = params.get("is_active")
        return AssignmentCoordinator.drivers(
            region_scope=params.get("region_scope"),
            is_active=None if is_active is None else is_active.lower() in ("1", "true", "yes"),
        )

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        agent = serializer.save()
        logger.info("Driver %s registered with role %s", agent.phone, agent.role)
        return Response(DriverSerializer(agent).data, status=status.HTTP_201_CREATED)


@extend_schema(tags=["Drivers"], summary="Activate or deactivate a driver (Admin)")
class DriverStatusView(generics.GenericAPIView):
    permission_classes = [IsAdmin]
    serializer_class   = DriverStatusSerializer

    def get_queryset(self):
        return Agent.objects.drivers().select_related("driver_profile")

    def patch(self, request, pk):
        driver = self.get_object()
        ser = self.get_serializer(data=request.data)
        ser.is_valid(raise_exception=True)
        driver.is_active = ser.validated_data["is_active"]
        driver.save(update_fields=["is_active"])
        logger.info("Driver %s active=%s (by %s)", driver.phone, driver.is_active, request.user.phone)
        return Response(DriverSerializer(driver).data)
