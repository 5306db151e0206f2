"""
pytest configuration for Mani-Me.
Sets Django settings and provides shared fixtures.
"""

import threading
import time
import uuid
from datetime import timedelta
from decimal import Decimal

import pytest
from django.conf import settings


def pytest_configure(config):
    """Configure Django settings before tests run."""
    if not settings.configured:
        settings.configure(
            DATABASES={
                "default": {
                    "ENGINE": "django.db.backends.sqlite3",
                    "NAME":   ":memory:",
                }
            },
            INSTALLED_APPS=[
                "django.contrib.admin",
                "django.contrib.contenttypes",
                "django.contrib.auth",
                "django.contrib.sessions",
                "django.contrib.messages",
                "django.contrib.staticfiles",
                "rest_framework",
                "rest_framework_simplejwt",
                "drf_spectacular",
                "django_filters",
                "corsheaders",
                "apps.authentication",
                "apps.pricing",
                "apps.shipments",
                "apps.settlements",
                "apps.notifications",
                "apps.ops",
            ],
            AUTH_USER_MODEL="authentication.Agent",
            REST_FRAMEWORK={
                "DEFAULT_AUTHENTICATION_CLASSES": [
                    "rest_framework_simplejwt.authentication.JWTAuthentication",
                ],
                "DEFAULT_PERMISSION_CLASSES": [
                    "rest_framework.permissions.IsAuthenticated",
                ],
                "DEFAULT_FILTER_BACKENDS": [
                    "django_filters.rest_framework.DjangoFilterBackend",
                    "rest_framework.filters.SearchFilter",
                    "rest_framework.filters.OrderingFilter",
                ],
                "DEFAULT_PAGINATION_CLASS": "rest_framework.pagination.PageNumberPagination",
                "PAGE_SIZE": 50,
                "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
                "EXCEPTION_HANDLER": "apps.common.exceptions.logistics_exception_handler",
            },
            SPECTACULAR_SETTINGS={
                "TITLE": "Mani-Me API",
                "DESCRIPTION": "UK → Ghana parcel logistics",
                "VERSION": "1.0.0",
                "SERVE_INCLUDE_SCHEMA": False,
            },
            SECRET_KEY="test-secret-key-not-for-production",
            DEBUG=True,
            USE_TZ=True,
            TIME_ZONE="Europe/London",
            ROOT_URLCONF="manime.urls",
            DEFAULT_AUTO_FIELD="django.db.models.BigAutoField",
            TEMPLATES=[{
                "BACKEND": "django.template.backends.django.DjangoTemplates",
                "DIRS": [],
                "APP_DIRS": True,
                "OPTIONS": {
                    "context_processors": [
                        "django.template.context_processors.debug",
                        "django.template.context_processors.request",
                        "django.contrib.auth.context_processors.auth",
                        "django.contrib.messages.context_processors.messages",
                    ],
                },
            }],
            MIDDLEWARE=[
                "django.middleware.security.SecurityMiddleware",
                "corsheaders.middleware.CorsMiddleware",
                "django.contrib.sessions.middleware.SessionMiddleware",
                "django.middleware.common.CommonMiddleware",
                "django.middleware.csrf.CsrfViewMiddleware",
                "django.contrib.auth.middleware.AuthenticationMiddleware",
                "django.contrib.messages.middleware.MessageMiddleware",
            ],
            STATIC_URL="/static/",
            STATIC_ROOT="/tmp/staticfiles_test",
            # Push gateway is mocked in tests
            EXPO_PUSH_URL="http://push-mock:8003/push/send",
            PUSH_NOTIFICATIONS_ENABLED=False,
            DEFAULT_CURRENCY="GBP",
            CACHES={
                "default": {
                    "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
                }
            },
            CELERY_TASK_ALWAYS_EAGER=True,   # Execute tasks synchronously in tests
            CELERY_TASK_EAGER_PROPAGATES=True,
            CORS_ALLOW_ALL_ORIGINS=True,
            SIMPLE_JWT={
                "ACCESS_TOKEN_LIFETIME": timedelta(hours=8),
                "REFRESH_TOKEN_LIFETIME": timedelta(days=7),
                "ALGORITHM": "HS256",
                "AUTH_HEADER_TYPES": ("Bearer",),
            },
        )


# ═══════════════════════════════════════════════════════════════════════════════
# FIXTURES
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.fixture(autouse=True, scope="session")
def celery_app_loaded():
    """Register the project Celery app so shared tasks run eagerly."""
    from manime.celery import app
    return app


@pytest.fixture
def api_client():
    from rest_framework.test import APIClient
    return APIClient()


@pytest.fixture
def race():
    """
    Run callables in parallel threads and collect one outcome per thread:
    "ok", or the `reason` of the LogisticsError it raised.
    SQLite table-lock errors are retried so every thread reaches the service logic.
    """
    from django.db import OperationalError, connection
    from apps.common.exceptions import LogisticsError

    def _run(*calls, attempts=50):
        results = {}

        def worker(idx, fn):
            try:
                for attempt in range(attempts):
                    try:
                        fn()
                        results[idx] = "ok"
                        return
                    except OperationalError as exc:
                        if "locked" not in str(exc) or attempt == attempts - 1:
                            raise
                        time.sleep(0.01 * (attempt + 1))
            except LogisticsError as exc:
                results[idx] = exc.reason
            finally:
                connection.close()

        threads = [threading.Thread(target=worker, args=(i, fn)) for i, fn in enumerate(calls)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        return [results.get(i) for i in range(len(calls))]
    return _run


@pytest.fixture
def make_agent(db):
    from django.contrib.auth import get_user_model
    Agent = get_user_model()

    def _make(phone=None, role="CUSTOMER", **kwargs):
        phone = phone or f"+447{uuid.uuid4().int % 1000000000:09d}"
        return Agent.objects.create_user(
            phone=phone, password="Test@1234",
            full_name=kwargs.pop("full_name", "Test Agent"),
            role=role, **kwargs,
        )
    return _make


@pytest.fixture
def make_driver(make_agent):
    from apps.authentication.models import DriverProfile

    def _make(scope="PICKUP", is_active=True, **kwargs):
        role = "UK_DRIVER" if scope == "PICKUP" else "GH_DRIVER"
        agent = make_agent(role=role, is_active=is_active, **kwargs)
        DriverProfile.objects.create(agent=agent, region_scope=scope, vehicle_number="AB12 CDE")
        return agent
    return _make


@pytest.fixture
def customer(make_agent):
    return make_agent(phone="+447700900001", full_name="Ama Mensah")


@pytest.fixture
def admin(make_agent):
    return make_agent(phone="+447700900002", role="ADMIN", full_name="Admin Alice", is_staff=True)


@pytest.fixture
def pickup_driver(make_driver):
    return make_driver("PICKUP", phone="+447700900003", full_name="Driver Dave")


@pytest.fixture
def delivery_driver(make_driver):
    return make_driver("DELIVERY", phone="+233241234567", full_name="Driver Kofi")


@pytest.fixture
def prices(db):
    from apps.pricing.service import PriceCatalog
    catalog = PriceCatalog()
    return {
        t: catalog.upsert_price(t, label="", price=Decimal(p))
        for t, p in [("small_box", "15.00"), ("medium_box", "25.00"), ("large_box", "35.00")]
    }


@pytest.fixture
def make_promo(db):
    from django.utils import timezone
    from apps.pricing.models import PromoCode

    def _make(code="WELCOME10", discount_type="percentage", value="10", **kwargs):
        kwargs.setdefault("expiry_date", timezone.now() + timedelta(days=30))
        kwargs.setdefault("usage_limit", 100)
        kwargs.setdefault("min_order_value", Decimal("10.00"))
        return PromoCode.objects.create(
            code=code, discount_type=discount_type, value=Decimal(value), **kwargs,
        )
    return _make


@pytest.fixture
def booking_payload():
    def _payload(**overrides):
        payload = {
            "sender_name":      "Ama Mensah",
            "sender_phone":     "+447700900001",
            "sender_email":     "ama@example.com",
            "sender_address":   "12 High Street",
            "sender_city":      "London",
            "sender_postcode":  "E1 6AN",
            "receiver_name":    "Kwame Mensah",
            "receiver_phone":   "+233241112223",
            "receiver_address": "5 Ring Road",
            "receiver_city":    "Accra",
            "receiver_region":  "Greater Accra",
            "parcel_type":      "medium_box",
            "weight_kg":        "8.50",
            "size_class":       "medium",
            "payment_method":   "card",
        }
        payload.update(overrides)
        return payload
    return _payload


@pytest.fixture
def make_shipment(customer, prices, booking_payload):
    """Book through BookingService so the price snapshot is realistic."""
    from apps.shipments.service import BookingService

    def _make(**overrides):
        data = booking_payload(**overrides)
        data["weight_kg"] = Decimal(data["weight_kg"])
        return BookingService().create_shipment(customer, data)
    return _make


@pytest.fixture
def auth_client(api_client, customer):
    api_client.force_authenticate(user=customer)
    return api_client


@pytest.fixture
def admin_client(api_client, admin):
    api_client.force_authenticate(user=admin)
    return api_client
