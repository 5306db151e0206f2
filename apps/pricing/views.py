"""Pricing API views: parcel price catalog and promo codes."""

import logging
from rest_framework import generics, status, permissions
from rest_framework.response import Response
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema

from apps.common.permissions import IsAdmin
from .models import PromoCode
from .service import PriceCatalog, PromoEngine
from . import serializers as sz

logger = logging.getLogger("manime.pricing")
catalog = PriceCatalog()
promo_engine = PromoEngine()


# ── GET /api/prices/ ──────────────────────────────────────────────────────────
@extend_schema(tags=["Pricing"], summary="List parcel prices")
class ParcelPriceListView(generics.ListAPIView):
    serializer_class   = sz.ParcelPriceSerializer
    permission_classes = [permissions.AllowAny]
    pagination_class   = None

    def get_queryset(self):
        return catalog.list_prices()


# ── GET / PUT / DELETE /api/prices/{type}/ ───────────────────────────────────
@extend_schema(tags=["Pricing"])
class ParcelPriceDetailView(APIView):

    def get_permissions(self):
        if self.request.method == "GET":
            return [permissions.AllowAny()]
        return [IsAdmin()]

    @extend_schema(responses=sz.ParcelPriceSerializer, summary="Get the price for a parcel type")
    def get(self, request, parcel_type):
        return Response(sz.ParcelPriceSerializer(catalog.get_price(parcel_type)).data)

    @extend_schema(request=sz.ParcelPriceUpsertSerializer, responses=sz.ParcelPriceSerializer,
                   summary="Create or update the price for a parcel type (Admin)")
    def put(self, request, parcel_type):
        ser = sz.ParcelPriceUpsertSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        d = ser.validated_data
        entry = catalog.upsert_price(
            parcel_type, label=d.get("label", ""), price=d["price"], currency=d.get("currency"),
        )
        return Response(sz.ParcelPriceSerializer(entry).data)

    @extend_schema(summary="Remove a parcel type from the catalog (Admin)")
    def delete(self, request, parcel_type):
        catalog.delete_price(parcel_type)
        return Response(status=status.HTTP_204_NO_CONTENT)


# ── Promo codes (Admin CRUD) ──────────────────────────────────────────────────
@extend_schema(tags=["Promo Codes"], summary="List / create promo codes (Admin)")
class PromoCodeListCreateView(generics.ListCreateAPIView):
    serializer_class   = sz.PromoCodeSerializer
    permission_classes = [IsAdmin]
    filterset_fields   = ["status", "discount_type", "applicable_to"]
    search_fields      = ["code", "description"]

    def get_queryset(self):
        return PromoCode.objects.all()

    def perform_create(self, serializer):
        promo = serializer.save(created_by=self.request.user)
        logger.info("Promo code %s created by %s", promo.code, self.request.user.phone)


@extend_schema(tags=["Promo Codes"], summary="Retrieve / update a promo code (Admin)")
class PromoCodeDetailView(generics.RetrieveUpdateAPIView):
    serializer_class   = sz.PromoCodeSerializer
    permission_classes = [IsAdmin]
    queryset           = PromoCode.objects.all()


@extend_schema(tags=["Promo Codes"], summary="Promo code usage overview (Admin)")
class PromoCodeStatsView(APIView):
    permission_classes = [IsAdmin]

    def get(self, request):
        return Response(promo_engine.overview())


# ── POST /api/promo-codes/validate/ ──────────────────────────────────────────
@extend_schema(tags=["Promo Codes"], request=sz.PromoPreviewSerializer,
               responses=sz.PromoResultSerializer,
               summary="Check a promo code and preview the discount (no redemption)")
class PromoCodeValidateView(APIView):

    def post(self, request):
        ser = sz.PromoPreviewSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        d = ser.validated_data
        result = promo_engine.preview(d["code"], d["subtotal"], d.get("order_type"))
        return Response(sz.PromoResultSerializer(result).data)


# ── POST /api/promo-codes/apply/ ─────────────────────────────────────────────
@extend_schema(tags=["Promo Codes"], request=sz.PromoApplySerializer,
               responses=sz.PromoResultSerializer,
               summary="Redeem a promo code against a subtotal (idempotent per key)")
class PromoCodeApplyView(APIView):

    def post(self, request):
        ser = sz.PromoApplySerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        d = ser.validated_data
        result = promo_engine.validate_and_apply(
            d["code"], d["subtotal"], d["idempotency_key"], d.get("order_type"),
        )
        return Response(sz.PromoResultSerializer(result).data)
