from django.urls import path
from .views import (
    ParcelPriceListView, ParcelPriceDetailView,
    PromoCodeListCreateView, PromoCodeDetailView, PromoCodeStatsView,
    PromoCodeValidateView, PromoCodeApplyView,
)

urlpatterns = [
    path("prices/",                    ParcelPriceListView.as_view(),     name="price-list"),
    path("prices/<str:parcel_type>/",  ParcelPriceDetailView.as_view(),   name="price-detail"),

    path("promo-codes/",               PromoCodeListCreateView.as_view(), name="promo-list"),
    path("promo-codes/stats/",         PromoCodeStatsView.as_view(),      name="promo-stats"),
    path("promo-codes/validate/",      PromoCodeValidateView.as_view(),   name="promo-validate"),
    path("promo-codes/apply/",         PromoCodeApplyView.as_view(),      name="promo-apply"),
    path("promo-codes/<int:pk>/",      PromoCodeDetailView.as_view(),     name="promo-detail"),
]
