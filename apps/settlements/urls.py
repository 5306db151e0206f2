from django.urls import path
from .views import CashReportListCreateView, CashReportDetailView, CashReportResolveView, CashReportStatsView

urlpatterns = [
    path("",                   CashReportListCreateView.as_view(), name="cash-report-list"),
    path("stats/",             CashReportStatsView.as_view(),      name="cash-report-stats"),
    path("<int:pk>/",          CashReportDetailView.as_view(),     name="cash-report-detail"),
    path("<int:pk>/resolve/",  CashReportResolveView.as_view(),    name="cash-report-resolve"),
]
