from django.urls import path
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from .views import RegisterView, ProfileView, DriverListCreateView, DriverStatusView

urlpatterns = [
    path("register/",             RegisterView.as_view(),         name="auth-register"),
    path("login/",                TokenObtainPairView.as_view(),  name="auth-login"),
    path("refresh/",              TokenRefreshView.as_view(),     name="auth-refresh"),
    path("me/",                   ProfileView.as_view(),          name="auth-me"),
    path("drivers/",              DriverListCreateView.as_view(), name="driver-list"),
    path("drivers/<uuid:pk>/status/", DriverStatusView.as_view(), name="driver-status"),
]
