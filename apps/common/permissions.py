"""Role-based DRF permissions."""

from rest_framework.permissions import BasePermission


class IsAdmin(BasePermission):
    message = "Admin only."

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.role == "ADMIN")


class IsDriver(BasePermission):
    message = "Drivers only."

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.role in ("UK_DRIVER", "GH_DRIVER"))


class IsAdminOrDriver(BasePermission):
    message = "Admins and drivers only."

    def has_permission(self, request, view):
        return IsAdmin().has_permission(request, view) or IsDriver().has_permission(request, view)
