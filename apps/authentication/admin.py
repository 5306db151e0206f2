from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import Agent, DriverProfile


class DriverProfileInline(admin.StackedInline):
    model = DriverProfile
    can_delete = False
    extra = 0


@admin.register(Agent)
class AgentAdmin(BaseUserAdmin):
    list_display  = ("phone", "full_name", "role", "is_active", "created_at")
    list_filter   = ("role", "is_active")
    search_fields = ("phone", "full_name", "email")
    ordering      = ("-created_at",)
    inlines       = [DriverProfileInline]
    fieldsets = (
        (None,          {"fields": ("phone", "password")}),
        ("Personal",    {"fields": ("full_name", "email", "push_token")}),
        ("Role",        {"fields": ("role",)}),
        ("Permissions", {"fields": ("is_active", "is_staff", "is_superuser", "groups", "user_permissions")}),
    )
    add_fieldsets = (
        (None, {"classes": ("wide",), "fields": ("phone", "full_name", "role", "password1", "password2")}),
    )


@admin.register(DriverProfile)
class DriverProfileAdmin(admin.ModelAdmin):
    list_display  = ("agent", "region_scope", "vehicle_number", "driver_license", "is_verified")
    list_filter   = ("region_scope", "is_verified")
    search_fields = ("vehicle_number", "driver_license", "agent__full_name")
