"""Admin interface for the accounts app."""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin
from unfold.admin import ModelAdmin

from accounts.models import TicketingUser


@admin.register(TicketingUser)
class TicketingUserAdmin(UserAdmin, ModelAdmin):  # type: ignore[type-arg,misc]
    list_display = ["username", "email", "display_name", "age", "is_staff", "is_active", "date_joined"]
    list_filter = ["is_staff", "is_superuser", "is_active"]
    search_fields = ["username", "email", "first_name", "last_name", "preferred_name"]
    fieldsets = (
        *UserAdmin.fieldsets,  # type: ignore[misc]
        ("Profile", {"fields": ("preferred_name", "age")}),
    )
