"""Admin classes for events and registrations.

Registrations are read-only here: status changes go through the workflows so the
seat counter stays paired with them.
"""

import typing as t

from django.contrib import admin
from django.http import HttpRequest
from django.urls import reverse
from django.utils.html import format_html
from unfold.admin import ModelAdmin, TabularInline

from events import models


class UserLinkMixin:
    """Mixin to add a link to a user."""

    def user_link(self, obj: t.Any) -> str:
        url = reverse("admin:accounts_ticketinguser_change", args=[obj.user.id])
        return format_html('<a href="{}">{}</a>', url, obj.user.username)

    user_link.short_description = "User"  # type: ignore[attr-defined]


class EventLinkMixin:
    """Mixin to add a link to an event."""

    def event_link(self, obj: t.Any) -> str:
        url = reverse("admin:events_event_change", args=[obj.event.id])
        return format_html('<a href="{}">{}</a>', url, obj.event.name)

    event_link.short_description = "Event"  # type: ignore[attr-defined]


class RegistrationInline(TabularInline):  # type: ignore[misc]
    model = models.Registration
    fk_name = "event"
    extra = 0
    fields = ["user", "status", "price", "created_at", "attended_at"]
    readonly_fields = fields
    can_delete = False
    show_change_link = True

    def has_add_permission(self, request: HttpRequest, obj: t.Any = None) -> bool:
        return False


@admin.register(models.Event)
class EventAdmin(ModelAdmin):  # type: ignore[misc]
    """Admin model for Events."""

    list_display = [
        "name",
        "status",
        "start_date",
        "end_date",
        "capacity",
        "registered_count",
        "available_seats",
        "requires_approval",
        "is_public",
    ]
    list_filter = ["status", "is_public", "requires_approval", "category", "start_date"]
    search_fields = ["name", "location", "category"]
    date_hierarchy = "start_date"
    readonly_fields = ["registered_count", "created_at", "updated_at"]
    inlines = [RegistrationInline]

    fieldsets = [
        ("Details", {"fields": ("name", "description", ("location", "category"), ("status", "is_public"))}),
        (
            "Schedule",
            {
                "fields": (
                    ("start_date", "end_date"),
                    ("registration_start_date", "registration_end_date"),
                    "check_in_starts_at",
                )
            },
        ),
        ("Capacity", {"fields": (("capacity", "registered_count"), "requires_approval")}),
        ("Eligibility & pricing", {"fields": (("min_age", "max_age"), ("base_price", "youth_price", "senior_price"))}),
        ("Metadata", {"fields": ("created_at", "updated_at")}),
    ]

    def available_seats(self, obj: models.Event) -> int:
        return obj.available_seats

    available_seats.short_description = "Available"  # type: ignore[attr-defined]


@admin.register(models.Registration)
class RegistrationAdmin(ModelAdmin, UserLinkMixin, EventLinkMixin):  # type: ignore[misc]
    """Read-only admin for Registrations."""

    list_display = ["id", "user_link", "event_link", "status", "price", "created_at", "attended_at"]
    list_filter = ["status", "created_at", "attended_at"]
    search_fields = ["user__username", "user__email", "event__name", "ticket_code"]
    list_select_related = ["user", "event"]
    date_hierarchy = "created_at"
    readonly_fields = [
        "id",
        "event",
        "user",
        "status",
        "ticket_code",
        "price",
        "attended_at",
        "checked_in_by",
        "approved_at",
        "canceled_at",
        "created_at",
        "updated_at",
    ]

    def has_add_permission(self, request: HttpRequest) -> bool:
        return False

    def has_change_permission(self, request: HttpRequest, obj: t.Any = None) -> bool:
        return False

    def has_delete_permission(self, request: HttpRequest, obj: t.Any = None) -> bool:
        return False
