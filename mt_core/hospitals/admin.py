# backend/mt_core/hospitals/admin.py
from __future__ import annotations

from django.contrib import admin

from mt_core.hospitals.models import Availability, Hospital


class AvailabilityInline(admin.StackedInline):
    model = Availability
    can_delete = False
    extra = 0
    readonly_fields = ("last_updated", "updated_by")

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Hospital)
class HospitalAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "phone_number", "admin", "created_at", "updated_at")
    search_fields = ("id", "name", "address", "phone_number")
    ordering = ("name",)

    readonly_fields = ("created_at", "updated_at")
    list_select_related = ("admin",)
    inlines = [AvailabilityInline]

    fieldsets = (
        ("Hospital", {"fields": ("name", "address", "phone_number")}),
        ("Location", {"fields": ("latitude", "longitude")}),
        ("Management", {"fields": ("admin",)}),
        ("Audit", {"fields": ("created_at", "updated_at")}),
    )


@admin.register(Availability)
class AvailabilityAdmin(admin.ModelAdmin):
    list_display = ("hospital", "available_beds", "available_oxygen", "last_updated", "updated_by")
    search_fields = ("hospital__name",)
    ordering = ("-last_updated",)

    # rows are written through the availability API so updated_by stays meaningful
    readonly_fields = ("last_updated", "updated_by")
    list_select_related = ("hospital", "updated_by")

    def has_add_permission(self, request):
        return False
