# backend/mt_core/iam/admin.py
from __future__ import annotations

from django.contrib import admin

from mt_core.iam.models import Profile


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = ("user", "name", "role", "hospital", "hospital_name", "created_at")
    list_filter = ("role", "sex")
    search_fields = ("user__username", "user__email", "name", "hospital_name")
    ordering = ("-created_at",)

    readonly_fields = ("created_at", "updated_at")
    list_select_related = ("user", "hospital")
    raw_id_fields = ("user", "hospital")

    fieldsets = (
        ("Identity", {"fields": ("user", "role")}),
        ("Personal", {"fields": ("name", "age", "sex", "phone_number", "address", "avatar_url")}),
        ("Hospital", {"fields": ("hospital", "hospital_name")}),
        ("Audit", {"fields": ("created_at", "updated_at")}),
    )
