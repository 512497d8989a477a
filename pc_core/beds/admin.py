# backend/pc_core/beds/admin.py
from django.contrib import admin

from pc_core.beds.models import Bed, Ward


@admin.register(Ward)
class WardAdmin(admin.ModelAdmin):
    list_display = ("name", "created_at")
    search_fields = ("name",)


@admin.register(Bed)
class BedAdmin(admin.ModelAdmin):
    list_display = ("code", "care_side", "ward", "is_active", "retired_at")
    list_filter = ("care_side", "is_active", "ward")
    search_fields = ("code",)
    readonly_fields = ("retired_at", "created_at", "updated_at")
    ordering = ("care_side", "code")
