# backend/pc_core/bed_stays/admin.py
from django.contrib import admin

from pc_core.bed_stays.models import BedStay


@admin.register(BedStay)
class BedStayAdmin(admin.ModelAdmin):
    """Read-mostly: stays change only through BedStayService."""
    list_display = ("id", "bed", "patient", "start_at", "end_at", "status")
    list_filter = ("status", "bed__care_side")
    search_fields = ("patient__hn", "patient__full_name", "bed__code")
    readonly_fields = ("bed", "patient", "start_at", "end_at", "status", "source_appointment", "created_at", "updated_at")
    ordering = ("-start_at",)
