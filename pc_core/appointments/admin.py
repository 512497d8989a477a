# backend/pc_core/appointments/admin.py
from django.contrib import admin

from pc_core.appointments.models import Appointment


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ("id", "patient", "appointment_date", "start_time", "end_time", "appointment_type", "status")
    list_filter = ("status", "appointment_type", "department")
    search_fields = ("patient__hn", "patient__full_name", "place", "hospital_address")
    readonly_fields = ("window_start", "window_end", "created_at", "updated_at")
    date_hierarchy = "appointment_date"
    ordering = ("-appointment_date", "-start_time")
