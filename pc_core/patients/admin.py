# backend/pc_core/patients/admin.py
from django.contrib import admin

from pc_core.patients.models import Patient


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ("hn", "full_name", "phone", "created_at")
    search_fields = ("hn", "full_name", "phone")
    readonly_fields = ("created_at", "updated_at")
    ordering = ("hn",)
