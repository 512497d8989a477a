# backend/pc_core/bed_stays/apps.py
from django.apps import AppConfig


class BedStaysConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "pc_core.bed_stays"
