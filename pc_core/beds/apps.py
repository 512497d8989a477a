# backend/pc_core/beds/apps.py
from django.apps import AppConfig


class BedsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "pc_core.beds"
