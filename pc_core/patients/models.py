# backend/pc_core/patients/models.py
from django.db import models

from pc_core.common.models import TimeStampedModel


class Patient(TimeStampedModel):
    """
    Subject registry keyed by hospital number (HN).
    The scheduling core only scopes by `hn`; names are joined for read views.
    """
    hn = models.CharField(max_length=32, primary_key=True)  # e.g. "HN-00000012"
    full_name = models.CharField(max_length=255)
    phone = models.CharField(max_length=32, blank=True)
    gender = models.CharField(max_length=32, blank=True)
    date_of_birth = models.DateField(null=True, blank=True)

    class Meta:
        db_table = "patients_patient"
        indexes = [
            models.Index(fields=["full_name"], name="patient_name_idx"),
            models.Index(fields=["phone"], name="patient_phone_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.full_name} ({self.hn})"
