# backend/pc_core/beds/models.py
from django.db import models

from pc_core.common.models import TimeStampedModel


class CareSide(models.TextChoices):
    LTC = "LTC", "Long-term care"
    PC = "PC", "Palliative care"


class Ward(TimeStampedModel):
    name = models.CharField(max_length=128, unique=True)

    class Meta:
        db_table = "beds_ward"
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class Bed(TimeStampedModel):
    """
    A schedulable bed. Retired beds stay in the table for history
    but never accept new stays.
    """
    code = models.CharField(max_length=32, unique=True)  # e.g. "LTC-01"
    care_side = models.CharField(max_length=8, choices=CareSide.choices, db_index=True)
    ward = models.ForeignKey(
        Ward,
        on_delete=models.PROTECT,
        related_name="beds",
        null=True,
        blank=True,
    )

    is_active = models.BooleanField(default=True, db_index=True)
    retired_at = models.DateTimeField(null=True, blank=True)
    note = models.TextField(blank=True, default="")

    class Meta:
        db_table = "beds_bed"
        indexes = [
            models.Index(fields=["care_side", "is_active"], name="bed_side_active_idx"),
        ]

    def save(self, *args, **kwargs):
        self.code = (self.code or "").strip().upper()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return self.code
