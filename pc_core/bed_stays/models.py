# backend/pc_core/bed_stays/models.py
from django.contrib.postgres.constraints import ExclusionConstraint
from django.contrib.postgres.fields import RangeBoundary, RangeOperators
from django.db import models
from django.db.models import F, Q

from pc_core.common.db import TsTzRange
from pc_core.common.models import TimeStampedModel


class BedStayStatus(models.TextChoices):
    RESERVED = "reserved", "Reserved"
    OCCUPIED = "occupied", "Occupied"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"


# Statuses that hold the bed for their interval.
OPEN_STATUSES = (BedStayStatus.RESERVED, BedStayStatus.OCCUPIED)
TERMINAL_STATUSES = (BedStayStatus.COMPLETED, BedStayStatus.CANCELLED)


class BedStay(TimeStampedModel):
    """
    One patient on one bed over [start_at, end_at). A NULL end_at is open-ended.

    Rows are never deleted; ending, cancelling and transferring only move the
    status forward and close the interval.
    """
    bed = models.ForeignKey("beds.Bed", on_delete=models.PROTECT, related_name="stays")
    patient = models.ForeignKey("patients.Patient", on_delete=models.PROTECT, related_name="bed_stays")

    start_at = models.DateTimeField(db_index=True)
    end_at = models.DateTimeField(null=True, blank=True)

    status = models.CharField(max_length=16, choices=BedStayStatus.choices, db_index=True)
    note = models.TextField(blank=True, default="")

    source_appointment = models.ForeignKey(
        "appointments.Appointment",
        on_delete=models.SET_NULL,
        related_name="bed_stays",
        null=True,
        blank=True,
    )

    class Meta:
        db_table = "bed_stays_bed_stay"
        indexes = [
            models.Index(fields=["bed", "status"], name="bed_stay_bed_status_idx"),
            models.Index(fields=["patient", "start_at"], name="bed_stay_patient_start_idx"),
        ]
        constraints = [
            ExclusionConstraint(
                name="bed_stay_no_overlap",
                expressions=[
                    ("bed", RangeOperators.EQUAL),
                    (TsTzRange("start_at", "end_at", RangeBoundary()), RangeOperators.OVERLAPS),
                ],
                condition=Q(status__in=[s.value for s in OPEN_STATUSES]),
            ),
            models.CheckConstraint(
                condition=Q(end_at__isnull=True) | Q(end_at__gt=F("start_at")),
                name="bed_stay_end_after_start",
            ),
        ]

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_STATUSES

    def __str__(self) -> str:
        return f"BedStay({self.pk}) {self.patient_id}@{self.bed_id} [{self.status}]"
