# backend/pc_core/appointments/models.py
from __future__ import annotations

from datetime import date, datetime, time

from django.contrib.postgres.constraints import ExclusionConstraint
from django.contrib.postgres.fields import RangeBoundary, RangeOperators
from django.db import models
from django.db.models import F, Q
from django.utils import timezone

from pc_core.common.db import TsTzRange
from pc_core.common.models import TimeStampedModel

CODE_PREFIX = "AP-"
CODE_DIGITS = 6


class AppointmentType(models.TextChoices):
    HOME = "home", "Home visit"
    HOSPITAL = "hospital", "Hospital"


class AppointmentStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    DONE = "done", "Done"
    CANCELLED = "cancelled", "Cancelled"


def format_code(pk: int) -> str:
    return f"{CODE_PREFIX}{int(pk):0{CODE_DIGITS}d}"


def window_for(day: date, start: time, end: time) -> tuple[datetime, datetime]:
    """
    Aware [start, end) datetimes for a wall-clock slot in the configured TIME_ZONE.
    """
    tz = timezone.get_default_timezone()
    return (
        timezone.make_aware(datetime.combine(day, start), tz),
        timezone.make_aware(datetime.combine(day, end), tz),
    )


class Appointment(TimeStampedModel):
    patient = models.ForeignKey("patients.Patient", on_delete=models.PROTECT, related_name="appointments")

    appointment_date = models.DateField(db_index=True)
    start_time = models.TimeField()
    end_time = models.TimeField()

    appointment_type = models.CharField(max_length=16, choices=AppointmentType.choices, db_index=True)
    place = models.CharField(max_length=255, blank=True, default="")
    hospital_address = models.CharField(max_length=255, null=True, blank=True)
    department = models.CharField(max_length=128, null=True, blank=True)

    status = models.CharField(
        max_length=16,
        choices=AppointmentStatus.choices,
        default=AppointmentStatus.PENDING,
        db_index=True,
    )
    note = models.TextField(blank=True, default="")

    # date + start/end resolved in TIME_ZONE; maintained by save()
    window_start = models.DateTimeField(editable=False)
    window_end = models.DateTimeField(editable=False)

    class Meta:
        db_table = "appointments_appointment"
        indexes = [
            models.Index(fields=["patient", "appointment_date"], name="appt_patient_date_idx"),
            models.Index(fields=["status", "appointment_date", "start_time"], name="appt_status_date_idx"),
        ]
        constraints = [
            ExclusionConstraint(
                name="appointment_no_overlap",
                expressions=[
                    ("patient", RangeOperators.EQUAL),
                    (TsTzRange("window_start", "window_end", RangeBoundary()), RangeOperators.OVERLAPS),
                ],
                condition=~Q(status=AppointmentStatus.CANCELLED),
            ),
            models.CheckConstraint(
                condition=Q(start_time__lt=F("end_time")),
                name="appointment_start_before_end",
            ),
        ]

    @property
    def code(self) -> str | None:
        return format_code(self.pk) if self.pk else None

    @property
    def display_place(self) -> str:
        if self.appointment_type == AppointmentType.HOSPITAL:
            return self.hospital_address or self.place or ""
        return self.place or "Patient home"

    def sync_window(self) -> None:
        self.window_start, self.window_end = window_for(self.appointment_date, self.start_time, self.end_time)

    def save(self, *args, **kwargs):
        self.sync_window()
        update_fields = kwargs.get("update_fields")
        if update_fields is not None:
            kwargs["update_fields"] = set(update_fields) | {"window_start", "window_end"}
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.code or 'AP-new'} {self.patient_id} {self.appointment_date} {self.start_time}-{self.end_time}"
