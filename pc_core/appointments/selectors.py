# backend/pc_core/appointments/selectors.py
from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any, Mapping, Optional

from django.db.models import Case, IntegerField, Max, Q, QuerySet, Value, When
from django.db.models.functions import Coalesce
from django.utils.dateparse import parse_date
from rest_framework.exceptions import NotFound, ValidationError

from pc_core.appointments.models import Appointment, AppointmentStatus, format_code
from pc_core.common.intervals import has_overlap

_CODE_RE = re.compile(r"^AP-(\d+)$", re.IGNORECASE)

SORT_KEYS = {"status", "datetime", "created", "patient", "hn", "type", "place", "department"}


def parse_appointment_id(id_or_code: Any) -> int:
    """
    Accepts 123, "123" or "AP-000123".
    """
    if isinstance(id_or_code, int) and not isinstance(id_or_code, bool):
        return id_or_code

    raw = str(id_or_code or "").strip()
    m = _CODE_RE.match(raw)
    if m:
        return int(m.group(1))
    if raw.isdigit():
        return int(raw)
    raise NotFound(f"Appointment {raw or id_or_code!r} not found.")


def _parse_day(value: Optional[str], field: str) -> Optional[date]:
    if not value:
        return None
    try:
        parsed = parse_date(str(value))
    except ValueError:
        parsed = None
    if parsed is None:
        raise ValidationError({field: "Use YYYY-MM-DD."})
    return parsed


def _ordering(sort: str, direction: str) -> list:
    desc = direction == "desc"
    d = "-" if desc else ""

    if sort == "status":
        bucket = Case(
            When(status=AppointmentStatus.PENDING, then=Value(1)),
            When(status=AppointmentStatus.DONE, then=Value(2)),
            When(status=AppointmentStatus.CANCELLED, then=Value(3)),
            default=Value(4),
            output_field=IntegerField(),
        )
        return [bucket.desc() if desc else bucket.asc(), "appointment_date", "start_time", "id"]
    if sort == "created":
        return [f"{d}created_at", f"{d}id"]
    if sort == "patient":
        return [f"{d}patient__full_name", f"{d}id"]
    if sort == "hn":
        return [f"{d}patient_id", f"{d}id"]
    if sort == "type":
        return [f"{d}appointment_type", f"{d}id"]
    if sort == "place":
        place = Coalesce("hospital_address", "place", Value(""))
        return [place.desc() if desc else place.asc(), f"{d}id"]
    if sort == "department":
        dept = Coalesce("department", Value(""))
        return [dept.desc() if desc else dept.asc(), f"{d}id"]
    # datetime
    return [f"{d}appointment_date", f"{d}start_time", f"{d}id"]


class AppointmentSelector:
    @staticmethod
    def get_appointment(id_or_code: Any, *, for_update: bool = False) -> Appointment:
        pk = parse_appointment_id(id_or_code)
        qs = Appointment.objects.all()
        if for_update:
            qs = qs.select_for_update()
        else:
            qs = qs.select_related("patient")
        try:
            return qs.get(id=pk)
        except Appointment.DoesNotExist:
            raise NotFound(f"Appointment {format_code(pk)} not found.")

    @staticmethod
    def has_overlap(
        *,
        patient_id: str,
        window_start: datetime,
        window_end: datetime,
        exclude_id: Optional[int] = None,
    ) -> bool:
        return has_overlap(
            Appointment.objects.filter(patient_id=patient_id).exclude(status=AppointmentStatus.CANCELLED),
            start=window_start,
            end=window_end,
            start_field="window_start",
            end_field="window_end",
            exclude_pk=exclude_id,
        )

    @staticmethod
    def list_appointments(params: Mapping[str, Any]) -> QuerySet[Appointment]:
        """
        Filters: q, status (or "all"), type, department, from, to.
        Sort: sort in SORT_KEYS (default "status"), dir asc|desc.
        """
        qs = Appointment.objects.select_related("patient")

        q = str(params.get("q") or "").strip()
        if q:
            m = _CODE_RE.match(q)
            match = (
                Q(patient_id__icontains=q)
                | Q(appointment_type__icontains=q)
                | Q(place__icontains=q)
                | Q(hospital_address__icontains=q)
                | Q(department__icontains=q)
                | Q(patient__full_name__icontains=q)
            )
            if m:
                match |= Q(id=int(m.group(1)))
            elif q.isdigit():
                match |= Q(id=int(q))
            qs = qs.filter(match)

        status = str(params.get("status") or "").strip().lower()
        if status and status != "all":
            if status not in AppointmentStatus.values:
                raise ValidationError({"status": f"Must be one of {', '.join(AppointmentStatus.values)} or all."})
            qs = qs.filter(status=status)

        appt_type = str(params.get("type") or "").strip().lower()
        if appt_type:
            qs = qs.filter(appointment_type="hospital" if appt_type == "clinic" else appt_type)

        department = str(params.get("department") or "").strip()
        if department:
            qs = qs.filter(department__iexact=department)

        date_from = _parse_day(params.get("from"), "from")
        date_to = _parse_day(params.get("to"), "to")
        if date_from:
            qs = qs.filter(appointment_date__gte=date_from)
        if date_to:
            qs = qs.filter(appointment_date__lte=date_to)

        sort = str(params.get("sort") or "status").strip().lower()
        if sort not in SORT_KEYS:
            sort = "status"
        direction = "desc" if str(params.get("dir") or "").lower() == "desc" else "asc"

        return qs.order_by(*_ordering(sort, direction))

    @staticmethod
    def next_code() -> str:
        last = Appointment.objects.aggregate(m=Max("id"))["m"] or 0
        return format_code(last + 1)
