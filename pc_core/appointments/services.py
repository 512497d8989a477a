# backend/pc_core/appointments/services.py
from __future__ import annotations

import logging
from datetime import date, time
from typing import Any, Dict, Optional

from django.db import IntegrityError, transaction
from rest_framework.exceptions import NotFound, ValidationError

from pc_core.appointments.models import Appointment, AppointmentStatus, format_code, window_for
from pc_core.appointments.rules import normalize_type_and_address
from pc_core.appointments.selectors import AppointmentSelector, parse_appointment_id
from pc_core.audit.services import AuditService
from pc_core.common.api.exceptions import ConflictError, InvalidTransitionError
from pc_core.common.db import is_exclusion_violation
from pc_core.patients.models import Patient
from pc_core.patients.services import normalize_hn

logger = logging.getLogger(__name__)

OVERLAP_MESSAGE = "This time slot overlaps another appointment of the same patient."

ALLOWED_TRANSITIONS = {
    AppointmentStatus.PENDING: {AppointmentStatus.DONE, AppointmentStatus.CANCELLED},
    AppointmentStatus.DONE: set(),
    AppointmentStatus.CANCELLED: set(),
}

EDITABLE_FIELDS = (
    "patient_id",
    "appointment_date",
    "start_time",
    "end_time",
    "appointment_type",
    "place",
    "hospital_address",
    "department",
    "status",
    "note",
)


def _check_transition(current: str, new: str) -> None:
    if new not in AppointmentStatus.values:
        raise ValidationError({"status": f"Must be one of {', '.join(AppointmentStatus.values)}."})
    if new == current:
        return
    if new not in ALLOWED_TRANSITIONS.get(current, set()):
        raise InvalidTransitionError(f"Cannot change appointment status from {current} to {new}.")


def _lock_patient(patient_id: Any) -> Patient:
    hn = normalize_hn(patient_id)
    patient = Patient.objects.select_for_update().filter(hn=hn).first()
    if patient is None:
        raise NotFound(f"Patient {hn} not found.")
    return patient


def _guard_overlap(
    *,
    patient_id: str,
    appointment_date: date,
    start_time: time,
    end_time: time,
    status: str,
    exclude_id: Optional[int] = None,
) -> None:
    if status == AppointmentStatus.CANCELLED:
        return
    window_start, window_end = window_for(appointment_date, start_time, end_time)
    if AppointmentSelector.has_overlap(
        patient_id=patient_id,
        window_start=window_start,
        window_end=window_end,
        exclude_id=exclude_id,
    ):
        logger.info("Appointment overlap rejected for patient %s on %s", patient_id, appointment_date)
        raise ConflictError(OVERLAP_MESSAGE)


def _write(appt: Appointment, **save_kwargs) -> None:
    try:
        with transaction.atomic():
            appt.save(**save_kwargs)
    except IntegrityError as exc:
        if is_exclusion_violation(exc):
            logger.warning("Appointment exclusion constraint hit for patient %s", appt.patient_id)
            raise ConflictError(OVERLAP_MESSAGE)
        raise


class AppointmentService:
    @staticmethod
    @transaction.atomic
    def create(
        *,
        actor_user_id: int | None = None,
        patient_id: str,
        appointment_date: date,
        start_time: time,
        end_time: time,
        appointment_type: Optional[str] = None,
        place: str = "",
        hospital_address: Optional[str] = None,
        department: Optional[str] = None,
        status: Optional[str] = None,
        note: str = "",
    ) -> Appointment:
        visit = normalize_type_and_address(
            {
                "appointment_type": appointment_type,
                "hospital_address": hospital_address,
                "department": department,
                "place": place,
                "start_time": start_time,
                "end_time": end_time,
            }
        )

        status = status or AppointmentStatus.PENDING
        if status not in AppointmentStatus.values:
            raise ValidationError({"status": f"Must be one of {', '.join(AppointmentStatus.values)}."})

        patient = _lock_patient(patient_id)

        _guard_overlap(
            patient_id=patient.hn,
            appointment_date=appointment_date,
            start_time=start_time,
            end_time=end_time,
            status=status,
        )

        appt = Appointment(
            patient=patient,
            appointment_date=appointment_date,
            start_time=start_time,
            end_time=end_time,
            status=status,
            note=note or "",
            **visit.as_fields(),
        )
        _write(appt)

        AuditService.log(
            event_code="appointment.created",
            entity_type="Appointment",
            entity_id=appt.code,
            actor_user_id=actor_user_id,
            metadata={
                "patient_id": patient.hn,
                "date": appointment_date.isoformat(),
                "start_time": start_time.isoformat(),
                "end_time": end_time.isoformat(),
                "appointment_type": appt.appointment_type,
            },
        )
        return appt

    @staticmethod
    @transaction.atomic
    def update(
        *,
        actor_user_id: int | None = None,
        id_or_code: Any,
        patch: Dict[str, Any],
    ) -> Appointment:
        """
        Merge `patch` over the stored row and re-validate the result.
        Only changed columns are written; an empty diff leaves the row untouched.
        """
        appt = AppointmentSelector.get_appointment(id_or_code, for_update=True)

        current = {f: getattr(appt, f) for f in EDITABLE_FIELDS}
        merged = dict(current)
        merged.update({k: v for k, v in (patch or {}).items() if k in EDITABLE_FIELDS})

        if merged["status"] != current["status"]:
            _check_transition(current["status"], merged["status"])

        visit = normalize_type_and_address(merged)
        merged.update(visit.as_fields())
        merged["note"] = merged["note"] or ""

        patient = _lock_patient(merged["patient_id"])
        merged["patient_id"] = patient.hn

        _guard_overlap(
            patient_id=patient.hn,
            appointment_date=merged["appointment_date"],
            start_time=merged["start_time"],
            end_time=merged["end_time"],
            status=merged["status"],
            exclude_id=appt.id,
        )

        changed = [f for f in EDITABLE_FIELDS if merged[f] != current[f]]
        if not changed:
            return appt

        for f in changed:
            setattr(appt, f, merged[f])
        _write(appt, update_fields=changed + ["updated_at"])

        AuditService.log(
            event_code="appointment.updated",
            entity_type="Appointment",
            entity_id=appt.code,
            actor_user_id=actor_user_id,
            metadata={"updated_fields": sorted(changed)},
        )
        return appt

    @staticmethod
    @transaction.atomic
    def transition_status(
        *,
        actor_user_id: int | None = None,
        id_or_code: Any,
        new_status: str,
    ) -> Appointment:
        appt = AppointmentSelector.get_appointment(id_or_code, for_update=True)
        new_status = str(new_status or "").strip().lower()

        _check_transition(appt.status, new_status)
        if new_status == appt.status:
            return appt

        previous = appt.status
        appt.status = new_status
        appt.save(update_fields=["status", "updated_at"])

        AuditService.log(
            event_code="appointment.status_changed",
            entity_type="Appointment",
            entity_id=appt.code,
            actor_user_id=actor_user_id,
            metadata={"from": previous, "to": new_status},
        )
        return appt

    @staticmethod
    @transaction.atomic
    def delete(*, actor_user_id: int | None = None, id_or_code: Any) -> bool:
        try:
            pk = parse_appointment_id(id_or_code)
        except NotFound:
            return False

        deleted, _ = Appointment.objects.filter(id=pk).delete()
        if not deleted:
            return False

        AuditService.log(
            event_code="appointment.deleted",
            entity_type="Appointment",
            entity_id=format_code(pk),
            actor_user_id=actor_user_id,
            metadata={},
        )
        return True
