# backend/pc_core/bed_stays/services.py
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Optional

from django.db import IntegrityError, transaction
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from pc_core.appointments.selectors import AppointmentSelector
from pc_core.audit.services import AuditService
from pc_core.bed_stays.models import OPEN_STATUSES, BedStay, BedStayStatus
from pc_core.bed_stays.selectors import BedStaySelector
from pc_core.beds.selectors import BedSelector
from pc_core.common.api.exceptions import ConflictError, InvalidTransitionError
from pc_core.common.db import is_exclusion_violation
from pc_core.patients.selectors import get_patient

logger = logging.getLogger(__name__)

# end_at must stay strictly after start_at
MIN_STAY = timedelta(seconds=1)

OVERLAP_MESSAGE = "The bed is already reserved or occupied during this period."


def _append_note(current: str, extra: Optional[str]) -> str:
    extra = (extra or "").strip()
    if not extra:
        return current or ""
    if not current:
        return extra
    return f"{current}\n{extra}"


def _derived_status(start_at: datetime, end_at: Optional[datetime], now: datetime) -> str:
    if end_at is not None and end_at <= now:
        return BedStayStatus.COMPLETED
    return BedStayStatus.OCCUPIED if start_at <= now else BedStayStatus.RESERVED


def _require_open(stay: BedStay, action: str) -> None:
    if stay.status not in OPEN_STATUSES:
        raise InvalidTransitionError(f"Cannot {action} a {stay.status} stay.")


def _not_in_future(at: datetime, now: datetime) -> None:
    if at > now:
        raise ValidationError({"at": "Must not be in the future."})


def _close(stay: BedStay, *, at: datetime, note: Optional[str]) -> None:
    end_at = max(at, stay.start_at + MIN_STAY)
    if stay.end_at is not None and stay.end_at < end_at:
        # a stay that was booked to end earlier is never stretched
        end_at = stay.end_at
    stay.end_at = end_at
    stay.status = BedStayStatus.COMPLETED
    stay.note = _append_note(stay.note, note)


def _insert(**fields) -> BedStay:
    status = fields["status"]
    if status in OPEN_STATUSES and BedStaySelector.has_overlap(
        bed_id=fields["bed"].id,
        start=fields["start_at"],
        end=fields.get("end_at"),
    ):
        logger.info("Bed stay overlap rejected on bed %s", fields["bed"].code)
        raise ConflictError(OVERLAP_MESSAGE)

    try:
        with transaction.atomic():
            return BedStay.objects.create(**fields)
    except IntegrityError as exc:
        if is_exclusion_violation(exc):
            logger.warning("Bed stay exclusion constraint hit on bed %s", fields["bed"].code)
            raise ConflictError(OVERLAP_MESSAGE)
        raise


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


class BedStayService:
    """
    Bed occupancy writes. Each method is one transaction: lock, validate,
    write, audit. Any exception rolls the whole operation back.
    """

    @staticmethod
    @transaction.atomic
    def occupy(
        *,
        actor_user_id: int | None = None,
        bed_id: int,
        patient_id: str,
        start_at: Optional[datetime] = None,
        end_at: Optional[datetime] = None,
        note: str = "",
        source_appointment_id: Any = None,
    ) -> BedStay:
        now = timezone.now()
        start_at = start_at or now
        if end_at is not None and end_at <= start_at:
            raise ValidationError({"end_at": "Must be after start_at."})

        bed = BedSelector.get_active_bed(bed_id, for_update=True)
        patient = get_patient(hn=patient_id)
        appointment = AppointmentSelector.get_appointment(source_appointment_id) if source_appointment_id else None

        stay = _insert(
            bed=bed,
            patient=patient,
            start_at=start_at,
            end_at=end_at,
            status=_derived_status(start_at, end_at, now),
            note=note or "",
            source_appointment=appointment,
        )

        AuditService.log(
            event_code="bed_stay.created",
            entity_type="BedStay",
            entity_id=stay.id,
            actor_user_id=actor_user_id,
            metadata={
                "bed": bed.code,
                "patient_id": patient.hn,
                "start_at": _iso(start_at),
                "end_at": _iso(end_at),
                "status": stay.status,
            },
        )
        return stay

    @staticmethod
    @transaction.atomic
    def end(
        *,
        actor_user_id: int | None = None,
        stay_id: int,
        at: Optional[datetime] = None,
        reason: str = "",
    ) -> BedStay:
        now = timezone.now()
        at = at or now
        _not_in_future(at, now)

        stay = BedStaySelector.get_stay(stay_id, for_update=True)
        _require_open(stay, "end")

        # completed rows must end by now; a stay that has not begun is cancelled instead
        not_started = stay.start_at + MIN_STAY > now
        if not_started:
            suffix = f" — {reason}" if reason else ""
            stay.status = BedStayStatus.CANCELLED
            stay.end_at = stay.start_at + MIN_STAY
            stay.note = _append_note(stay.note, f"Ended before start — {at.isoformat()}{suffix}")
        else:
            _close(stay, at=at, note=reason)
        stay.save(update_fields=["end_at", "status", "note", "updated_at"])

        AuditService.log(
            event_code="bed_stay.cancelled" if not_started else "bed_stay.ended",
            entity_type="BedStay",
            entity_id=stay.id,
            actor_user_id=actor_user_id,
            metadata={"end_at": _iso(stay.end_at), "reason": reason or "", "before_start": not_started},
        )
        return stay

    @staticmethod
    @transaction.atomic
    def cancel(*, actor_user_id: int | None = None, stay_id: int) -> BedStay:
        stay = BedStaySelector.get_stay(stay_id, for_update=True)

        if stay.status == BedStayStatus.CANCELLED:
            return stay
        _require_open(stay, "cancel")

        stay.status = BedStayStatus.CANCELLED
        stay.end_at = stay.end_at or max(timezone.now(), stay.start_at + MIN_STAY)
        stay.save(update_fields=["end_at", "status", "updated_at"])

        AuditService.log(
            event_code="bed_stay.cancelled",
            entity_type="BedStay",
            entity_id=stay.id,
            actor_user_id=actor_user_id,
            metadata={"end_at": _iso(stay.end_at)},
        )
        return stay

    @staticmethod
    @transaction.atomic
    def transfer(
        *,
        actor_user_id: int | None = None,
        stay_id: int,
        to_bed_id: int,
        at: Optional[datetime] = None,
        note: str = "",
    ) -> BedStay:
        """
        Close the source stay and open an open-ended stay on `to_bed_id`.

        If `at` is not after the source start, the source never began: it is
        cancelled and the new stay keeps the original start.
        Returns the destination stay.
        """
        now = timezone.now()
        at = at or now
        _not_in_future(at, now)

        source = BedStaySelector.get_stay(stay_id, for_update=True)
        _require_open(source, "transfer")
        to_bed = BedSelector.get_active_bed(to_bed_id, for_update=True)

        suffix = f" — {note}" if note else ""
        before_start = at <= source.start_at

        if before_start:
            source.status = BedStayStatus.CANCELLED
            source.end_at = source.start_at + MIN_STAY
            source.note = _append_note(source.note, f"Transfer (before start) — {at.isoformat()}{suffix}")
            new_start = source.start_at
        else:
            _close(source, at=at, note=f"Transfer at {at.isoformat()}{suffix}")
            new_start = at

        source.save(update_fields=["end_at", "status", "note", "updated_at"])

        dest = _insert(
            bed=to_bed,
            patient_id=source.patient_id,
            start_at=new_start,
            end_at=None,
            status=_derived_status(new_start, None, now),
            note=note or "",
            source_appointment_id=source.source_appointment_id,
        )

        AuditService.log(
            event_code="bed_stay.transferred",
            entity_type="BedStay",
            entity_id=source.id,
            actor_user_id=actor_user_id,
            metadata={
                "from_bed_id": source.bed_id,
                "to_bed": to_bed.code,
                "new_stay_id": dest.id,
                "at": _iso(at),
                "before_start": before_start,
            },
        )
        logger.info("Transferred stay %s to bed %s as stay %s", source.id, to_bed.code, dest.id)
        return dest
