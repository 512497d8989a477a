# backend/pc_core/patients/services.py
from __future__ import annotations

from django.db import IntegrityError, transaction
from rest_framework.exceptions import ValidationError

from pc_core.audit.services import AuditService
from pc_core.common.api.exceptions import ConflictError
from pc_core.patients.models import Patient

HN_PREFIX = "HN-"
HN_DIGITS = 8


def normalize_hn(value) -> str:
    """
    "12" -> "HN-00000012"; anything else is trimmed and upper-cased.
    """
    raw = str(value if value is not None else "").strip()
    if not raw:
        raise ValidationError({"hn": "HN is required."})
    if raw.isdigit():
        return f"{HN_PREFIX}{raw.zfill(HN_DIGITS)}"
    return raw.upper()


class PatientService:
    @staticmethod
    @transaction.atomic
    def create_patient(
        *,
        actor_user_id: int | None,
        hn: str,
        full_name: str,
        phone: str = "",
        gender: str = "",
        date_of_birth=None,
    ) -> Patient:
        hn = normalize_hn(hn)

        if Patient.objects.filter(hn=hn).exists():
            raise ConflictError(f"Patient {hn} already exists.")

        try:
            with transaction.atomic():
                patient = Patient.objects.create(
                    hn=hn,
                    full_name=full_name.strip(),
                    phone=phone or "",
                    gender=gender or "",
                    date_of_birth=date_of_birth,
                )
        except IntegrityError:
            raise ConflictError(f"Patient {hn} already exists.")

        AuditService.log(
            event_code="patient.created",
            entity_type="Patient",
            entity_id=patient.hn,
            actor_user_id=actor_user_id,
            metadata={"hn": hn},
        )
        return patient
