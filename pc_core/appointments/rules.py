# backend/pc_core/appointments/rules.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Union

from rest_framework.exceptions import ValidationError

from pc_core.appointments.models import AppointmentType

# Older clients still send "clinic" for hospital appointments.
LEGACY_TYPE_ALIASES = {"clinic": AppointmentType.HOSPITAL}


@dataclass(frozen=True)
class HomeVisit:
    place: str = ""

    appointment_type = AppointmentType.HOME

    def as_fields(self) -> Dict[str, Any]:
        return {
            "appointment_type": self.appointment_type.value,
            "place": self.place,
            "hospital_address": None,
            "department": None,
        }


@dataclass(frozen=True)
class HospitalVisit:
    hospital_address: str
    department: Optional[str] = None
    place: str = ""

    appointment_type = AppointmentType.HOSPITAL

    def as_fields(self) -> Dict[str, Any]:
        return {
            "appointment_type": self.appointment_type.value,
            "place": self.place,
            "hospital_address": self.hospital_address,
            "department": self.department,
        }


Visit = Union[HomeVisit, HospitalVisit]


def _clean(value) -> str:
    return str(value).strip() if value is not None else ""


def normalize_type_and_address(data: Mapping[str, Any]) -> Visit:
    """
    Resolve the visit kind of an appointment payload.

    Rules:
    - "clinic" is read as hospital.
    - No type: hospital when an address is given, home otherwise.
    - home drops address and department.
    - hospital needs a non-blank address; department is optional.
    - start_time must precede end_time when both are present.
    """
    start, end = data.get("start_time"), data.get("end_time")
    if start is not None and end is not None and start >= end:
        raise ValidationError({"end_time": "start must precede end"})

    raw_type = _clean(data.get("appointment_type")).lower()
    address = _clean(data.get("hospital_address"))
    place = _clean(data.get("place"))

    if not raw_type:
        kind = AppointmentType.HOSPITAL if address else AppointmentType.HOME
    else:
        kind = LEGACY_TYPE_ALIASES.get(raw_type, raw_type)
        if kind not in AppointmentType.values:
            raise ValidationError({"appointment_type": "appointment_type must be home or hospital"})

    if kind == AppointmentType.HOME:
        return HomeVisit(place=place)

    if not address:
        raise ValidationError({"hospital_address": "address required"})

    return HospitalVisit(
        hospital_address=address,
        department=_clean(data.get("department")) or None,
        place=place,
    )
