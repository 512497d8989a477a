# backend/pc_core/patients/selectors.py
from __future__ import annotations

from django.db.models import Q, QuerySet
from rest_framework.exceptions import NotFound

from pc_core.patients.models import Patient
from pc_core.patients.services import normalize_hn


def get_patient(*, hn: str) -> Patient:
    key = normalize_hn(hn)
    try:
        return Patient.objects.get(hn=key)
    except Patient.DoesNotExist:
        raise NotFound(f"Patient {key} not found.")


def search_patients(*, q: str | None = None) -> QuerySet[Patient]:
    qs = Patient.objects.all()

    qv = (q or "").strip()
    if qv:
        qs = qs.filter(
            Q(full_name__icontains=qv)
            | Q(hn__icontains=qv)
            | Q(phone__icontains=qv)
        )

    return qs.order_by("hn")
