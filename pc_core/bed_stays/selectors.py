# backend/pc_core/bed_stays/selectors.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from django.db.models import F, QuerySet
from rest_framework.exceptions import NotFound

from pc_core.bed_stays.models import OPEN_STATUSES, BedStay
from pc_core.common.intervals import has_overlap


def _most_recent_first(qs: QuerySet[BedStay]) -> QuerySet[BedStay]:
    # open-ended stays first, then latest end, latest start
    return qs.order_by(F("end_at").desc(nulls_first=True), "-start_at", "-id")


class BedStaySelector:
    @staticmethod
    def get_stay(stay_id: int, *, for_update: bool = False) -> BedStay:
        qs = BedStay.objects.all()
        if for_update:
            qs = qs.select_for_update()
        else:
            qs = qs.select_related("bed", "patient")
        try:
            return qs.get(id=stay_id)
        except (BedStay.DoesNotExist, ValueError, TypeError):
            raise NotFound(f"Bed stay {stay_id} not found.")

    @staticmethod
    def has_overlap(
        *,
        bed_id: int,
        start: datetime,
        end: Optional[datetime],
        exclude_id: Optional[int] = None,
    ) -> bool:
        return has_overlap(
            BedStay.objects.filter(bed_id=bed_id, status__in=OPEN_STATUSES),
            start=start,
            end=end,
            exclude_pk=exclude_id,
        )

    @staticmethod
    def history_by_bed(bed_id: int) -> QuerySet[BedStay]:
        return _most_recent_first(BedStay.objects.select_related("bed", "patient").filter(bed_id=bed_id))

    @staticmethod
    def history_by_patient(patient_id: str) -> QuerySet[BedStay]:
        return _most_recent_first(BedStay.objects.select_related("bed", "patient").filter(patient_id=patient_id))

    @staticmethod
    def current_occupancy(
        *,
        care_side: Optional[str] = None,
        ward_id: Optional[int] = None,
    ) -> QuerySet[BedStay]:
        """
        Reserved/occupied stays with their bed and patient.
        Status is the source of truth here, not the clock.
        """
        qs = BedStay.objects.select_related("bed", "bed__ward", "patient").filter(status__in=OPEN_STATUSES)
        if care_side:
            qs = qs.filter(bed__care_side=care_side)
        if ward_id:
            qs = qs.filter(bed__ward_id=ward_id)
        return qs.order_by("bed__care_side", "bed__code", "id")
