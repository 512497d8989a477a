# backend/pc_core/beds/selectors.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from django.db.models import Count, Exists, F, OuterRef, Q, QuerySet
from rest_framework.exceptions import NotFound

from pc_core.bed_stays.models import OPEN_STATUSES, BedStay
from pc_core.beds.models import Bed, CareSide, Ward
from pc_core.common.intervals import overlapping


class BedSelector:
    @staticmethod
    def list_beds(
        *,
        care_side: Optional[str] = None,
        ward_id: Optional[int] = None,
        active_only: bool = True,
    ) -> QuerySet[Bed]:
        qs = Bed.objects.select_related("ward")
        if care_side:
            qs = qs.filter(care_side=care_side)
        if ward_id:
            qs = qs.filter(ward_id=ward_id)
        if active_only:
            qs = qs.filter(is_active=True)
        return qs.order_by(F("ward__name").asc(nulls_last=True), "code")

    @staticmethod
    def get_bed(bed_id: int) -> Bed:
        try:
            return Bed.objects.select_related("ward").get(id=bed_id)
        except (Bed.DoesNotExist, ValueError, TypeError):
            raise NotFound(f"Bed {bed_id} not found.")

    @staticmethod
    def get_active_bed(bed_id: int, *, for_update: bool = False) -> Bed:
        """
        Lookup used by the occupancy engine. A retired bed is reported as missing.
        """
        qs = Bed.objects.filter(is_active=True)
        if for_update:
            qs = qs.select_for_update()
        try:
            return qs.get(id=bed_id)
        except (Bed.DoesNotExist, ValueError, TypeError):
            raise NotFound(f"Bed {bed_id} not found or retired.")

    @staticmethod
    def get_ward(ward_id: int) -> Ward:
        try:
            return Ward.objects.get(id=ward_id)
        except (Ward.DoesNotExist, ValueError, TypeError):
            raise NotFound(f"Ward {ward_id} not found.")

    @staticmethod
    def find_available_beds(
        *,
        start: datetime,
        end: Optional[datetime],
        care_side: Optional[str] = None,
        ward_id: Optional[int] = None,
    ) -> QuerySet[Bed]:
        """
        Active beds with no reserved/occupied stay overlapping [start, end).
        """
        busy = overlapping(
            BedStay.objects.filter(bed=OuterRef("pk"), status__in=OPEN_STATUSES),
            start=start,
            end=end,
        )
        return BedSelector.list_beds(care_side=care_side, ward_id=ward_id).filter(~Exists(busy))

    @staticmethod
    def summary_by_care_side() -> List[Dict[str, Any]]:
        rows = (
            Bed.objects.values("care_side")
            .annotate(
                active=Count("id", filter=Q(is_active=True), distinct=True),
                retired=Count("id", filter=Q(is_active=False), distinct=True),
                busy=Count("id", filter=Q(is_active=True, stays__status__in=OPEN_STATUSES), distinct=True),
            )
            .order_by("care_side")
        )
        by_side = {r["care_side"]: r for r in rows}

        out: List[Dict[str, Any]] = []
        for side, label in CareSide.choices:
            r = by_side.get(side, {})
            active = r.get("active", 0)
            busy = r.get("busy", 0)
            out.append(
                {
                    "care_side": side,
                    "label": label,
                    "active": active,
                    "busy": busy,
                    "free": max(0, active - busy),
                    "retired": r.get("retired", 0),
                }
            )
        return out
