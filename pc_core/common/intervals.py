# backend/pc_core/common/intervals.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from django.db.models import Q, QuerySet


def overlaps(
    a_start: datetime,
    a_end: Optional[datetime],
    b_start: datetime,
    b_end: Optional[datetime],
) -> bool:
    """
    Half-open overlap test for [a_start, a_end) and [b_start, b_end).

    An end of None is unbounded (+inf), so an open stay overlaps everything
    that starts after it.
    """
    return (b_end is None or a_start < b_end) and (a_end is None or b_start < a_end)


def overlapping(
    qs: QuerySet,
    *,
    start: datetime,
    end: Optional[datetime],
    start_field: str = "start_at",
    end_field: str = "end_at",
    exclude_pk: Any = None,
) -> QuerySet:
    """
    Same predicate as overlaps(), expressed as a filter over rows holding
    [start_field, end_field). Rows with a NULL end are unbounded.
    """
    if end is not None:
        qs = qs.filter(**{f"{start_field}__lt": end})

    qs = qs.filter(Q(**{f"{end_field}__isnull": True}) | Q(**{f"{end_field}__gt": start}))

    if exclude_pk is not None:
        qs = qs.exclude(pk=exclude_pk)

    return qs


def has_overlap(qs: QuerySet, **kwargs) -> bool:
    return overlapping(qs, **kwargs).exists()
