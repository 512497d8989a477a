# backend/pc_core/common/db.py
from __future__ import annotations

from django.contrib.postgres.fields import DateTimeRangeField
from django.db import IntegrityError
from django.db.models import Func

# SQLSTATE raised by Postgres when an EXCLUDE constraint rejects a row.
EXCLUSION_VIOLATION = "23P01"


class TsTzRange(Func):
    """
    tstzrange(start, end, bounds) usable inside ExclusionConstraint expressions.
    A NULL upper bound is an unbounded range.
    """
    function = "TSTZRANGE"
    output_field = DateTimeRangeField()


def _sqlstate(exc: BaseException) -> str | None:
    # psycopg 3 exposes .sqlstate, psycopg2 exposes .pgcode
    for candidate in (exc, getattr(exc, "__cause__", None)):
        if candidate is None:
            continue
        code = getattr(candidate, "sqlstate", None) or getattr(candidate, "pgcode", None)
        if code:
            return code
    return None


def is_exclusion_violation(exc: IntegrityError) -> bool:
    return _sqlstate(exc) == EXCLUSION_VIOLATION
