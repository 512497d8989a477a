# backend/pc_core/beds/services.py
from __future__ import annotations

import logging
import re
from typing import Any, Dict, Optional

from django.db import IntegrityError, transaction
from django.db.models import Exists, OuterRef
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from pc_core.audit.services import AuditService
from pc_core.bed_stays.models import OPEN_STATUSES, BedStay
from pc_core.beds.models import Bed, CareSide
from pc_core.beds.selectors import BedSelector
from pc_core.common.api.exceptions import ConflictError, InvalidTransitionError

logger = logging.getLogger(__name__)

_CODE_CLEAN = re.compile(r"[^A-Z0-9_-]")


def normalize_code(value: str) -> str:
    """Codes and prefixes are A-Z, 0-9, '_' and '-'."""
    return _CODE_CLEAN.sub("", str(value or "").upper())


def _validate_care_side(care_side: str) -> str:
    if care_side not in CareSide.values:
        raise ValidationError({"care_side": f"Must be one of {', '.join(CareSide.values)}."})
    return care_side


def _free_beds(care_side: str):
    open_stay = BedStay.objects.filter(bed=OuterRef("pk"), status__in=OPEN_STATUSES)
    return Bed.objects.filter(care_side=care_side, is_active=True).filter(~Exists(open_stay))


class BedCatalogService:
    @staticmethod
    @transaction.atomic
    def create_bed(
        *,
        actor_user_id: int | None,
        code: str,
        care_side: str,
        ward_id: int | None = None,
        note: str = "",
    ) -> Bed:
        code = normalize_code(code)
        if not code:
            raise ValidationError({"code": "Bed code is required."})
        _validate_care_side(care_side)

        ward = BedSelector.get_ward(ward_id) if ward_id else None

        if Bed.objects.filter(code=code).exists():
            raise ConflictError(f"Bed code {code} already exists.")

        try:
            with transaction.atomic():
                bed = Bed.objects.create(code=code, care_side=care_side, ward=ward, note=note or "")
        except IntegrityError:
            raise ConflictError(f"Bed code {code} already exists.")

        AuditService.log(
            event_code="bed.created",
            entity_type="Bed",
            entity_id=bed.id,
            actor_user_id=actor_user_id,
            metadata={"code": code, "care_side": care_side, "ward_id": ward_id},
        )
        return bed

    @staticmethod
    @transaction.atomic
    def retire_bed(*, actor_user_id: int | None, bed_id: int) -> Bed:
        bed = BedSelector.get_bed(bed_id)
        bed = Bed.objects.select_for_update().get(id=bed.id)

        if not bed.is_active:
            return bed

        open_count = BedStay.objects.filter(bed_id=bed.id, status__in=OPEN_STATUSES).count()
        if open_count:
            raise InvalidTransitionError(f"Bed {bed.code} still has {open_count} open stay(s).")

        bed.is_active = False
        bed.retired_at = timezone.now()
        bed.save(update_fields=["is_active", "retired_at", "updated_at"])

        AuditService.log(
            event_code="bed.retired",
            entity_type="Bed",
            entity_id=bed.id,
            actor_user_id=actor_user_id,
            metadata={"code": bed.code},
        )
        logger.info("Retired bed %s", bed.code)
        return bed

    @staticmethod
    @transaction.atomic
    def ensure_bed_count(
        *,
        actor_user_id: int | None,
        care_side: str,
        target: int,
        prefix: Optional[str] = None,
        ward_id: int | None = None,
    ) -> Dict[str, Any]:
        """
        Bring the number of active beds of one care side to `target`.

        - Short: create PREFIX-NN beds, numbering after the highest existing NN.
        - Over: retire free beds (no reserved/occupied stay), highest code first.
          Fails without changes if there are not enough free beds.
        """
        _validate_care_side(care_side)
        if target is None or int(target) < 0:
            raise ValidationError({"target": "Must be a number >= 0."})
        target = int(target)
        prefix = normalize_code(prefix or care_side)
        ward = BedSelector.get_ward(ward_id) if ward_id else None

        # Serialize reconciles of one care side.
        active = list(
            Bed.objects.select_for_update().filter(care_side=care_side, is_active=True).values_list("id", flat=True)
        )
        current = len(active)

        created: list[str] = []
        retired: list[str] = []

        if current < target:
            pattern = re.compile(rf"^{re.escape(prefix)}-(\d+)$")
            numbers = [
                int(m.group(1))
                for m in (pattern.match(c) for c in Bed.objects.filter(care_side=care_side).values_list("code", flat=True))
                if m
            ]
            next_no = max(numbers, default=0)
            for _ in range(target - current):
                next_no += 1
                code = f"{prefix}-{next_no:02d}"
                if Bed.objects.filter(code=code).exists():
                    raise ConflictError(f"Bed code {code} already exists.")
                Bed.objects.create(code=code, care_side=care_side, ward=ward)
                created.append(code)

        elif current > target:
            need = current - target
            free = list(_free_beds(care_side).order_by("-code")[:need])
            if len(free) < need:
                raise ValidationError(
                    {"target": f"Only {len(free)} free bed(s) can be retired, {need} needed."}
                )
            now = timezone.now()
            for bed in free:
                bed.is_active = False
                bed.retired_at = now
                bed.save(update_fields=["is_active", "retired_at", "updated_at"])
                retired.append(bed.code)

        result = {
            "care_side": care_side,
            "target": target,
            "changed": bool(created or retired),
            "created": created,
            "retired": retired,
        }

        if result["changed"]:
            AuditService.log(
                event_code="bed.reconciled",
                entity_type="CareSide",
                entity_id=care_side,
                actor_user_id=actor_user_id,
                metadata={"prefix": prefix, **result},
            )
            logger.info("Reconciled %s beds to %s: +%s -%s", care_side, target, len(created), len(retired))

        return result
