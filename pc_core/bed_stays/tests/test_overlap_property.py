import random
from datetime import timedelta
from itertools import combinations

import pytest
from django.utils import timezone
from rest_framework.exceptions import APIException

from pc_core.bed_stays.models import OPEN_STATUSES, BedStay, BedStayStatus
from pc_core.bed_stays.services import BedStayService
from pc_core.common.intervals import overlaps

pytestmark = pytest.mark.django_db

STEPS = 60


def assert_consistent(bed_ids):
    for bed_id in bed_ids:
        held = list(BedStay.objects.filter(bed_id=bed_id, status__in=OPEN_STATUSES))
        for a, b in combinations(held, 2):
            assert not overlaps(a.start_at, a.end_at, b.start_at, b.end_at), (a, b)
    assert not BedStay.objects.filter(status=BedStayStatus.COMPLETED, end_at__gt=timezone.now()).exists()


@pytest.mark.parametrize("seed", [7, 11, 2025])
def test_random_interleavings_never_double_book(seed, make_bed, make_patient, now):
    rnd = random.Random(seed)
    beds = [make_bed(f"R-0{i}").id for i in range(3)]
    patients = [make_patient(hn=f"HN-0000090{i}", full_name=f"P{i}").hn for i in range(3)]

    def some_time(lo_hours, hi_hours):
        return now + timedelta(hours=rnd.randint(lo_hours, hi_hours))

    def pick_stay():
        ids = list(BedStay.objects.values_list("id", flat=True))
        return rnd.choice(ids) if ids else None

    for _ in range(STEPS):
        op = rnd.choice(["occupy", "occupy", "transfer", "end", "cancel"])
        try:
            if op == "occupy":
                start = some_time(-48, 48)
                end = start + timedelta(hours=rnd.randint(1, 24)) if rnd.random() < 0.5 else None
                BedStayService.occupy(
                    bed_id=rnd.choice(beds),
                    patient_id=rnd.choice(patients),
                    start_at=start,
                    end_at=end,
                )
            elif op == "transfer":
                stay_id = pick_stay()
                if stay_id:
                    BedStayService.transfer(stay_id=stay_id, to_bed_id=rnd.choice(beds), at=some_time(-48, 0))
            elif op == "end":
                stay_id = pick_stay()
                if stay_id:
                    BedStayService.end(stay_id=stay_id, at=some_time(-48, 0))
            else:
                stay_id = pick_stay()
                if stay_id:
                    BedStayService.cancel(stay_id=stay_id)
        except APIException:
            # conflicts, invalid transitions and validation errors are expected outcomes
            pass

        assert_consistent(beds)
