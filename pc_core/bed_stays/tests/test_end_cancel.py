from datetime import timedelta

import pytest
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from pc_core.bed_stays.models import BedStay, BedStayStatus
from pc_core.bed_stays.services import BedStayService
from pc_core.common.api.exceptions import InvalidTransitionError

pytestmark = pytest.mark.django_db


@pytest.fixture
def occupied(bed, patient, now):
    return BedStayService.occupy(bed_id=bed.id, patient_id=patient.hn, start_at=now - timedelta(hours=5), note="admitted")


def test_end_completes_and_appends_reason(occupied, now):
    at = now - timedelta(hours=1)
    stay = BedStayService.end(stay_id=occupied.id, at=at, reason="discharged home")

    assert stay.status == BedStayStatus.COMPLETED
    assert stay.end_at == at
    assert stay.note == "admitted\ndischarged home"


def test_end_never_before_start_plus_one_second(occupied):
    stay = BedStayService.end(stay_id=occupied.id, at=occupied.start_at - timedelta(hours=2))
    assert stay.end_at == occupied.start_at + timedelta(seconds=1)


def test_end_in_future_is_rejected(occupied, now):
    with pytest.raises(ValidationError):
        BedStayService.end(stay_id=occupied.id, at=now + timedelta(hours=1))


def test_end_shortens_booked_end(bed, patient, now):
    stay = BedStayService.occupy(
        bed_id=bed.id,
        patient_id=patient.hn,
        start_at=now - timedelta(hours=5),
        end_at=now + timedelta(hours=5),
    )
    ended = BedStayService.end(stay_id=stay.id, at=now)
    assert ended.end_at == now


def test_end_keeps_an_earlier_booked_end(bed, patient, now):
    stay = BedStay.objects.create(
        bed=bed,
        patient=patient,
        start_at=now - timedelta(hours=5),
        end_at=now - timedelta(hours=2),
        status=BedStayStatus.OCCUPIED,
    )
    ended = BedStayService.end(stay_id=stay.id, at=now)
    assert ended.status == BedStayStatus.COMPLETED
    assert ended.end_at == now - timedelta(hours=2)


def test_terminal_stays_cannot_be_ended(occupied):
    BedStayService.end(stay_id=occupied.id)
    with pytest.raises(InvalidTransitionError):
        BedStayService.end(stay_id=occupied.id)


def test_cancel_sets_end_only_when_missing(bed, patient, now):
    booked_end = now + timedelta(days=2)
    stay = BedStayService.occupy(bed_id=bed.id, patient_id=patient.hn, start_at=now + timedelta(days=1), end_at=booked_end)

    cancelled = BedStayService.cancel(stay_id=stay.id)
    assert cancelled.status == BedStayStatus.CANCELLED
    assert cancelled.end_at == booked_end


def test_cancel_open_stay_closes_it(occupied):
    cancelled = BedStayService.cancel(stay_id=occupied.id)
    assert cancelled.status == BedStayStatus.CANCELLED
    assert cancelled.end_at > cancelled.start_at


def test_cancel_is_idempotent(occupied):
    first = BedStayService.cancel(stay_id=occupied.id)
    second = BedStayService.cancel(stay_id=occupied.id)

    assert second.status == first.status == BedStayStatus.CANCELLED
    assert second.end_at == first.end_at
    assert second.updated_at == first.updated_at


def test_cancel_completed_is_invalid(occupied):
    BedStayService.end(stay_id=occupied.id)
    with pytest.raises(InvalidTransitionError):
        BedStayService.cancel(stay_id=occupied.id)


def test_end_before_start_cancels_the_reservation(bed, patient, now):
    stay = BedStayService.occupy(bed_id=bed.id, patient_id=patient.hn, start_at=now + timedelta(days=1), note="booked")
    assert stay.status == BedStayStatus.RESERVED

    ended = BedStayService.end(stay_id=stay.id, reason="family declined")
    ended.refresh_from_db()

    assert ended.status == BedStayStatus.CANCELLED
    assert ended.end_at == stay.start_at + timedelta(seconds=1)
    assert ended.note.startswith("booked\nEnded before start — ")
    assert ended.note.endswith(" — family declined")
    assert not BedStay.objects.filter(status=BedStayStatus.COMPLETED, end_at__gt=timezone.now()).exists()


def test_ended_reservation_frees_the_bed(bed, patient, other_patient, now):
    stay = BedStayService.occupy(bed_id=bed.id, patient_id=patient.hn, start_at=now + timedelta(days=1))
    BedStayService.end(stay_id=stay.id)

    again = BedStayService.occupy(bed_id=bed.id, patient_id=other_patient.hn, start_at=now + timedelta(days=1))
    assert again.status == BedStayStatus.RESERVED
