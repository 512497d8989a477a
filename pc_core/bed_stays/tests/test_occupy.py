from datetime import timedelta

import pytest
from django.db import IntegrityError, transaction
from rest_framework.exceptions import NotFound, ValidationError

from pc_core.audit.models import AuditEvent
from pc_core.bed_stays.models import BedStay, BedStayStatus
from pc_core.bed_stays.services import BedStayService
from pc_core.common.api.exceptions import ConflictError

pytestmark = pytest.mark.django_db


def test_status_derived_from_start(bed, make_bed, patient, other_patient, now):
    past = BedStayService.occupy(bed_id=bed.id, patient_id=patient.hn, start_at=now - timedelta(hours=1))
    assert past.status == BedStayStatus.OCCUPIED
    assert past.end_at is None

    future = BedStayService.occupy(
        bed_id=make_bed("B-02").id,
        patient_id=other_patient.hn,
        start_at=now + timedelta(days=1),
    )
    assert future.status == BedStayStatus.RESERVED


def test_start_defaults_to_now(bed, patient):
    stay = BedStayService.occupy(bed_id=bed.id, patient_id="1")
    assert stay.status == BedStayStatus.OCCUPIED
    assert stay.patient_id == patient.hn


def test_backdated_closed_stay_is_completed(bed, patient, now):
    stay = BedStayService.occupy(
        bed_id=bed.id,
        patient_id=patient.hn,
        start_at=now - timedelta(days=3),
        end_at=now - timedelta(days=1),
    )
    assert stay.status == BedStayStatus.COMPLETED


def test_end_must_follow_start(bed, patient, now):
    with pytest.raises(ValidationError):
        BedStayService.occupy(bed_id=bed.id, patient_id=patient.hn, start_at=now, end_at=now)


def test_missing_references_are_not_found(bed, make_bed, patient):
    with pytest.raises(NotFound):
        BedStayService.occupy(bed_id=999999, patient_id=patient.hn)
    with pytest.raises(NotFound):
        BedStayService.occupy(bed_id=bed.id, patient_id="HN-99999999")
    with pytest.raises(NotFound):
        BedStayService.occupy(bed_id=make_bed("B-09", is_active=False).id, patient_id=patient.hn)
    with pytest.raises(NotFound):
        BedStayService.occupy(bed_id=bed.id, patient_id=patient.hn, source_appointment_id="AP-999999")

    assert BedStay.objects.count() == 0


def test_overlap_is_conflict_and_writes_nothing(bed, patient, other_patient, now):
    BedStayService.occupy(bed_id=bed.id, patient_id=patient.hn, start_at=now + timedelta(hours=1), end_at=now + timedelta(hours=5))

    with pytest.raises(ConflictError):
        BedStayService.occupy(bed_id=bed.id, patient_id=other_patient.hn, start_at=now + timedelta(hours=4))

    assert BedStay.objects.count() == 1
    assert AuditEvent.objects.filter(event_code="bed_stay.created").count() == 1


def test_cancelled_and_completed_stays_do_not_block(bed, patient, other_patient, now):
    first = BedStayService.occupy(bed_id=bed.id, patient_id=patient.hn, start_at=now + timedelta(hours=1))
    BedStayService.cancel(stay_id=first.id)

    second = BedStayService.occupy(bed_id=bed.id, patient_id=other_patient.hn, start_at=now + timedelta(hours=1))
    assert second.status == BedStayStatus.RESERVED


def test_exclusion_constraint_backs_up_the_precheck(bed, patient, other_patient, now):
    BedStay.objects.create(bed=bed, patient=patient, start_at=now, status=BedStayStatus.OCCUPIED)

    with pytest.raises(IntegrityError):
        with transaction.atomic():
            BedStay.objects.create(
                bed=bed,
                patient=other_patient,
                start_at=now + timedelta(days=10),
                status=BedStayStatus.RESERVED,
            )

    # same interval is fine once the row is not holding the bed
    BedStay.objects.create(
        bed=bed,
        patient=other_patient,
        start_at=now + timedelta(days=10),
        end_at=now + timedelta(days=11),
        status=BedStayStatus.CANCELLED,
    )


def test_check_constraint_rejects_inverted_interval(bed, patient, now):
    with pytest.raises(IntegrityError):
        with transaction.atomic():
            BedStay.objects.create(
                bed=bed,
                patient=patient,
                start_at=now,
                end_at=now - timedelta(minutes=1),
                status=BedStayStatus.COMPLETED,
            )
