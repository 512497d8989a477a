from datetime import date, time, timedelta

import pytest
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from pc_core.appointments.models import Appointment, AppointmentStatus
from pc_core.appointments.selectors import AppointmentSelector
from pc_core.appointments.services import AppointmentService
from pc_core.audit.models import AuditEvent
from pc_core.common.api.exceptions import ConflictError, InvalidTransitionError

pytestmark = pytest.mark.django_db

DAY = date(2025, 3, 1)


@pytest.fixture
def p5(make_patient):
    return make_patient(hn="P-5", full_name="Patient Five")


def book(patient_id, start, end, **extra):
    return AppointmentService.create(
        patient_id=patient_id,
        appointment_date=extra.pop("appointment_date", DAY),
        start_time=start,
        end_time=end,
        **extra,
    )


def test_create_defaults_and_code(p5):
    appt = book("P-5", time(9, 0), time(9, 30), appointment_type="home")

    assert appt.status == AppointmentStatus.PENDING
    assert appt.code == f"AP-{appt.id:06d}"
    assert appt.display_place == "Patient home"
    assert appt.window_end - appt.window_start == timedelta(minutes=30)
    assert timezone.localtime(appt.window_start).time() == time(9, 0)
    assert AuditEvent.objects.filter(event_code="appointment.created", entity_id=appt.code).exists()


def test_overlapping_appointment_for_same_patient_is_conflict(p5):
    book("P-5", time(9, 0), time(9, 30), appointment_type="home")

    with pytest.raises(ConflictError):
        book("P-5", time(9, 15), time(9, 45), appointment_type="hospital", hospital_address="City Hosp")

    assert Appointment.objects.count() == 1


def test_hospital_without_address_is_validation_error(make_patient):
    make_patient(hn="P-6", full_name="Patient Six")
    with pytest.raises(ValidationError):
        book("P-6", time(9, 0), time(10, 0), appointment_type="hospital", hospital_address="")


def test_adjacent_and_cancelled_slots_do_not_conflict(p5, other_patient):
    first = book("P-5", time(9, 0), time(10, 0))
    book("P-5", time(10, 0), time(11, 0))  # touching
    book(other_patient.hn, time(9, 0), time(10, 0))  # another patient

    AppointmentService.transition_status(id_or_code=first.code, new_status="cancelled")
    again = book("P-5", time(9, 0), time(10, 0))
    assert again.status == AppointmentStatus.PENDING


def test_unknown_patient_is_not_found():
    with pytest.raises(NotFound):
        book("HN-77777777", time(9, 0), time(10, 0))


def test_transitions(p5):
    appt = book("P-5", time(9, 0), time(10, 0))

    same = AppointmentService.transition_status(id_or_code=appt.id, new_status="pending")
    assert same.status == AppointmentStatus.PENDING

    done = AppointmentService.transition_status(id_or_code=str(appt.id), new_status="done")
    assert done.status == AppointmentStatus.DONE

    for target in ("pending", "cancelled"):
        with pytest.raises(InvalidTransitionError):
            AppointmentService.transition_status(id_or_code=appt.code, new_status=target)

    appt.refresh_from_db()
    assert appt.status == AppointmentStatus.DONE


def test_update_merges_patch_and_revalidates(p5):
    appt = book("P-5", time(9, 0), time(10, 0), appointment_type="home", place="Village 3")
    other = book("P-5", time(13, 0), time(14, 0))

    moved = AppointmentService.update(
        id_or_code=appt.code,
        patch={"appointment_type": "hospital", "hospital_address": "City Hosp", "department": "Onco"},
    )
    assert moved.appointment_type == "hospital"
    assert moved.display_place == "City Hosp"
    assert moved.place == "Village 3"

    with pytest.raises(ConflictError):
        AppointmentService.update(id_or_code=appt.id, patch={"start_time": time(12, 30), "end_time": time(13, 30)})

    with pytest.raises(ValidationError):
        AppointmentService.update(id_or_code=other.id, patch={"end_time": time(12, 0)})

    # home again clears hospital-only fields
    home = AppointmentService.update(id_or_code=appt.id, patch={"appointment_type": "home"})
    assert home.hospital_address is None
    assert home.department is None


def test_update_moves_window_with_date(p5):
    appt = book("P-5", time(9, 0), time(10, 0))
    before = appt.window_start

    moved = AppointmentService.update(id_or_code=appt.id, patch={"appointment_date": date(2025, 3, 2)})
    moved.refresh_from_db()
    assert (moved.window_start - before).days == 1


def test_update_noop_returns_row_untouched(p5):
    appt = book("P-5", time(9, 0), time(10, 0), appointment_type="home")
    stamp = Appointment.objects.get(id=appt.id).updated_at

    same = AppointmentService.update(id_or_code=appt.id, patch={"start_time": time(9, 0), "appointment_type": "home"})
    assert same.updated_at == stamp
    assert not AuditEvent.objects.filter(event_code="appointment.updated").exists()


def test_update_cannot_resurrect_terminal_status(p5):
    appt = book("P-5", time(9, 0), time(10, 0))
    AppointmentService.transition_status(id_or_code=appt.id, new_status="cancelled")

    with pytest.raises(InvalidTransitionError):
        AppointmentService.update(id_or_code=appt.id, patch={"status": "pending"})

    edited = AppointmentService.update(id_or_code=appt.id, patch={"note": "patient called"})
    assert edited.status == AppointmentStatus.CANCELLED
    assert edited.note == "patient called"


def test_delete_is_idempotent(p5):
    appt = book("P-5", time(9, 0), time(10, 0))

    assert AppointmentService.delete(id_or_code=appt.code) is True
    assert AppointmentService.delete(id_or_code=appt.code) is False
    assert AppointmentService.delete(id_or_code="not-a-code") is False


def test_get_appointment_accepts_code_string_and_int(p5):
    appt = book("P-5", time(9, 0), time(10, 0))

    for key in (appt.id, str(appt.id), appt.code, appt.code.lower()):
        assert AppointmentSelector.get_appointment(key).id == appt.id

    with pytest.raises(NotFound):
        AppointmentSelector.get_appointment("AP-999999")


def test_next_code(p5):
    assert AppointmentSelector.next_code() == "AP-000001"
    appt = book("P-5", time(9, 0), time(10, 0))
    assert AppointmentSelector.next_code() == f"AP-{appt.id + 1:06d}"
