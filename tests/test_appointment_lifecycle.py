from datetime import timedelta

import pytest

from medislot.core.exceptions import (
    ConflictError, ForbiddenError, InvalidTransitionError, NotFoundError, StateError,
    ValidationError
)
from medislot.models import AppointmentStatus, CancelledBy, Prescription
from medislot.schemas.appointment import AppointmentStatusUpdate, BookingRequest
from medislot.services.appointment_lifecycle import (
    TERMINAL_STATUSES, can_transition, check_transition, is_terminal
)
from medislot.services.appointment_service import AppointmentService
from medislot.services.booking_service import BookingService

PENDING = AppointmentStatus.PENDING
CONFIRMED = AppointmentStatus.CONFIRMED
COMPLETED = AppointmentStatus.COMPLETED
CANCELLED = AppointmentStatus.CANCELLED


@pytest.fixture
def appointment(db, patient, doctor, next_monday):
    return BookingService(db).book_appointment(patient.id, BookingRequest(
        doctor_id=doctor.id,
        date=next_monday.isoformat(),
        time="09:00",
        reason="Recurring chest pain after exercise",
    ))


def _move(db, doctor, appointment, status, **fields):
    return AppointmentService(db).update_appointment_status(
        doctor.id, appointment.id, AppointmentStatusUpdate(status=status, **fields)
    )


class TestTransitionTable:

    @pytest.mark.parametrize("current,target", [
        (PENDING, CONFIRMED),
        (PENDING, CANCELLED),
        (PENDING, COMPLETED),
        (CONFIRMED, COMPLETED),
        (CONFIRMED, CANCELLED),
        (PENDING, PENDING),
        (CONFIRMED, CONFIRMED),
    ])
    def test_allowed(self, current, target):
        assert can_transition(current, target)
        check_transition(current, target)

    @pytest.mark.parametrize("current,target", [
        (CONFIRMED, PENDING),
        (COMPLETED, COMPLETED),
        (COMPLETED, CANCELLED),
        (COMPLETED, PENDING),
        (CANCELLED, CANCELLED),
        (CANCELLED, CONFIRMED),
    ])
    def test_rejected(self, current, target):
        assert not can_transition(current, target)
        with pytest.raises(InvalidTransitionError) as exc_info:
            check_transition(current, target)
        assert exc_info.value.details == {"from": current.value, "to": target.value}

    def test_terminal_statuses(self):
        assert TERMINAL_STATUSES == {COMPLETED, CANCELLED}
        assert is_terminal(COMPLETED)
        assert not is_terminal(CONFIRMED)

    def test_invalid_transition_is_conflict_and_state_error(self):
        error = InvalidTransitionError("nope")
        assert isinstance(error, ConflictError)
        assert isinstance(error, StateError)
        assert error.status_code == 409


class TestUpdateAppointmentStatus:

    def test_confirm(self, db, doctor, appointment):
        updated, prescription = _move(db, doctor, appointment, CONFIRMED, notes="Bring ECG results")

        assert updated.status == CONFIRMED
        assert updated.notes == "Bring ECG results"
        assert prescription is None

    def test_complete_with_diagnosis_issues_prescription(self, db, doctor, appointment):
        _move(db, doctor, appointment, CONFIRMED)

        updated, prescription = _move(
            db, doctor, appointment, COMPLETED, diagnosis="flu", prescription="Rest and fluids"
        )

        assert updated.status == COMPLETED
        assert updated.diagnosis == "flu"
        assert updated.prescription == "Rest and fluids"
        assert prescription.prescription_number == f"PRES{prescription.id:06d}"
        assert prescription.diagnosis == "flu"
        assert prescription.notes == "Rest and fluids"
        assert prescription.appointment_id == appointment.id
        assert prescription.patient_id == appointment.patient_id

    def test_second_completion_rejected(self, db, doctor, appointment):
        _move(db, doctor, appointment, CONFIRMED)
        _move(db, doctor, appointment, COMPLETED, diagnosis="flu")

        with pytest.raises(StateError):
            _move(db, doctor, appointment, COMPLETED, diagnosis="flu again")

        assert db.query(Prescription).filter(
            Prescription.appointment_id == appointment.id
        ).count() == 1

    def test_complete_without_clinical_data_issues_nothing(self, db, doctor, appointment):
        _move(db, doctor, appointment, CONFIRMED)

        updated, prescription = _move(db, doctor, appointment, COMPLETED)

        assert updated.status == COMPLETED
        assert prescription is None
        assert db.query(Prescription).count() == 0

    def test_prescription_numbers_are_sequential(self, db, make_patient, doctor, next_monday):
        numbers = []
        for i, time in enumerate(("09:00", "10:00")):
            patient = make_patient(email=f"seq{i}@example.com")
            booked = BookingService(db).book_appointment(patient.id, BookingRequest(
                doctor_id=doctor.id, date=next_monday.isoformat(), time=time,
                reason="Annual check-up and bloods",
            ))
            _move(db, doctor, booked, CONFIRMED)
            _, prescription = _move(db, doctor, booked, COMPLETED, diagnosis="healthy")
            numbers.append(prescription.prescription_number)

        assert numbers == ["PRES000001", "PRES000002"]

    def test_pending_completes_directly_with_prescription(self, db, doctor, appointment):
        updated, prescription = _move(db, doctor, appointment, COMPLETED, diagnosis="flu")

        assert updated.status == COMPLETED
        assert updated.diagnosis == "flu"
        assert prescription.prescription_number == f"PRES{prescription.id:06d}"
        assert prescription.appointment_id == appointment.id

        with pytest.raises(StateError):
            _move(db, doctor, appointment, COMPLETED, diagnosis="flu")
        assert db.query(Prescription).count() == 1

    def test_doctor_cancel_requires_reason(self, db, doctor, appointment):
        with pytest.raises(StateError):
            _move(db, doctor, appointment, CANCELLED)

        updated, _ = _move(db, doctor, appointment, CANCELLED, cancellation_reason="Doctor unwell")
        assert updated.status == CANCELLED
        assert updated.cancelled_by == CancelledBy.DOCTOR
        assert updated.cancellation_reason == "Doctor unwell"

    def test_follow_up_must_be_future(self, db, doctor, appointment, next_monday):
        with pytest.raises(ValidationError):
            AppointmentService(db).update_appointment_status(
                doctor.id,
                appointment.id,
                AppointmentStatusUpdate(status=CONFIRMED, follow_up_date=next_monday),
                today=next_monday,
            )

        updated, _ = AppointmentService(db).update_appointment_status(
            doctor.id,
            appointment.id,
            AppointmentStatusUpdate(
                status=CONFIRMED, follow_up_date=next_monday + timedelta(days=7)
            ),
            today=next_monday,
        )
        assert updated.follow_up_date == next_monday + timedelta(days=7)

    def test_other_doctor_forbidden(self, db, make_doctor, appointment):
        other = make_doctor(email="other@example.com", license_number="LIC-0099")

        with pytest.raises(ForbiddenError):
            _move(db, other, appointment, CONFIRMED)

    def test_missing_appointment(self, db, doctor):
        with pytest.raises(NotFoundError):
            AppointmentService(db).update_appointment_status(
                doctor.id, 404, AppointmentStatusUpdate(status=CONFIRMED)
            )


class TestCancelAppointment:

    def test_patient_cancel_requires_reason(self, db, patient, doctor, appointment):
        _move(db, doctor, appointment, CONFIRMED)
        service = AppointmentService(db)

        with pytest.raises(StateError):
            service.cancel_appointment(patient.id, appointment.id, None)
        with pytest.raises(StateError):
            service.cancel_appointment(patient.id, appointment.id, "   ")

        cancelled = service.cancel_appointment(patient.id, appointment.id, "Travelling")
        assert cancelled.status == CANCELLED
        assert cancelled.cancelled_by == CancelledBy.PATIENT
        assert cancelled.cancellation_reason == "Travelling"

    def test_doctor_cancel(self, db, doctor, appointment):
        cancelled = AppointmentService(db).cancel_appointment(
            doctor.id, appointment.id, "Clinic closed"
        )
        assert cancelled.cancelled_by == CancelledBy.DOCTOR

    def test_stranger_forbidden(self, db, make_patient, appointment):
        stranger = make_patient(email="stranger@example.com")

        with pytest.raises(ForbiddenError):
            AppointmentService(db).cancel_appointment(stranger.id, appointment.id, "Because")

    def test_cannot_cancel_twice(self, db, patient, appointment):
        service = AppointmentService(db)
        service.cancel_appointment(patient.id, appointment.id, "Travelling")

        with pytest.raises(InvalidTransitionError):
            service.cancel_appointment(patient.id, appointment.id, "Still travelling")

    def test_cannot_cancel_completed(self, db, patient, doctor, appointment):
        _move(db, doctor, appointment, CONFIRMED)
        _move(db, doctor, appointment, COMPLETED)

        with pytest.raises(InvalidTransitionError):
            AppointmentService(db).cancel_appointment(patient.id, appointment.id, "Too late")

    def test_reason_too_long(self, db, patient, appointment):
        with pytest.raises(ValidationError):
            AppointmentService(db).cancel_appointment(patient.id, appointment.id, "x" * 201)
