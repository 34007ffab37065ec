import threading
from datetime import timedelta

import pytest

from medislot.core.database import SessionLocal
from medislot.core.exceptions import (
    ConflictError, DoctorUnavailableError, NotFoundError, SlotUnavailableError, ValidationError
)
from medislot.models import Appointment, AppointmentStatus, PaymentStatus
from medislot.schemas.appointment import BookingRequest
from medislot.schemas.schedule import ScheduleUpdate
from medislot.services.appointment_service import AppointmentService
from medislot.services.booking_service import BookingService
from medislot.services.schedule_service import ScheduleService

REASON = "Persistent headache for two weeks"


def _request(doctor, on_date, time="09:00", reason=REASON):
    return BookingRequest(
        doctor_id=doctor.id, date=on_date.isoformat(), time=time, reason=reason
    )


@pytest.fixture
def monday_hours(db, doctor):
    ScheduleService(db).update_schedule(doctor.id, ScheduleUpdate(
        weekly_schedule={"monday": [{"start": "09:00", "end": "10:00"}]},
        slot_duration_minutes=30,
        buffer_minutes=0,
    ))
    return doctor


class TestBookAppointment:

    def test_book_creates_pending(self, db, patient, doctor, next_monday):
        appointment = BookingService(db).book_appointment(patient.id, _request(doctor, next_monday))

        assert appointment.id is not None
        assert appointment.status == AppointmentStatus.PENDING
        assert appointment.payment_status == PaymentStatus.PENDING
        assert appointment.time == "09:00"
        assert appointment.date == next_monday
        assert appointment.consultation_fee == 50.0

    def test_second_patient_gets_conflict(self, db, make_patient, doctor, next_monday):
        first = make_patient()
        second = make_patient(email="other@example.com")
        service = BookingService(db)
        service.book_appointment(first.id, _request(doctor, next_monday))

        with pytest.raises(SlotUnavailableError) as exc_info:
            service.book_appointment(second.id, _request(doctor, next_monday))

        assert isinstance(exc_info.value, ConflictError)
        assert exc_info.value.status_code == 409

    def test_unpadded_time_collides_with_padded(self, db, make_patient, doctor, next_monday):
        service = BookingService(db)
        service.book_appointment(make_patient().id, _request(doctor, next_monday, time="09:00"))

        with pytest.raises(SlotUnavailableError):
            service.book_appointment(
                make_patient(email="p2@example.com").id,
                _request(doctor, next_monday, time="9:00"),
            )

    def test_past_date_rejected(self, db, patient, doctor, next_monday):
        request = _request(doctor, next_monday - timedelta(days=14))

        with pytest.raises(ValidationError):
            BookingService(db).book_appointment(patient.id, request)

    def test_today_allowed(self, db, patient, doctor, next_monday):
        appointment = BookingService(db).book_appointment(
            patient.id, _request(doctor, next_monday), today=next_monday
        )
        assert appointment.status == AppointmentStatus.PENDING

    def test_missing_fields(self, db, patient, doctor, next_monday):
        request = BookingRequest(doctor_id=doctor.id, date=next_monday.isoformat())

        with pytest.raises(ValidationError) as exc_info:
            BookingService(db).book_appointment(patient.id, request)

        assert exc_info.value.details["missing"] == ["time", "reason"]

    def test_short_reason(self, db, patient, doctor, next_monday):
        with pytest.raises(ValidationError):
            BookingService(db).book_appointment(
                patient.id, _request(doctor, next_monday, reason="sick")
            )

    def test_bad_time_format(self, db, patient, doctor, next_monday):
        with pytest.raises(ValidationError):
            BookingService(db).book_appointment(
                patient.id, _request(doctor, next_monday, time="9am")
            )

    def test_bad_date_format(self, db, patient, doctor):
        request = BookingRequest(doctor_id=doctor.id, date="next monday", time="09:00", reason=REASON)

        with pytest.raises(ValidationError):
            BookingService(db).book_appointment(patient.id, request)

    def test_unverified_doctor(self, db, patient, make_doctor, next_monday):
        unverified = make_doctor(verified=False)

        with pytest.raises(NotFoundError):
            BookingService(db).book_appointment(patient.id, _request(unverified, next_monday))

    def test_unknown_doctor(self, db, patient, next_monday):
        request = BookingRequest(
            doctor_id=9999, date=next_monday.isoformat(), time="09:00", reason=REASON
        )

        with pytest.raises(NotFoundError):
            BookingService(db).book_appointment(patient.id, request)

    def test_switched_off_schedule_refuses_bookings(self, db, patient, monday_hours, next_monday):
        ScheduleService(db).update_schedule(monday_hours.id, ScheduleUpdate(is_active=False))
        service = BookingService(db)
        assert service.get_available_slots(monday_hours.id, next_monday) == []

        with pytest.raises(DoctorUnavailableError) as exc_info:
            service.book_appointment(patient.id, _request(monday_hours, next_monday))

        assert isinstance(exc_info.value, ConflictError)
        assert exc_info.value.code == "doctor_not_accepting_bookings"
        assert db.query(Appointment).count() == 0

    def test_switched_back_on_accepts_bookings(self, db, patient, monday_hours, next_monday):
        schedules = ScheduleService(db)
        schedules.update_schedule(monday_hours.id, ScheduleUpdate(is_active=False))
        schedules.update_schedule(monday_hours.id, ScheduleUpdate(is_active=True))

        appointment = BookingService(db).book_appointment(
            patient.id, _request(monday_hours, next_monday)
        )
        assert appointment.status == AppointmentStatus.PENDING

    def test_rebook_after_cancellation(self, db, make_patient, doctor, next_monday):
        first = make_patient()
        service = BookingService(db)
        appointment = service.book_appointment(first.id, _request(doctor, next_monday))
        AppointmentService(db).cancel_appointment(first.id, appointment.id, "Feeling better")

        second = make_patient(email="second@example.com")
        rebooked = service.book_appointment(second.id, _request(doctor, next_monday))

        assert rebooked.id != appointment.id
        assert db.query(Appointment).count() == 2

    def test_concurrent_bookings_single_winner(self, db, make_patient, doctor, next_monday):
        patients = [make_patient(email=f"racer{i}@example.com") for i in range(8)]
        request = _request(doctor, next_monday)
        doctor_id = doctor.id
        barrier = threading.Barrier(len(patients))
        results = []
        lock = threading.Lock()

        def attempt(patient_id):
            session = SessionLocal()
            try:
                barrier.wait()
                BookingService(session).book_appointment(patient_id, request)
                outcome = "booked"
            except SlotUnavailableError:
                outcome = "conflict"
            finally:
                session.close()
            with lock:
                results.append(outcome)

        threads = [threading.Thread(target=attempt, args=(p.id,)) for p in patients]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert results.count("booked") == 1
        assert results.count("conflict") == len(patients) - 1
        assert db.query(Appointment).filter(
            Appointment.doctor_id == doctor_id,
            Appointment.status.in_([AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED]),
        ).count() == 1


class TestAvailability:

    def test_booked_start_removed(self, db, patient, monday_hours, next_monday):
        service = BookingService(db)
        assert [s.start for s in service.get_available_slots(monday_hours.id, next_monday)] == [
            "09:00", "09:30"
        ]

        service.book_appointment(patient.id, _request(monday_hours, next_monday, time="09:30"))

        availability = service.get_availability(monday_hours.id, next_monday)
        assert [s.start for s in availability.available_slots] == ["09:00"]
        assert availability.total_slots == 2
        assert availability.booked_slots == 1

    def test_cancelled_booking_frees_slot(self, db, patient, monday_hours, next_monday):
        service = BookingService(db)
        appointment = service.book_appointment(patient.id, _request(monday_hours, next_monday))
        AppointmentService(db).cancel_appointment(patient.id, appointment.id, "Schedule clash")

        slots = service.get_available_slots(monday_hours.id, next_monday)
        assert [s.start for s in slots] == ["09:00", "09:30"]

    def test_off_day_is_empty(self, db, monday_hours, next_monday):
        tuesday = next_monday + timedelta(days=1)
        assert BookingService(db).get_available_slots(monday_hours.id, tuesday) == []

    def test_no_schedule_is_empty(self, db, doctor, next_monday):
        assert BookingService(db).get_available_slots(doctor.id, next_monday) == []

    def test_public_availability_requires_verified_doctor(self, db, make_doctor, next_monday):
        unverified = make_doctor(email="new@example.com", license_number="LIC-0002", verified=False)

        with pytest.raises(NotFoundError):
            BookingService(db).get_public_availability(unverified.id, next_monday.isoformat())

    def test_public_availability_bad_date(self, db, monday_hours):
        with pytest.raises(ValidationError):
            BookingService(db).get_public_availability(monday_hours.id, "2025-13-45")
