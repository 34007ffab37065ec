from sqlalchemy.orm import Session
from datetime import date
from typing import List, Optional
import logging

from ..core.exceptions import (
    DoctorUnavailableError, NotFoundError, SlotUnavailableError, ValidationError
)
from ..core.timeutils import normalize_time, parse_iso_date
from ..models.appointment import Appointment, AppointmentStatus, PaymentStatus
from ..repositories.appointment_repository import AppointmentRepository
from ..repositories.schedule_repository import ScheduleRepository
from ..repositories.user_repository import UserRepository
from ..schemas.appointment import BookingRequest
from ..schemas.schedule import AvailabilityResponse, Slot
from .schedule_service import policy_of
from .slot_generator import generate_slots

logger = logging.getLogger(__name__)

REASON_MIN_LENGTH = 10
REASON_MAX_LENGTH = 500


def parse_date(value) -> date:
    parsed = parse_iso_date(value)
    if parsed is None:
        raise ValidationError("Invalid date format", details={"date": value})
    return parsed


class BookingService:
    """Derives free slots and reserves them without double booking."""

    def __init__(self, db: Session):
        self.db = db
        self.appointments = AppointmentRepository(db)
        self.schedules = ScheduleRepository(db)
        self.users = UserRepository(db)

    def get_candidate_slots(self, doctor_id: int, on_date: date) -> List[Slot]:
        # Reads only; a missing schedule is not materialized here
        schedule = self.schedules.get_by_doctor(doctor_id)
        if schedule is None or not schedule.is_active:
            return []
        return generate_slots(schedule.weekly_schedule or {}, policy_of(schedule), on_date)

    def get_available_slots(self, doctor_id: int, on_date: date) -> List[Slot]:
        return self.get_availability(doctor_id, on_date).available_slots

    def get_availability(self, doctor_id: int, on_date: date) -> AvailabilityResponse:
        """Candidate slots minus those whose start matches a pending/confirmed booking."""
        candidates = self.get_candidate_slots(doctor_id, on_date)
        booked_times = {
            appointment.time
            for appointment in self.appointments.list_active_for_day(doctor_id, on_date)
        }
        available = [slot for slot in candidates if slot.start not in booked_times]

        return AvailabilityResponse(
            date=on_date,
            available_slots=available,
            total_slots=len(candidates),
            booked_slots=len(candidates) - len(available),
        )

    def get_public_availability(self, doctor_id: int, date_value) -> AvailabilityResponse:
        """Availability as patients see it: only for verified doctors."""
        if not self.users.get_verified_doctor(doctor_id):
            raise NotFoundError("Doctor not found", details={"doctor_id": doctor_id})
        return self.get_availability(doctor_id, parse_date(date_value))

    def book_appointment(
        self,
        patient_id: int,
        request: BookingRequest,
        today: Optional[date] = None
    ) -> Appointment:
        """Reserve ``request.time`` on ``request.date`` for the patient.

        Checks run in order: presence and shape of the fields, the doctor
        and whether their schedule is switched on, the date, then the slot.
        A doctor without a stored schedule has the default one, which is on.
        The final insert is guarded by the active-slot unique index, so a
        racing duplicate surfaces as
        ``SlotUnavailableError`` even after the existence check has passed.
        """
        missing = [
            name for name in ("doctor_id", "date", "time", "reason")
            if getattr(request, name) in (None, "")
        ]
        if missing:
            raise ValidationError("All fields are required", details={"missing": missing})

        reason = request.reason.strip()
        if not REASON_MIN_LENGTH <= len(reason) <= REASON_MAX_LENGTH:
            raise ValidationError(
                f"Reason must be between {REASON_MIN_LENGTH} and {REASON_MAX_LENGTH} characters",
                details={"reason_length": len(reason)},
            )

        time = normalize_time(request.time)
        if time is None:
            raise ValidationError(
                "Please provide a valid time format (HH:MM)", details={"time": request.time}
            )

        doctor = self.users.get_verified_doctor(request.doctor_id)
        if not doctor:
            raise NotFoundError(
                "Doctor not found or not verified", details={"doctor_id": request.doctor_id}
            )

        schedule = self.schedules.get_by_doctor(doctor.id)
        if schedule is not None and not schedule.is_active:
            raise DoctorUnavailableError(
                "This doctor is not accepting bookings", details={"doctor_id": doctor.id}
            )

        appointment_date = parse_date(request.date)
        today = today or date.today()
        if appointment_date < today:
            raise ValidationError(
                "Appointment date must be today or in the future",
                details={"date": appointment_date.isoformat()},
            )

        if self.appointments.find_active(doctor.id, appointment_date, time):
            logger.warning(
                f"Booking rejected, slot taken: doctor={doctor.id} date={appointment_date} time={time}"
            )
            raise SlotUnavailableError(
                "This time slot is already booked",
                details={
                    "doctor_id": doctor.id,
                    "date": appointment_date.isoformat(),
                    "time": time,
                },
            )

        appointment = Appointment(
            patient_id=patient_id,
            doctor_id=doctor.id,
            date=appointment_date,
            time=time,
            reason=reason,
            status=AppointmentStatus.PENDING,
            consultation_fee=doctor.doctor.consultation_fee or 0,
            payment_status=PaymentStatus.PENDING,
        )
        try:
            appointment = self.appointments.create(appointment)
        except SlotUnavailableError:
            logger.warning(
                f"Booking lost race: doctor={doctor.id} date={appointment_date} time={time}"
            )
            raise

        logger.info(
            f"Appointment {appointment.id} booked: patient={patient_id} "
            f"doctor={doctor.id} date={appointment_date} time={time}"
        )
        return appointment
