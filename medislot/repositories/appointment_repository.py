from datetime import date, timedelta
from typing import List, Optional, Tuple

from sqlalchemy import or_

from ..core.exceptions import SlotUnavailableError
from ..models.appointment import ACTIVE_STATUSES, Appointment, AppointmentStatus
from .base import BaseRepository

TIME_FILTERS = ("today", "tomorrow", "this-week", "upcoming", "past")


class AppointmentRepository(BaseRepository):

    def get(self, appointment_id: int) -> Optional[Appointment]:
        return self.db.query(Appointment).filter(Appointment.id == appointment_id).first()

    def find_active(self, doctor_id: int, on_date: date, time: str) -> Optional[Appointment]:
        return self.db.query(Appointment).filter(
            Appointment.doctor_id == doctor_id,
            Appointment.date == on_date,
            Appointment.time == time,
            Appointment.status.in_(ACTIVE_STATUSES),
        ).first()

    def list_active_for_day(self, doctor_id: int, on_date: date) -> List[Appointment]:
        return self.db.query(Appointment).filter(
            Appointment.doctor_id == doctor_id,
            Appointment.date == on_date,
            Appointment.status.in_(ACTIVE_STATUSES),
        ).all()

    def create(self, appointment: Appointment) -> Appointment:
        """Insert; the active-slot unique index rejects a concurrent duplicate."""
        return self.save(
            appointment,
            conflict=SlotUnavailableError(
                "This time slot is already booked",
                details={
                    "doctor_id": appointment.doctor_id,
                    "date": appointment.date.isoformat(),
                    "time": appointment.time,
                },
            ),
        )

    def list_for_patient(
        self,
        patient_id: int,
        status: Optional[AppointmentStatus] = None,
        skip: int = 0,
        limit: int = 10
    ) -> Tuple[List[Appointment], int]:
        query = self.db.query(Appointment).filter(Appointment.patient_id == patient_id)
        if status:
            query = query.filter(Appointment.status == status)

        total = query.count()
        appointments = query.order_by(Appointment.date.desc(), Appointment.time.desc()) \
            .offset(skip).limit(limit).all()
        return appointments, total

    def list_for_doctor(
        self,
        doctor_id: int,
        status: Optional[AppointmentStatus] = None,
        on_date: Optional[date] = None,
        time_filter: Optional[str] = None,
        search: Optional[str] = None,
        today: Optional[date] = None,
        skip: int = 0,
        limit: int = 10
    ) -> Tuple[List[Appointment], int]:
        query = self.db.query(Appointment).filter(Appointment.doctor_id == doctor_id)

        if status:
            query = query.filter(Appointment.status == status)

        if on_date:
            query = query.filter(Appointment.date == on_date)

        if time_filter:
            today = today or date.today()
            tomorrow = today + timedelta(days=1)
            if time_filter == "today":
                query = query.filter(Appointment.date == today)
            elif time_filter == "tomorrow":
                query = query.filter(Appointment.date == tomorrow)
            elif time_filter == "this-week":
                query = query.filter(
                    Appointment.date >= today,
                    Appointment.date < today + timedelta(days=7),
                )
            elif time_filter == "upcoming":
                query = query.filter(Appointment.date >= today)
            elif time_filter == "past":
                query = query.filter(Appointment.date < today)

        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                Appointment.reason.ilike(pattern),
                Appointment.notes.ilike(pattern),
            ))

        total = query.count()
        appointments = query.order_by(Appointment.date.asc(), Appointment.time.asc()) \
            .offset(skip).limit(limit).all()
        return appointments, total
