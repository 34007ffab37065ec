from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Boolean, JSON
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from ..core.database import Base

WEEKDAYS = (
    "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"
)


def empty_weekly_schedule() -> dict:
    return {day: [] for day in WEEKDAYS}


def _window_minutes(window: dict) -> int:
    start_h, start_m = window["start"].split(":")
    end_h, end_m = window["end"].split(":")
    return (int(end_h) * 60 + int(end_m)) - (int(start_h) * 60 + int(start_m))


class Schedule(Base):
    """A doctor's recurring weekly availability plus booking policy."""

    __tablename__ = "schedules"

    id = Column(Integer, primary_key=True, index=True)
    doctor_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)

    # {"monday": [{"start": "09:00", "end": "12:00"}, ...], ...}
    weekly_schedule = Column(JSON, nullable=False, default=empty_weekly_schedule)

    # Booking policy
    slot_duration_minutes = Column(Integer, nullable=False, default=30)
    buffer_minutes = Column(Integer, nullable=False, default=5)
    max_appointments_per_day = Column(Integer, nullable=False, default=20)
    emergency_enabled = Column(Boolean, nullable=False, default=False)
    emergency_windows = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    notes = Column(String(500), nullable=True)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    doctor = relationship("User", back_populates="schedule")

    def windows_for(self, weekday: str) -> list:
        return list((self.weekly_schedule or {}).get(weekday, []))

    @property
    def total_weekly_hours(self) -> float:
        minutes = sum(
            _window_minutes(window)
            for day in WEEKDAYS
            for window in self.windows_for(day)
        )
        return round(minutes / 60, 2)

    @property
    def active_days_count(self) -> int:
        return sum(1 for day in WEEKDAYS if self.windows_for(day))

    def __repr__(self):
        return f"<Schedule(id={self.id}, doctor_id={self.doctor_id}, active={self.is_active})>"
