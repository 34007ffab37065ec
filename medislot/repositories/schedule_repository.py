import logging
from typing import Optional

from ..core.config import settings
from ..core.exceptions import ConflictError
from ..models.schedule import Schedule, empty_weekly_schedule
from .base import BaseRepository

logger = logging.getLogger(__name__)


class ScheduleRepository(BaseRepository):

    def get_by_doctor(self, doctor_id: int) -> Optional[Schedule]:
        return self.db.query(Schedule).filter(Schedule.doctor_id == doctor_id).first()

    def get_or_create(self, doctor_id: int) -> Schedule:
        """Return the doctor's schedule, persisting the default one on first access."""
        schedule = self.get_by_doctor(doctor_id)
        if schedule:
            return schedule

        schedule = Schedule(
            doctor_id=doctor_id,
            weekly_schedule=empty_weekly_schedule(),
            slot_duration_minutes=settings.DEFAULT_SLOT_DURATION_MINUTES,
            buffer_minutes=settings.DEFAULT_BUFFER_MINUTES,
            max_appointments_per_day=settings.DEFAULT_MAX_APPOINTMENTS_PER_DAY,
            emergency_enabled=False,
            emergency_windows=[],
            is_active=True,
        )
        try:
            self.save(schedule)
        except ConflictError:
            # Another request materialized it first
            existing = self.get_by_doctor(doctor_id)
            if existing is None:
                raise
            logger.info(f"Schedule for doctor {doctor_id} created concurrently, reusing it")
            return existing

        logger.info(f"Created default schedule for doctor {doctor_id}")
        return schedule
