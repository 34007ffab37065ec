from sqlalchemy.orm import Session
from typing import Dict, List, Sequence
import logging

from ..core.exceptions import NotFoundError, ValidationError
from ..core.timeutils import to_minutes
from ..models.schedule import Schedule, WEEKDAYS
from ..repositories.schedule_repository import ScheduleRepository
from ..repositories.user_repository import UserRepository
from ..schemas.schedule import BookingPolicy, ScheduleUpdate, TimeWindow

logger = logging.getLogger(__name__)

EMERGENCY_KEY = "emergency"


def _window_dict(window: TimeWindow) -> Dict[str, str]:
    return {"start": window.start, "end": window.end}


def validate_windows(label: str, windows: Sequence[TimeWindow]) -> List[TimeWindow]:
    """Check one day's windows and return them sorted by start time.

    Raises ``ValidationError`` naming ``label`` and the offending windows when
    a window does not start before it ends, or when two windows overlap.
    Windows are half-open, so one may start exactly where another ends.
    """
    for window in windows:
        if to_minutes(window.start) >= to_minutes(window.end):
            raise ValidationError(
                f"Invalid time window on {label}: start time must be before end time",
                details={"weekday": label, "windows": [_window_dict(window)]},
            )

    for i in range(len(windows)):
        for j in range(i + 1, len(windows)):
            first, second = windows[i], windows[j]
            if to_minutes(first.start) < to_minutes(second.end) and \
                    to_minutes(second.start) < to_minutes(first.end):
                raise ValidationError(
                    f"Overlapping time windows detected on {label}",
                    details={
                        "weekday": label,
                        "windows": [_window_dict(first), _window_dict(second)],
                    },
                )

    return sorted(windows, key=lambda w: to_minutes(w.start))


def policy_of(schedule: Schedule) -> BookingPolicy:
    return BookingPolicy(
        slot_duration_minutes=schedule.slot_duration_minutes,
        buffer_minutes=schedule.buffer_minutes,
        max_appointments_per_day=schedule.max_appointments_per_day,
        emergency_enabled=schedule.emergency_enabled,
        emergency_windows=schedule.emergency_windows or [],
        is_active=schedule.is_active,
        notes=schedule.notes,
    )


class ScheduleService:
    def __init__(self, db: Session):
        self.db = db
        self.schedules = ScheduleRepository(db)
        self.users = UserRepository(db)

    def _require_doctor(self, doctor_id: int):
        if not self.users.get_doctor(doctor_id):
            raise NotFoundError("Doctor not found", details={"doctor_id": doctor_id})

    def get_schedule(self, doctor_id: int) -> Schedule:
        """Return the doctor's schedule, materializing the default on first read."""
        self._require_doctor(doctor_id)
        return self.schedules.get_or_create(doctor_id)

    def update_schedule(self, doctor_id: int, update: ScheduleUpdate) -> Schedule:
        """Merge the provided fields after validating every window list.

        Nothing is written when validation fails.
        """
        schedule = self.get_schedule(doctor_id)
        fields = update.model_dump(exclude_unset=True)

        # Validate everything first
        weekly = {day: list(windows) for day, windows in (schedule.weekly_schedule or {}).items()}
        if update.weekly_schedule is not None:
            for day in update.weekly_schedule.model_fields_set:
                windows = validate_windows(day, getattr(update.weekly_schedule, day))
                weekly[day] = [_window_dict(w) for w in windows]
        for day in WEEKDAYS:
            weekly.setdefault(day, [])

        emergency = None
        if update.emergency_windows is not None:
            emergency = [
                _window_dict(w) for w in validate_windows(EMERGENCY_KEY, update.emergency_windows)
            ]

        # Then apply
        if update.weekly_schedule is not None:
            schedule.weekly_schedule = weekly
        if emergency is not None:
            schedule.emergency_windows = emergency
        for field in (
            "slot_duration_minutes", "buffer_minutes", "max_appointments_per_day",
            "emergency_enabled", "is_active", "notes",
        ):
            if field in fields and (fields[field] is not None or field == "notes"):
                setattr(schedule, field, fields[field])

        self.schedules.save(schedule)
        logger.info(f"Schedule updated for doctor {doctor_id}: {sorted(fields)}")
        return schedule
