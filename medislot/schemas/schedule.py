from datetime import date as Date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..core.timeutils import normalize_time


class TimeWindow(BaseModel):
    """A contiguous [start, end) stretch of wall-clock time."""

    start: str
    end: str

    @field_validator("start", "end")
    @classmethod
    def validate_time(cls, v):
        normalized = normalize_time(v)
        if normalized is None:
            raise ValueError("Please provide a valid time format (HH:MM)")
        return normalized


class Slot(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: str
    end: str


class WeeklySchedule(BaseModel):
    monday: List[TimeWindow] = Field(default_factory=list)
    tuesday: List[TimeWindow] = Field(default_factory=list)
    wednesday: List[TimeWindow] = Field(default_factory=list)
    thursday: List[TimeWindow] = Field(default_factory=list)
    friday: List[TimeWindow] = Field(default_factory=list)
    saturday: List[TimeWindow] = Field(default_factory=list)
    sunday: List[TimeWindow] = Field(default_factory=list)


class BookingPolicy(BaseModel):
    slot_duration_minutes: int = Field(30, ge=15, le=120)
    buffer_minutes: int = Field(5, ge=0, le=30)
    max_appointments_per_day: int = Field(20, ge=1, le=50)
    emergency_enabled: bool = False
    emergency_windows: List[TimeWindow] = Field(default_factory=list)
    is_active: bool = True
    notes: Optional[str] = Field(None, max_length=500)


class ScheduleUpdate(BaseModel):
    """Partial update; weekdays omitted from ``weekly_schedule`` are left as they are."""

    weekly_schedule: Optional[WeeklySchedule] = None
    slot_duration_minutes: Optional[int] = Field(None, ge=15, le=120)
    buffer_minutes: Optional[int] = Field(None, ge=0, le=30)
    max_appointments_per_day: Optional[int] = Field(None, ge=1, le=50)
    emergency_enabled: Optional[bool] = None
    emergency_windows: Optional[List[TimeWindow]] = None
    is_active: Optional[bool] = None
    notes: Optional[str] = Field(None, max_length=500)


class ScheduleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    doctor_id: int
    weekly_schedule: WeeklySchedule
    slot_duration_minutes: int
    buffer_minutes: int
    max_appointments_per_day: int
    emergency_enabled: bool
    emergency_windows: List[TimeWindow]
    is_active: bool
    notes: Optional[str] = None
    total_weekly_hours: float
    active_days_count: int
    updated_at: Optional[datetime] = None


class AvailabilityResponse(BaseModel):
    date: Date
    available_slots: List[Slot]
    total_slots: int
    booked_slots: int
