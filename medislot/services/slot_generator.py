"""
Turns a doctor's weekly windows into bookable slots for one calendar date.

The generator is pure: it reads nothing from storage and the same windows,
policy and date always give the same slots.
"""
from datetime import date
from typing import Iterable, List, Mapping, Sequence

from ..core.timeutils import from_minutes, to_minutes
from ..models.schedule import WEEKDAYS
from ..schemas.schedule import BookingPolicy, Slot, TimeWindow


def weekday_key(on_date: date) -> str:
    return WEEKDAYS[on_date.weekday()]


def _as_window(window) -> TimeWindow:
    if isinstance(window, TimeWindow):
        return window
    if isinstance(window, Mapping):
        return TimeWindow(**window)
    return TimeWindow(start=window.start, end=window.end)


def slots_for_window(window: TimeWindow, slot_minutes: int, buffer_minutes: int) -> List[Slot]:
    """Walk the window in steps of slot + buffer; drop any slot that would overrun it."""
    start = to_minutes(window.start)
    end = to_minutes(window.end)
    step = slot_minutes + buffer_minutes

    slots = []
    current = start
    while current + slot_minutes <= end:
        slots.append(Slot(start=from_minutes(current), end=from_minutes(current + slot_minutes)))
        current += step
    return slots


def generate_slots(
    weekly_windows: Mapping[str, Sequence],
    policy: BookingPolicy,
    on_date: date
) -> List[Slot]:
    """Candidate slots for ``on_date``, in window order then chronological.

    ``weekly_windows`` maps weekday names to window lists (dicts or
    ``TimeWindow``). An inactive policy or a day without windows yields no
    slots.
    """
    if not policy.is_active:
        return []

    windows: Iterable = weekly_windows.get(weekday_key(on_date)) or []

    slots = []
    for window in windows:
        slots.extend(
            slots_for_window(
                _as_window(window),
                policy.slot_duration_minutes,
                policy.buffer_minutes,
            )
        )
    return slots
