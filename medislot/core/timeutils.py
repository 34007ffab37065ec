"""Wall-clock "HH:MM" helpers shared by schemas and the slot generator."""
import re
from datetime import date, datetime
from typing import Optional

TIME_PATTERN = re.compile(r"^([0-1]?[0-9]|2[0-3]):([0-5][0-9])$")


def normalize_time(value: str) -> Optional[str]:
    """Return ``value`` as zero-padded "HH:MM", or None if it is not a valid time."""
    match = TIME_PATTERN.match(value.strip()) if isinstance(value, str) else None
    if not match:
        return None
    return f"{int(match.group(1)):02d}:{match.group(2)}"


def to_minutes(value: str) -> int:
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def from_minutes(total: int) -> str:
    return f"{total // 60:02d}:{total % 60:02d}"


def parse_iso_date(value) -> Optional[date]:
    """Parse an ISO date (or datetime, keeping its date part); None when unparseable."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None
