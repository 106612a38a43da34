"""
Election status derived from the election window and the wall clock.

Nothing is stored: the status is recomputed on every read, so two requests
landing on either side of a boundary can see different states.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from ..errors import StatusUndetermined, ValidationError

UPCOMING = "Upcoming"
ONGOING = "Ongoing"
ENDED = "Ended"


@dataclass(frozen=True)
class ElectionStatus:
    state: str
    countdown_target: Optional[datetime] = None

    def to_dict(self):
        return {
            "state": self.state,
            "countdown_target": self.countdown_target.isoformat() if self.countdown_target else None,
        }


def as_utc(dt: datetime) -> datetime:
    # MongoDB hands back naive datetimes that are already UTC
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_timestamp(value) -> datetime:
    """Accept a datetime or an ISO-8601 string and return an aware UTC datetime."""
    if value is None or value == "":
        raise StatusUndetermined("Missing date value")
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, str):
        s = value.strip()
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        try:
            return as_utc(datetime.fromisoformat(s))
        except ValueError:
            raise StatusUndetermined(f"Invalid date value: {value!r}")
    raise StatusUndetermined(f"Invalid date value: {value!r}")


def classify(start, end, now: Optional[datetime] = None) -> ElectionStatus:
    start = parse_timestamp(start)
    end = parse_timestamp(end)
    if end <= start:
        raise StatusUndetermined("End date must be after start date")

    now = as_utc(now) if now is not None else datetime.now(timezone.utc)

    if now < start:
        return ElectionStatus(UPCOMING, start)
    if now <= end:
        return ElectionStatus(ONGOING, end)
    return ElectionStatus(ENDED, None)


def validate_window(start, end):
    """Validate an election window at write time. Returns (start, end) as aware UTC."""
    try:
        start = parse_timestamp(start)
        end = parse_timestamp(end)
    except StatusUndetermined as e:
        raise ValidationError(e.message)
    if end <= start:
        raise ValidationError("End date must be after start date")
    return start, end
