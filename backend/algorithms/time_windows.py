"""
Time Windows
Recurring weekly shifts, absolute maintenance windows, and the interval
arithmetic the constraint checker runs on top of them.

Everything here is pure. A recurring Shift only becomes a concrete interval
once it is expanded for a specific date with shift_intervals_for_date();
containment and overlap tests always operate on those concrete UTC intervals.

Day-of-week convention: 0=Sunday .. 6=Saturday.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, Tuple

Interval = Tuple[datetime, datetime]


# =============================================================================
# TIMESTAMPS
# =============================================================================

def to_utc(dt: datetime) -> datetime:
    """Normalize a datetime to UTC. Naive values are taken as UTC already."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_timestamp(value) -> datetime:
    """
    Parse an ISO 8601 timestamp into an aware UTC datetime.

    Accepts datetime instances as-is (normalized to UTC) and the trailing
    'Z' form used by the scenario documents.

    Raises:
        ValueError: if the value is empty or not a valid timestamp
    """
    if isinstance(value, datetime):
        return to_utc(value)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Invalid timestamp: {value!r}")

    text = value.strip()
    if text[-1] in ('Z', 'z'):
        text = text[:-1] + '+00:00'
    try:
        return to_utc(datetime.fromisoformat(text))
    except ValueError:
        raise ValueError(f"Invalid timestamp: {value!r}") from None


def format_timestamp(dt: Optional[datetime]) -> Optional[str]:
    """Format a datetime as ISO 8601 UTC with a 'Z' suffix."""
    if dt is None:
        return None
    return to_utc(dt).strftime('%Y-%m-%dT%H:%M:%SZ')


def weekday_index(dt: datetime) -> int:
    """Day of week with Sunday=0 (Python's weekday() has Monday=0)."""
    return (dt.weekday() + 1) % 7


def start_of_day(dt: datetime) -> datetime:
    dt = to_utc(dt)
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def minutes_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 60.0


# =============================================================================
# WINDOW TYPES
# =============================================================================

@dataclass(frozen=True)
class Shift:
    """
    A recurring weekly availability window.

    Applies to every date whose weekday matches day_of_week, from start_hour
    to end_hour (UTC). Shifts with end_hour <= start_hour are discarded when
    expanded, never scheduled against.
    """
    day_of_week: int
    start_hour: int
    end_hour: int

    @property
    def is_valid(self) -> bool:
        return (0 <= self.day_of_week <= 6
                and 0 <= self.start_hour <= 23
                and 0 <= self.end_hour <= 23
                and self.end_hour > self.start_hour)

    @property
    def hours(self) -> int:
        return max(0, self.end_hour - self.start_hour)

    def interval_on(self, day: datetime) -> Interval:
        """Concrete (start, end) for this shift on the date of `day`."""
        midnight = start_of_day(day)
        return (midnight + timedelta(hours=self.start_hour),
                midnight + timedelta(hours=self.end_hour))


@dataclass(frozen=True)
class MaintenanceWindow:
    """A one-time blackout; the work center is unavailable for any instant inside it."""
    start: datetime
    end: datetime
    reason: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return self.start is not None and self.end is not None and self.end > self.start

    def contains(self, dt: datetime) -> bool:
        return self.is_valid and interval_contains((self.start, self.end), dt)


# =============================================================================
# NORMALIZATION + QUERIES
# =============================================================================

def shift_intervals_for_date(shifts: Iterable[Shift], day: datetime) -> List[Interval]:
    """
    Expand recurring shifts into concrete intervals for one calendar day.

    Only shifts whose day_of_week matches the date are used; invalid
    (zero-length or inverted) shifts are skipped. Result is sorted by start.
    """
    dow = weekday_index(to_utc(day))
    intervals = [s.interval_on(day) for s in shifts
                 if s.day_of_week == dow and s.is_valid]
    intervals.sort(key=lambda iv: iv[0])
    return intervals


def interval_contains(interval: Interval, dt: datetime) -> bool:
    """Half-open containment: start <= dt < end."""
    start, end = interval
    return start <= dt < end


def intervals_overlap(a_start: datetime, a_end: datetime,
                      b_start: datetime, b_end: datetime) -> bool:
    """Half-open overlap: touching endpoints do not overlap."""
    return a_start < b_end and b_start < a_end


def maintenance_containing(windows: Iterable[MaintenanceWindow],
                           dt: datetime) -> Optional[MaintenanceWindow]:
    """First valid maintenance window containing dt, or None."""
    for window in windows:
        if window.contains(dt):
            return window
    return None


def next_maintenance_start(windows: Iterable[MaintenanceWindow], after: datetime,
                           before: datetime) -> Optional[datetime]:
    """Earliest maintenance start strictly between `after` and `before`."""
    starts = [w.start for w in windows
              if w.is_valid and after < w.start < before]
    return min(starts) if starts else None
