"""
Constraint Checker
Earliest-feasible slot search for a single work center.

A feasible slot:
- starts inside a shift and consumes its duration only in working time
  (shifts minus maintenance windows), pausing across shift boundaries
- does not start inside a maintenance window
- does not overlap anything already booked on the same work center

The checker owns the booked-slot ledger for one run. Ledgers are kept per
work center and sorted by start, so an overlap scan stops at the first
slot starting after the candidate ends.
"""

import math
from bisect import insort
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from algorithms.errors import (
    InvalidInputError,
    InvalidSlotError,
    NoFeasibleSlotError,
    UnknownWorkCenterError,
    UnschedulableDurationError,
)
from algorithms.models import ReflowConfig, ScheduledSlot, WorkCenter
from algorithms.reflow_logging import ReflowLogger, resolve_logger
from algorithms.time_windows import (
    Interval,
    format_timestamp,
    interval_contains,
    intervals_overlap,
    maintenance_containing,
    next_maintenance_start,
    shift_intervals_for_date,
    start_of_day,
    to_utc,
)

OVERLAP_STEP = timedelta(minutes=1)


class ConstraintChecker:
    """
    Finds and books slots on work centers.

    Args:
        work_centers: reference data for every work center in the run
        existing_schedule: slots already committed before this run; taken as
            authoritative history and only checked for a usable start/end
        logger: object with info/warning/error; defaults to a no-op logger
        config: search limits (ReflowConfig defaults when omitted)
    """

    def __init__(self, work_centers: Iterable[WorkCenter],
                 existing_schedule: Optional[Iterable[ScheduledSlot]] = None,
                 logger: Optional[ReflowLogger] = None,
                 config: Optional[ReflowConfig] = None):
        self.work_centers_by_id: Dict[str, WorkCenter] = {wc.id: wc for wc in work_centers}
        self.logger = resolve_logger(logger)
        self.config = config or ReflowConfig()
        self._ledger: Dict[str, List[ScheduledSlot]] = {}

        for slot in existing_schedule or []:
            slot = self._normalize_slot(slot)
            if slot.work_center_id not in self.work_centers_by_id:
                self.logger.warning(
                    "ConstraintChecker: existing slot for unknown work center %s (work order %s)",
                    slot.work_center_id, slot.work_order_id)
            self._insert(slot)

    # -------------------------------------------------------------------------
    # Ledger
    # -------------------------------------------------------------------------

    def _normalize_slot(self, slot: ScheduledSlot) -> ScheduledSlot:
        if slot is None or not isinstance(slot.start, datetime) or not isinstance(slot.end, datetime):
            self.logger.error("commit: invalid slot provided: %r", slot)
            raise InvalidSlotError("Invalid ScheduledSlot: start and end must be valid datetimes")

        start, end = to_utc(slot.start), to_utc(slot.end)
        if end <= start:
            self.logger.error("commit: slot end is not after start: %r", slot)
            raise InvalidSlotError(
                f"Invalid ScheduledSlot for {slot.work_order_id}: end {end} is not after start {start}")
        return ScheduledSlot(slot.work_order_id, slot.work_center_id, start, end)

    def _insert(self, slot: ScheduledSlot):
        insort(self._ledger.setdefault(slot.work_center_id, []), slot, key=lambda s: s.start)

    def commit(self, slot: ScheduledSlot) -> ScheduledSlot:
        """
        Append an accepted slot to the ledger.

        Raises:
            InvalidSlotError: if start/end are missing or inverted
        """
        slot = self._normalize_slot(slot)
        self._insert(slot)
        self.logger.info("commit: added slot for work center %s [%s - %s]",
                         slot.work_center_id, format_timestamp(slot.start), format_timestamp(slot.end))
        return slot

    def scheduled_slots(self, work_center_id: Optional[str] = None) -> List[ScheduledSlot]:
        """Copy of the ledger, for one work center or all of them."""
        if work_center_id is not None:
            return list(self._ledger.get(work_center_id, []))
        return [slot for wc_id in sorted(self._ledger) for slot in self._ledger[wc_id]]

    def find_overlapping_slot(self, work_center_id: str, start: datetime,
                              end: datetime) -> Optional[ScheduledSlot]:
        """First booked slot on the work center intersecting [start, end)."""
        for slot in self._ledger.get(work_center_id, []):
            if slot.start >= end:
                break
            if intervals_overlap(slot.start, slot.end, start, end):
                return slot
        return None

    # -------------------------------------------------------------------------
    # Search
    # -------------------------------------------------------------------------

    def get_work_center(self, work_center_id: str) -> WorkCenter:
        wc = self.work_centers_by_id.get(work_center_id)
        if wc is None:
            self.logger.error("findEarliestFeasibleSlot: WorkCenter not found: %s", work_center_id)
            raise UnknownWorkCenterError(work_center_id)
        return wc

    def find_earliest_feasible_slot(self, work_center_id: str, earliest_start: datetime,
                                    duration_minutes: float,
                                    search_horizon_days: Optional[int] = None) -> Tuple[datetime, datetime]:
        """
        Earliest (start, end) on the work center at or after earliest_start.

        Each attempt aligns the cursor to a shift, hops over a maintenance
        window the cursor sits in, consumes the working minutes, and checks
        the ledger. On a collision the cursor restarts one minute after the
        colliding slot ends.

        Raises:
            UnknownWorkCenterError: work center is not registered
            InvalidInputError: bad start timestamp, or a duration that is
                non-positive or not representable as a timedelta
            UnschedulableDurationError: duration cannot be consumed at all
            NoFeasibleSlotError: horizon or iteration cap exhausted, or the
                search ran off the end of the calendar
        """
        wc = self.get_work_center(work_center_id)
        if not isinstance(earliest_start, datetime):
            raise InvalidInputError(f"Invalid earliest start: {earliest_start!r}")
        if (isinstance(duration_minutes, bool)
                or not isinstance(duration_minutes, (int, float))
                or not math.isfinite(duration_minutes)
                or duration_minutes <= 0):
            raise InvalidInputError(
                f"Invalid durationMinutes (must be positive number): {duration_minutes!r}")
        try:
            required = timedelta(minutes=duration_minutes)
        except OverflowError:
            raise InvalidInputError(f"Invalid durationMinutes (out of range): {duration_minutes!r}") from None
        if required <= timedelta(0):
            # Below timedelta resolution; the slot would have zero length
            raise InvalidInputError(f"Invalid durationMinutes (rounds to zero): {duration_minutes!r}")

        if search_horizon_days is None:
            search_horizon_days = self.config.search_horizon_days
        try:
            return self._search(wc, to_utc(earliest_start), duration_minutes, search_horizon_days)
        except OverflowError:
            self.logger.error("findEarliestFeasibleSlot: search for %s ran past the supported date range",
                              work_center_id)
            raise NoFeasibleSlotError(
                f"No feasible slot for workCenter {work_center_id} before the end of the supported date range"
            ) from None

    def _search(self, wc: WorkCenter, cursor: datetime, duration_minutes: float,
                horizon: int) -> Tuple[datetime, datetime]:
        deadline = cursor + timedelta(days=horizon)
        attempts = 0

        while cursor <= deadline:
            attempts += 1
            if attempts > self.config.max_iterations:
                self.logger.error("findEarliestFeasibleSlot: iteration cap reached for %s", wc.id)
                raise NoFeasibleSlotError(
                    f"Iteration cap ({self.config.max_iterations}) reached searching work center {wc.id}")

            # Deadline is only checked at the loop head, so an aligned start may land past it
            cursor = self.move_to_next_shift(wc, cursor)

            window = maintenance_containing(wc.maintenance_windows, cursor)
            if window is not None:
                # Re-align to a shift after the blackout
                cursor = window.end
                continue

            candidate_end = self.add_working_minutes(wc, cursor, duration_minutes)

            collision = self.find_overlapping_slot(wc.id, cursor, candidate_end)
            if collision is None:
                self.logger.info("findEarliestFeasibleSlot: found slot for %s [%s - %s]",
                                 wc.id, format_timestamp(cursor), format_timestamp(candidate_end))
                return cursor, candidate_end

            cursor = collision.end + OVERLAP_STEP

        self.logger.error("findEarliestFeasibleSlot: no feasible slot found within %s days for %s",
                          horizon, wc.id)
        raise NoFeasibleSlotError(
            f"No feasible slot found within {horizon} days for workCenter {wc.id}")

    def move_to_next_shift(self, wc: WorkCenter, cursor: datetime) -> datetime:
        """
        Cursor itself if it is inside a shift, else the next shift start.

        Scans shift_lookahead_days ahead; if nothing is found the cursor is
        returned unchanged.
        """
        for offset in range(self.config.shift_lookahead_days):
            day = cursor + timedelta(days=offset)
            for interval in shift_intervals_for_date(wc.shifts, day):
                if interval_contains(interval, cursor):
                    return cursor
                if interval[0] >= cursor:
                    return interval[0]

        self.logger.warning("moveToNextShift: no shift found in %s-day lookahead for wc %s",
                            self.config.shift_lookahead_days, wc.id)
        return cursor

    def _shift_at_or_after(self, wc: WorkCenter, cursor: datetime) -> Optional[Interval]:
        """Shift on the cursor's date that contains it or starts after it."""
        for interval in shift_intervals_for_date(wc.shifts, cursor):
            if interval_contains(interval, cursor) or interval[0] > cursor:
                return interval
        return None

    def add_working_minutes(self, wc: WorkCenter, start: datetime, duration_minutes: float) -> datetime:
        """
        Time at which duration_minutes of working time have elapsed from start.

        Work runs until the shift ends or the next maintenance window begins,
        whichever is first, then resumes at the next available shift (or at
        the end of the maintenance window).

        Raises:
            UnschedulableDurationError: if the minutes are not consumed within
                max_consumption_days
        """
        remaining = timedelta(minutes=duration_minutes)
        cursor = to_utc(start)
        limit = cursor + timedelta(days=self.config.max_consumption_days)

        while remaining > timedelta(0):
            if cursor >= limit:
                self.logger.error("addWorkingMinutes: could not schedule %s minutes within %s days for %s",
                                  duration_minutes, self.config.max_consumption_days, wc.id)
                raise UnschedulableDurationError(wc.id, duration_minutes, self.config.max_consumption_days)

            shift = self._shift_at_or_after(wc, cursor)
            if shift is None:
                cursor = start_of_day(cursor) + timedelta(days=1)
                continue

            shift_start, shift_end = shift
            if cursor < shift_start:
                cursor = shift_start

            window = maintenance_containing(wc.maintenance_windows, cursor)
            if window is not None:
                cursor = window.end
                continue

            available_until = next_maintenance_start(wc.maintenance_windows, cursor, shift_end) or shift_end
            consumed = min(available_until - cursor, remaining)
            cursor += consumed
            remaining -= consumed

        return cursor

    def is_working_time(self, work_center_id: str, dt: datetime) -> bool:
        """True if dt is inside a shift and outside every maintenance window."""
        wc = self.get_work_center(work_center_id)
        dt = to_utc(dt)
        if maintenance_containing(wc.maintenance_windows, dt) is not None:
            return False
        return any(interval_contains(iv, dt) for iv in shift_intervals_for_date(wc.shifts, dt))
