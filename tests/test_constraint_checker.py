"""Tests for the earliest-feasible slot search and the booking ledger."""

import math
import pytest

from algorithms.constraint_checker import ConstraintChecker
from algorithms.errors import (
    InvalidInputError,
    InvalidSlotError,
    NoFeasibleSlotError,
    UnknownWorkCenterError,
    UnschedulableDurationError,
)
from algorithms.models import ReflowConfig, ScheduledSlot, WorkCenter
from algorithms.time_windows import MaintenanceWindow
from conftest import utc


class TestShiftAlignment:
    """Placement relative to shift boundaries."""

    def test_fits_inside_shift(self, work_center):
        checker = ConstraintChecker([work_center])
        start, end = checker.find_earliest_feasible_slot('wc-1', utc(2025, 12, 1, 9), 60)
        assert (start, end) == (utc(2025, 12, 1, 9), utc(2025, 12, 1, 10))

    def test_before_shift_moves_to_shift_start(self, work_center):
        checker = ConstraintChecker([work_center])
        start, end = checker.find_earliest_feasible_slot('wc-1', utc(2025, 12, 1, 6), 60)
        assert (start, end) == (utc(2025, 12, 1, 8), utc(2025, 12, 1, 9))

    def test_after_shift_moves_to_next_day(self, work_center):
        checker = ConstraintChecker([work_center])
        start, _ = checker.find_earliest_feasible_slot('wc-1', utc(2025, 12, 1, 17), 30)
        assert start == utc(2025, 12, 2, 8)

    def test_weekend_moves_to_monday(self, work_center):
        checker = ConstraintChecker([work_center])
        start, end = checker.find_earliest_feasible_slot('wc-1', utc(2025, 12, 6, 10), 60)
        assert (start, end) == (utc(2025, 12, 8, 8), utc(2025, 12, 8, 9))

    def test_work_pauses_across_shift_boundary(self, work_center):
        """120 min starting with 60 min left in the shift finishes 60 min into the next shift."""
        checker = ConstraintChecker([work_center])
        start, end = checker.find_earliest_feasible_slot('wc-1', utc(2025, 12, 1, 16), 120)
        assert start == utc(2025, 12, 1, 16)
        assert end == utc(2025, 12, 2, 9)

    def test_work_pauses_over_weekend(self, work_center):
        checker = ConstraintChecker([work_center])
        start, end = checker.find_earliest_feasible_slot('wc-1', utc(2025, 12, 5, 16), 120)
        assert start == utc(2025, 12, 5, 16)
        assert end == utc(2025, 12, 8, 9)

    def test_multi_day_job(self, work_center):
        checker = ConstraintChecker([work_center])
        _, end = checker.find_earliest_feasible_slot('wc-1', utc(2025, 12, 1, 8), 3 * 9 * 60)
        assert end == utc(2025, 12, 3, 17)

    def test_fractional_minutes(self, work_center):
        checker = ConstraintChecker([work_center])
        _, end = checker.find_earliest_feasible_slot('wc-1', utc(2025, 12, 1, 8), 0.5)
        assert end == utc(2025, 12, 1, 8).replace(second=30)


class TestMaintenance:

    def test_start_inside_maintenance_moves_to_window_end(self, work_center_with_maintenance):
        checker = ConstraintChecker([work_center_with_maintenance])
        start, end = checker.find_earliest_feasible_slot('wc-1', utc(2025, 12, 2, 10, 30), 60)
        assert (start, end) == (utc(2025, 12, 2, 12), utc(2025, 12, 2, 13))

    def test_work_pauses_for_maintenance(self, work_center_with_maintenance):
        checker = ConstraintChecker([work_center_with_maintenance])
        start, end = checker.find_earliest_feasible_slot('wc-1', utc(2025, 12, 2, 9), 120)
        assert start == utc(2025, 12, 2, 9)
        assert end == utc(2025, 12, 2, 13)

    def test_maintenance_ending_at_start_is_not_blocking(self, work_center_with_maintenance):
        checker = ConstraintChecker([work_center_with_maintenance])
        start, _ = checker.find_earliest_feasible_slot('wc-1', utc(2025, 12, 2, 12), 30)
        assert start == utc(2025, 12, 2, 12)

    def test_maintenance_spanning_shift_end(self, weekday_shifts):
        wc = WorkCenter('wc-1', 'Oven', weekday_shifts,
                        (MaintenanceWindow(utc(2025, 12, 1, 16), utc(2025, 12, 2, 9)),))
        checker = ConstraintChecker([wc])
        start, end = checker.find_earliest_feasible_slot('wc-1', utc(2025, 12, 1, 16, 30), 60)
        assert (start, end) == (utc(2025, 12, 2, 9), utc(2025, 12, 2, 10))

    def test_is_working_time(self, work_center_with_maintenance):
        checker = ConstraintChecker([work_center_with_maintenance])
        assert checker.is_working_time('wc-1', utc(2025, 12, 2, 9))
        assert not checker.is_working_time('wc-1', utc(2025, 12, 2, 11))
        assert not checker.is_working_time('wc-1', utc(2025, 12, 2, 17))
        assert not checker.is_working_time('wc-1', utc(2025, 12, 6, 10))


class TestLedger:

    def test_collision_restarts_after_booked_slot(self, work_center):
        existing = [ScheduledSlot('legacy', 'wc-1', utc(2025, 12, 1, 8), utc(2025, 12, 1, 10))]
        checker = ConstraintChecker([work_center], existing)
        start, end = checker.find_earliest_feasible_slot('wc-1', utc(2025, 12, 1, 9), 60)
        assert (start, end) == (utc(2025, 12, 1, 10, 1), utc(2025, 12, 1, 11, 1))

    def test_touching_slot_is_not_a_collision(self, work_center):
        existing = [ScheduledSlot('legacy', 'wc-1', utc(2025, 12, 1, 8), utc(2025, 12, 1, 10))]
        checker = ConstraintChecker([work_center], existing)
        start, _ = checker.find_earliest_feasible_slot('wc-1', utc(2025, 12, 1, 10), 60)
        assert start == utc(2025, 12, 1, 10)

    def test_other_work_center_does_not_collide(self, weekday_shifts):
        wc_a = WorkCenter('wc-a', 'A', weekday_shifts)
        wc_b = WorkCenter('wc-b', 'B', weekday_shifts)
        existing = [ScheduledSlot('legacy', 'wc-a', utc(2025, 12, 1, 8), utc(2025, 12, 1, 12))]
        checker = ConstraintChecker([wc_a, wc_b], existing)
        start, _ = checker.find_earliest_feasible_slot('wc-b', utc(2025, 12, 1, 8), 60)
        assert start == utc(2025, 12, 1, 8)

    def test_committed_slots_block_later_searches(self, work_center):
        checker = ConstraintChecker([work_center])
        start, end = checker.find_earliest_feasible_slot('wc-1', utc(2025, 12, 1, 8), 60)
        checker.commit(ScheduledSlot('wo1', 'wc-1', start, end))

        start2, _ = checker.find_earliest_feasible_slot('wc-1', utc(2025, 12, 1, 8), 60)
        assert start2 == utc(2025, 12, 1, 9, 1)

    def test_ledger_sorted_by_start(self, work_center):
        checker = ConstraintChecker([work_center])
        checker.commit(ScheduledSlot('late', 'wc-1', utc(2025, 12, 1, 14), utc(2025, 12, 1, 15)))
        checker.commit(ScheduledSlot('early', 'wc-1', utc(2025, 12, 1, 8), utc(2025, 12, 1, 9)))
        assert [s.work_order_id for s in checker.scheduled_slots('wc-1')] == ['early', 'late']
        assert checker.scheduled_slots('unknown') == []

    def test_find_overlapping_slot(self, work_center):
        existing = [
            ScheduledSlot('a', 'wc-1', utc(2025, 12, 1, 8), utc(2025, 12, 1, 9)),
            ScheduledSlot('b', 'wc-1', utc(2025, 12, 1, 12), utc(2025, 12, 1, 13)),
        ]
        checker = ConstraintChecker([work_center], existing)
        assert checker.find_overlapping_slot('wc-1', utc(2025, 12, 1, 12, 30), utc(2025, 12, 1, 14)).work_order_id == 'b'
        assert checker.find_overlapping_slot('wc-1', utc(2025, 12, 1, 9), utc(2025, 12, 1, 12)) is None

    def test_commit_rejects_inverted_slot(self, work_center, recording_logger):
        checker = ConstraintChecker([work_center], logger=recording_logger)
        with pytest.raises(InvalidSlotError):
            checker.commit(ScheduledSlot('wo1', 'wc-1', utc(2025, 12, 1, 10), utc(2025, 12, 1, 10)))
        assert recording_logger.messages('error')
        assert checker.scheduled_slots() == []

    def test_commit_rejects_missing_times(self, work_center):
        checker = ConstraintChecker([work_center])
        with pytest.raises(InvalidSlotError):
            checker.commit(ScheduledSlot('wo1', 'wc-1', None, utc(2025, 12, 1, 10)))

    def test_existing_slot_on_unknown_work_center_warns(self, work_center, recording_logger):
        existing = [ScheduledSlot('legacy', 'wc-ghost', utc(2025, 12, 1, 8), utc(2025, 12, 1, 9))]
        checker = ConstraintChecker([work_center], existing, logger=recording_logger)
        assert len(checker.scheduled_slots()) == 1
        assert any('wc-ghost' in m for m in recording_logger.messages('warning'))


class TestSearchFailures:

    def test_unknown_work_center(self, work_center):
        checker = ConstraintChecker([work_center])
        with pytest.raises(UnknownWorkCenterError) as exc_info:
            checker.find_earliest_feasible_slot('wc-ghost', utc(2025, 12, 1, 8), 60)
        assert str(exc_info.value) == 'WorkCenter not found: wc-ghost'

    @pytest.mark.parametrize('duration', [0, -30, math.nan, math.inf, True, '60', None])
    def test_invalid_duration(self, work_center, duration):
        checker = ConstraintChecker([work_center])
        with pytest.raises(InvalidInputError):
            checker.find_earliest_feasible_slot('wc-1', utc(2025, 12, 1, 8), duration)

    def test_invalid_earliest_start(self, work_center):
        checker = ConstraintChecker([work_center])
        with pytest.raises(InvalidInputError):
            checker.find_earliest_feasible_slot('wc-1', '2025-12-01T08:00:00Z', 60)

    def test_work_center_without_shifts(self):
        checker = ConstraintChecker([WorkCenter('wc-idle', 'Idle')])
        with pytest.raises(UnschedulableDurationError):
            checker.find_earliest_feasible_slot('wc-idle', utc(2025, 12, 1, 8), 60)

    def test_horizon_exhausted(self, work_center):
        existing = [ScheduledSlot('block', 'wc-1', utc(2025, 12, 1, 8), utc(2025, 12, 5, 17))]
        checker = ConstraintChecker([work_center], existing)
        with pytest.raises(NoFeasibleSlotError):
            checker.find_earliest_feasible_slot('wc-1', utc(2025, 12, 1, 8), 60, search_horizon_days=2)

    def test_iteration_cap(self, work_center):
        existing = [ScheduledSlot('block', 'wc-1', utc(2025, 12, 1, 8), utc(2025, 12, 1, 9))]
        checker = ConstraintChecker([work_center], existing, config=ReflowConfig(max_iterations=1))
        with pytest.raises(NoFeasibleSlotError):
            checker.find_earliest_feasible_slot('wc-1', utc(2025, 12, 1, 8), 60)

    def test_horizon_checked_only_before_alignment(self, work_center):
        """A one-day window from Friday evening still reaches the Monday shift start."""
        checker = ConstraintChecker([work_center])
        start, end = checker.find_earliest_feasible_slot('wc-1', utc(2025, 12, 5, 17), 60, search_horizon_days=1)
        assert (start, end) == (utc(2025, 12, 8, 8), utc(2025, 12, 8, 9))

    def test_zero_horizon_is_honoured(self, work_center):
        existing = [ScheduledSlot('block', 'wc-1', utc(2025, 12, 1, 8), utc(2025, 12, 1, 9))]
        checker = ConstraintChecker([work_center], existing, config=ReflowConfig(search_horizon_days=30))
        with pytest.raises(NoFeasibleSlotError, match='within 0 days'):
            checker.find_earliest_feasible_slot('wc-1', utc(2025, 12, 1, 8), 60, search_horizon_days=0)

    def test_zero_horizon_allows_immediate_fit(self, work_center):
        checker = ConstraintChecker([work_center])
        start, _ = checker.find_earliest_feasible_slot('wc-1', utc(2025, 12, 1, 8), 60, search_horizon_days=0)
        assert start == utc(2025, 12, 1, 8)

    @pytest.mark.parametrize('duration', [1e-9, 1e-12])
    def test_duration_below_timer_resolution(self, work_center, duration):
        checker = ConstraintChecker([work_center])
        with pytest.raises(InvalidInputError, match='rounds to zero'):
            checker.find_earliest_feasible_slot('wc-1', utc(2025, 12, 1, 8), duration)

    def test_duration_out_of_range(self, work_center):
        checker = ConstraintChecker([work_center])
        with pytest.raises(InvalidInputError, match='out of range'):
            checker.find_earliest_feasible_slot('wc-1', utc(2025, 12, 1, 8), 1e300)

    def test_search_past_end_of_calendar(self, work_center, recording_logger):
        checker = ConstraintChecker([work_center], logger=recording_logger)
        with pytest.raises(NoFeasibleSlotError, match='supported date range'):
            checker.find_earliest_feasible_slot('wc-1', utc(9999, 12, 20, 8), 60)
        assert recording_logger.messages('error')
