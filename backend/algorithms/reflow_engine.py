"""
Reflow Engine
Recomputes a feasible schedule for a set of work orders.

Work orders are processed one at a time in dependency order. Each order's
earliest start is the later of its planned start and its dependencies'
finish times; the constraint checker then finds the earliest slot that fits
shifts, avoids maintenance, and does not collide with earlier bookings.

Structural problems (unknown dependency, cycle, duplicate id) abort the run.
A failure to place one order is recorded on that order's result and the run
moves on.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, Iterable, List, Optional

from algorithms.constraint_checker import ConstraintChecker
from algorithms.dependency_graph import DependencyGraph
from algorithms.errors import InvalidInputError, SchedulingError
from algorithms.models import ReflowConfig, ReflowResult, ScheduledSlot, WorkCenter, WorkOrder
from algorithms.reflow_logging import ReflowLogger, resolve_logger
from algorithms.time_windows import format_timestamp, minutes_between, to_utc


class RunState(Enum):
    PENDING = 'pending'
    ORDERING = 'ordering'
    SCHEDULING = 'scheduling'
    COMPLETED = 'completed'


class ReflowEngine:
    """
    One reflow computation over a fixed set of inputs.

    Every compute_reflow() call seeds a fresh ConstraintChecker with
    existing_schedule, so repeated calls on the same inputs return the
    same results.
    """

    def __init__(self, work_orders: Iterable[WorkOrder], work_centers: Iterable[WorkCenter],
                 existing_schedule: Optional[Iterable[ScheduledSlot]] = None,
                 logger: Optional[ReflowLogger] = None,
                 config: Optional[ReflowConfig] = None):
        self.work_orders = list(work_orders)
        self.work_centers = list(work_centers)
        self.existing_schedule = list(existing_schedule or [])
        self.logger = resolve_logger(logger)
        self.config = config or ReflowConfig()

        self.state = RunState.PENDING
        self.processed_count = 0
        self.constraint_checker: Optional[ConstraintChecker] = None

    def compute_reflow(self) -> List[ReflowResult]:
        """
        Schedule every work order and return one result per order, in
        dependency-processing order.

        Raises:
            StructuralError: the dependency graph is invalid; no results
        """
        self.state = RunState.ORDERING
        self.processed_count = 0
        order = DependencyGraph(self.work_orders).topological_order()

        work_orders_by_id = {wo.id: wo for wo in self.work_orders}
        self.constraint_checker = ConstraintChecker(
            self.work_centers, self.existing_schedule, logger=self.logger, config=self.config)

        results: List[ReflowResult] = []
        # Finish times of orders that were placed (or are fixed maintenance)
        finish_times: Dict[str, datetime] = {}

        self.state = RunState.SCHEDULING
        for wo_id in order:
            wo = work_orders_by_id[wo_id]
            result = self._schedule_one(wo, finish_times)
            if not result.failed:
                finish_times[wo.id] = result.end_date
            results.append(result)
            self.processed_count += 1

        self.state = RunState.COMPLETED
        delayed = sum(1 for r in results if r.was_delayed)
        self.logger.info("computeReflow: %d work orders processed, %d delayed", len(results), delayed)
        return results

    def _schedule_one(self, wo: WorkOrder, finish_times: Dict[str, datetime]) -> ReflowResult:
        if wo.is_maintenance:
            self.logger.info("Skipping maintenance work order %s", wo.work_order_number)
            return ReflowResult(
                work_order_id=wo.id,
                work_order_number=wo.work_order_number,
                work_center_id=wo.work_center_id,
                start_date=wo.start_date,
                end_date=wo.end_date,
                was_delayed=False,
            )

        try:
            earliest_start = self.earliest_start_for(wo, finish_times)
            start, end = self.constraint_checker.find_earliest_feasible_slot(
                wo.work_center_id, earliest_start, wo.duration_minutes)
            self.constraint_checker.commit(ScheduledSlot(wo.id, wo.work_center_id, start, end))
        except SchedulingError as e:
            self.logger.error("Failed to schedule work order %s: %s", wo.work_order_number, e)
            return ReflowResult(
                work_order_id=wo.id,
                work_order_number=wo.work_order_number,
                work_center_id=wo.work_center_id,
                start_date=wo.start_date,
                end_date=wo.end_date,
                was_delayed=True,
                delay_reason=f"Scheduling failed: {e}",
                failed=True,
            )

        planned_start = to_utc(wo.start_date)
        was_delayed = start > planned_start
        result = ReflowResult(
            work_order_id=wo.id,
            work_order_number=wo.work_order_number,
            work_center_id=wo.work_center_id,
            start_date=start,
            end_date=end,
            was_delayed=was_delayed,
        )
        if was_delayed:
            result.delay_minutes = int(round(minutes_between(planned_start, start)))
            result.delay_reason = self.config.delay_reason
            self.logger.info("Work order %s delayed %d minutes to %s",
                             wo.work_order_number, result.delay_minutes, format_timestamp(start))
        return result

    def earliest_start_for(self, wo: WorkOrder, finish_times: Dict[str, datetime]) -> datetime:
        """
        Later of the planned start and every placed dependency's finish.

        Dependencies without a finish time (their placement failed) add no
        constraint.
        """
        if not isinstance(wo.start_date, datetime):
            raise InvalidInputError(f"Invalid planned start for {wo.work_order_number}: {wo.start_date!r}")

        earliest = to_utc(wo.start_date)
        for dep_id in wo.depends_on:
            dep_end = finish_times.get(dep_id)
            if dep_end is not None and to_utc(dep_end) > earliest:
                earliest = to_utc(dep_end)
        return earliest


def compute_reflow(work_orders: Iterable[WorkOrder], work_centers: Iterable[WorkCenter],
                   existing_schedule: Optional[Iterable[ScheduledSlot]] = None,
                   logger: Optional[ReflowLogger] = None,
                   config: Optional[ReflowConfig] = None) -> List[ReflowResult]:
    """Run a single reflow and return its results."""
    engine = ReflowEngine(work_orders, work_centers, existing_schedule, logger=logger, config=config)
    return engine.compute_reflow()
