"""
Reflow Errors
Exception hierarchy for the reflow scheduling engine.

Structural errors abort a whole run. Scheduling errors belong to a single
work order and are turned into degraded results by the engine.
"""

from typing import List


class ReflowError(Exception):
    """Base class for all reflow engine errors."""


# =============================================================================
# STRUCTURAL (fatal to the run)
# =============================================================================

class StructuralError(ReflowError):
    """The input set cannot be ordered, so no schedule can be produced."""


class UnknownDependencyError(StructuralError):
    """A work order depends on an id that is not part of the input set."""

    def __init__(self, work_order_id: str, dependency_id: str):
        self.work_order_id = work_order_id
        self.dependency_id = dependency_id
        super().__init__(
            f"Dependency not found: WorkOrder {dependency_id} (required by {work_order_id})"
        )


class CycleDetectedError(StructuralError):
    """The dependency graph is not acyclic."""

    def __init__(self, work_order_ids: List[str]):
        self.work_order_ids = list(work_order_ids)
        super().__init__(
            "Cycle detected in work orders! Cannot generate valid schedule. "
            f"Unresolved: {', '.join(self.work_order_ids)}"
        )


class DuplicateWorkOrderError(StructuralError):
    """Two input work orders share the same id."""

    def __init__(self, work_order_id: str):
        self.work_order_id = work_order_id
        super().__init__(f"Duplicate work order id: {work_order_id}")


# =============================================================================
# PER-ORDER (recovered by the engine)
# =============================================================================

class SchedulingError(ReflowError):
    """A single work order could not be placed."""


class UnknownWorkCenterError(SchedulingError):
    def __init__(self, work_center_id: str):
        self.work_center_id = work_center_id
        super().__init__(f"WorkCenter not found: {work_center_id}")


class InvalidInputError(SchedulingError, ValueError):
    """Malformed start timestamp or duration."""


class UnschedulableDurationError(SchedulingError):
    """Working minutes could not be consumed within the absolute cap."""

    def __init__(self, work_center_id: str, duration_minutes: float, max_days: int):
        self.work_center_id = work_center_id
        self.duration_minutes = duration_minutes
        self.max_days = max_days
        super().__init__(
            f"Could not schedule {duration_minutes} minutes within {max_days} days "
            f"for work center {work_center_id}"
        )


class NoFeasibleSlotError(SchedulingError):
    """The search horizon (or iteration cap) ran out before a slot was accepted."""


# =============================================================================
# INVARIANT VIOLATIONS
# =============================================================================

class InvalidSlotError(ReflowError, ValueError):
    """A slot with a missing or inverted start/end was committed to the ledger."""
