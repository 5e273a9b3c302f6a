"""
Scheduling Algorithms

Reflow scheduling engine for work orders on shared work centers.

Components:
- time_windows: recurring shifts, maintenance windows, interval helpers
- dependency_graph: layered topological ordering with cycle detection
- constraint_checker: earliest-feasible slot search and booking ledger
- reflow_engine: orchestrates a full reflow run
"""

from algorithms.time_windows import (
    Shift,
    MaintenanceWindow,
    parse_timestamp,
    format_timestamp,
    shift_intervals_for_date,
    intervals_overlap,
)

from algorithms.models import (
    WorkOrder,
    WorkCenter,
    ManufacturingOrder,
    ScheduledSlot,
    ReflowResult,
    ReflowConfig,
    Scenario,
)

from algorithms.errors import (
    ReflowError,
    StructuralError,
    SchedulingError,
    UnknownDependencyError,
    CycleDetectedError,
    DuplicateWorkOrderError,
    UnknownWorkCenterError,
    InvalidInputError,
    UnschedulableDurationError,
    NoFeasibleSlotError,
    InvalidSlotError,
)

from algorithms.reflow_logging import ReflowLogger, NullLogger
from algorithms.dependency_graph import DependencyGraph
from algorithms.constraint_checker import ConstraintChecker
from algorithms.reflow_engine import ReflowEngine, RunState, compute_reflow

__all__ = [
    # Time windows
    'Shift',
    'MaintenanceWindow',
    'parse_timestamp',
    'format_timestamp',
    'shift_intervals_for_date',
    'intervals_overlap',
    # Data model
    'WorkOrder',
    'WorkCenter',
    'ManufacturingOrder',
    'ScheduledSlot',
    'ReflowResult',
    'ReflowConfig',
    'Scenario',
    # Errors
    'ReflowError',
    'StructuralError',
    'SchedulingError',
    'UnknownDependencyError',
    'CycleDetectedError',
    'DuplicateWorkOrderError',
    'UnknownWorkCenterError',
    'InvalidInputError',
    'UnschedulableDurationError',
    'NoFeasibleSlotError',
    'InvalidSlotError',
    # Engine
    'ReflowLogger',
    'NullLogger',
    'DependencyGraph',
    'ConstraintChecker',
    'ReflowEngine',
    'RunState',
    'compute_reflow',
]
