"""
Reflow Data Model
Work orders, work centers, ledger slots, results, and engine configuration.
"""

import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from algorithms.time_windows import Shift, MaintenanceWindow, format_timestamp

DEFAULT_DELAY_REASON = 'Resource/shift constraints'


@dataclass(frozen=True)
class WorkOrder:
    """
    A unit of schedulable work on one work center.

    Built once per run from an input document and never mutated; the engine
    only produces separate ReflowResult records. Maintenance work orders are
    fixed in time and never rescheduled.
    """
    id: str
    work_order_number: str
    work_center_id: str
    manufacturing_order_id: Optional[str]
    start_date: Optional[datetime]
    end_date: Optional[datetime]
    duration_minutes: float
    is_maintenance: bool = False
    depends_on: Tuple[str, ...] = ()

    def __post_init__(self):
        # Dependencies are a set; keep first-seen order for reproducibility
        object.__setattr__(self, 'depends_on', tuple(dict.fromkeys(self.depends_on or ())))


@dataclass(frozen=True)
class WorkCenter:
    """A machine or line that runs one work order at a time."""
    id: str
    name: str
    shifts: Tuple[Shift, ...] = ()
    maintenance_windows: Tuple[MaintenanceWindow, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, 'shifts', tuple(self.shifts or ()))
        object.__setattr__(self, 'maintenance_windows', tuple(self.maintenance_windows or ()))

    @property
    def valid_shifts(self) -> List[Shift]:
        return [s for s in self.shifts if s.is_valid]

    @property
    def weekly_hours(self) -> int:
        return sum(s.hours for s in self.valid_shifts)


@dataclass(frozen=True)
class ManufacturingOrder:
    id: str
    manufacturing_order_number: str
    item_id: Optional[str] = None
    quantity: Optional[float] = None
    due_date: Optional[datetime] = None


@dataclass(frozen=True)
class ScheduledSlot:
    """A committed booking in the constraint checker's ledger."""
    work_order_id: str
    work_center_id: str
    start: datetime
    end: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            'workOrderDocId': self.work_order_id,
            'workCenterDocId': self.work_center_id,
            'startDate': format_timestamp(self.start),
            'endDate': format_timestamp(self.end),
        }


@dataclass
class ReflowResult:
    """Final placement of one work order."""
    work_order_id: str
    work_order_number: str
    work_center_id: str
    start_date: Optional[datetime]
    end_date: Optional[datetime]
    was_delayed: bool = False
    delay_minutes: Optional[int] = None
    delay_reason: Optional[str] = None
    failed: bool = False  # True for degraded results (slot search raised)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'workOrderDocId': self.work_order_id,
            'workOrderNumber': self.work_order_number,
            'workCenterDocId': self.work_center_id,
            'startDate': format_timestamp(self.start_date),
            'endDate': format_timestamp(self.end_date),
            'wasDelayed': self.was_delayed,
        }
        if self.delay_minutes is not None:
            data['delayMinutes'] = self.delay_minutes
        if self.delay_reason is not None:
            data['delayReason'] = self.delay_reason
        return data


@dataclass
class Scenario:
    """All input documents for one reflow run."""
    work_orders: List[WorkOrder] = field(default_factory=list)
    work_centers: List[WorkCenter] = field(default_factory=list)
    manufacturing_orders: List[ManufacturingOrder] = field(default_factory=list)
    existing_schedule: List[ScheduledSlot] = field(default_factory=list)
    label: str = 'scenario'


# =============================================================================
# ENGINE CONFIGURATION
# =============================================================================

def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


@dataclass
class ReflowConfig:
    """
    Search limits for the constraint checker.

    - search_horizon_days: how far past the earliest start a slot may begin
    - shift_lookahead_days: days scanned when aligning a cursor to a shift
    - max_iterations: cap on retry attempts per feasibility search
    - max_consumption_days: absolute cap for consuming a job's working minutes
    """
    search_horizon_days: int = 30
    shift_lookahead_days: int = 14
    max_iterations: int = 10000
    max_consumption_days: int = 365
    delay_reason: str = DEFAULT_DELAY_REASON

    @classmethod
    def from_env(cls) -> 'ReflowConfig':
        """Build a config from REFLOW_* environment variables."""
        defaults = cls()
        return cls(
            search_horizon_days=_env_int('REFLOW_SEARCH_HORIZON_DAYS', defaults.search_horizon_days),
            shift_lookahead_days=_env_int('REFLOW_SHIFT_LOOKAHEAD_DAYS', defaults.shift_lookahead_days),
            max_iterations=_env_int('REFLOW_MAX_ITERATIONS', defaults.max_iterations),
            max_consumption_days=_env_int('REFLOW_MAX_CONSUMPTION_DAYS', defaults.max_consumption_days),
        )
