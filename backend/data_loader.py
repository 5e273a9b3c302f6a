"""
Data Loader
Finds and loads reflow scenarios, with a built-in demo fallback.
"""

import glob
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Tuple

from algorithms.models import ManufacturingOrder, Scenario, WorkCenter, WorkOrder
from algorithms.time_windows import MaintenanceWindow, Shift
from parsers import ScenarioFormatError, load_scenario_file, parse_scenario_workbook

DEFAULT_DATA_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), '..', 'data')
SCENARIO_PATTERNS = ('scenario*.json', 'scenario*.xlsx')
DEMO_LABEL = 'demo-scenario'


def _utc(year, month, day, hour=0, minute=0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


def build_demo_scenario() -> Scenario:
    """
    Demo scenario: one extruder running Mon-Fri 08:00-17:00 with a full-day
    maintenance on Wednesday 2025-12-10, and two chained work orders.
    """
    extruder = WorkCenter(
        id='wc-1',
        name='Extruder A',
        shifts=tuple(Shift(day_of_week=d, start_hour=8, end_hour=17) for d in range(1, 6)),
        maintenance_windows=(
            MaintenanceWindow(start=_utc(2025, 12, 10, 8), end=_utc(2025, 12, 10, 17),
                              reason='Planned maintenance'),
        ),
    )

    wo1 = WorkOrder(
        id='wo-1',
        work_order_number='WO-001',
        work_center_id='wc-1',
        manufacturing_order_id='mo-1',
        start_date=_utc(2025, 12, 9, 16),
        end_date=_utc(2025, 12, 9, 18),
        duration_minutes=120,
    )
    wo2 = WorkOrder(
        id='wo-2',
        work_order_number='WO-002',
        work_center_id='wc-1',
        manufacturing_order_id='mo-2',
        start_date=_utc(2025, 12, 9, 18),
        end_date=_utc(2025, 12, 9, 20),
        duration_minutes=120,
        depends_on=('wo-1',),
    )

    manufacturing_orders = [
        ManufacturingOrder(id='mo-1', manufacturing_order_number='MO-001', item_id='PIPE-100',
                           quantity=500, due_date=_utc(2025, 12, 12)),
        ManufacturingOrder(id='mo-2', manufacturing_order_number='MO-002', item_id='PIPE-200',
                           quantity=250, due_date=_utc(2025, 12, 11)),
    ]

    return Scenario(work_orders=[wo1, wo2], work_centers=[extruder],
                    manufacturing_orders=manufacturing_orders, label=DEMO_LABEL)


class ScenarioLoader:
    """Manages discovery and loading of scenario files."""

    def __init__(self, data_dir: Optional[str] = None):
        self.data_dir = Path(data_dir or DEFAULT_DATA_DIR)
        self.scenarios: List[Scenario] = []
        self.failed: List[Tuple[str, str]] = []  # (filename, reason)

    def find_scenario_files(self) -> List[Path]:
        """Scenario files in the data directory, sorted by name."""
        matches = []
        for pattern in SCENARIO_PATTERNS:
            matches.extend(glob.glob(str(self.data_dir / pattern)))
        return sorted(Path(m) for m in matches)

    def load_file(self, filepath: str) -> Optional[Scenario]:
        """
        Load one scenario file (.json or .xlsx).

        Returns:
            Scenario, or None if the file could not be loaded
        """
        path = Path(filepath)
        try:
            if path.suffix.lower() in ('.xlsx', '.xls'):
                scenario = parse_scenario_workbook(str(path))
            else:
                scenario = load_scenario_file(str(path))
        except (OSError, ScenarioFormatError) as e:
            print(f"  [WARN] Could not load scenario {path.name}: {e}")
            self.failed.append((path.name, str(e)))
            return None

        self.scenarios.append(scenario)
        return scenario

    def load_all(self, filepaths: Optional[List[str]] = None, use_demo: bool = True) -> List[Scenario]:
        """
        Load explicit files, or every scenario file in the data directory.

        Falls back to the demo scenario when nothing could be loaded.
        """
        self.scenarios = []
        self.failed = []

        paths = [Path(p) for p in filepaths] if filepaths else self.find_scenario_files()
        if not filepaths:
            print(f"Scanning {self.data_dir} for scenarios ({len(paths)} found)")

        for path in paths:
            self.load_file(str(path))

        if not self.scenarios and use_demo:
            print("  [WARN] No scenario files loaded. Running demo scenario.")
            self.scenarios.append(build_demo_scenario())

        return self.scenarios

    def load_by_name(self, name: str) -> Optional[Scenario]:
        """Load a scenario from the data directory by file name ('demo' for the demo)."""
        if name == 'demo':
            return build_demo_scenario()
        path = self.data_dir / name
        if not path.exists():
            return None
        return self.load_file(str(path))
