"""
Scenario Validators
Pre-flight validation of reflow scenario documents.
"""

from collections import Counter
from datetime import datetime
from typing import Dict, List, Any, Optional

from algorithms.constraint_checker import ConstraintChecker
from algorithms.dependency_graph import DependencyGraph
from algorithms.errors import StructuralError
from algorithms.models import Scenario
from algorithms.time_windows import to_utc


class ValidationReport:
    """Container for validation results."""

    def __init__(self):
        self.errors = []  # Blocking errors
        self.warnings = []  # Non-blocking warnings
        self.info = []  # Informational messages

    @property
    def is_valid(self) -> bool:
        """Returns True if no blocking errors."""
        return len(self.errors) == 0

    def add_error(self, message: str):
        """Add a blocking error."""
        self.errors.append(message)

    def add_warning(self, message: str):
        """Add a warning."""
        self.warnings.append(message)

    def add_info(self, message: str):
        """Add informational message."""
        self.info.append(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'valid': self.is_valid,
            'errors': list(self.errors),
            'warnings': list(self.warnings),
            'info': list(self.info),
        }

    def print_report(self):
        """Print formatted validation report."""
        print("\n" + "=" * 70)
        print("VALIDATION REPORT")
        print("=" * 70)

        if self.is_valid:
            print("\n[OK] VALIDATION PASSED")
        else:
            print("\n[FAIL] VALIDATION FAILED")

        if self.errors:
            print(f"\n[ERROR] ERRORS ({len(self.errors)}):")
            for i, error in enumerate(self.errors[:10], 1):
                print(f"   {i}. {error}")
            if len(self.errors) > 10:
                print(f"   ... and {len(self.errors) - 10} more errors")

        if self.warnings:
            print(f"\n[WARN] WARNINGS ({len(self.warnings)}):")
            for i, warning in enumerate(self.warnings[:10], 1):
                print(f"   {i}. {warning}")
            if len(self.warnings) > 10:
                print(f"   ... and {len(self.warnings) - 10} more warnings")

        if self.info:
            print(f"\n[INFO] INFO ({len(self.info)}):")
            for i, info in enumerate(self.info[:5], 1):
                print(f"   {i}. {info}")
            if len(self.info) > 5:
                print(f"   ... and {len(self.info) - 5} more")


def validate_scenario(scenario: Scenario) -> ValidationReport:
    """
    Validate a scenario before running a reflow.

    Errors block the run; warnings describe data the engine will tolerate
    (e.g. shifts it will discard).

    Returns:
        ValidationReport with all validation results
    """
    report = ValidationReport()

    # 1. Work centers
    _validate_work_centers(scenario, report)

    # 2. Work orders
    _validate_work_orders(scenario, report)

    # 3. Cross-references
    _cross_validate(scenario, report)

    return report


def _validate_work_centers(scenario: Scenario, report: ValidationReport):
    """Validate shift and maintenance definitions."""

    if not scenario.work_centers:
        report.add_warning("No work centers defined")
        return

    report.add_info(f"Found {len(scenario.work_centers)} work centers")

    ids = Counter(wc.id for wc in scenario.work_centers)
    duplicates = [wc_id for wc_id, count in ids.items() if count > 1]
    if duplicates:
        report.add_error(f"Duplicate work center ids: {duplicates[:5]}")

    for wc in scenario.work_centers:
        invalid_shifts = [s for s in wc.shifts if not s.is_valid]
        if invalid_shifts:
            report.add_warning(
                f"Work center {wc.id}: {len(invalid_shifts)} zero-length or inverted shift(s) will be ignored")
        if not wc.valid_shifts:
            report.add_warning(f"Work center {wc.id} has no valid shifts; nothing can be scheduled on it")
        else:
            report.add_info(f"Work center {wc.id} ({wc.name}): {wc.weekly_hours} shift hours per week")

        for window in wc.maintenance_windows:
            if not window.is_valid:
                report.add_warning(
                    f"Work center {wc.id}: maintenance window does not end after it starts "
                    f"({window.start} - {window.end}); it will be ignored")


def _validate_work_orders(scenario: Scenario, report: ValidationReport):
    """Validate work order fields."""

    if not scenario.work_orders:
        report.add_error("No work orders found in scenario")
        return

    maintenance_count = sum(1 for wo in scenario.work_orders if wo.is_maintenance)
    report.add_info(f"Found {len(scenario.work_orders)} work orders ({maintenance_count} maintenance)")

    ids = Counter(wo.id for wo in scenario.work_orders)
    duplicates = [wo_id for wo_id, count in ids.items() if count > 1]
    if duplicates:
        report.add_error(f"Duplicate work order ids: {duplicates[:5]}")

    bad_durations = []
    for wo in scenario.work_orders:
        if wo.is_maintenance:
            continue
        if isinstance(wo.duration_minutes, bool) or not wo.duration_minutes or wo.duration_minutes <= 0:
            bad_durations.append(wo.work_order_number)
        if wo.end_date is not None and wo.start_date is not None and wo.end_date < wo.start_date:
            report.add_warning(f"Work order {wo.work_order_number}: planned end is before planned start")

    if bad_durations:
        report.add_warning(
            f"{len(bad_durations)} work orders have non-positive durations and will fail: {bad_durations[:5]}")


def _cross_validate(scenario: Scenario, report: ValidationReport):
    """Cross-validate references between documents."""

    work_center_ids = {wc.id for wc in scenario.work_centers}
    work_order_ids = {wo.id for wo in scenario.work_orders}
    mo_ids = {mo.id for mo in scenario.manufacturing_orders}

    # 1. Work center references
    unknown_centers = sorted({wo.work_center_id for wo in scenario.work_orders
                              if not wo.is_maintenance and wo.work_center_id not in work_center_ids})
    if unknown_centers:
        report.add_warning(f"Work orders reference unknown work centers and will fail: {unknown_centers[:5]}")

    # 2. Dependency references
    missing_deps: List[str] = []
    for wo in scenario.work_orders:
        for dep_id in wo.depends_on:
            if dep_id not in work_order_ids:
                missing_deps.append(f"{wo.work_order_number} -> {dep_id}")
    if missing_deps:
        report.add_error(f"Unknown dependencies: {missing_deps[:5]}")
    elif not report.errors:
        # 3. Cycles (only meaningful once references resolve)
        graph: Optional[DependencyGraph] = None
        try:
            graph = DependencyGraph(scenario.work_orders)
            graph.topological_order()
        except StructuralError as e:
            report.add_error(str(e))
        if graph is not None and not report.errors:
            _check_planned_dependency_order(scenario, graph, report)

    # 4. Manufacturing order references
    if scenario.manufacturing_orders:
        unknown_mos = sorted({wo.manufacturing_order_id for wo in scenario.work_orders
                              if wo.manufacturing_order_id and wo.manufacturing_order_id not in mo_ids})
        if unknown_mos:
            report.add_warning(f"Work orders reference unknown manufacturing orders: {unknown_mos[:5]}")

    # 5. Existing schedule
    orphan_slots = [s.work_order_id for s in scenario.existing_schedule
                    if s.work_center_id not in work_center_ids]
    if orphan_slots:
        report.add_warning(f"{len(orphan_slots)} existing slots are on unknown work centers")
    if scenario.existing_schedule:
        report.add_info(f"Existing schedule has {len(scenario.existing_schedule)} committed slots")

    known_slots = [s for s in scenario.existing_schedule
                   if s.work_center_id in work_center_ids and isinstance(s.start, datetime)]
    if known_slots:
        checker = ConstraintChecker(scenario.work_centers)
        off_shift = [s.work_order_id for s in known_slots
                     if not checker.is_working_time(s.work_center_id, s.start)]
        if off_shift:
            report.add_warning(
                f"{len(off_shift)} existing slots start outside working time and are kept as booked: {off_shift[:5]}")


def _check_planned_dependency_order(scenario: Scenario, graph: DependencyGraph, report: ValidationReport):
    """Report work orders planned to start before a dependency is planned to finish."""
    by_id = {wo.id: wo for wo in scenario.work_orders}
    early_starts = []
    for wo in scenario.work_orders:
        if wo.is_maintenance or not isinstance(wo.start_date, datetime):
            continue
        for parent_id in graph.parents_of(wo.id):
            parent_end = by_id[parent_id].end_date
            if isinstance(parent_end, datetime) and to_utc(parent_end) > to_utc(wo.start_date):
                early_starts.append(f"{wo.work_order_number} before {by_id[parent_id].work_order_number}")
    if early_starts:
        report.add_info(
            f"{len(early_starts)} work orders are planned to start before a dependency finishes "
            f"and will be pushed: {early_starts[:5]}")
