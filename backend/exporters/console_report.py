"""
Console Report
Tabular summaries of reflow results.
"""

from typing import Any, Dict, List, Optional

import pandas as pd

from algorithms.models import ReflowResult, Scenario
from algorithms.time_windows import format_timestamp, to_utc

RESULT_COLUMNS = [
    'workOrderDocId',
    'workOrderNumber',
    'workCenterDocId',
    'startDate',
    'endDate',
    'wasDelayed',
    'delayMinutes',
    'delayReason',
]


def results_to_dataframe(results: List[ReflowResult]) -> pd.DataFrame:
    """One row per result, in processing order."""
    rows = []
    for r in results:
        row = r.to_dict()
        row['delayMinutes'] = r.delay_minutes or 0
        row['delayReason'] = r.delay_reason or ''
        rows.append(row)
    return pd.DataFrame(rows, columns=RESULT_COLUMNS)


def late_against_due_date(results: List[ReflowResult], scenario: Optional[Scenario]) -> List[Dict[str, Any]]:
    """Results that finish after their manufacturing order's due date."""
    if scenario is None or not scenario.manufacturing_orders:
        return []

    due_dates = {mo.id: mo.due_date for mo in scenario.manufacturing_orders if mo.due_date}
    mo_by_work_order = {wo.id: wo.manufacturing_order_id for wo in scenario.work_orders}

    late = []
    for r in results:
        due = due_dates.get(mo_by_work_order.get(r.work_order_id))
        if due is not None and r.end_date is not None and to_utc(r.end_date) > to_utc(due):
            late.append({
                'workOrderNumber': r.work_order_number,
                'manufacturingOrderId': mo_by_work_order[r.work_order_id],
                'endDate': format_timestamp(r.end_date),
                'dueDate': format_timestamp(due),
            })
    return late


def summarize_results(results: List[ReflowResult], scenario: Optional[Scenario] = None) -> Dict[str, Any]:
    """Summary metrics for a run."""
    return {
        'work_orders': len(results),
        'delayed': sum(1 for r in results if r.was_delayed),
        'failed': sum(1 for r in results if r.failed),
        'total_delay_minutes': sum(r.delay_minutes or 0 for r in results),
        'late_vs_due_date': len(late_against_due_date(results, scenario)),
    }


def print_reflow_report(results: List[ReflowResult], label: str = 'scenario',
                        scenario: Optional[Scenario] = None):
    """Print the detailed result table and summary metrics."""
    print(f"\n{'='*70}")
    print(f"REFLOW RESULTS: {label}")
    print(f"{'='*70}")

    df = results_to_dataframe(results)
    if df.empty:
        print("   (no work orders)")
    else:
        with pd.option_context('display.max_columns', None, 'display.width', 200):
            print(df.to_string(index=False))

    summary = summarize_results(results, scenario)
    print(f"\nSummary for {label}:")
    print(f"   Work orders: {summary['work_orders']}")
    print(f"   Delayed work orders: {summary['delayed']}")
    print(f"   Failed to schedule: {summary['failed']}")
    print(f"   Total delay minutes: {summary['total_delay_minutes']}")

    for entry in late_against_due_date(results, scenario):
        print(f"   [WARN] {entry['workOrderNumber']} ends {entry['endDate']} "
              f"after due date {entry['dueDate']} ({entry['manufacturingOrderId']})")
