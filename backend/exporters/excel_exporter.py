"""
Excel Exporter
Export reflow results to Excel format.
"""

from typing import List, Optional

import pandas as pd
from openpyxl.utils import get_column_letter

from algorithms.models import ReflowResult, Scenario
from .console_report import late_against_due_date, results_to_dataframe, summarize_results


def _autosize(worksheet, df: pd.DataFrame):
    """Fit column widths to content (capped at 40) and freeze the header row."""
    for idx, col in enumerate(df.columns):
        col_data = df[col].fillna('').astype(str)
        max_data_len = col_data.str.len().max() if len(col_data) > 0 else 0
        max_length = max(max_data_len, len(str(col))) + 2
        worksheet.column_dimensions[get_column_letter(idx + 1)].width = min(max_length, 40)
    worksheet.freeze_panes = 'A2'


def export_reflow_results(results: List[ReflowResult], output_path: str,
                          scenario: Optional[Scenario] = None) -> str:
    """
    Export reflow results to Excel.

    Sheets:
        Reflow Results: one row per work order, in processing order
        Summary: run totals
        Late vs Due Date: only written when any result misses its due date

    Args:
        results: ReflowResult list from a reflow run
        output_path: Path for output Excel file
        scenario: optional source scenario (enables due-date comparison)

    Returns:
        Path to the created file
    """
    results_df = results_to_dataframe(results).rename(columns={
        'workOrderDocId': 'Work Order ID',
        'workOrderNumber': 'WO#',
        'workCenterDocId': 'Work Center',
        'startDate': 'Start',
        'endDate': 'End',
        'wasDelayed': 'Delayed',
        'delayMinutes': 'Delay (min)',
        'delayReason': 'Delay Reason',
    })
    results_df['Delayed'] = results_df['Delayed'].map(lambda d: 'Yes' if d else 'No')

    summary = summarize_results(results, scenario)
    summary_df = pd.DataFrame([
        {'Metric': 'Work orders', 'Value': summary['work_orders']},
        {'Metric': 'Delayed work orders', 'Value': summary['delayed']},
        {'Metric': 'Failed to schedule', 'Value': summary['failed']},
        {'Metric': 'Total delay minutes', 'Value': summary['total_delay_minutes']},
        {'Metric': 'Late vs due date', 'Value': summary['late_vs_due_date']},
    ])

    late = late_against_due_date(results, scenario)

    with pd.ExcelWriter(output_path, engine='openpyxl') as writer:
        results_df.to_excel(writer, sheet_name='Reflow Results', index=False)
        _autosize(writer.sheets['Reflow Results'], results_df)

        summary_df.to_excel(writer, sheet_name='Summary', index=False)
        _autosize(writer.sheets['Summary'], summary_df)

        if late:
            late_df = pd.DataFrame(late)
            late_df.to_excel(writer, sheet_name='Late vs Due Date', index=False)
            _autosize(writer.sheets['Late vs Due Date'], late_df)

    print(f"[OK] Reflow results exported to: {output_path}")
    return output_path
