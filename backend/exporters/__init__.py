"""
Exporters package
Export reflow results to the console and to Excel.
"""

from .console_report import (
    results_to_dataframe,
    summarize_results,
    late_against_due_date,
    print_reflow_report,
)
from .excel_exporter import export_reflow_results

__all__ = [
    'results_to_dataframe',
    'summarize_results',
    'late_against_due_date',
    'print_reflow_report',
    'export_reflow_results',
]
