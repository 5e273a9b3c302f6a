"""
Workbook Parser
Parses a reflow scenario from an Excel workbook.

Expected sheets:
- 'Work Orders': Work Order ID, Work Order Number, Work Center ID,
  Manufacturing Order ID, Start Date, End Date, Duration (min),
  Maintenance, Depends On (comma-separated work order IDs)
- 'Shifts': Work Center ID, Day Of Week (0=Sunday), Start Hour, End Hour
- 'Maintenance' (optional): Work Center ID, Start Date, End Date, Reason
- 'Work Centers' (optional): Work Center ID, Name
"""

from collections import defaultdict
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from algorithms.models import Scenario, WorkCenter, WorkOrder
from algorithms.time_windows import MaintenanceWindow, Shift, parse_timestamp
from .scenario_parser import ScenarioFormatError

WORK_ORDER_SHEET = 'Work Orders'
SHIFT_SHEET = 'Shifts'
MAINTENANCE_SHEET = 'Maintenance'
WORK_CENTER_SHEET = 'Work Centers'


def _cell(row: pd.Series, column: str) -> Optional[Any]:
    value = row.get(column)
    if value is None or pd.isna(value):
        return None
    return value


def _text(row: pd.Series, column: str) -> Optional[str]:
    value = _cell(row, column)
    if value is None:
        return None
    # Excel hands back numeric IDs as floats (e.g. 1001.0)
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def _flag(row: pd.Series, column: str) -> bool:
    value = _cell(row, column)
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip().lower() in ('true', 'yes', 'y', '1', 'x')
    return bool(value)


def _when(row: pd.Series, column: str, context: str):
    value = _cell(row, column)
    if value is None:
        return None
    if isinstance(value, pd.Timestamp):
        value = value.to_pydatetime()
    try:
        return parse_timestamp(value)
    except ValueError as e:
        raise ScenarioFormatError(f"{context}: {column} - {e}") from None


def _read_sheet(sheets: Dict[str, pd.DataFrame], name: str, required: bool) -> pd.DataFrame:
    if name in sheets:
        return sheets[name]
    if required:
        raise ScenarioFormatError(f"Workbook is missing required sheet '{name}'")
    return pd.DataFrame()


def _parse_work_orders(df: pd.DataFrame) -> List[WorkOrder]:
    work_orders = []
    for index, row in df.iterrows():
        context = f"{WORK_ORDER_SHEET} row {index + 2}"
        wo_id = _text(row, 'Work Order ID')
        if not wo_id:
            # Blank trailing rows are common in hand-edited sheets
            continue

        work_center_id = _text(row, 'Work Center ID')
        if not work_center_id:
            raise ScenarioFormatError(f"{context}: missing Work Center ID")

        start = _when(row, 'Start Date', context)
        if start is None:
            raise ScenarioFormatError(f"{context}: missing Start Date")

        duration = _cell(row, 'Duration (min)')
        try:
            duration = float(duration)
        except (TypeError, ValueError):
            raise ScenarioFormatError(f"{context}: invalid Duration (min) {duration!r}") from None
        if duration.is_integer():
            duration = int(duration)

        depends_raw = _text(row, 'Depends On') or ''
        depends_on = tuple(d.strip() for d in depends_raw.split(',') if d.strip())

        work_orders.append(WorkOrder(
            id=wo_id,
            work_order_number=_text(row, 'Work Order Number') or wo_id,
            work_center_id=work_center_id,
            manufacturing_order_id=_text(row, 'Manufacturing Order ID'),
            start_date=start,
            end_date=_when(row, 'End Date', context),
            duration_minutes=duration,
            is_maintenance=_flag(row, 'Maintenance'),
            depends_on=depends_on,
        ))
    return work_orders


def _parse_work_centers(shifts_df: pd.DataFrame, maintenance_df: pd.DataFrame,
                        centers_df: pd.DataFrame) -> List[WorkCenter]:
    names: Dict[str, str] = {}
    shifts = defaultdict(list)
    windows = defaultdict(list)

    for _, row in centers_df.iterrows():
        wc_id = _text(row, 'Work Center ID')
        if wc_id:
            names[wc_id] = _text(row, 'Name') or wc_id

    for index, row in shifts_df.iterrows():
        wc_id = _text(row, 'Work Center ID')
        if not wc_id:
            continue
        try:
            shifts[wc_id].append(Shift(
                day_of_week=int(_cell(row, 'Day Of Week')),
                start_hour=int(_cell(row, 'Start Hour')),
                end_hour=int(_cell(row, 'End Hour')),
            ))
        except (TypeError, ValueError):
            raise ScenarioFormatError(f"{SHIFT_SHEET} row {index + 2}: invalid shift values") from None
        names.setdefault(wc_id, wc_id)

    for index, row in maintenance_df.iterrows():
        wc_id = _text(row, 'Work Center ID')
        if not wc_id:
            continue
        context = f"{MAINTENANCE_SHEET} row {index + 2}"
        start = _when(row, 'Start Date', context)
        end = _when(row, 'End Date', context)
        if start is None or end is None:
            raise ScenarioFormatError(f"{context}: Start Date and End Date are required")
        windows[wc_id].append(MaintenanceWindow(start=start, end=end, reason=_text(row, 'Reason')))
        names.setdefault(wc_id, wc_id)

    return [
        WorkCenter(id=wc_id, name=name, shifts=tuple(shifts[wc_id]),
                   maintenance_windows=tuple(windows[wc_id]))
        for wc_id, name in names.items()
    ]


def parse_scenario_workbook(filepath: str, label: Optional[str] = None) -> Scenario:
    """
    Parse a scenario workbook.

    Returns:
        Scenario (no manufacturing orders or existing schedule)

    Raises:
        ScenarioFormatError: if a required sheet or column value is missing
    """
    path = Path(filepath)
    sheets = pd.read_excel(path, sheet_name=None)

    print(f"Loaded workbook {path.name} with sheets: {list(sheets.keys())}")

    work_order_df = _read_sheet(sheets, WORK_ORDER_SHEET, required=True)
    shifts_df = _read_sheet(sheets, SHIFT_SHEET, required=True)

    work_orders = _parse_work_orders(work_order_df)
    work_centers = _parse_work_centers(
        shifts_df,
        _read_sheet(sheets, MAINTENANCE_SHEET, required=False),
        _read_sheet(sheets, WORK_CENTER_SHEET, required=False),
    )

    print(f"  [OK] Parsed {len(work_orders)} work orders, {len(work_centers)} work centers")
    return Scenario(work_orders=work_orders, work_centers=work_centers, label=label or path.name)
