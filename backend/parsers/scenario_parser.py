"""
Scenario Parser
Parses reflow scenario documents (JSON) into engine models.

Work orders, work centers, and manufacturing orders use the document
wrapper {"docId": ..., "docType": ..., "data": {...}}. Existing schedule
slots are flat {"workOrderDocId", "workCenterDocId", "startDate", "endDate"}.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from algorithms.models import ManufacturingOrder, Scenario, ScheduledSlot, WorkCenter, WorkOrder
from algorithms.time_windows import MaintenanceWindow, Shift, parse_timestamp


class ScenarioFormatError(ValueError):
    """A scenario document is missing required fields or has malformed values."""


def _require(data: Dict[str, Any], key: str, context: str) -> Any:
    if not isinstance(data, dict) or key not in data or data[key] is None:
        raise ScenarioFormatError(f"{context}: missing '{key}'")
    return data[key]


def _timestamp(value: Any, context: str, key: str):
    try:
        return parse_timestamp(value)
    except ValueError as e:
        raise ScenarioFormatError(f"{context}: {key} - {e}") from None


def _optional_timestamp(value: Any, context: str, key: str):
    if value is None or value == '':
        return None
    return _timestamp(value, context, key)


def _optional_list(data: Dict[str, Any], key: str, context: str) -> List[Any]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ScenarioFormatError(f"{context}: {key} must be a list")
    return value


def _unwrap(doc: Dict[str, Any], expected_type: str, index: int):
    """Return (docId, data) from a wrapped document."""
    context = f"{expected_type}[{index}]"
    doc_id = _require(doc, 'docId', context)
    doc_type = doc.get('docType')
    if doc_type is not None and doc_type != expected_type:
        raise ScenarioFormatError(f"{context} ({doc_id}): expected docType '{expected_type}', got '{doc_type}'")
    data = _require(doc, 'data', f"{context} ({doc_id})")
    if not isinstance(data, dict):
        raise ScenarioFormatError(f"{context} ({doc_id}): 'data' must be an object")
    return str(doc_id), data


def parse_work_order(doc: Dict[str, Any], index: int = 0) -> WorkOrder:
    doc_id, data = _unwrap(doc, 'workOrder', index)
    context = f"workOrder {doc_id}"

    duration = _require(data, 'durationMinutes', context)
    if isinstance(duration, bool) or not isinstance(duration, (int, float)):
        raise ScenarioFormatError(f"{context}: durationMinutes must be a number, got {duration!r}")

    depends_on = _optional_list(data, 'dependsOnWorkOrderIds', context)

    return WorkOrder(
        id=doc_id,
        work_order_number=str(data.get('workOrderNumber') or doc_id),
        work_center_id=str(_require(data, 'workCenterId', context)),
        manufacturing_order_id=data.get('manufacturingOrderId'),
        start_date=_timestamp(_require(data, 'startDate', context), context, 'startDate'),
        end_date=_optional_timestamp(data.get('endDate'), context, 'endDate'),
        duration_minutes=duration,
        is_maintenance=bool(data.get('isMaintenance', False)),
        depends_on=tuple(str(d) for d in depends_on),
    )


def parse_shift(raw: Dict[str, Any], context: str) -> Shift:
    day = _require(raw, 'dayOfWeek', context)
    start = _require(raw, 'startHour', context)
    end = _require(raw, 'endHour', context)
    try:
        return Shift(day_of_week=int(day), start_hour=int(start), end_hour=int(end))
    except (TypeError, ValueError):
        raise ScenarioFormatError(f"{context}: invalid shift {raw!r}") from None


def parse_maintenance_window(raw: Dict[str, Any], context: str) -> MaintenanceWindow:
    return MaintenanceWindow(
        start=_timestamp(_require(raw, 'startDate', context), context, 'startDate'),
        end=_timestamp(_require(raw, 'endDate', context), context, 'endDate'),
        reason=raw.get('reason'),
    )


def parse_work_center(doc: Dict[str, Any], index: int = 0) -> WorkCenter:
    doc_id, data = _unwrap(doc, 'workCenter', index)
    context = f"workCenter {doc_id}"

    shifts = [parse_shift(s, f"{context} shift[{i}]")
              for i, s in enumerate(_optional_list(data, 'shifts', context))]
    windows = [parse_maintenance_window(m, f"{context} maintenance[{i}]")
               for i, m in enumerate(_optional_list(data, 'maintenanceWindows', context))]

    return WorkCenter(
        id=doc_id,
        name=str(data.get('name') or doc_id),
        shifts=tuple(shifts),
        maintenance_windows=tuple(windows),
    )


def parse_manufacturing_order(doc: Dict[str, Any], index: int = 0) -> ManufacturingOrder:
    doc_id, data = _unwrap(doc, 'manufacturingOrder', index)
    context = f"manufacturingOrder {doc_id}"
    return ManufacturingOrder(
        id=doc_id,
        manufacturing_order_number=str(data.get('manufacturingOrderNumber') or doc_id),
        item_id=data.get('itemId'),
        quantity=data.get('quantity'),
        due_date=_optional_timestamp(data.get('dueDate'), context, 'dueDate'),
    )


def parse_scheduled_slot(raw: Dict[str, Any], index: int = 0) -> ScheduledSlot:
    context = f"existingSchedule[{index}]"
    return ScheduledSlot(
        work_order_id=str(_require(raw, 'workOrderDocId', context)),
        work_center_id=str(_require(raw, 'workCenterDocId', context)),
        start=_timestamp(_require(raw, 'startDate', context), context, 'startDate'),
        end=_timestamp(_require(raw, 'endDate', context), context, 'endDate'),
    )


def parse_scenario(payload: Dict[str, Any], label: str = 'scenario') -> Scenario:
    """
    Parse a scenario payload.

    Args:
        payload: dict with workOrders, workCenters, and optionally
                 manufacturingOrders and existingSchedule lists
        label: display name for reports

    Returns:
        Scenario

    Raises:
        ScenarioFormatError: if any document is malformed
    """
    if not isinstance(payload, dict):
        raise ScenarioFormatError("Scenario must be a JSON object")

    work_orders = _optional_list(payload, 'workOrders', 'scenario')
    work_centers = _optional_list(payload, 'workCenters', 'scenario')
    manufacturing_orders = _optional_list(payload, 'manufacturingOrders', 'scenario')
    existing_schedule = _optional_list(payload, 'existingSchedule', 'scenario')

    return Scenario(
        work_orders=[parse_work_order(d, i) for i, d in enumerate(work_orders)],
        work_centers=[parse_work_center(d, i) for i, d in enumerate(work_centers)],
        manufacturing_orders=[parse_manufacturing_order(d, i) for i, d in enumerate(manufacturing_orders)],
        existing_schedule=[parse_scheduled_slot(d, i) for i, d in enumerate(existing_schedule)],
        label=str(payload.get('label') or label),
    )


def load_scenario_file(filepath: str, label: Optional[str] = None) -> Scenario:
    """
    Load and parse a scenario JSON file.

    Raises:
        ScenarioFormatError: if the file is not valid JSON or not a valid scenario
        OSError: if the file cannot be read
    """
    path = Path(filepath)
    with open(path, 'r', encoding='utf-8') as f:
        try:
            payload = json.load(f)
        except json.JSONDecodeError as e:
            raise ScenarioFormatError(f"{path.name}: invalid JSON ({e})") from None

    scenario = parse_scenario(payload, label=label or path.name)
    print(f"  [OK] Loaded {path.name}: {len(scenario.work_orders)} work orders, "
          f"{len(scenario.work_centers)} work centers")
    return scenario
