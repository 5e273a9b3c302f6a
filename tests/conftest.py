"""Shared test fixtures for reflow scheduler tests."""

import os
import sys
import pytest
from datetime import datetime, timezone

# Add backend to Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'backend'))

# Keep engine limits at their defaults regardless of the developer's .env
for _name in ('REFLOW_SEARCH_HORIZON_DAYS', 'REFLOW_SHIFT_LOOKAHEAD_DAYS',
              'REFLOW_MAX_ITERATIONS', 'REFLOW_MAX_CONSUMPTION_DAYS'):
    os.environ.pop(_name, None)
os.environ['REFLOW_LOG_LEVEL'] = 'WARNING'

from algorithms.models import WorkCenter, WorkOrder
from algorithms.time_windows import MaintenanceWindow, Shift


def utc(year, month, day, hour=0, minute=0):
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


MONDAY = utc(2025, 12, 1)  # A Monday


class RecordingLogger:
    """Collects engine log calls for assertions."""

    def __init__(self):
        self.records = []

    def info(self, msg, *args):
        self.records.append(('info', msg % args if args else msg))

    def warning(self, msg, *args):
        self.records.append(('warning', msg % args if args else msg))

    def error(self, msg, *args):
        self.records.append(('error', msg % args if args else msg))

    def messages(self, level):
        return [m for lvl, m in self.records if lvl == level]


@pytest.fixture
def weekday_shifts():
    """Mon-Fri 08:00-17:00 UTC (day_of_week 1-5, Sunday=0)."""
    return tuple(Shift(day_of_week=d, start_hour=8, end_hour=17) for d in range(1, 6))


@pytest.fixture
def work_center(weekday_shifts):
    return WorkCenter(id='wc-1', name='Extruder A', shifts=weekday_shifts)


@pytest.fixture
def work_center_with_maintenance(weekday_shifts):
    """Weekday work center with maintenance Tuesday 2025-12-02 10:00-12:00."""
    return WorkCenter(
        id='wc-1',
        name='Extruder A',
        shifts=weekday_shifts,
        maintenance_windows=(MaintenanceWindow(utc(2025, 12, 2, 10), utc(2025, 12, 2, 12), 'Die change'),),
    )


@pytest.fixture
def make_work_order():
    """Factory for work orders on wc-1 with sensible defaults."""
    def _make(wo_id, start, duration=60, depends_on=(), work_center_id='wc-1',
              is_maintenance=False, end=None, mo_id=None):
        return WorkOrder(
            id=wo_id,
            work_order_number=wo_id.upper(),
            work_center_id=work_center_id,
            manufacturing_order_id=mo_id,
            start_date=start,
            end_date=end,
            duration_minutes=duration,
            is_maintenance=is_maintenance,
            depends_on=tuple(depends_on),
        )
    return _make


@pytest.fixture
def recording_logger():
    return RecordingLogger()


@pytest.fixture
def scenario_payload():
    """Minimal JSON scenario: two chained orders on a Monday-only work center."""
    return {
        'label': 'api-test',
        'workCenters': [{
            'docId': 'wc1',
            'docType': 'workCenter',
            'data': {
                'name': 'WC1',
                'shifts': [{'dayOfWeek': 1, 'startHour': 8, 'endHour': 17}],
                'maintenanceWindows': [],
            },
        }],
        'workOrders': [
            {
                'docId': 'wo1',
                'docType': 'workOrder',
                'data': {
                    'workOrderNumber': 'WO1',
                    'manufacturingOrderId': 'mo1',
                    'workCenterId': 'wc1',
                    'startDate': '2025-12-01T08:00:00Z',
                    'endDate': '2025-12-01T10:00:00Z',
                    'durationMinutes': 120,
                    'isMaintenance': False,
                    'dependsOnWorkOrderIds': [],
                },
            },
            {
                'docId': 'wo2',
                'docType': 'workOrder',
                'data': {
                    'workOrderNumber': 'WO2',
                    'manufacturingOrderId': 'mo2',
                    'workCenterId': 'wc1',
                    'startDate': '2025-12-01T09:00:00Z',
                    'endDate': '2025-12-01T11:00:00Z',
                    'durationMinutes': 120,
                    'isMaintenance': False,
                    'dependsOnWorkOrderIds': ['wo1'],
                },
            },
        ],
    }


@pytest.fixture
def app(tmp_path):
    """Create Flask test application."""
    from app import app as flask_app
    flask_app.config['TESTING'] = True
    flask_app.config['OUTPUT_FOLDER'] = str(tmp_path)
    return flask_app


@pytest.fixture
def client(app):
    """Create Flask test client."""
    return app.test_client()
