"""
Data parsers package initialization.
"""

from .scenario_parser import (
    ScenarioFormatError,
    parse_scenario,
    load_scenario_file,
    parse_work_order,
    parse_work_center,
    parse_manufacturing_order,
    parse_scheduled_slot,
)
from .workbook_parser import parse_scenario_workbook

__all__ = [
    'ScenarioFormatError',
    'parse_scenario',
    'load_scenario_file',
    'parse_work_order',
    'parse_work_center',
    'parse_manufacturing_order',
    'parse_scheduled_slot',
    'parse_scenario_workbook',
]
