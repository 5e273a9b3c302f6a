#!/usr/bin/env python
"""
Reflow Scheduler - Command Line Runner

Reflows one or more scenarios and prints the results.

Usage:
    python run_reflow.py                         # every scenario*.json / scenario*.xlsx in data/
    python run_reflow.py data/scenario1.json     # specific files
    python run_reflow.py --export outputs/       # also write an Excel workbook per scenario
    python run_reflow.py --horizon-days 60 -v

With no scenario files available the built-in demo scenario is run.

Environment Variables (set in .env file):
    - REFLOW_DATA_DIR: Scenario folder (default: data/)
    - REFLOW_SEARCH_HORIZON_DAYS, REFLOW_SHIFT_LOOKAHEAD_DAYS,
      REFLOW_MAX_ITERATIONS, REFLOW_MAX_CONSUMPTION_DAYS: search limits
    - REFLOW_LOG_LEVEL: Engine log level (default: INFO)
"""

import argparse
import dataclasses
import os
import sys
from datetime import datetime

# Add backend to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'backend'))

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from algorithms.errors import StructuralError
from algorithms.models import ReflowConfig
from algorithms.reflow_engine import ReflowEngine
from algorithms.reflow_logging import configure_logging
from data_loader import ScenarioLoader
from exporters import export_reflow_results, print_reflow_report
from validators import validate_scenario


def run_one(scenario, config, logger, export_dir=None) -> bool:
    """Validate, reflow, report and optionally export one scenario. Returns success."""
    print(f"\n{'#'*70}")
    print(f"# {scenario.label}")
    print(f"{'#'*70}")

    report = validate_scenario(scenario)
    report.print_report()
    if not report.is_valid:
        print(f"[ERROR] Skipping {scenario.label}: validation failed")
        return False

    engine = ReflowEngine(scenario.work_orders, scenario.work_centers, scenario.existing_schedule,
                          logger=logger, config=config)
    try:
        results = engine.compute_reflow()
    except StructuralError as e:
        print(f"[ERROR] {scenario.label}: {e}")
        return False

    print_reflow_report(results, scenario.label, scenario)

    if export_dir:
        os.makedirs(export_dir, exist_ok=True)
        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        export_reflow_results(results, os.path.join(export_dir, f"Reflow_{scenario.label}_{timestamp}.xlsx"),
                              scenario)
    return True


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description='Reflow Scheduler - recompute work order schedules',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument('files', nargs='*',
                        help='Scenario files (.json or .xlsx). Defaults to the data folder.')
    parser.add_argument('--data-dir', type=str, default=os.environ.get('REFLOW_DATA_DIR'),
                        help='Folder scanned for scenario*.json / scenario*.xlsx')
    parser.add_argument('--export', type=str, metavar='DIR',
                        help='Write an Excel workbook per scenario into DIR')
    parser.add_argument('--horizon-days', type=int,
                        help='Override the search horizon (days)')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Log every committed slot')
    args = parser.parse_args(argv)

    logger = configure_logging('DEBUG' if args.verbose else None)

    try:
        config = ReflowConfig.from_env()
    except ValueError as e:
        print(f"[ERROR] {e}")
        return 2
    if args.horizon_days is not None:
        if args.horizon_days <= 0:
            parser.error('--horizon-days must be positive')
        config = dataclasses.replace(config, search_horizon_days=args.horizon_days)

    loader = ScenarioLoader(args.data_dir)
    scenarios = loader.load_all(args.files or None)

    succeeded = sum(1 for s in scenarios if run_one(s, config, logger, args.export))

    print(f"\n{succeeded}/{len(scenarios)} scenario(s) reflowed")
    if loader.failed:
        print(f"{len(loader.failed)} file(s) could not be loaded:")
        for name, reason in loader.failed:
            print(f"   - {name}: {reason}")

    return 0 if succeeded == len(scenarios) and not loader.failed else 1


if __name__ == '__main__':
    sys.exit(main())
