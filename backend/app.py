"""
Reflow Scheduler - Flask Web Application
JSON API for running schedule reflows.
"""

import os
import sys
from datetime import datetime

from flask import Flask, request, jsonify, send_file
from flask_cors import CORS
from werkzeug.utils import secure_filename
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv(os.path.join(os.path.dirname(os.path.abspath(__file__)), '..', '.env'))

# Add backend to path for imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from algorithms.errors import StructuralError
from algorithms.models import ReflowConfig
from algorithms.reflow_engine import ReflowEngine
from algorithms.reflow_logging import configure_logging
from data_loader import ScenarioLoader
from exporters import export_reflow_results, summarize_results, late_against_due_date
from parsers import ScenarioFormatError, parse_scenario
from validators import validate_scenario


# ============== App Configuration ==============

def create_app(test_config=None):
    """Application factory for Flask app."""
    app = Flask(__name__)

    # Load configuration from environment
    base_dir = os.path.dirname(os.path.abspath(__file__))
    app.config['ENV'] = os.environ.get('FLASK_ENV', 'development')
    app.config['DEBUG'] = os.environ.get('FLASK_DEBUG', 'true').lower() == 'true'
    app.config['DATA_FOLDER'] = os.environ.get('REFLOW_DATA_DIR', os.path.join(base_dir, '..', 'data'))
    app.config['OUTPUT_FOLDER'] = os.environ.get('OUTPUT_FOLDER', os.path.join(base_dir, '..', 'outputs'))
    app.config['MAX_CONTENT_LENGTH'] = 10 * 1024 * 1024  # 10MB max scenario payload
    app.config['REFLOW_CONFIG'] = ReflowConfig.from_env()

    if test_config:
        app.config.update(test_config)

    os.makedirs(app.config['OUTPUT_FOLDER'], exist_ok=True)

    app.config['REFLOW_LOGGER'] = configure_logging()

    # CORS for API access
    CORS(app)

    register_routes(app)
    return app


# ============== Helpers ==============

def reflow_scenario(app, scenario):
    """
    Validate and reflow a scenario.

    Returns:
        (results, report, error) where error is a (payload, status) pair
        when the scenario could not be run
    """
    report = validate_scenario(scenario)
    if not report.is_valid:
        return None, report, ({'error': 'Scenario failed validation.', 'validation': report.to_dict()}, 400)

    engine = ReflowEngine(
        scenario.work_orders,
        scenario.work_centers,
        scenario.existing_schedule,
        logger=app.config['REFLOW_LOGGER'],
        config=app.config['REFLOW_CONFIG'],
    )
    try:
        results = engine.compute_reflow()
    except StructuralError as e:
        return None, report, ({'error': str(e)}, 422)
    return results, report, None


def run_scenario(app, scenario):
    """Reflow a scenario and build the JSON response body. Returns (payload, status)."""
    results, report, error = reflow_scenario(app, scenario)
    if error:
        return error

    return {
        'label': scenario.label,
        'generated_at': datetime.now().isoformat(),
        'results': [r.to_dict() for r in results],
        'summary': summarize_results(results, scenario),
        'late_vs_due_date': late_against_due_date(results, scenario),
        'warnings': report.warnings,
    }, 200


def scenario_from_request():
    """Parse the JSON body into a Scenario. Returns (scenario, error_response)."""
    payload = request.get_json(silent=True)
    if payload is None:
        return None, (jsonify({'error': 'Request body must be a JSON scenario.'}), 400)
    try:
        return parse_scenario(payload, label=payload.get('label') or 'api'), None
    except ScenarioFormatError as e:
        return None, (jsonify({'error': str(e)}), 400)


# ============== Routes ==============

def register_routes(app):

    @app.route('/api/health')
    def api_health():
        return jsonify({'status': 'ok', 'time': datetime.now().isoformat()})

    @app.route('/api/reflow', methods=['POST'])
    def api_reflow():
        """Run a reflow over the posted scenario."""
        scenario, error = scenario_from_request()
        if error:
            return error
        payload, status = run_scenario(app, scenario)
        return jsonify(payload), status

    @app.route('/api/reflow/export', methods=['POST'])
    def api_reflow_export():
        """Run a reflow and return the results workbook."""
        scenario, error = scenario_from_request()
        if error:
            return error

        results, _, error = reflow_scenario(app, scenario)
        if error:
            payload, status = error
            return jsonify(payload), status

        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        filename = secure_filename(f"Reflow_{scenario.label}_{timestamp}.xlsx")
        output_path = os.path.join(app.config['OUTPUT_FOLDER'], filename)
        export_reflow_results(results, output_path, scenario)
        return send_file(os.path.abspath(output_path), as_attachment=True, download_name=filename)

    @app.route('/api/scenarios')
    def api_list_scenarios():
        """Scenario files available in the data folder."""
        loader = ScenarioLoader(app.config['DATA_FOLDER'])
        files = [p.name for p in loader.find_scenario_files()]
        return jsonify({'scenarios': files + ['demo']})

    @app.route('/api/scenarios/<name>/reflow')
    def api_run_stored_scenario(name):
        """Run a reflow on a stored scenario file (or 'demo')."""
        safe_name = secure_filename(name)
        if not safe_name:
            return jsonify({'error': 'Invalid scenario name.'}), 400

        loader = ScenarioLoader(app.config['DATA_FOLDER'])
        scenario = loader.load_by_name(safe_name)
        if scenario is None:
            if loader.failed:
                return jsonify({'error': loader.failed[-1][1]}), 400
            return jsonify({'error': f'Scenario not found: {safe_name}'}), 404

        payload, status = run_scenario(app, scenario)
        return jsonify(payload), status


app = create_app()


# ============== Main ==============

def run_development():
    """Run the development server."""
    host = os.environ.get('HOST', '0.0.0.0')
    port = int(os.environ.get('PORT', 5000))

    print("=" * 60)
    print("Reflow Scheduler - API (Development)")
    print("=" * 60)
    print(f"Data folder: {app.config['DATA_FOLDER']}")
    print(f"Output folder: {app.config['OUTPUT_FOLDER']}")
    print(f"Starting server at http://{host}:{port}")
    print("=" * 60)
    print("WARNING: Using development server. For production, use:")
    print("  python run_production.py")
    print("=" * 60)

    app.run(debug=True, host=host, port=port)


def run_production():
    """Run the production server with Waitress."""
    from waitress import serve

    host = os.environ.get('HOST', '0.0.0.0')
    port = int(os.environ.get('PORT', 5000))

    print("=" * 60)
    print("Reflow Scheduler - API (Production)")
    print("=" * 60)
    print(f"Data folder: {app.config['DATA_FOLDER']}")
    print(f"Output folder: {app.config['OUTPUT_FOLDER']}")
    print(f"Starting Waitress server at http://{host}:{port}")
    print("=" * 60)

    serve(app, host=host, port=port, threads=4)


if __name__ == '__main__':
    env = os.environ.get('FLASK_ENV', 'development')

    if env == 'production':
        run_production()
    else:
        run_development()
