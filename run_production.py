#!/usr/bin/env python
"""
Reflow Scheduler - Production Server Launcher

This script starts the production API server using Waitress (Windows-compatible).
For Linux/Unix servers, you can also use Gunicorn.

Usage:
    python run_production.py

Environment Variables (set in .env file):
    - HOST: Server host (default: 0.0.0.0)
    - PORT: Server port (default: 5000)
    - REFLOW_DATA_DIR: Scenario folder served by /api/scenarios
    - OUTPUT_FOLDER: Where exported workbooks are written
    - REFLOW_LOG_LEVEL: Engine log level (default: INFO)
"""

import os
import sys

# Add backend to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'backend'))

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Set production environment
os.environ['FLASK_ENV'] = 'production'
os.environ['FLASK_DEBUG'] = 'false'

# Import and run
from app import run_production

if __name__ == '__main__':
    run_production()
