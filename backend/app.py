"""
=============================================================================
METER TRACKER - MAIN FLASK APPLICATION
=============================================================================
Backend server for the household meter tracker (electricity and gas).

It provides REST API endpoints for:
- Adding, listing and deleting meter readings
- Importing and exporting readings as JSON (backup/restore)
- Monthly consumption statistics with a previous-year comparison

Storage:
- Local JSON file (default)
- DynamoDB: Store readings in a NoSQL database (USE_DYNAMODB=true)

How to run:
    python -m backend.app

Then visit: http://127.0.0.1:5000/api/readings
=============================================================================
"""

# =============================================================================
# IMPORTS
# =============================================================================

# Flask - A lightweight web framework for Python
from flask import Flask, request, jsonify, Response

from pathlib import Path
import os

# dotenv - Load environment variables from .env file
from dotenv import load_dotenv

# Load environment variables from .env file
# This must be called before accessing any environment variables
load_dotenv()

# =============================================================================
# CUSTOM LIBRARY IMPORTS - Our own modules for processing meter data
# =============================================================================

# Reading: one meter reading (id, date, value, type)
from backend.lib.meter_core.models import Reading, METER_TYPES

# compute_monthly_consumption: spreads readings over calendar months
# get_yearly_comparison / previous_year_month: same month one year earlier
from backend.lib.meter_core.processor import (
    compute_monthly_consumption,
    get_yearly_comparison,
    previous_year_month,
)

# build_comparison_rows / filter_time_range: table rows for the statistics view
from backend.lib.meter_core.report import build_comparison_rows, filter_time_range

# Import/export helpers
from backend.lib.meter_core.io import parse_csv_string, readings_from_list, dump_readings_json

from backend.lib.local_store import LocalReadingStore

# StoreDataError: a stored reading is corrupt (server-side error)
from backend.lib.store_errors import StoreDataError

# =============================================================================
# STORAGE INITIALIZATION
# =============================================================================
# We use an environment variable to choose the storage.
# Without AWS the app works with a local JSON file.

DATA_DIR = Path(os.getenv('DATA_DIR', 'backend/data'))
READINGS_FILE = DATA_DIR / "readings.json"

USE_DYNAMODB = os.getenv('USE_DYNAMODB', 'false').lower() == 'true'
store = None  # Will hold the reading store (DynamoDB or local file)

if USE_DYNAMODB:
    try:
        from backend.lib.dynamodb_service import DynamoDBService
        dynamodb_service = DynamoDBService()
        # Create the table if it doesn't exist
        if not dynamodb_service.create_table_if_not_exists():
            raise RuntimeError(f"table '{dynamodb_service.table_name}' not available")
        store = dynamodb_service
        print("DynamoDB storage enabled")
    except Exception as e:
        # If DynamoDB fails, we'll fall back to local file storage
        print(f"DynamoDB initialization failed: {e}. Using local storage.")
        USE_DYNAMODB = False

if store is None:
    store = LocalReadingStore(READINGS_FILE)
    print(f"Local storage at {READINGS_FILE}")

# =============================================================================
# FLASK APPLICATION INITIALIZATION
# =============================================================================

app = Flask(__name__)

# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def get_meter_type(required: bool = False):
    """
    Read and validate the 'type' query parameter.

    Returns:
        (meter_type, error_response) - one of the two is None
    """
    meter_type = request.args.get("type")
    if not meter_type:
        if required:
            return None, (jsonify({"error": "type required"}), 400)
        return None, None
    if meter_type not in METER_TYPES:
        return None, (jsonify({"error": f"type must be one of {list(METER_TYPES)}"}), 400)
    return meter_type, None


@app.errorhandler(StoreDataError)
def handle_store_data_error(e):
    """
    Stored data that can't be read back is our problem, not the client's:
    every route answers it the same way, with a 500 JSON error.
    """
    print(f"Storage error: {e}")
    return jsonify({"error": f"Stored readings are invalid: {e}"}), 500


@app.after_request
def add_cors_headers(response):
    # The frontend may be served from another origin during development
    response.headers['Access-Control-Allow-Origin'] = '*'
    response.headers['Access-Control-Allow-Methods'] = 'GET,POST,DELETE,OPTIONS'
    response.headers['Access-Control-Allow-Headers'] = 'Content-Type'
    return response

# =============================================================================
# API ROUTES - READINGS
# =============================================================================

@app.route("/api/readings", methods=["GET"])
def list_readings():
    """
    List readings, newest first.

    Query Parameters:
        type (optional): 'electricity' or 'gas'

    Example Response:
        [
            {"id": "3f2a...", "date": "2024-02-01", "value": 131.0, "type": "electricity"}
        ]
    """
    meter_type, error = get_meter_type()
    if error:
        return error

    readings = store.get_readings(meter_type)
    readings.sort(key=lambda r: r.date, reverse=True)
    return jsonify([r.to_dict() for r in readings])


@app.route("/api/readings", methods=["POST"])
def create_reading():
    """
    Add a new reading.

    Request Body (JSON):
        {"date": "2024-02-01", "value": 131.0, "type": "electricity"}
        'id' is optional, one is generated when missing.

    HTTP Status Codes:
        201: Created
        400: Bad Request - invalid reading
        409: Conflict - a reading with this id already exists
    """
    data = request.get_json(silent=True)
    if data is None:
        return jsonify({"error": "JSON body required"}), 400

    try:
        reading = Reading.from_dict(data)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    if store.get_reading(reading.id) is not None:
        return jsonify({"error": f"Reading {reading.id} already exists"}), 409

    if not store.put_reading(reading):
        return jsonify({"error": "Failed to store reading"}), 500

    return jsonify(reading.to_dict()), 201


@app.route("/api/readings/<reading_id>", methods=["DELETE"])
def delete_reading(reading_id):
    """
    Delete a reading by id.

    Example Response:
        {"message": "Deleted", "changes": 1}
    """
    changes = store.delete_reading(reading_id)
    return jsonify({"message": "Deleted", "changes": changes})

# =============================================================================
# API ROUTES - IMPORT / EXPORT
# =============================================================================

@app.route("/api/import", methods=["POST"])
def import_readings():
    """
    Import readings (restore a backup).

    Accepts either:
    - a JSON array of readings as request body, or
    - a CSV file upload ('file') with header id,date,value,type

    Readings with an existing id replace the stored one.
    Nothing is written if any reading is invalid.
    """
    try:
        if "file" in request.files:
            content = request.files["file"].read().decode("utf-8")
            readings = parse_csv_string(content)
        else:
            data = request.get_json(silent=True)
            readings = readings_from_list(data)
    except (ValueError, UnicodeDecodeError) as e:
        return jsonify({"error": str(e)}), 400

    count = store.put_readings_batch(readings)
    if count != len(readings):
        return jsonify({"error": "Import failed", "count": count}), 500

    return jsonify({"message": "Import successful", "count": count})


@app.route("/api/export", methods=["GET"])
def export_readings():
    """
    Download all readings (optionally of one type) as a JSON backup file.
    """
    meter_type, error = get_meter_type()
    if error:
        return error

    body = dump_readings_json(store.get_readings(meter_type))
    filename = f"meter-readings-{meter_type or 'all'}.json"
    return Response(
        body,
        mimetype="application/json",
        headers={"Content-Disposition": f"attachment; filename={filename}"}
    )

# =============================================================================
# API ROUTES - STATISTICS
# =============================================================================

@app.route("/api/stats/monthly", methods=["GET"])
def monthly_stats():
    """
    Monthly consumption for one meter type with previous-year comparison.

    Query Parameters:
        type (required): 'electricity' or 'gas'
        range (optional): '3', '6', '12' or 'all' (default: 'all')

    Example Response:
        {
            "type": "electricity",
            "range": "all",
            "data": [
                {"month": "2024-01", "current": 31.0, "previous_year": null,
                 "diff": null, "diff_pct": null}
            ]
        }

    'data' is empty when there are fewer than two readings.
    """
    meter_type, error = get_meter_type(required=True)
    if error:
        return error

    time_range = request.args.get("range", "all")

    try:
        stats = compute_monthly_consumption(store.get_readings(meter_type))
        rows = filter_time_range(build_comparison_rows(stats), time_range)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({
        "type": meter_type,
        "range": time_range,
        "data": [row.to_dict() for row in rows]
    })


@app.route("/api/stats/comparison", methods=["GET"])
def yearly_comparison():
    """
    Consumption of the same month one year earlier.

    Query Parameters:
        type (required): 'electricity' or 'gas'
        month (required): 'YYYY-MM'

    Example Response:
        {"month": "2024-06", "previous_year_month": "2023-06", "previous_year": 50.0}

    previous_year is null when there is no data for that month.
    """
    meter_type, error = get_meter_type(required=True)
    if error:
        return error

    month = request.args.get("month")
    if not month:
        return jsonify({"error": "month required"}), 400

    try:
        previous_month = previous_year_month(month)
        stats = compute_monthly_consumption(store.get_readings(meter_type))
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({
        "month": month,
        "previous_year_month": previous_month,
        "previous_year": get_yearly_comparison(stats, month)
    })

# =============================================================================
# API ROUTES - STATUS
# =============================================================================

@app.route("/api/status", methods=["GET"])
def status():
    """
    Which storage is in use. Useful for debugging and health checks.
    """
    return jsonify({
        "dynamodb_enabled": USE_DYNAMODB,
        "storage": "dynamodb" if USE_DYNAMODB else "local",
        "table_name": store.table_name if USE_DYNAMODB else None
    })


# =============================================================================
# RUN THE SERVER
# =============================================================================

if __name__ == "__main__":
    # debug=True: auto-reload and detailed errors. Never use it in production!
    app.run(debug=True)
