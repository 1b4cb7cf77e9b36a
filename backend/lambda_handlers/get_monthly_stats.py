"""
Lambda function to get monthly consumption statistics
Triggered by API Gateway
"""
import json

from backend.lib.dynamodb_service import DynamoDBService
from backend.lib.meter_core.models import METER_TYPES
from backend.lib.meter_core.processor import compute_monthly_consumption
from backend.lib.meter_core.report import build_comparison_rows, filter_time_range

# Created on first use, reused while the Lambda container stays warm
_service = None


def get_service() -> DynamoDBService:
    global _service
    if _service is None:
        _service = DynamoDBService()
    return _service


def lambda_handler(event, context):
    """
    Get monthly consumption for one meter type.

    Query parameters:
    - type: Required, 'electricity' or 'gas'
    - range: '3', '6', '12' or 'all' (default: 'all')
    """
    print(f"Received event: {json.dumps(event)}")

    params = event.get('queryStringParameters') or {}
    meter_type = params.get('type')
    time_range = params.get('range', 'all')

    if meter_type not in METER_TYPES:
        return response(400, {'error': f"type must be one of {list(METER_TYPES)}"})

    try:
        readings = get_service().get_readings(meter_type)
        stats = compute_monthly_consumption(readings)
        rows = filter_time_range(build_comparison_rows(stats), time_range)
    except ValueError as e:
        return response(400, {'error': str(e)})
    except Exception as e:
        print(f"Error: {str(e)}")
        return response(500, {'error': str(e)})

    return response(200, {
        'type': meter_type,
        'range': time_range,
        'data': [row.to_dict() for row in rows]
    })


def response(status_code: int, body: dict) -> dict:
    """Create API Gateway response."""
    return {
        'statusCode': status_code,
        'headers': {
            'Content-Type': 'application/json',
            'Access-Control-Allow-Origin': '*',
            'Access-Control-Allow-Methods': 'GET,POST,OPTIONS',
            'Access-Control-Allow-Headers': 'Content-Type'
        },
        'body': json.dumps(body)
    }
