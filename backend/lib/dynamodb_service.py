"""
=============================================================================
DYNAMODB SERVICE - Amazon DynamoDB (NoSQL Database) Integration
=============================================================================
Stores meter readings in DynamoDB when USE_DYNAMODB=true.

Key DynamoDB Concepts:
---------------------
1. Table: A collection of items (like a table in SQL)
2. Item: A single record (like a row in SQL)
3. Primary Key: Unique identifier for each item
   - Partition Key (HASH): here the reading id, so writing an item with an
     existing id replaces it (this gives us upsert-by-id for imports)

Our Table Schema:
-----------------
Table: MeterReadings
- id (String) - Partition Key - Unique reading id
- date (String) - Day of the reading, "YYYY-MM-DD"
- value (Number) - Cumulative meter counter
- type (String) - "electricity" or "gas"
- created_at (String) - When the record was inserted

Example Item:
{
    "id": "3f2a9c...",
    "date": "2024-01-31",
    "value": 15234.7,
    "type": "electricity",
    "created_at": "2024-01-31T18:02:11Z"
}
=============================================================================
"""

# boto3 - AWS SDK for Python
import boto3

# Attr - Filter condition on non-key attributes (used to filter by meter type)
from boto3.dynamodb.conditions import Attr

# ClientError - Exception class for AWS API errors
from botocore.exceptions import ClientError

import os
from datetime import datetime, timezone
from typing import Optional, List, Dict

# Decimal - DynamoDB uses Decimal for numbers, not float
from decimal import Decimal

from backend.lib.meter_core.models import Reading
from backend.lib.store_errors import StoreDataError


class DynamoDBService:
    """
    A reading store backed by Amazon DynamoDB.

    Offers the same methods as LocalReadingStore, so the Flask app can use
    either one.

    Usage:
        db = DynamoDBService()
        db.create_table_if_not_exists()
        db.put_reading(Reading(date=date(2024, 1, 31), value=15234.7, type="electricity"))
    """

    def __init__(self, table_name: str = None, table=None):
        """
        Args:
            table_name: Optional custom table name. If not provided,
                       uses DYNAMODB_TABLE_NAME from environment or default.
            table: Optional ready-made Table object (skips connecting to AWS).
        """
        self.table_name = table_name or os.getenv('DYNAMODB_TABLE_NAME', 'MeterReadings')
        self.region = os.getenv('AWS_REGION', 'us-east-1')
        self.table = table
        self.dynamodb = None
        self.client = None

        if table is None:
            session_token = os.getenv('AWS_SESSION_TOKEN')

            # Resource: high-level interface with Table objects
            self.dynamodb = boto3.resource(
                'dynamodb',
                region_name=self.region,
                aws_access_key_id=os.getenv('AWS_ACCESS_KEY_ID'),
                aws_secret_access_key=os.getenv('AWS_SECRET_ACCESS_KEY'),
                aws_session_token=session_token if session_token else None
            )

            # Client: low-level interface, needed for describe_table
            self.client = boto3.client(
                'dynamodb',
                region_name=self.region,
                aws_access_key_id=os.getenv('AWS_ACCESS_KEY_ID'),
                aws_secret_access_key=os.getenv('AWS_SECRET_ACCESS_KEY'),
                aws_session_token=session_token if session_token else None
            )

    def _get_table(self):
        if not self.table:
            self.table = self.dynamodb.Table(self.table_name)
        return self.table

    def create_table_if_not_exists(self) -> bool:
        """
        Create the DynamoDB table if it doesn't exist.

        Uses on-demand billing (PAY_PER_REQUEST), no capacity planning needed.

        Returns:
            bool: True if table exists or was created successfully
        """
        try:
            self.client.describe_table(TableName=self.table_name)
            self.table = self.dynamodb.Table(self.table_name)
            print(f"DynamoDB table '{self.table_name}' exists")
            return True

        except ClientError as e:
            if e.response['Error']['Code'] == 'ResourceNotFoundException':
                try:
                    table = self.dynamodb.create_table(
                        TableName=self.table_name,
                        KeySchema=[
                            {
                                'AttributeName': 'id',
                                'KeyType': 'HASH'  # Partition key
                            }
                        ],
                        AttributeDefinitions=[
                            {
                                'AttributeName': 'id',
                                'AttributeType': 'S'  # String
                            }
                        ],
                        BillingMode='PAY_PER_REQUEST'
                    )

                    # Wait for table to be fully created
                    table.wait_until_exists()
                    self.table = table
                    print(f"Created DynamoDB table '{self.table_name}'")
                    return True

                except ClientError as create_error:
                    print(f"Failed to create table: {create_error}")
                    return False
            else:
                print(f"Error checking table: {e}")
                return False

    @staticmethod
    def _to_item(reading: Reading) -> Dict:
        item = reading.to_dict()
        # Convert float to Decimal via string to avoid precision loss
        item['value'] = Decimal(str(reading.value))
        item['created_at'] = datetime.now(timezone.utc).isoformat()
        return item

    @staticmethod
    def _from_item(item: Dict) -> Reading:
        # Decimal back to float happens in Reading.from_dict
        try:
            return Reading.from_dict({
                'id': item['id'],
                'date': item.get('date'),
                'value': item.get('value'),
                'type': item.get('type'),
            })
        except ValueError as e:
            raise StoreDataError(f"Corrupt item {item.get('id')}: {e}")

    def put_reading(self, reading: Reading) -> bool:
        """
        Store a single reading. An existing item with the same id is replaced.

        Returns:
            bool: True if successful, False otherwise
        """
        try:
            self._get_table().put_item(Item=self._to_item(reading))
            return True

        except ClientError as e:
            print(f"Failed to put reading: {e}")
            return False

    def put_readings_batch(self, readings: List[Reading]) -> int:
        """
        Store multiple readings using batch write (upsert by id).

        batch_writer sends up to 25 items per request. overwrite_by_pkeys
        drops duplicate ids inside one batch, the last one wins, which
        DynamoDB would otherwise reject.

        Returns:
            int: Number of successfully written items
        """
        table = self._get_table()
        success_count = 0
        batch_size = 25

        for i in range(0, len(readings), batch_size):
            batch = readings[i:i + batch_size]

            try:
                with table.batch_writer(overwrite_by_pkeys=['id']) as writer:
                    for reading in batch:
                        writer.put_item(Item=self._to_item(reading))
                success_count += len(batch)

            except ClientError as e:
                print(f"Batch write error: {e}")

        return success_count

    def get_reading(self, reading_id: str) -> Optional[Reading]:
        try:
            response = self._get_table().get_item(Key={'id': reading_id})
        except ClientError as e:
            print(f"Failed to get reading: {e}")
            return None
        item = response.get('Item')
        return self._from_item(item) if item else None

    def get_readings(self, meter_type: Optional[str] = None) -> List[Reading]:
        """
        Get all readings, optionally only those of one meter type.

        Uses Scan. The table is keyed by id, so there is no partition to
        query by; a household has only a few hundred readings.
        DynamoDB returns max 1MB per scan, so we follow LastEvaluatedKey.
        """
        table = self._get_table()
        scan_kwargs = {}
        if meter_type is not None:
            scan_kwargs['FilterExpression'] = Attr('type').eq(meter_type)

        try:
            response = table.scan(**scan_kwargs)
            items = list(response.get('Items', []))

            # Handle pagination for large tables
            while 'LastEvaluatedKey' in response:
                response = table.scan(
                    ExclusiveStartKey=response['LastEvaluatedKey'],
                    **scan_kwargs
                )
                items.extend(response.get('Items', []))

        except ClientError as e:
            print(f"Failed to get readings: {e}")
            return []

        return [self._from_item(item) for item in items]

    def delete_reading(self, reading_id: str) -> int:
        """
        Delete a reading by id.

        Returns:
            int: Number of deleted readings (0 or 1)
        """
        try:
            response = self._get_table().delete_item(
                Key={'id': reading_id},
                ReturnValues='ALL_OLD'
            )
        except ClientError as e:
            print(f"Failed to delete reading: {e}")
            return 0
        return 1 if response.get('Attributes') else 0
