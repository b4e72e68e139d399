"""Create the DynamoDB table for the thermostat audit log.

Run once before enabling DynamoStateLogger:
    uv run python scripts/create_dynamodb_table.py [--profile NAME] [--table NAME]

Items are keyed by thermostat (device_id) and change time (timestamp) and
expire through the ``ttl`` attribute.
"""

import argparse
import os

import boto3
from botocore.exceptions import ClientError

from eq3bridge.logging.dynamo_logger import DEFAULT_REGION, DEFAULT_TABLE_NAME


def create_table(table_name: str, region: str, profile: str | None) -> None:
    session_kwargs = {"region_name": region}
    if profile:
        session_kwargs["profile_name"] = profile
    client = boto3.Session(**session_kwargs).client("dynamodb")

    try:
        client.create_table(
            TableName=table_name,
            KeySchema=[
                {"AttributeName": "device_id", "KeyType": "HASH"},
                {"AttributeName": "timestamp", "KeyType": "RANGE"},
            ],
            AttributeDefinitions=[
                {"AttributeName": "device_id", "AttributeType": "S"},
                {"AttributeName": "timestamp", "AttributeType": "S"},
            ],
            BillingMode="PAY_PER_REQUEST",
        )
        print(f"Creating table '{table_name}' in {region}...")
        client.get_waiter("table_exists").wait(TableName=table_name)

        client.update_time_to_live(
            TableName=table_name,
            TimeToLiveSpecification={"Enabled": True, "AttributeName": "ttl"},
        )
        print(f"Table '{table_name}' is ready (TTL on 'ttl').")

    except ClientError as e:
        if e.response["Error"]["Code"] != "ResourceInUseException":
            raise
        print(f"Table '{table_name}' already exists.")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create the thermostat audit log table")
    parser.add_argument(
        "--table",
        default=os.environ.get("DYNAMODB_TABLE_NAME", DEFAULT_TABLE_NAME),
        help="Table name (default: $DYNAMODB_TABLE_NAME or %(default)s)",
    )
    parser.add_argument(
        "--region",
        default=os.environ.get("AWS_DEFAULT_REGION", DEFAULT_REGION),
        help="AWS region (default: %(default)s)",
    )
    parser.add_argument("--profile", default=None, help="AWS profile to use")
    return parser.parse_args()


if __name__ == "__main__":
    args = parse_args()
    create_table(args.table, args.region, args.profile)
