"""DynamoDB audit log for thermostat setting changes."""

import logging
import os
from datetime import datetime, timezone, timedelta
from decimal import Decimal
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)

DEFAULT_TABLE_NAME = "eq3bridge-state-log"
DEFAULT_REGION = "eu-central-1"
TTL_DAYS = 30

# Errors that will not go away by retrying the next write.
_PERMANENT_ERROR_CODES = {
    "ResourceNotFoundException",
    "AccessDeniedException",
    "UnrecognizedClientException",
}


def build_item(
    device_id: str, action: str, success: bool, state: dict[str, Any], now: datetime
) -> dict[str, Any]:
    """Turn one setting change into a table item.

    Numbers are stored as Decimal; properties missing from ``state`` (e.g.
    after a failed write) are left out rather than written as zero.
    """
    item = {
        "device_id": device_id,
        "timestamp": now.isoformat(timespec="microseconds"),
        "action": action,
        "success": success,
        "mode": state.get("target_heating_cooling_state", "UNKNOWN"),
        "ttl": int((now + timedelta(days=TTL_DAYS)).timestamp()),
    }
    for key in ("target_temperature", "valve_position"):
        if state.get(key) is not None:
            item[key] = Decimal(str(state[key]))
    return item


class DynamoStateLogger:
    """Records thermostat changes in DynamoDB without ever failing the caller.

    The table is opened on first use. Missing credentials, a missing table or
    denied access switch the logger off for the rest of the process;
    transient errors (throttling, timeouts) only drop the one item.
    """

    def __init__(self, profile_name: str | None = None, table_name: str | None = None) -> None:
        self._profile_name = profile_name
        self._table_name = table_name
        self._table = None
        self._disabled = False

    @property
    def disabled(self) -> bool:
        return self._disabled

    def _open_table(self):
        if self._table is None:
            session = boto3.Session(
                profile_name=self._profile_name,
                region_name=os.environ.get("AWS_DEFAULT_REGION", DEFAULT_REGION),
            )
            name = self._table_name or os.environ.get("DYNAMODB_TABLE_NAME", DEFAULT_TABLE_NAME)
            self._table = session.resource("dynamodb").Table(name)
        return self._table

    async def log_state_change(
        self, device_id: str, action: str, success: bool, state: dict[str, Any]
    ) -> None:
        """Write one audit item for a setting change.

        Args:
            device_id: Thermostat address
            action: ``set_temperature`` or ``set_mode``
            success: Whether the thermostat accepted the change
            state: ``EQ3Thermostat.status()`` read after the change; may be empty
        """
        if self._disabled:
            return

        item = build_item(device_id, action, success, state, datetime.now(timezone.utc))
        try:
            self._open_table().put_item(Item=item)
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code", "")
            if code in _PERMANENT_ERROR_CODES:
                self._disable(exc)
            else:
                logger.warning("Dropped audit item for %s (%s): %s", device_id, action, exc)
        except BotoCoreError as exc:
            self._disable(exc)

    def _disable(self, exc: Exception) -> None:
        logger.warning("DynamoDB audit log unavailable, disabling: %s", exc)
        self._disabled = True
