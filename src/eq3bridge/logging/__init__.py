"""Audit logging of thermostat changes."""

from eq3bridge.logging.dynamo_logger import DynamoStateLogger

__all__ = ["DynamoStateLogger"]
