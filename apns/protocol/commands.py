from __future__ import annotations

from enum import IntEnum
from typing import Dict


class Command(IntEnum):
    """Command bytes that open every binary frame."""

    LEGACY_PUSH = 0
    EXTENDED_PUSH = 1
    ERROR_RESPONSE = 8


class StatusCode(IntEnum):
    """Status byte carried by an error-response frame."""

    NO_ERRORS = 0
    PROCESSING_ERROR = 1
    MISSING_DEVICE_TOKEN = 2
    MISSING_TOPIC = 3
    MISSING_PAYLOAD = 4
    INVALID_TOKEN_SIZE = 5
    INVALID_TOPIC_SIZE = 6
    INVALID_PAYLOAD_SIZE = 7
    INVALID_TOKEN = 8
    UNKNOWN = 255


STATUS_TEXT: Dict[int, str] = {
    StatusCode.NO_ERRORS.value: "No errors encountered",
    StatusCode.PROCESSING_ERROR.value: "Processing Errors",
    StatusCode.MISSING_DEVICE_TOKEN.value: "Missing Device Token",
    StatusCode.MISSING_TOPIC.value: "Missing Topic",
    StatusCode.MISSING_PAYLOAD.value: "Missing Payload",
    StatusCode.INVALID_TOKEN_SIZE.value: "Invalid Token Size",
    StatusCode.INVALID_TOPIC_SIZE.value: "Invalid Topic Size",
    StatusCode.INVALID_PAYLOAD_SIZE.value: "Invalid Payload Size",
    StatusCode.INVALID_TOKEN.value: "Invalid Token",
    StatusCode.UNKNOWN.value: "None (Unknown)",
}


def is_known_status(value: int) -> bool:
    """Check if `value` is a status byte Apple documents."""
    return value in STATUS_TEXT


def describe_status(value: int) -> str:
    return STATUS_TEXT.get(value, f"Unrecognized status {value}")


__all__ = ["Command", "StatusCode", "STATUS_TEXT", "is_known_status", "describe_status"]
