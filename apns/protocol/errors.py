from __future__ import annotations

from enum import IntEnum
from typing import Optional


class ErrorCode(IntEnum):
    """Client-side classification of every failure the library raises."""

    CONFIG_INVALID = 1001
    PAYLOAD_TOO_LARGE = 1002
    ENCODING_FAILED = 1003
    CONNECT_FAILED = 1004
    NOT_CONNECTED = 1005
    TRANSPORT_FAILED = 1006
    STREAM_CLOSED = 1007
    READ_TIMEOUT = 1008
    REJECTED = 1009
    UNKNOWN_STATUS = 1010
    NOT_ENOUGH_DATA = 1011
    MALFORMED_RECORD = 1012
    RECONNECT_EXHAUSTED = 1013
    FEEDBACK_FAILED = 1014


class ApnsError(Exception):
    """Structured exception carrying an error code and a readable message."""

    default_code = ErrorCode.TRANSPORT_FAILED

    def __init__(self, message: str = "", code: Optional[ErrorCode] = None) -> None:
        self.code = code if code is not None else self.default_code
        self.message = message
        super().__init__(f"{self.code.name} ({int(self.code)}): {message}")

    def to_payload(self) -> dict:
        """Map error into a dict suitable for JSON output."""
        return {
            "error_code": int(self.code),
            "error_name": self.code.name,
            "error_message": self.message,
        }


class ConfigError(ApnsError):
    """Raised when configuration values or TLS material are invalid."""

    default_code = ErrorCode.CONFIG_INVALID


class PayloadTooLarge(ApnsError):
    default_code = ErrorCode.PAYLOAD_TOO_LARGE

    def __init__(self, size: int, limit: int) -> None:
        self.size = size
        self.limit = limit
        super().__init__(f"The payload ({size} bytes) exceeds maximum allowed {limit} bytes")


class EncodingError(ApnsError):
    default_code = ErrorCode.ENCODING_FAILED


class ConnectError(ApnsError):
    """Dial or TLS handshake failure."""

    default_code = ErrorCode.CONNECT_FAILED


class TransportError(ApnsError):
    """Write or read failure on an established stream."""

    default_code = ErrorCode.TRANSPORT_FAILED


class StreamClosed(TransportError):
    default_code = ErrorCode.STREAM_CLOSED


class ChannelTimeout(ApnsError):
    """The read deadline elapsed before any byte arrived."""

    default_code = ErrorCode.READ_TIMEOUT


class ApplicationRejection(ApnsError):
    """The gateway answered with a documented non-zero status."""

    default_code = ErrorCode.REJECTED

    def __init__(self, status: int, message: str, transaction_id: Optional[int] = None, raw: bytes = b"") -> None:
        self.status = status
        self.transaction_id = transaction_id
        self.raw = raw
        super().__init__(message)

    def to_payload(self) -> dict:
        payload = super().to_payload()
        payload.update({"status": self.status, "transaction_id": self.transaction_id})
        return payload


class UnknownStatusError(ApnsError):
    default_code = ErrorCode.UNKNOWN_STATUS

    def __init__(self, raw: bytes) -> None:
        self.raw = raw
        super().__init__(f"Unknown error code {raw.hex()}")


class DecodingError(ApnsError):
    default_code = ErrorCode.MALFORMED_RECORD


class NotEnoughData(DecodingError):
    default_code = ErrorCode.NOT_ENOUGH_DATA


class MalformedRecord(DecodingError):
    default_code = ErrorCode.MALFORMED_RECORD


class FeedbackError(ApnsError):
    """Terminal failure of a feedback poller; the cause is chained."""

    default_code = ErrorCode.FEEDBACK_FAILED


__all__ = [
    "ErrorCode",
    "ApnsError",
    "ConfigError",
    "PayloadTooLarge",
    "EncodingError",
    "ConnectError",
    "TransportError",
    "StreamClosed",
    "ChannelTimeout",
    "ApplicationRejection",
    "UnknownStatusError",
    "DecodingError",
    "NotEnoughData",
    "MalformedRecord",
    "FeedbackError",
]
