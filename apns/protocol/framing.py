from __future__ import annotations

import struct
import time
from datetime import timedelta
from typing import Iterator, Optional, Union

from .commands import STATUS_TEXT, Command, StatusCode, is_known_status
from .constants import ERROR_RESPONSE_MIN_SIZE, ERROR_RESPONSE_SIZE, FEEDBACK_HEADER_SIZE
from .errors import ApplicationRejection, EncodingError, MalformedRecord, NotEnoughData, UnknownStatusError
from .messages import ErrorResponse, ExtendedPush, FeedbackRecord, LegacyPush

FEEDBACK_HEADER = struct.Struct("!IH")
TRANSACTION_ID = struct.Struct("!I")

Expiration = Union[timedelta, int, float]


def _pack(fmt: str, *values: object) -> bytes:
    try:
        return struct.pack(fmt, *values)
    except struct.error as exc:
        raise EncodingError(f"Encode failed: {exc}") from exc


def _seconds(expiration: Expiration) -> float:
    if isinstance(expiration, timedelta):
        return expiration.total_seconds()
    return float(expiration)


def expiry_timestamp(expiration: Expiration, now: Optional[float] = None) -> int:
    """Absolute expiry in whole UTC seconds: now plus the relative expiration."""
    current = time.time() if now is None else now
    return int(current + _seconds(expiration))


def encode_legacy_push(token: bytes, payload: bytes) -> bytes:
    """Encode a command 0 notification: cmd, token length, token, payload length, payload."""
    token, payload = bytes(token), bytes(payload)
    return _pack(
        f"!BH{len(token)}sH{len(payload)}s",
        Command.LEGACY_PUSH,
        len(token),
        token,
        len(payload),
        payload,
    )


def encode_extended_push(
    transaction_id: int,
    expiration: Expiration,
    token: bytes,
    payload: bytes,
    now: Optional[float] = None,
) -> bytes:
    """
    Encode a command 1 notification.

    Layout: cmd (u8) | transaction id (u32) | expiry (u32) | token length (u16) | token |
    payload length (u16) | payload, all big-endian.
    """
    token, payload = bytes(token), bytes(payload)
    return _pack(
        f"!BIIH{len(token)}sH{len(payload)}s",
        Command.EXTENDED_PUSH,
        transaction_id,
        expiry_timestamp(expiration, now),
        len(token),
        token,
        len(payload),
        payload,
    )


def encode_packet(packet: Union[LegacyPush, ExtendedPush], now: Optional[float] = None) -> bytes:
    if isinstance(packet, ExtendedPush):
        return encode_extended_push(packet.transaction_id, packet.expiration, packet.token, packet.payload, now=now)
    if isinstance(packet, LegacyPush):
        return encode_legacy_push(packet.token, packet.payload)
    raise EncodingError(f"Unsupported packet type {type(packet).__name__}")


def decode_error_response(data: bytes) -> ErrorResponse:
    """Decode the error-response frame the gateway sends before dropping a connection."""
    if len(data) < ERROR_RESPONSE_MIN_SIZE:
        raise NotEnoughData(f"Error response needs {ERROR_RESPONSE_MIN_SIZE} bytes, got {len(data)}")
    transaction_id = None
    if len(data) >= ERROR_RESPONSE_SIZE:
        (transaction_id,) = TRANSACTION_ID.unpack_from(data, 2)
    return ErrorResponse(
        command=data[0],
        status=data[1],
        transaction_id=transaction_id,
        raw=bytes(data[:ERROR_RESPONSE_SIZE]),
    )


def raise_for_status(response: ErrorResponse) -> None:
    """Raise the rejection an error response stands for; status 0 passes."""
    if response.status == StatusCode.NO_ERRORS:
        return
    if is_known_status(response.status):
        raise ApplicationRejection(
            response.status,
            STATUS_TEXT[response.status],
            transaction_id=response.transaction_id,
            raw=response.raw,
        )
    raise UnknownStatusError(response.raw)


def encode_feedback_record(timestamp: int, token: bytes) -> bytes:
    token = bytes(token)
    return _pack(f"!IH{len(token)}s", timestamp, len(token), token)


def decode_feedback_record(data: bytes) -> FeedbackRecord:
    """Decode one feedback record from the start of `data`; trailing bytes are ignored."""
    if len(data) < FEEDBACK_HEADER_SIZE:
        raise NotEnoughData("Not enough data in buffer")
    timestamp, size = FEEDBACK_HEADER.unpack_from(data)
    if FEEDBACK_HEADER_SIZE + size > len(data):
        raise MalformedRecord(
            f"The declared device token size ({size}) is bigger than the given buffer ({len(data)} bytes)"
        )
    token = bytes(data[FEEDBACK_HEADER_SIZE : FEEDBACK_HEADER_SIZE + size])
    return FeedbackRecord(timestamp=timestamp, device_token=token.hex())


class FeedbackDecoder:
    """Reassembles feedback records from stream chunks of arbitrary size."""

    def __init__(self) -> None:
        self._buffer = bytearray()

    @property
    def pending(self) -> int:
        return len(self._buffer)

    def reset(self) -> None:
        self._buffer.clear()

    def feed(self, chunk: bytes) -> None:
        self._buffer.extend(chunk)

    def drain(self) -> Iterator[FeedbackRecord]:
        """Yield every complete record buffered so far, in arrival order."""
        while len(self._buffer) >= FEEDBACK_HEADER_SIZE:
            _, size = FEEDBACK_HEADER.unpack_from(self._buffer)
            end = FEEDBACK_HEADER_SIZE + size
            if len(self._buffer) < end:
                return
            record = decode_feedback_record(bytes(self._buffer[:end]))
            del self._buffer[:end]
            yield record


__all__ = [
    "expiry_timestamp",
    "encode_legacy_push",
    "encode_extended_push",
    "encode_packet",
    "decode_error_response",
    "raise_for_status",
    "encode_feedback_record",
    "decode_feedback_record",
    "FeedbackDecoder",
]
