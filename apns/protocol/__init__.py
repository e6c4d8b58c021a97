"""
Binary protocol package: command and status tables, pydantic message models,
packet codec and payload validation for the APNs binary interface.
"""

from .commands import STATUS_TEXT, Command, StatusCode, describe_status, is_known_status
from .constants import (
    FEEDBACK_ENDPOINT,
    FEEDBACK_ENDPOINT_SANDBOX,
    FEEDBACK_READ_SIZE,
    MAX_PAYLOAD_SIZE,
    PUSH_ENDPOINT,
    PUSH_ENDPOINT_SANDBOX,
)
from .errors import (
    ApnsError,
    ApplicationRejection,
    ChannelTimeout,
    ConfigError,
    ConnectError,
    DecodingError,
    EncodingError,
    ErrorCode,
    FeedbackError,
    MalformedRecord,
    NotEnoughData,
    PayloadTooLarge,
    StreamClosed,
    TransportError,
    UnknownStatusError,
)
from .framing import (
    FeedbackDecoder,
    decode_error_response,
    decode_feedback_record,
    encode_extended_push,
    encode_feedback_record,
    encode_legacy_push,
    encode_packet,
    raise_for_status,
)
from .messages import (
    ErrorResponse,
    ExtendedPush,
    FeedbackRecord,
    LegacyPush,
    NotificationPayload,
    OutboundPacket,
    PushReceipt,
    encode_payload,
)
from .validator import load_schema, validate_payload

__all__ = [
    "Command",
    "StatusCode",
    "STATUS_TEXT",
    "describe_status",
    "is_known_status",
    "PUSH_ENDPOINT",
    "PUSH_ENDPOINT_SANDBOX",
    "FEEDBACK_ENDPOINT",
    "FEEDBACK_ENDPOINT_SANDBOX",
    "FEEDBACK_READ_SIZE",
    "MAX_PAYLOAD_SIZE",
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
    "encode_legacy_push",
    "encode_extended_push",
    "encode_packet",
    "decode_error_response",
    "raise_for_status",
    "encode_feedback_record",
    "decode_feedback_record",
    "FeedbackDecoder",
    "LegacyPush",
    "ExtendedPush",
    "OutboundPacket",
    "ErrorResponse",
    "FeedbackRecord",
    "PushReceipt",
    "NotificationPayload",
    "encode_payload",
    "load_schema",
    "validate_payload",
]
