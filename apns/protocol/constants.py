"""Protocol-wide constants for the APNs binary interface."""

PUSH_ENDPOINT = "gateway.push.apple.com:2195"
PUSH_ENDPOINT_SANDBOX = "gateway.sandbox.push.apple.com:2195"
FEEDBACK_ENDPOINT = "feedback.push.apple.com:2196"
FEEDBACK_ENDPOINT_SANDBOX = "feedback.sandbox.push.apple.com:2196"

MAX_PAYLOAD_SIZE = 256  # bytes, per Apple's limits for the binary interface
MAX_FIELD_SIZE = 0xFFFF  # u16 length prefix
DEFAULT_TOKEN_SIZE = 32

ERROR_RESPONSE_SIZE = 6  # command + status + transaction id
ERROR_RESPONSE_MIN_SIZE = 2
FEEDBACK_HEADER_SIZE = 6  # timestamp + token length
FEEDBACK_READ_SIZE = FEEDBACK_HEADER_SIZE + DEFAULT_TOKEN_SIZE

DEFAULT_READ_TIMEOUT = 0.15  # seconds
ENCODING = "utf-8"

__all__ = [
    "PUSH_ENDPOINT",
    "PUSH_ENDPOINT_SANDBOX",
    "FEEDBACK_ENDPOINT",
    "FEEDBACK_ENDPOINT_SANDBOX",
    "MAX_PAYLOAD_SIZE",
    "MAX_FIELD_SIZE",
    "DEFAULT_TOKEN_SIZE",
    "ERROR_RESPONSE_SIZE",
    "ERROR_RESPONSE_MIN_SIZE",
    "FEEDBACK_HEADER_SIZE",
    "FEEDBACK_READ_SIZE",
    "DEFAULT_READ_TIMEOUT",
    "ENCODING",
]
