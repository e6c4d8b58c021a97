"""Client for the APNs binary interface: notification gateway and feedback service."""

from apns.core import ChannelManager, ChannelState, SecureChannel
from apns.features import FeedbackPoller, PushClient, create_feedback_poller, create_push_client
from apns.protocol import ApnsError, FeedbackRecord, NotificationPayload, PushReceipt

__version__ = "0.1.0"

__all__ = [
    "ApnsError",
    "ChannelManager",
    "ChannelState",
    "FeedbackPoller",
    "FeedbackRecord",
    "NotificationPayload",
    "PushClient",
    "PushReceipt",
    "SecureChannel",
    "create_feedback_poller",
    "create_push_client",
]
