from .feedback import FeedbackPoller, create_feedback_poller
from .push import PushClient, create_push_client

__all__ = ["FeedbackPoller", "PushClient", "create_feedback_poller", "create_push_client"]
