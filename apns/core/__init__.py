from .channel import ChannelManager, ChannelState, SecureChannel, SecureStream, create_client_ssl_context

__all__ = ["ChannelManager", "ChannelState", "SecureChannel", "SecureStream", "create_client_ssl_context"]
