from .common import parse_device_token, token_to_hex

__all__ = ["parse_device_token", "token_to_hex"]
