from __future__ import annotations

import binascii
from typing import Union

from apns.protocol.errors import EncodingError


def parse_device_token(token: Union[str, bytes, bytearray]) -> bytes:
    """Accept raw token bytes or their hex rendering (spaces and <> tolerated)."""
    if isinstance(token, (bytes, bytearray)):
        return bytes(token)
    cleaned = token.strip().strip("<>").replace(" ", "")
    if not cleaned:
        raise EncodingError("Device token is empty")
    try:
        return bytes.fromhex(cleaned)
    except ValueError as exc:
        raise EncodingError(f"Device token is not valid hex: {token!r}") from exc


def token_to_hex(token: bytes) -> str:
    return binascii.hexlify(token).decode("ascii")


__all__ = ["parse_device_token", "token_to_hex"]
