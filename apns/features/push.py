from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Mapping
from typing import Any, Dict, Optional, Union

from apns.config import APNS_CONFIG, resolve_endpoint
from apns.core.channel import ChannelManager, SecureChannel
from apns.protocol.constants import DEFAULT_READ_TIMEOUT, ENCODING, ERROR_RESPONSE_SIZE, MAX_PAYLOAD_SIZE
from apns.protocol.errors import ChannelTimeout, NotEnoughData, PayloadTooLarge, StreamClosed, TransportError
from apns.protocol.framing import (
    Expiration,
    decode_error_response,
    encode_extended_push,
    expiry_timestamp,
    raise_for_status,
)
from apns.protocol.messages import U32_MAX, NotificationPayload, PushReceipt, encode_payload
from apns.utils import parse_device_token, token_to_hex

logger = logging.getLogger(__name__)

PayloadLike = Union[bytes, bytearray, str, Mapping, NotificationPayload]


def coerce_payload(payload: PayloadLike) -> bytes:
    if isinstance(payload, NotificationPayload):
        return payload.to_bytes()
    if isinstance(payload, Mapping):
        return encode_payload(dict(payload))
    if isinstance(payload, str):
        return payload.encode(ENCODING)
    return bytes(payload)


class PushClient:
    """
    Sends notifications through one gateway connection shared by every caller.

    The gateway only answers when it rejects a notification, so each send waits
    `read_timeout` seconds for an error frame and treats silence as acceptance.
    """

    def __init__(
        self,
        channel: SecureChannel,
        max_payload_size: int = MAX_PAYLOAD_SIZE,
        read_timeout: float = DEFAULT_READ_TIMEOUT,
        default_expiration: Expiration = 3600,
    ) -> None:
        self.manager = ChannelManager(channel)
        self.max_payload_size = max_payload_size
        self.read_timeout = read_timeout
        self.default_expiration = default_expiration
        self._transaction_id = 0
        self._lock = asyncio.Lock()

    @property
    def transaction_id(self) -> int:
        return self._transaction_id

    async def __aenter__(self) -> "PushClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        async with self._lock:
            await self.manager.shutdown()

    async def _read_reply(self) -> bytes:
        """Read one error-response frame, collecting its tail if it arrives split."""
        reply = await self.manager.read_with_deadline(ERROR_RESPONSE_SIZE, self.read_timeout)
        while 0 < len(reply) < ERROR_RESPONSE_SIZE:
            try:
                reply += await self.manager.read_with_deadline(ERROR_RESPONSE_SIZE - len(reply), self.read_timeout)
            except ChannelTimeout:
                logger.debug("Error response cut short at %s bytes: %s", len(reply), reply.hex())
                break
            except StreamClosed:
                # the gateway closes after reporting an error; decode what arrived
                await self.manager.shutdown()
                break
        return reply

    async def send_payload(
        self,
        token: Union[str, bytes],
        payload: PayloadLike,
        expiration: Optional[Expiration] = None,
    ) -> PushReceipt:
        """Send one notification; raises on rejection or transport failure."""
        token_bytes = parse_device_token(token)
        body = coerce_payload(payload)
        if len(body) > self.max_payload_size:
            raise PayloadTooLarge(len(body), self.max_payload_size)
        if expiration is None:
            expiration = self.default_expiration

        async with self._lock:
            await self.manager.connect()

            self._transaction_id = (self._transaction_id + 1) & U32_MAX
            transaction_id = self._transaction_id
            now = time.time()
            packet = encode_extended_push(transaction_id, expiration, token_bytes, body, now=now)
            receipt = PushReceipt(
                transaction_id=transaction_id,
                expires_at=expiry_timestamp(expiration, now),
                device_token=token_to_hex(token_bytes),
            )

            try:
                await self.manager.write_frame(packet)
            except TransportError as exc:
                logger.warning("Send of transaction %s failed: %s", transaction_id, exc)
                await self.manager.shutdown()
                raise

            try:
                reply = await self._read_reply()
            except ChannelTimeout:
                logger.debug("Transaction %s accepted (no reply)", transaction_id)
                return receipt
            except TransportError as exc:
                logger.warning("Reading reply for transaction %s failed: %s", transaction_id, exc)
                await self.manager.shutdown()
                raise

            try:
                response = decode_error_response(reply)
            except NotEnoughData:
                logger.debug("Ignoring %s byte reply for transaction %s", len(reply), transaction_id)
                return receipt

            if response.status:
                logger.warning(
                    "Gateway rejected transaction %s: %s (%s)",
                    response.transaction_id,
                    response.status_text,
                    reply.hex(),
                )
            raise_for_status(response)
            return receipt


def create_push_client(config: Optional[Dict[str, Any]] = None) -> PushClient:
    config = config or APNS_CONFIG
    channel = SecureChannel.from_files(
        resolve_endpoint("push", config),
        config["cert_file"],
        config["key_file"],
        ca_file=config.get("ca_file") or None,
        connect_timeout=config["connect_timeout"],
    )
    return PushClient(
        channel,
        max_payload_size=config["max_payload_size"],
        read_timeout=config["read_timeout"],
        default_expiration=config["default_expiration"],
    )


__all__ = ["PushClient", "coerce_payload", "create_push_client"]
