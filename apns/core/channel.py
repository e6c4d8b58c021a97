from __future__ import annotations

import asyncio
import logging
import ssl
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Optional, Union

from apns.config import split_endpoint
from apns.protocol.errors import ChannelTimeout, ConfigError, ConnectError, ErrorCode, StreamClosed, TransportError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def create_client_ssl_context(
    cert_file: PathLike,
    key_file: PathLike,
    ca_file: Optional[PathLike] = None,
) -> ssl.SSLContext:
    """Build a client context presenting the provider certificate to the gateway."""
    cert_path = Path(cert_file)
    key_path = Path(key_file)
    if not cert_path.exists():
        raise ConfigError(f"Certificate file not found: {cert_path}")
    if not key_path.exists():
        raise ConfigError(f"Private key file not found: {key_path}")
    try:
        context = ssl.create_default_context(ssl.Purpose.SERVER_AUTH)
        context.load_cert_chain(certfile=str(cert_path), keyfile=str(key_path))
        if ca_file:
            context.load_verify_locations(cafile=str(ca_file))
    except (ssl.SSLError, OSError) as exc:
        raise ConfigError(f"Cannot load TLS identity: {exc}") from exc
    return context


@dataclass
class SecureStream:
    """One open byte stream; no retry or buffering."""

    reader: asyncio.StreamReader
    writer: asyncio.StreamWriter

    async def write(self, data: bytes) -> None:
        self.writer.write(data)
        await self.writer.drain()

    async def read(self, size: int, timeout: Optional[float] = None) -> bytes:
        """Read up to `size` bytes; `timeout=None` waits indefinitely."""
        if timeout is None:
            return await self.reader.read(size)
        return await asyncio.wait_for(self.reader.read(size), timeout=timeout)

    async def close(self) -> None:
        if self.writer.is_closing():
            return
        self.writer.close()
        await self.writer.wait_closed()


class SecureChannel:
    """Dials an endpoint and performs the TLS handshake. `ssl_context=None` opens plain TCP."""

    def __init__(
        self,
        endpoint: str,
        ssl_context: Optional[ssl.SSLContext] = None,
        connect_timeout: float = 10.0,
    ) -> None:
        self.endpoint = endpoint
        self.host, self.port = split_endpoint(endpoint)
        self.ssl_context = ssl_context
        self.connect_timeout = connect_timeout

    @classmethod
    def from_files(
        cls,
        endpoint: str,
        cert_file: PathLike,
        key_file: PathLike,
        ca_file: Optional[PathLike] = None,
        connect_timeout: float = 10.0,
    ) -> "SecureChannel":
        context = create_client_ssl_context(cert_file, key_file, ca_file)
        return cls(endpoint, context, connect_timeout=connect_timeout)

    async def open(self) -> SecureStream:
        reader, writer = await asyncio.wait_for(
            asyncio.open_connection(
                self.host,
                self.port,
                ssl=self.ssl_context,
                server_hostname=self.host if self.ssl_context else None,
            ),
            timeout=self.connect_timeout,
        )
        return SecureStream(reader=reader, writer=writer)


class ChannelState(StrEnum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class ChannelManager:
    """Owns one logical connection: connect, write, read with deadline, shutdown."""

    def __init__(self, channel: SecureChannel) -> None:
        self.channel = channel
        self.state = ChannelState.DISCONNECTED
        self._stream: Optional[SecureStream] = None

    @property
    def connected(self) -> bool:
        return self.state is ChannelState.CONNECTED and self._stream is not None

    async def connect(self) -> None:
        if self.connected:
            return
        if self._stream is not None:
            await self.shutdown()

        self.state = ChannelState.CONNECTING
        try:
            stream = await self.channel.open()
        except (OSError, asyncio.TimeoutError) as exc:
            self.state = ChannelState.DISCONNECTED
            logger.warning("Connect to %s failed: %s", self.channel.endpoint, exc)
            raise ConnectError(f"Cannot connect to {self.channel.endpoint}: {exc}") from exc
        self._stream = stream
        self.state = ChannelState.CONNECTED
        logger.info("Connected to %s", self.channel.endpoint)

    async def shutdown(self) -> None:
        stream, self._stream = self._stream, None
        self.state = ChannelState.DISCONNECTED
        if stream is None:
            return
        try:
            await stream.close()
        except OSError as exc:
            logger.debug("Error closing the connection to %s: %s", self.channel.endpoint, exc)
        logger.info("Connection to %s closed", self.channel.endpoint)

    def _require_stream(self) -> SecureStream:
        if not self.connected:
            raise TransportError(f"Not connected to {self.channel.endpoint}", code=ErrorCode.NOT_CONNECTED)
        assert self._stream is not None
        return self._stream

    async def write_frame(self, data: bytes) -> None:
        stream = self._require_stream()
        try:
            await stream.write(data)
        except OSError as exc:
            raise TransportError(f"Write failed: {exc}") from exc
        logger.debug("Wrote %s bytes to %s", len(data), self.channel.endpoint)

    async def read_with_deadline(self, size: int, timeout: Optional[float]) -> bytes:
        """
        Read up to `size` bytes.

        Raises ChannelTimeout when `timeout` elapses with nothing read, StreamClosed on
        end of stream and TransportError on any other I/O failure.
        """
        stream = self._require_stream()
        try:
            data = await stream.read(size, timeout)
        except asyncio.TimeoutError as exc:
            raise ChannelTimeout(f"No data within {timeout}s") from exc
        except asyncio.IncompleteReadError as exc:
            raise StreamClosed(f"Stream closed by {self.channel.endpoint}: {exc}") from exc
        except OSError as exc:
            raise TransportError(f"Read failed: {exc}") from exc
        if not data:
            raise StreamClosed(f"Stream closed by {self.channel.endpoint}")
        logger.debug("Read %s bytes from %s", len(data), self.channel.endpoint)
        return data


__all__ = [
    "ChannelManager",
    "ChannelState",
    "SecureChannel",
    "SecureStream",
    "create_client_ssl_context",
]
