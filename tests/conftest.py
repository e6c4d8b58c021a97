from __future__ import annotations

import asyncio
from typing import List, Optional, Union

import pytest

Reply = Union[bytes, BaseException]


class FakeStream:
    """In-memory SecureStream: scripted reads, recorded writes."""

    def __init__(self, replies: Optional[List[Reply]] = None, write_error: Optional[BaseException] = None) -> None:
        self.replies: List[Reply] = list(replies or [])
        self.write_error = write_error
        self.written: List[bytes] = []
        self.closed = False

    async def write(self, data: bytes) -> None:
        if self.write_error is not None:
            raise self.write_error
        self.written.append(bytes(data))

    async def read(self, size: int, timeout: Optional[float] = None) -> bytes:
        if not self.replies:
            if timeout is None:
                await asyncio.Event().wait()
            raise asyncio.TimeoutError()
        item = self.replies.pop(0)
        if isinstance(item, BaseException):
            raise item
        if len(item) > size:
            self.replies.insert(0, item[size:])
            item = item[:size]
        return item

    async def close(self) -> None:
        self.closed = True


class FakeChannel:
    """Hands out scripted streams (or raises scripted errors) on each open()."""

    endpoint = "gateway.test:2195"

    def __init__(self, streams: Optional[List[Union[FakeStream, BaseException]]] = None) -> None:
        self.streams = list(streams or [])
        self.opened = 0

    async def open(self) -> FakeStream:
        self.opened += 1
        if not self.streams:
            raise ConnectionRefusedError("no stream scripted")
        item = self.streams.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item


@pytest.fixture
def fake_stream():
    return FakeStream


@pytest.fixture
def fake_channel():
    return FakeChannel


@pytest.fixture
def token() -> bytes:
    return bytes(range(32))
