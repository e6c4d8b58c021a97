from __future__ import annotations

import asyncio
import json
import struct

import pytest

from apns.features import PushClient
from apns.protocol import (
    ApplicationRejection,
    ConnectError,
    NotificationPayload,
    PayloadTooLarge,
    StreamClosed,
    TransportError,
    UnknownStatusError,
)


def _transaction_id(packet: bytes) -> int:
    return struct.unpack_from("!I", packet, 1)[0]


@pytest.mark.asyncio
async def test_oversized_payload_never_touches_the_network(fake_channel, token):
    channel = fake_channel()
    client = PushClient(channel, max_payload_size=256)
    with pytest.raises(PayloadTooLarge):
        await client.send_payload(token, b"x" * 257)
    assert channel.opened == 0
    assert client.transaction_id == 0


@pytest.mark.asyncio
async def test_silence_within_read_window_is_success(fake_channel, fake_stream, token):
    stream = fake_stream()
    channel = fake_channel([stream])
    client = PushClient(channel, read_timeout=0.01)

    first = await client.send_payload(token, b'{"aps":{}}', expiration=60)
    second = await client.send_payload(token, b'{"aps":{}}')

    assert (first.transaction_id, second.transaction_id) == (1, 2)
    assert [_transaction_id(packet) for packet in stream.written] == [1, 2]
    assert stream.written[0][0] == 1
    assert struct.unpack_from("!I", stream.written[0], 5)[0] == first.expires_at
    assert client.manager.connected
    assert channel.opened == 1


@pytest.mark.asyncio
async def test_status_zero_reply_is_success(fake_channel, fake_stream, token):
    client = PushClient(fake_channel([fake_stream([bytes([8, 0, 0, 0, 0, 1])])]))
    receipt = await client.send_payload(token, b"{}")
    assert receipt.transaction_id == 1


@pytest.mark.asyncio
async def test_single_byte_reply_is_not_a_response(fake_channel, fake_stream, token):
    client = PushClient(fake_channel([fake_stream([b"\x08"])]))
    receipt = await client.send_payload(token, b"{}")
    assert receipt.transaction_id == 1


@pytest.mark.asyncio
async def test_invalid_token_rejection_keeps_connection(fake_channel, fake_stream, token):
    client = PushClient(fake_channel([fake_stream([bytes([8, 8, 0, 0, 0, 1])])]))
    with pytest.raises(ApplicationRejection) as excinfo:
        await client.send_payload(token, b"{}")
    assert "Invalid Token" in str(excinfo.value)
    assert excinfo.value.transaction_id == 1
    assert client.manager.connected


@pytest.mark.asyncio
async def test_split_error_response_is_read_whole(fake_channel, fake_stream, token):
    stream = fake_stream([bytes([8, 8]), bytes([0, 0, 0, 1])])
    client = PushClient(fake_channel([stream]))

    with pytest.raises(ApplicationRejection) as excinfo:
        await client.send_payload(token, b"{}")
    assert excinfo.value.transaction_id == 1
    assert stream.replies == []

    receipt = await client.send_payload(token, b"{}")
    assert receipt.transaction_id == 2


@pytest.mark.asyncio
async def test_error_response_followed_by_close(fake_channel, fake_stream, token):
    channel = fake_channel([fake_stream([bytes([8, 8, 0]), b""]), fake_stream()])
    client = PushClient(channel, read_timeout=0.01)

    with pytest.raises(ApplicationRejection):
        await client.send_payload(token, b"{}")
    assert not client.manager.connected

    await client.send_payload(token, b"{}")
    assert channel.opened == 2


@pytest.mark.asyncio
async def test_unknown_status_rejections(fake_channel, fake_stream, token):
    stream = fake_stream([bytes([8, 255, 0, 0, 0, 1]), bytes([8, 9, 0, 0, 0, 2])])
    client = PushClient(fake_channel([stream]))
    with pytest.raises(ApplicationRejection, match=r"None \(Unknown\)"):
        await client.send_payload(token, b"{}")
    with pytest.raises(UnknownStatusError, match="080900000002"):
        await client.send_payload(token, b"{}")


@pytest.mark.asyncio
async def test_write_failure_resets_connection(fake_channel, fake_stream, token):
    broken = fake_stream(write_error=BrokenPipeError("gone"))
    healthy = fake_stream()
    channel = fake_channel([broken, healthy])
    client = PushClient(channel, read_timeout=0.01)

    with pytest.raises(TransportError):
        await client.send_payload(token, b"{}")
    assert broken.closed
    assert not client.manager.connected

    receipt = await client.send_payload(token, b"{}")
    assert channel.opened == 2
    assert receipt.transaction_id == 2
    assert len(healthy.written) == 1


@pytest.mark.asyncio
async def test_closed_stream_after_write_resets_connection(fake_channel, fake_stream, token):
    channel = fake_channel([fake_stream([b""]), fake_stream()])
    client = PushClient(channel, read_timeout=0.01)
    with pytest.raises(StreamClosed):
        await client.send_payload(token, b"{}")
    assert not client.manager.connected
    await client.send_payload(token, b"{}")
    assert channel.opened == 2


@pytest.mark.asyncio
async def test_connect_failure_is_surfaced(fake_channel, token):
    client = PushClient(fake_channel([ConnectionRefusedError("refused")]))
    with pytest.raises(ConnectError):
        await client.send_payload(token, b"{}")
    assert client.transaction_id == 0


@pytest.mark.asyncio
async def test_concurrent_sends_are_serialised(fake_channel, fake_stream, token):
    stream = fake_stream()
    channel = fake_channel([stream])
    client = PushClient(channel, read_timeout=0.01)

    receipts = await asyncio.gather(*(client.send_payload(token, b"{}") for _ in range(5)))

    assert sorted(r.transaction_id for r in receipts) == [1, 2, 3, 4, 5]
    assert [_transaction_id(packet) for packet in stream.written] == [1, 2, 3, 4, 5]
    assert channel.opened == 1


@pytest.mark.asyncio
async def test_transaction_id_wraps(fake_channel, fake_stream, token):
    client = PushClient(fake_channel([fake_stream()]), read_timeout=0.01)
    client._transaction_id = 0xFFFFFFFF
    receipt = await client.send_payload(token, b"{}")
    assert receipt.transaction_id == 0


@pytest.mark.asyncio
async def test_structured_payloads_and_hex_tokens(fake_channel, fake_stream, token):
    stream = fake_stream()
    client = PushClient(fake_channel([stream]), read_timeout=0.01)

    await client.send_payload(token.hex(), {"aps": {"alert": "hi"}})
    await client.send_payload(token, NotificationPayload(alert="hi"))

    first, second = stream.written
    assert _transaction_id(first) == 1
    assert first[9:] == second[9:]
    body = first[1 + 4 + 4 + 2 + 32 + 2 :]
    assert json.loads(body) == {"aps": {"alert": "hi"}}
