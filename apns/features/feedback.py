from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any, AsyncIterator, Dict, Optional, Union

from apns.config import APNS_CONFIG, resolve_endpoint
from apns.core.channel import ChannelManager, SecureChannel
from apns.protocol.constants import FEEDBACK_READ_SIZE
from apns.protocol.errors import ApnsError, ConnectError, ErrorCode, FeedbackError, StreamClosed
from apns.protocol.framing import FeedbackDecoder
from apns.protocol.messages import FeedbackRecord

logger = logging.getLogger(__name__)

_END = object()

QueueItem = Union[FeedbackRecord, object]


def _wrap(exc: Exception) -> FeedbackError:
    error = FeedbackError(f"Feedback polling failed: {exc}")
    error.__cause__ = exc
    return error


class FeedbackPoller:
    """
    Streams records from the feedback service in a background task.

    The service closes the stream once it has nothing more to report; the poller
    then reconnects up to `retry_attempts` times, sleeping `retry_backoff` seconds
    before each attempt. Exhausted retries, transport failures and malformed data
    end the sequence with a FeedbackError. A poller runs once: create a new one
    to poll again.
    """

    def __init__(
        self,
        channel: SecureChannel,
        read_size: int = FEEDBACK_READ_SIZE,
        retry_attempts: int = 3,
        retry_backoff: float = 30.0,
    ) -> None:
        self.manager = ChannelManager(channel)
        self.read_size = read_size
        self.retry_attempts = retry_attempts
        self.retry_backoff = retry_backoff
        self.error: Optional[FeedbackError] = None
        self._decoder = FeedbackDecoder()
        # one record in flight: the reader waits for the consumer
        self._queue: asyncio.Queue[QueueItem] = asyncio.Queue(maxsize=1)
        self._stop = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._run(), name="feedback-poller")

    async def stop(self) -> None:
        self._stop.set()
        if self._task:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task

    async def records(self) -> AsyncIterator[FeedbackRecord]:
        """Yield records in arrival order; raises FeedbackError if polling failed."""
        self.start()
        while True:
            if self._queue.empty() and self._task.done():
                item = _END
            else:
                item = await self._queue.get()
            if item is _END:
                if self.error is not None:
                    raise self.error
                return
            yield item

    def __aiter__(self) -> AsyncIterator[FeedbackRecord]:
        return self.records()

    async def _run(self) -> None:
        try:
            await self._poll()
        except asyncio.CancelledError:
            logger.info("Feedback poller stopped")
            raise
        except FeedbackError as exc:
            self.error = exc
        except ApnsError as exc:
            self.error = _wrap(exc)
        except Exception as exc:
            logger.exception("Feedback poller crashed: %s", exc)
            self.error = _wrap(exc)
        finally:
            if self.error is not None:
                logger.error("Feedback poller terminated: %s", self.error)
            await self.manager.shutdown()
            # a full queue is drained by records(), which then sees the task done
            if not self._queue.full():
                self._queue.put_nowait(_END)

    async def _poll(self) -> None:
        try:
            await self.manager.connect()
        except ConnectError as exc:
            raise FeedbackError(f"Initial connect to the feedback service failed: {exc}") from exc

        while not self._stop.is_set():
            try:
                chunk = await self.manager.read_with_deadline(self.read_size, None)
            except StreamClosed:
                if self._decoder.pending:
                    logger.warning("Discarding %s bytes of a partial feedback record", self._decoder.pending)
                self._decoder.reset()
                await self._reconnect()
                continue

            self._decoder.feed(chunk)
            for record in self._decoder.drain():
                logger.debug("Feedback record %s at %s", record.device_token, record.timestamp)
                await self._queue.put(record)

    async def _reconnect(self) -> None:
        for attempt in range(1, self.retry_attempts + 1):
            if self._stop.is_set():
                return
            await self.manager.shutdown()
            logger.info(
                "Feedback: try reconnection in %s sec (attempt %s/%s)",
                self.retry_backoff,
                attempt,
                self.retry_attempts,
            )
            if await self._wait_stopped(self.retry_backoff):
                return
            try:
                await self.manager.connect()
            except ConnectError as exc:
                logger.warning("Feedback reconnect attempt %s failed: %s", attempt, exc)
                continue
            logger.info("Feedback: reconnected")
            return
        raise FeedbackError(
            f"Failed reconnecting {self.retry_attempts} times to the feedback service",
            code=ErrorCode.RECONNECT_EXHAUSTED,
        )

    async def _wait_stopped(self, delay: float) -> bool:
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return False
        return True


def create_feedback_poller(config: Optional[Dict[str, Any]] = None) -> FeedbackPoller:
    config = config or APNS_CONFIG
    channel = SecureChannel.from_files(
        resolve_endpoint("feedback", config),
        config["cert_file"],
        config["key_file"],
        ca_file=config.get("ca_file") or None,
        connect_timeout=config["connect_timeout"],
    )
    return FeedbackPoller(
        channel,
        read_size=config["feedback_read_size"],
        retry_attempts=config["feedback_retry_attempts"],
        retry_backoff=config["feedback_retry_backoff"],
    )


__all__ = ["FeedbackPoller", "create_feedback_poller"]
