"""Progress channel and the HTTP stream that feeds it."""
import asyncio
import json
import logging
from typing import Any, AsyncIterator

import httpx

from src.config.backend import BackendConfig
from src.execution.events import (
    ALL_COMPLETE,
    BatchCompleteEvent,
    CompleteEvent,
    FailEvent,
    ProgressEvent,
    RunningEvent,
    parse_progress_message,
)


logger = logging.getLogger(__name__)

_EVENT_TYPES = (RunningEvent, CompleteEvent, FailEvent, BatchCompleteEvent)
_CLOSED = object()


class ProgressChannel:
    """Queue of typed progress events between the runner and the engine.

    Producers publish raw messages or events; a single consumer iterates
    with ``async for``. Iteration ends after ``close()``.
    """

    def __init__(self, maxsize: int = 0):
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._closed = False

    @property
    def is_closed(self) -> bool:
        return self._closed

    def qsize(self) -> int:
        return self._queue.qsize()

    def _coerce(self, message: dict[str, Any] | ProgressEvent) -> ProgressEvent | None:
        if isinstance(message, _EVENT_TYPES):
            return message
        return parse_progress_message(message)

    async def publish(self, message: dict[str, Any] | ProgressEvent) -> bool:
        """Enqueue a message, waiting if the channel is full.

        Returns:
            False if the channel is closed or the message was dropped.
        """
        if self._closed:
            return False
        event = self._coerce(message)
        if event is None:
            return False
        await self._queue.put(event)
        return True

    def publish_nowait(self, message: dict[str, Any] | ProgressEvent) -> bool:
        """Enqueue without waiting.

        Raises:
            asyncio.QueueFull: If the channel is bounded and full.
        """
        if self._closed:
            return False
        event = self._coerce(message)
        if event is None:
            return False
        self._queue.put_nowait(event)
        return True

    async def close(self) -> None:
        """Stop accepting messages and end iteration once drained."""
        if self._closed:
            return
        self._closed = True
        await self._queue.put(_CLOSED)

    async def __aiter__(self) -> AsyncIterator[ProgressEvent]:
        while True:
            item = await self._queue.get()
            if item is _CLOSED:
                return
            yield item


class HttpProgressSource:
    """Streams newline-delimited JSON progress messages into a channel.

    Reads ``GET /api/experiment/progress?executionId=...`` until the
    backend sends ``ALL_COMPLETE`` or closes the stream.
    """

    def __init__(self, config: BackendConfig, client: httpx.AsyncClient | None = None):
        self._config = config
        self._client = client

    async def stream_into(self, execution_id: str, channel: ProgressChannel) -> int:
        """Forward messages for one execution into ``channel``.

        Returns:
            Number of messages accepted by the channel.

        Raises:
            httpx.HTTPError: If the stream cannot be opened or breaks.
        """
        accepted = 0
        async with self._config.client(self._client) as client:
            async with client.stream(
                "GET",
                "/api/experiment/progress",
                params={"executionId": execution_id},
                timeout=self._config.progress_timeout_seconds,
            ) as response:
                response.raise_for_status()
                async for line in response.aiter_lines():
                    if not line.strip():
                        continue
                    try:
                        message = json.loads(line)
                    except json.JSONDecodeError:
                        logger.warning(f"Skipping undecodable progress line: {line[:200]}")
                        continue
                    if not isinstance(message, dict):
                        logger.warning(f"Skipping non-object progress line: {line[:200]}")
                        continue

                    if await channel.publish(message):
                        accepted += 1
                    if message.get("type") == ALL_COMPLETE:
                        break

        logger.info(f"Progress stream for {execution_id} ended after {accepted} messages")
        return accepted
