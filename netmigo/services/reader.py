"""Line reader worker feeding a bounded queue.

One LineReader runs per active output stream. It reads newline-delimited
output as an independent task and hands lines, in emission order, to a
single consumer through a bounded asyncio.Queue. The end of the stream
(or a read error) is delivered as a final StreamEnd item.
"""

import asyncio
import logging
from contextlib import suppress
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StreamEnd:
    """End-of-stream marker; ``error`` is set when the read failed."""

    error: Exception | None = None


class LineReader:
    """Pumps lines from an asyncssh stream reader into a queue."""

    def __init__(self, stream: Any, maxsize: int = 100) -> None:
        """Initialize the reader.

        Args:
            stream: Object with an async readline() (an SSHReader)
            maxsize: Queue bound; the reader blocks when it is full
        """
        self._stream = stream
        self.queue: asyncio.Queue[str | StreamEnd] = asyncio.Queue(maxsize)
        self._task: asyncio.Task[None] | None = None
        self._end: StreamEnd | None = None

    def start(self) -> "LineReader":
        """Start the reader task."""
        self._task = asyncio.create_task(self._run())
        return self

    async def _run(self) -> None:
        try:
            while True:
                line = await self._stream.readline()
                if not line:
                    logger.debug("Reached EOF on stdout")
                    await self.queue.put(StreamEnd())
                    return
                await self.queue.put(line)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("Error reading stdout: %s", e)
            await self.queue.put(StreamEnd(e))

    @property
    def ended(self) -> StreamEnd | None:
        """The StreamEnd the consumer received, if any."""
        return self._end

    async def get(self, timeout: float) -> str | StreamEnd:
        """Wait for the next line or the end of the stream.

        Once the end has been received it is returned again immediately.

        Raises:
            asyncio.TimeoutError: If nothing arrives within ``timeout``
        """
        if self._end is not None:
            return self._end
        item = await asyncio.wait_for(self.queue.get(), timeout)
        if isinstance(item, StreamEnd):
            self._end = item
        return item

    async def drain(self, timeout: float) -> list[str]:
        """Collect lines until the stream ends or ``timeout`` elapses."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        lines: list[str] = []
        while self._end is None:
            remaining = deadline - loop.time()
            if remaining <= 0:
                break
            try:
                item = await self.get(remaining)
            except asyncio.TimeoutError:
                break
            if isinstance(item, str):
                lines.append(item)
        return lines

    async def stop(self) -> None:
        """Cancel the reader task if it is still running."""
        if self._task is None or self._task.done():
            return
        self._task.cancel()
        with suppress(asyncio.CancelledError):
            await self._task
