"""Task-plus-queue delivery of normalized messages.

:class:`OutputPump` wraps a :class:`ParseSession` in an explicit lifecycle:
construct it with a chunk source, :meth:`~OutputPump.start` it, consume
:meth:`~OutputPump.messages`, and :meth:`~OutputPump.stop` it. The queue is
bounded, so a slow consumer suspends the session between chunks.
"""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator

from arcoutput.config import ParserConfig
from arcoutput.models import NormalizedMessage, RunStatus
from arcoutput.session import ChunkSource, ParseSession

logger = logging.getLogger(__name__)


class OutputPump:
    """Runs a parse session in a background task feeding a bounded queue."""

    def __init__(
        self,
        source: ChunkSource,
        config: ParserConfig | None = None,
        status: RunStatus | str = RunStatus.SUCCESS,
    ) -> None:
        config = config or ParserConfig()
        self.session = ParseSession(config)
        self._source = source
        self._status = status
        self._queue: asyncio.Queue[NormalizedMessage] = asyncio.Queue(maxsize=config.queue_size)
        self._task: asyncio.Task | None = None

    @property
    def status(self) -> RunStatus | None:
        return self.session.status

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the session on the running event loop.

        Raises:
            RuntimeError: If the pump was already started.
        """
        if self._task is not None:
            raise RuntimeError("OutputPump already started")
        self._task = asyncio.create_task(self._pump(), name="arcoutput-pump")
        logger.debug("Pump started queue_size=%d", self._queue.maxsize)

    async def _pump(self) -> None:
        messages = self.session.run(self._source, self._status)
        try:
            async for message in messages:
                await self._queue.put(message)
        finally:
            # aborts the session if cancelled while blocked on put()
            await messages.aclose()

    async def messages(self) -> AsyncIterator[NormalizedMessage]:
        """Yield messages until the session ends.

        Re-raises the upstream failure after the last delivered message.
        Ends quietly if the pump was stopped.
        """
        if self._task is None:
            raise RuntimeError("OutputPump not started")

        while True:
            getter = asyncio.ensure_future(self._queue.get())
            try:
                done, _ = await asyncio.wait(
                    {getter, self._task}, return_when=asyncio.FIRST_COMPLETED,
                )
            finally:
                # also runs when the consumer is cancelled inside wait()
                if not getter.done():
                    getter.cancel()
            if getter in done:
                yield getter.result()
                continue
            break

        # Task is done; whatever it queued before ending is still deliverable
        while not self._queue.empty():
            yield self._queue.get_nowait()

        if self._task.cancelled():
            return
        exc = self._task.exception()
        if exc is not None:
            raise exc

    async def stop(self) -> None:
        """Cancel the session if still running and wait for it to end.

        Partial lines are discarded. Safe to call more than once.
        """
        if self._task is None:
            return
        if not self._task.done():
            logger.debug("Stopping pump before end of input")
            self._task.cancel()
        await asyncio.gather(self._task, return_exceptions=True)
