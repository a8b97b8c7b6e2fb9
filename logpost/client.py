"""Logpost client — orchestrates buffer, flush timer, compression, transmitter
and metrics."""

import asyncio
import logging
from typing import Optional

from logpost.affinity import SessionAffinity
from logpost.batch_buffer import BatchBuffer
from logpost.compression import compress_async
from logpost.config import LogpostConfig
from logpost.metrics import DeliveryMetrics
from logpost.scheduler import FlushTimer
from logpost.serializer import serialize_batch
from logpost.transmitter import Transmitter


class Logpost:
    """Batches log lines and posts each batch to an HTTP collector.

    Must be created from inside a running event loop, and ``submit`` must be
    called from that loop's thread. ``submit`` never waits on the network: a
    full buffer is drained into a new task that compresses (optionally) and
    posts it, while new messages keep landing in a fresh buffer.

    Delivery is best effort. Failed batches are logged through *logger*
    and dropped; nothing is raised back to the producer.
    """

    def __init__(
        self,
        config: LogpostConfig,
        logger: Optional[logging.Logger] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        self._config = config
        self._logger = logger or logging.getLogger(__name__)
        self._loop = loop or asyncio.get_running_loop()

        self._metrics = DeliveryMetrics()
        self._affinity = SessionAffinity(enabled=config.cookies)
        self._transmitter = Transmitter(
            config, self._metrics, self._affinity, self._logger
        )
        self._buffer = BatchBuffer(config.max_messages)
        self._timer = FlushTimer(config.flush_interval, self.flush, self._loop)
        self._inflight: set[asyncio.Task] = set()
        self._next_request_id = 1

        self._logger.debug(
            "host: %s, path: %s, gzip: %s, cookies: %s, max_messages: %d, "
            "timeout_millis: %d, max_sockets: %d",
            config.host,
            config.path,
            config.gzip,
            config.cookies,
            config.max_messages,
            config.timeout_millis,
            config.max_sockets,
        )
        self._timer.arm()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def submit(self, message: str):
        """Buffer a message, flushing right away once the buffer is full."""
        if self._buffer.append(message):
            self._logger.debug("buffer full")
            self.flush()

    def flush(self):
        """Drain the buffer into one request and rearm the flush timer.

        An empty buffer sends nothing but still rearms the timer.
        """
        self._timer.cancel()
        try:
            batch = self._buffer.drain()
            if batch:
                self._dispatch(batch)
        except Exception:
            self._logger.exception("Failed to dispatch batch, dropping it")
        finally:
            self._timer.arm()

    def message_count(self) -> int:
        return self._metrics.message_count

    def status_codes(self) -> dict[int, int]:
        return self._metrics.status_codes()

    def shutdown(self, flush_first: bool = False):
        """Stop scheduling flushes, optionally flushing one last time.

        Requests already dispatched are neither awaited nor cancelled; use
        :meth:`join` or :meth:`close` to wait for them.
        """
        if flush_first:
            self.flush()
        self._timer.stop()
        self._logger.debug(
            "shutdown, %d message(s) sent, %d request(s) in flight",
            self._metrics.message_count,
            len(self._inflight),
        )

    async def join(self):
        """Wait until every dispatched batch has completed or failed."""
        while self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

    async def close(self, flush_first: bool = True):
        """Shut down, wait for in-flight requests and release the pool."""
        self.shutdown(flush_first)
        await self.join()
        await self._transmitter.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close(flush_first=True)

    @property
    def pending(self) -> int:
        """Number of messages waiting for the next flush."""
        return len(self._buffer)

    @property
    def inflight(self) -> int:
        return len(self._inflight)

    @property
    def metrics(self) -> DeliveryMetrics:
        return self._metrics

    @property
    def affinity(self) -> SessionAffinity:
        return self._affinity

    @property
    def timer(self) -> FlushTimer:
        return self._timer

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _dispatch(self, batch: list[str]):
        request_id = self._next_request_id
        self._next_request_id += 1

        self._logger.debug("(%d) flushing %d messages", request_id, len(batch))
        payload = serialize_batch(batch)
        self._metrics.record_dispatch(len(batch))

        if self._config.gzip:
            coro = self._compress_and_post(payload, request_id)
        else:
            coro = self._transmitter.post(payload, request_id)

        task = self._loop.create_task(coro)
        self._inflight.add(task)
        task.add_done_callback(self._on_task_done)

    async def _compress_and_post(self, payload: bytes, request_id: int):
        try:
            compressed = await compress_async(payload, self._loop)
        except Exception:
            self._metrics.record_compression_failure()
            self._logger.exception(
                "(%d) error during gzip, dropping batch of %d bytes",
                request_id,
                len(payload),
            )
            return
        await self._transmitter.post(compressed, request_id)

    def _on_task_done(self, task: asyncio.Task):
        self._inflight.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._logger.error("Dispatch task failed: %r", exc, exc_info=exc)
