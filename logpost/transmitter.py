"""HTTP transmitter — one POST per batch over a bounded keep-alive pool."""

import asyncio
import time
import logging
from dataclasses import dataclass
from typing import Optional

import aiohttp

from logpost.affinity import SessionAffinity
from logpost.compression import CONTENT_ENCODING
from logpost.config import LogpostConfig
from logpost.metrics import DeliveryMetrics
from logpost.tls_context import create_client_context

logger = logging.getLogger(__name__)

TRANSPORT_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError, OSError)


@dataclass
class RequestTiming:
    """Timestamps for one request, carried through aiohttp's tracing hooks."""

    request_id: int
    sent_at: float
    socket_at: Optional[float] = None

    def elapsed_ms(self, now: float) -> tuple[float, float]:
        """Return (queued, executing) milliseconds up to *now*.

        Queued time covers the wait for a socket plus execution; executing
        time starts when the pool handed over a connection.
        """
        started = self.socket_at if self.socket_at is not None else self.sent_at
        return (now - self.sent_at) * 1000, (now - started) * 1000


async def _on_connection_queued(session, trace_config_ctx, params):
    timing = trace_config_ctx.trace_request_ctx
    if isinstance(timing, RequestTiming):
        logger.debug("(%d) waiting for a free socket", timing.request_id)


async def _on_connection_acquired(session, trace_config_ctx, params):
    timing = trace_config_ctx.trace_request_ctx
    if isinstance(timing, RequestTiming):
        timing.socket_at = time.monotonic()


def _make_trace_config() -> aiohttp.TraceConfig:
    trace_config = aiohttp.TraceConfig()
    trace_config.on_connection_queued_start.append(_on_connection_queued)
    trace_config.on_connection_create_end.append(_on_connection_acquired)
    trace_config.on_connection_reuseconn.append(_on_connection_acquired)
    return trace_config


class Transmitter:
    """Posts serialized batches to the collector.

    The aiohttp session is created on first use and kept for the lifetime of
    the transmitter; its connector bounds the number of open sockets, so
    requests beyond ``max_sockets`` wait for a free one instead of failing.
    Cookies are handled by :class:`SessionAffinity`, never by aiohttp's jar.
    """

    def __init__(
        self,
        config: LogpostConfig,
        metrics: DeliveryMetrics,
        affinity: SessionAffinity,
        logger: Optional[logging.Logger] = None,
    ):
        self._config = config
        self._metrics = metrics
        self._affinity = affinity
        self._logger = logger or logging.getLogger(__name__)
        self._session: Optional[aiohttp.ClientSession] = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            ssl_context = None
            if self._config.secure:
                ssl_context = create_client_context(
                    self._config.verify_certs, self._config.ca_file
                )
            connector = aiohttp.TCPConnector(
                limit=self._config.max_sockets,
                keepalive_timeout=self._config.keepalive_timeout,
                ssl=ssl_context if ssl_context is not None else True,
            )
            self._session = aiohttp.ClientSession(
                connector=connector,
                timeout=aiohttp.ClientTimeout(
                    total=None, sock_read=self._config.socket_timeout
                ),
                cookie_jar=aiohttp.DummyCookieJar(),
                trace_configs=[_make_trace_config()],
            )
        return self._session

    def build_headers(self, payload: bytes) -> dict[str, str]:
        headers = {
            "Content-Length": str(len(payload)),
            "Connection": "keep-alive",
        }
        if self._config.gzip:
            headers["Content-Encoding"] = CONTENT_ENCODING
        headers.update(self._affinity.headers())
        return headers

    async def post(self, payload: bytes, request_id: int) -> None:
        """Send one batch. Never raises for transport problems: they are
        logged and the batch is gone."""
        headers = self.build_headers(payload)
        timing = RequestTiming(request_id=request_id, sent_at=time.monotonic())
        self._logger.debug("(%d) sending bytes: %d", request_id, len(payload))

        session = self._get_session()
        try:
            async with session.post(
                self._config.url,
                data=payload,
                headers=headers,
                trace_request_ctx=timing,
            ) as response:
                await response.read()
                status = response.status
                reason = response.reason
                cookies = response.cookies
        except TRANSPORT_ERRORS as exc:
            self._metrics.record_transport_error()
            self._logger.error(
                "(%d) error during request to %s: %r", request_id, self._config.url, exc
            )
            return

        queued_ms, exec_ms = timing.elapsed_ms(time.monotonic())
        self._metrics.record_response(status, queued_ms, exec_ms, len(payload))
        self._affinity.update(cookies)

        self._logger.debug(
            "(%d) done, queued ms: %d exec ms: %d, status: %d%s",
            request_id,
            queued_ms,
            exec_ms,
            status,
            f" ({reason})" if reason else "",
        )

    async def close(self):
        """Close the connection pool. Requests still running will fail."""
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
