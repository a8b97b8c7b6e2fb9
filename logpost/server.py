"""Local HTTP collector — receives batched log posts and keeps what it saw."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional

from aiohttp import web

from logpost.compression import decompress_payload, is_gzip
from logpost.config import CollectorConfig
from logpost.serializer import deserialize_batch

logger = logging.getLogger(__name__)


@dataclass
class ReceivedBatch:
    path: str
    headers: dict[str, str]
    lines: list[str] = field(default_factory=list)
    wire_bytes: int = 0


class CollectorServer:
    """Accepts POSTs on any path, decodes the newline-separated body and
    answers with the configured status and, optionally, an affinity cookie.
    """

    def __init__(self, config: CollectorConfig):
        self._config = config
        self._runner: Optional[web.AppRunner] = None
        self._batches: list[ReceivedBatch] = []
        self._received_count = 0
        self._status = config.status
        self._cookie = config.cookie
        self._delay = 0.0
        self.port: Optional[int] = None

    def _make_app(self) -> web.Application:
        app = web.Application()
        app.router.add_post("/{tail:.*}", self._handle_post)
        return app

    async def start(self) -> int:
        """Bind and start serving. Returns the bound port (useful with port 0)."""
        self._runner = web.AppRunner(self._make_app())
        await self._runner.setup()
        site = web.TCPSite(self._runner, self._config.host, self._config.port)
        await site.start()
        self.port = self._runner.addresses[0][1]
        logger.info("Collector listening on %s:%d", self._config.host, self.port)
        return self.port

    async def stop(self):
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
        logger.info(
            "Collector stopped. Received %d batches, %d total lines",
            len(self._batches),
            self._received_count,
        )

    async def _handle_post(self, request: web.Request) -> web.Response:
        body = await request.read()
        # aiohttp may already have inflated a gzip body; only raw gzip is
        # decompressed here.
        if is_gzip(body):
            try:
                body = decompress_payload(body)
            except (OSError, EOFError) as exc:
                logger.warning("Invalid gzip body from %s: %s", request.remote, exc)
                return web.Response(status=400, text="invalid gzip body")

        lines = deserialize_batch(body)
        self._batches.append(
            ReceivedBatch(
                path=request.path,
                headers={k.lower(): v for k, v in request.headers.items()},
                lines=lines,
                wire_bytes=request.content_length or 0,
            )
        )
        self._received_count += len(lines)
        logger.debug("Received batch of %d lines on %s", len(lines), request.path)

        if self._delay:
            await asyncio.sleep(self._delay)

        response = web.Response(status=self._status, text="ok")
        if self._cookie:
            name, _, value = self._cookie.partition("=")
            response.set_cookie(name, value)
        return response

    # ------------------------------------------------------------------
    # Knobs and inspection
    # ------------------------------------------------------------------

    def set_status(self, status: int):
        self._status = status

    def set_cookie(self, cookie: str):
        """Cookie to hand out, as ``name=value``; empty disables it."""
        self._cookie = cookie

    def set_delay(self, seconds: float):
        self._delay = seconds

    @property
    def batches(self) -> list[ReceivedBatch]:
        return list(self._batches)

    @property
    def received_count(self) -> int:
        return self._received_count

    @property
    def batch_count(self) -> int:
        return len(self._batches)
