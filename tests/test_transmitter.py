"""Tests for the Transmitter against a real local collector."""

import socket
from http.cookies import SimpleCookie

import pytest

from logpost.affinity import SessionAffinity
from logpost.compression import compress_payload
from logpost.config import LogpostConfig
from logpost.metrics import DeliveryMetrics
from logpost.serializer import serialize_batch
from logpost.transmitter import RequestTiming, Transmitter


def _transmitter(config, cookies=False):
    metrics = DeliveryMetrics()
    affinity = SessionAffinity(enabled=cookies)
    return Transmitter(config, metrics, affinity), metrics, affinity


def _unused_port() -> int:
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port


class TestBuildHeaders:
    def test_plain_headers(self):
        config = LogpostConfig(host="h", path="/p")
        transmitter, _, _ = _transmitter(config)

        headers = transmitter.build_headers(b"abc\n")

        assert headers == {"Content-Length": "4", "Connection": "keep-alive"}

    def test_gzip_header(self):
        config = LogpostConfig(host="h", path="/p", gzip=True)
        transmitter, _, _ = _transmitter(config)

        assert transmitter.build_headers(b"x")["Content-Encoding"] == "gzip"

    def test_cookie_header_only_when_enabled_and_set(self):
        config = LogpostConfig(host="h", path="/p", cookies=True)
        transmitter, _, affinity = _transmitter(config, cookies=True)
        assert "Cookie" not in transmitter.build_headers(b"x")

        affinity.update(SimpleCookie("AWSELB=node-1"))
        assert transmitter.build_headers(b"x")["Cookie"] == "AWSELB=node-1"


class TestRequestTiming:
    def test_split_between_queue_and_execution(self):
        timing = RequestTiming(request_id=1, sent_at=10.0, socket_at=10.5)
        queued, executing = timing.elapsed_ms(11.0)
        assert queued == pytest.approx(1000.0)
        assert executing == pytest.approx(500.0)

    def test_without_socket_timestamp(self):
        timing = RequestTiming(request_id=1, sent_at=10.0)
        queued, executing = timing.elapsed_ms(10.25)
        assert queued == executing == pytest.approx(250.0)


class TestPost:
    @pytest.mark.asyncio
    async def test_post_delivers_lines(self, collector, make_config):
        transmitter, metrics, _ = _transmitter(make_config())
        try:
            await transmitter.post(serialize_batch(["one", "two"]), 1)
        finally:
            await transmitter.close()

        assert collector.batch_count == 1
        batch = collector.batches[0]
        assert batch.lines == ["one", "two"]
        assert batch.path == "/receiver/v1/http/test-token"
        assert batch.headers["content-length"] == str(len(b"one\ntwo\n"))
        assert "content-encoding" not in batch.headers
        assert metrics.status_codes() == {200: 1}

    @pytest.mark.asyncio
    async def test_post_gzip_body(self, collector, make_config):
        transmitter, metrics, _ = _transmitter(make_config(gzip=True))
        payload = compress_payload(serialize_batch(["zipped"]))
        try:
            await transmitter.post(payload, 1)
        finally:
            await transmitter.close()

        batch = collector.batches[0]
        assert batch.headers["content-encoding"] == "gzip"
        assert batch.headers["content-length"] == str(len(payload))
        assert batch.lines == ["zipped"]

    @pytest.mark.asyncio
    async def test_non_2xx_recorded(self, collector, make_config):
        collector.set_status(503)
        transmitter, metrics, _ = _transmitter(make_config())
        try:
            await transmitter.post(b"a\n", 1)
            await transmitter.post(b"b\n", 2)
        finally:
            await transmitter.close()

        assert metrics.status_codes() == {503: 2}

    @pytest.mark.asyncio
    async def test_response_timing_recorded(self, collector, make_config):
        transmitter, metrics, _ = _transmitter(make_config())
        try:
            await transmitter.post(b"a\n", 1)
        finally:
            await transmitter.close()

        snap = metrics.snapshot()
        assert snap["avg_queued_ms"] >= snap["avg_exec_ms"] >= 0.0
        assert snap["bytes_sent"] == 2

    @pytest.mark.asyncio
    async def test_affinity_token_captured(self, collector, make_config):
        collector.set_cookie("AWSELB=node-1")
        transmitter, _, affinity = _transmitter(make_config(cookies=True), cookies=True)
        try:
            await transmitter.post(b"a\n", 1)
            await transmitter.post(b"b\n", 2)
        finally:
            await transmitter.close()

        assert affinity.token == "AWSELB=node-1"
        first, second = collector.batches
        assert "cookie" not in first.headers
        assert second.headers["cookie"] == "AWSELB=node-1"


class TestTransportFailure:
    @pytest.mark.asyncio
    async def test_connection_refused_is_logged_not_raised(self, caplog):
        config = LogpostConfig(
            host=f"127.0.0.1:{_unused_port()}", path="/p", secure=False
        )
        transmitter, metrics, _ = _transmitter(config)
        try:
            with caplog.at_level("ERROR"):
                await transmitter.post(b"lost\n", 7)
        finally:
            await transmitter.close()

        assert metrics.status_codes() == {}
        assert metrics.snapshot()["transport_errors"] == 1
        assert "(7) error during request" in caplog.text
