"""Tests for the delivery metrics module."""

import time

import pytest

from logpost.metrics import LATENCY_WINDOW, DeliveryMetrics


def test_dispatch_counts_messages_and_requests():
    metrics = DeliveryMetrics()
    metrics.record_dispatch(3)
    metrics.record_dispatch(3)
    metrics.record_dispatch(1)

    assert metrics.message_count == 7
    assert metrics.request_count == 3


def test_status_code_histogram():
    metrics = DeliveryMetrics()
    for status in (200, 200, 503, 200, 429):
        metrics.record_response(status, queued_ms=2.0, exec_ms=1.0, bytes_sent=10)

    assert metrics.status_codes() == {200: 3, 503: 1, 429: 1}


def test_status_codes_returns_copy():
    metrics = DeliveryMetrics()
    metrics.record_response(200, queued_ms=1.0, exec_ms=1.0, bytes_sent=1)
    codes = metrics.status_codes()
    codes[200] = 99
    assert metrics.status_codes() == {200: 1}


def test_transport_error_not_in_histogram():
    metrics = DeliveryMetrics()
    metrics.record_dispatch(5)
    metrics.record_transport_error()

    snap = metrics.snapshot()
    assert metrics.status_codes() == {}
    assert snap["transport_errors"] == 1
    assert snap["messages_sent"] == 5
    assert snap["responses"] == 0


def test_empty_snapshot():
    snap = DeliveryMetrics().snapshot()

    assert snap["messages_sent"] == 0
    assert snap["requests_sent"] == 0
    assert snap["status_codes"] == {}
    assert snap["bytes_sent"] == 0
    assert snap["compression_failures"] == 0
    assert snap["avg_queued_ms"] == 0.0
    assert snap["p95_queued_ms"] == 0.0
    assert snap["avg_exec_ms"] == 0.0
    assert snap["p95_exec_ms"] == 0.0
    assert snap["uptime_seconds"] >= 0


def test_latency_statistics():
    metrics = DeliveryMetrics()
    for i in range(1, 101):
        metrics.record_response(200, queued_ms=float(i), exec_ms=float(i) / 2, bytes_sent=100)

    snap = metrics.snapshot()
    assert snap["bytes_sent"] == 10000
    assert snap["avg_queued_ms"] == pytest.approx(50.5)
    # p95 of 1..100: index = 0.95 * 99 = 94.05 → 95 + 0.05 * (96 - 95)
    assert snap["p95_queued_ms"] == pytest.approx(95.05)
    assert snap["avg_exec_ms"] == pytest.approx(25.25)


def test_compression_failure_counter():
    metrics = DeliveryMetrics()
    metrics.record_compression_failure()
    metrics.record_compression_failure()
    assert metrics.snapshot()["compression_failures"] == 2


def test_uptime_seconds():
    metrics = DeliveryMetrics()
    time.sleep(0.05)
    assert metrics.snapshot()["uptime_seconds"] >= 0.04


def test_latency_window_is_bounded():
    """Only the most recent samples feed the latency statistics."""
    metrics = DeliveryMetrics()
    total = LATENCY_WINDOW + 500
    for i in range(1, total + 1):
        metrics.record_response(200, queued_ms=float(i), exec_ms=1.0, bytes_sent=1)

    snap = metrics.snapshot()
    assert snap["latency_samples"] == LATENCY_WINDOW
    # Mean of the last LATENCY_WINDOW values: 501..1500
    assert snap["avg_queued_ms"] == pytest.approx((501 + total) / 2)
    # Counters still cover every response.
    assert snap["responses"] == total
    assert metrics.status_codes() == {200: total}
