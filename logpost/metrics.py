"""Delivery metrics — counters and a status-code histogram for shipped batches."""

import time
from collections import defaultdict, deque

# Latency samples kept for averages and percentiles.
LATENCY_WINDOW = 1000


class DeliveryMetrics:
    """Collects delivery bookkeeping for one Logpost instance.

    Every mutation happens on the event loop that owns the instance, either
    in the flush path or in a request's completion, so no locking is needed.
    The numbers are diagnostic only and never drive control decisions.
    """

    def __init__(self) -> None:
        self._message_count: int = 0
        self._request_count: int = 0
        self._status_codes: dict[int, int] = defaultdict(int)
        self._bytes_sent: int = 0
        self._transport_errors: int = 0
        self._compression_failures: int = 0
        self._queued_ms: deque[float] = deque(maxlen=LATENCY_WINDOW)
        self._exec_ms: deque[float] = deque(maxlen=LATENCY_WINDOW)
        self._start_time = time.monotonic()

    def record_dispatch(self, batch_size: int) -> None:
        """Count a drained batch. Messages count as sent from this point on,
        whatever happens to the request later."""
        self._message_count += batch_size
        self._request_count += 1

    def record_response(
        self,
        status: int,
        queued_ms: float,
        exec_ms: float,
        bytes_sent: int,
    ) -> None:
        """Record a completed response.

        Args:
            status: HTTP status code of the response.
            queued_ms: Time from issuing the request to the response end.
            exec_ms: Time from acquiring a socket to the response end.
            bytes_sent: Size of the request body on the wire.
        """
        self._status_codes[status] += 1
        self._bytes_sent += bytes_sent
        self._queued_ms.append(queued_ms)
        self._exec_ms.append(exec_ms)

    def record_transport_error(self) -> None:
        self._transport_errors += 1

    def record_compression_failure(self) -> None:
        self._compression_failures += 1

    @property
    def message_count(self) -> int:
        return self._message_count

    @property
    def request_count(self) -> int:
        return self._request_count

    def status_codes(self) -> dict[int, int]:
        """Copy of the histogram of completed responses by status code."""
        return dict(self._status_codes)

    def snapshot(self) -> dict:
        """Return a point-in-time snapshot of all collected metrics."""
        queued = list(self._queued_ms)
        executing = list(self._exec_ms)
        return {
            "messages_sent": self._message_count,
            "requests_sent": self._request_count,
            "responses": sum(self._status_codes.values()),
            "status_codes": dict(self._status_codes),
            "bytes_sent": self._bytes_sent,
            "transport_errors": self._transport_errors,
            "compression_failures": self._compression_failures,
            "avg_queued_ms": sum(queued) / len(queued) if queued else 0.0,
            "p95_queued_ms": self._percentile(queued, 95),
            "avg_exec_ms": sum(executing) / len(executing) if executing else 0.0,
            "p95_exec_ms": self._percentile(executing, 95),
            "latency_samples": len(queued),
            "uptime_seconds": time.monotonic() - self._start_time,
        }

    @staticmethod
    def _percentile(data: list, pct: float) -> float:
        """Compute an interpolated percentile from a list of numeric values.

        Args:
            data: List of numeric values (will be sorted internally).
            pct: Desired percentile (0-100).

        Returns:
            Interpolated value at the given percentile, or 0.0 if data is empty.
        """
        if not data:
            return 0.0

        sorted_data = sorted(data)
        n = len(sorted_data)

        if n == 1:
            return float(sorted_data[0])

        idx = (pct / 100) * (n - 1)
        lower = int(idx)
        upper = lower + 1
        fraction = idx - lower

        if upper >= n:
            return float(sorted_data[-1])

        return float(sorted_data[lower] + fraction * (sorted_data[upper] - sorted_data[lower]))
