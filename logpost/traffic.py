"""Synthetic traffic — fixed-size, uniquely tagged log lines for driver runs."""

import asyncio
import datetime
import logging
import time
import uuid

logger = logging.getLogger(__name__)

# 320 bytes: "123456789 " doubled five times.
PADDING = "123456789 " * 32


def make_run_id() -> str:
    """Unique id stamped on every message of a run, so the run can be
    queried for on the collector side."""
    return str(uuid.uuid4())


def make_message(run_id: str, counter: int) -> str:
    timestamp = datetime.datetime.now(datetime.timezone.utc).isoformat()
    return f"{timestamp} {run_id} {PADDING}{counter}"


async def generate_traffic(
    submit,
    run_id: str,
    per_tick: int,
    run_seconds: float,
    stop_event: asyncio.Event | None = None,
) -> int:
    """Submit *per_tick* messages per event-loop tick until *run_seconds*
    elapse or *stop_event* is set. Returns the number of messages submitted.
    """
    stop_event = stop_event or asyncio.Event()
    deadline = time.monotonic() + run_seconds
    counter = 0

    while time.monotonic() < deadline and not stop_event.is_set():
        for _ in range(per_tick):
            counter += 1
            submit(make_message(run_id, counter))
        # Yield so flush timers and response handling get to run.
        await asyncio.sleep(0)

    logger.info("Generated %d messages for run %s", counter, run_id)
    return counter
