"""Entry point for the local log collector."""

import asyncio
import logging
import signal

from logpost.config import load_collector_config
from logpost.server import CollectorServer


async def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger = logging.getLogger(__name__)

    config = load_collector_config()
    shutdown_event = asyncio.Event()

    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(signum, shutdown_event.set)

    server = CollectorServer(config)
    await server.start()
    logger.info("Collector ready (status=%d, cookie=%r)", config.status, config.cookie)

    try:
        await shutdown_event.wait()
    finally:
        await server.stop()


if __name__ == "__main__":
    asyncio.run(main())
