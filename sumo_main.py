"""Hosted-collector driver: ships ten minutes of tagged lines to an HTTP
source identified by its token."""

import asyncio
import logging
import signal

from logpost.client import Logpost
from logpost.config import load_sumo_config
from logpost.traffic import generate_traffic, make_run_id


async def main():
    config = load_sumo_config()
    logging.basicConfig(
        level=logging.DEBUG if config.debug else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger = logging.getLogger(__name__)
    logger.debug("Debug logging enabled")

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(signum, stop_event.set)

    log = Logpost(config.logpost, logger=logging.getLogger("logpost"))
    run_id = make_run_id()

    generated = await generate_traffic(
        log.submit, run_id, config.batch_size, config.run_millis / 1000.0, stop_event
    )

    log.shutdown(True)
    logger.info(
        "DONE with %d messages, %d messages sent, run id: %s",
        generated,
        log.message_count(),
        run_id,
    )
    await log.join()
    logger.info("DONE with status code counts: %s", log.status_codes())
    await log.close(flush_first=False)


if __name__ == "__main__":
    asyncio.run(main())
