from __future__ import annotations

import asyncio
import logging
import signal

from faqdesk.core import configure_logging, load_runtime_config
from faqdesk.faq import FAQServiceConfig, FAQStreamConfig, FAQStreamProcessor, build_faq_service
from faqdesk.utils import mysql


async def _main() -> None:
    config = load_runtime_config()
    configure_logging(config.log_level)
    logger = logging.getLogger("faqdesk.startup")
    logger.info("Log level resolved to %s (instance=%s)", config.log_level, config.instance_id)

    service_config = FAQServiceConfig.from_env()
    stream_config = FAQStreamConfig.from_env()
    logger.info(
        "FAQ matching: threshold=%.2f store_timeout=%.1fs related=%s",
        service_config.threshold,
        service_config.store_timeout,
        service_config.related_limit,
    )

    if not stream_config.enabled:
        logger.error("FAQ command stream is disabled; set FAQ_REDIS_URL or REDIS_URL. Exiting.")
        return

    logger.info("Initialising MySQL connection pool")
    await mysql.initialise_and_get_pool(
        minsize=config.mysql_pool_min,
        maxsize=config.mysql_pool_max,
    )
    logger.info("MySQL pool initialised successfully")

    service = build_faq_service(service_config)
    processor = FAQStreamProcessor(service, stream_config)

    loop = asyncio.get_running_loop()
    stop_requested = asyncio.Event()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_requested.set)
        except NotImplementedError:
            pass

    try:
        if not await processor.start():
            logger.error("FAQ stream processor failed to start")
            return
        waiters = [
            asyncio.create_task(stop_requested.wait()),
            asyncio.create_task(processor.wait_stopped()),
        ]
        _, pending = await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        logger.info("Shutting down FAQ worker")
    finally:
        await processor.stop()
        await mysql.close_pool()


if __name__ == "__main__":
    asyncio.run(_main())
