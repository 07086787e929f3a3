"""Serve the marketplace API, with the event indexer when enabled.

Usage: python -m api
"""
import asyncio
import logging
import signal
from typing import List, Optional

import uvicorn

from config import settings_conf, is_development_chain
from database import init_db, close as db_close, get_pool
from indexer import EventIndexer
from . import app

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Seconds the indexer gets to write queued logs on shutdown
DRAIN_TIMEOUT = 5

class Services:
    """API server and indexer sharing one event loop."""

    def __init__(self, host: str, port: int, indexer_enabled: bool = True):
        self.server = uvicorn.Server(uvicorn.Config(app, host=host, port=port, log_level="info"))
        self.indexer_enabled = indexer_enabled
        self.indexer: Optional[EventIndexer] = None
        self.shutdown = asyncio.Event()
        self.tasks: List[asyncio.Task] = []

    def request_shutdown(self, signum=None, frame=None) -> None:
        if not self.shutdown.is_set():
            logger.info("Shutdown signal received. Cleaning up...")
        self.shutdown.set()

    async def start(self) -> None:
        if self.indexer_enabled:
            await self._start_indexer()
        else:
            logger.info("Event indexer disabled")

        self.tasks.append(asyncio.create_task(self.server.serve(), name="api"))
        for task in self.tasks:
            task.add_done_callback(self._on_task_done)
        logger.info(f"Started {', '.join(t.get_name() for t in self.tasks)}")

    async def _start_indexer(self) -> None:
        logger.info("Initializing database...")
        try:
            await init_db()
            pool = await get_pool()
        except Exception as e:
            # /listings/active answers 503 while app.state.indexer is None
            logger.error(f"Database unavailable, serving without the event indexer: {e}")
            await db_close()
            return
        self.indexer = EventIndexer(app.state.chain, pool, app.state.marketplace.address)
        app.state.indexer = self.indexer
        self.tasks.append(asyncio.create_task(self.indexer.start(), name="indexer"))

    def _on_task_done(self, task: asyncio.Task) -> None:
        if not task.cancelled() and task.exception():
            logger.error(f"Task {task.get_name()} failed with error: {task.exception()}")
        self.request_shutdown()

    async def stop(self) -> None:
        logger.info("Starting cleanup...")
        self.server.should_exit = True
        if self.indexer:
            self.indexer.stop()
            indexer_tasks = [t for t in self.tasks if t.get_name() == "indexer"]
            await asyncio.wait(indexer_tasks, timeout=DRAIN_TIMEOUT)

        for task in self.tasks:
            if task.get_name() != "api" and not task.done():
                task.cancel()
        await asyncio.gather(*self.tasks, return_exceptions=True)

        if self.indexer:
            logger.info("Closing database connections...")
            await db_close()
        logger.info("Cleanup complete.")

async def main():
    if not is_development_chain(settings_conf):
        logger.warning(
            f"Network {settings_conf['network']} is not a development chain; "
            "serving the local ledger anyway"
        )

    services = Services(
        settings_conf['api_host'],
        settings_conf['api_port'],
        settings_conf['indexer_enabled']
    )
    signal.signal(signal.SIGINT, services.request_shutdown)
    signal.signal(signal.SIGTERM, services.request_shutdown)

    try:
        await services.start()
        await services.shutdown.wait()
    except Exception as e:
        logger.error(f"Fatal error: {e}")
    finally:
        await services.stop()

if __name__ == "__main__":
    # Use uvloop if available for better performance
    try:
        import uvloop
        uvloop.install()
    except ImportError:
        pass

    asyncio.run(main())
