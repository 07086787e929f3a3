"""Indexer module for persisting marketplace events.

This module provides:
- A subscription to logs committed by the chain
- Persistence of every marketplace event
- An active items table kept in step with listings, purchases and cancellations
"""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

from chain import Chain, Log
from database import get_pool

logger = logging.getLogger(__name__)

MARKETPLACE_EVENTS = ('ItemListed', 'ItemBought', 'ItemDeleted')

class EventIndexer:
    """Index marketplace events into the database."""

    def __init__(self, chain: Chain, pool=None, marketplace_address: Optional[str] = None):
        """Initialize the indexer.

        Args:
            chain: Chain whose committed logs are indexed
            pool: Database connection pool. Fetched from the database module if not provided.
            marketplace_address: Only index logs from this contract when set
        """
        self.chain = chain
        self.pool = pool
        self.marketplace_address = marketplace_address
        self.running = False
        self.queue: asyncio.Queue = asyncio.Queue()
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def handle_log(self, log: Log) -> None:
        """Chain subscriber. May be called from any thread."""
        if log.name not in MARKETPLACE_EVENTS:
            return
        if self.marketplace_address and log.address != self.marketplace_address:
            return
        if self._loop is None:
            logger.warning(f"Indexer not started, dropping {log.name} from {log.tx_hash}")
            return
        self._loop.call_soon_threadsafe(self.queue.put_nowait, log)

    async def process_log(self, log: Log) -> None:
        """Store one event and update the active items table."""
        args = log.event.model_dump()
        account = args.get('seller') or args.get('buyer')

        async with self.pool.acquire() as conn:
            async with conn.transaction():
                await conn.execute(
                    '''
                    INSERT INTO marketplace_events (
                        tx_hash, log_index, block_number, contract_address,
                        event_name, nft_address, token_id, account, price, args
                    ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10)
                    ON CONFLICT (tx_hash, log_index) DO NOTHING
                    ''',
                    log.tx_hash,
                    log.log_index,
                    log.block_number,
                    log.address,
                    log.name,
                    args.get('nft_address'),
                    args.get('token_id'),
                    account,
                    args.get('price'),
                    json.dumps(args)
                )

                if log.name == 'ItemListed':
                    await conn.execute(
                        '''
                        INSERT INTO active_items (
                            nft_address, token_id, seller, price, block_number
                        ) VALUES ($1, $2, $3, $4, $5)
                        ON CONFLICT (nft_address, token_id) DO UPDATE
                        SET seller = EXCLUDED.seller,
                            price = EXCLUDED.price,
                            block_number = EXCLUDED.block_number
                        ''',
                        args['nft_address'],
                        args['token_id'],
                        args['seller'],
                        args['price'],
                        log.block_number
                    )
                else:
                    await conn.execute(
                        'DELETE FROM active_items WHERE nft_address = $1 AND token_id = $2',
                        args['nft_address'],
                        args['token_id']
                    )

        logger.info(f"Indexed {log.name} for token {args.get('token_id')} (block {log.block_number})")

    async def get_active_items(self) -> List[Dict[str, Any]]:
        """Get all indexed active listings, newest first."""
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                '''
                SELECT nft_address, token_id, seller, price, block_number
                FROM active_items
                ORDER BY block_number DESC
                '''
            )
        return [{
            'nft_address': row['nft_address'],
            'token_id': int(row['token_id']),
            'seller': row['seller'],
            'price': str(row['price']),
            'block_number': row['block_number']
        } for row in rows]

    async def process_queue(self) -> None:
        """Process queued logs until the stop marker is reached."""
        while True:
            try:
                log = await self.queue.get()
            except asyncio.CancelledError:
                if self.queue.qsize():
                    logger.warning(f"Indexer cancelled with {self.queue.qsize()} logs not indexed")
                raise
            if log is None:
                self.queue.task_done()
                break
            try:
                await self.process_log(log)
            except Exception as e:
                logger.error(f"Error indexing {log.name} from {log.tx_hash}: {e}")
                await asyncio.sleep(1)
            finally:
                self.queue.task_done()

    async def start(self) -> None:
        """Subscribe to the chain and index logs until stopped."""
        if self.pool is None:
            self.pool = await get_pool()
        self._loop = asyncio.get_running_loop()
        self.running = True
        self.chain.subscribe(self.handle_log)
        logger.info("Event indexer started")
        try:
            await self.process_queue()
        finally:
            self.chain.unsubscribe(self.handle_log)
            self.running = False
        logger.info("Event indexer stopped")

    def stop(self) -> None:
        """Stop indexing once the logs already queued are written."""
        logger.info("Stopping event indexer...")
        self.chain.unsubscribe(self.handle_log)
        if self.running and self._loop is not None:
            self.running = False
            self._loop.call_soon_threadsafe(self.queue.put_nowait, None)

__all__ = ['EventIndexer', 'MARKETPLACE_EVENTS']
