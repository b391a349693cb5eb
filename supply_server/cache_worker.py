import asyncio
import logging
import os
from typing import Optional

import httpx

from supply_server.cache import GLOBAL_CACHE, SupplyCache
from supply_server.data_sources import daemon_rpc
from supply_server.data_sources.daemon_rpc import RpcError

logger = logging.getLogger(__name__)

# same as the staleness window: one missed refresh and the endpoints go 500
CACHE_INTERVAL = float(os.getenv("CACHE_INTERVAL", "300"))


class CacheWorker:
    """
    Polls the daemon every `interval` seconds and writes the coinbase sums into
    the cache. A failed iteration leaves the cache untouched and waits for the
    next tick; there is no other retry.
    """

    def __init__(
        self,
        cache: SupplyCache = GLOBAL_CACHE,
        interval: float = CACHE_INTERVAL,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.cache = cache
        self.interval = interval
        self.timeout = daemon_rpc.RPC_TIMEOUT if timeout is None else timeout
        self._transport = transport
        self._stop: Optional[asyncio.Event] = None
        self._task: Optional[asyncio.Task] = None

    async def refresh_once(self) -> bool:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                height = await daemon_rpc.get_block_count(client)
            except RpcError as e:
                logger.warning("Error getting block count: %s", e)
                return False

            try:
                sums = await daemon_rpc.get_coinbase_tx_sum(client, 1, height)
            except RpcError as e:
                logger.warning("Error updating cache: %s", e)
                return False

        self.cache.write(sums.emission_amount, sums.fee_amount)
        logger.info(
            "Cache updated at height %d (emission=%d fee=%d)",
            height, sums.emission_amount, sums.fee_amount,
        )
        return True

    async def run(self) -> None:
        if self._stop is None:
            self._stop = asyncio.Event()
        stop = self._stop
        while not stop.is_set():
            try:
                await self.refresh_once()
            except Exception:
                logger.exception("Unexpected error in cache refresh")

            try:
                await asyncio.wait_for(stop.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._stop = asyncio.Event()
            self._task = asyncio.create_task(self.run())
            logger.info("Cache worker started (interval=%ss)", self.interval)
        return self._task

    def stop(self) -> None:
        if self._stop is not None:
            self._stop.set()

    async def aclose(self) -> None:
        self.stop()
        if self._task is not None:
            await self._task
            self._task = None
            logger.info("Cache worker stopped")
