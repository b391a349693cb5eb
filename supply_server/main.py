from __future__ import annotations

import logging
import os
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from supply_server.cache import GLOBAL_CACHE, SupplyCache, SupplyStats
from supply_server.cache_worker import CacheWorker
from supply_server.supply import (
    circulating_supply,
    circulation,
    format_amount,
    total_supply,
)


# --------------------------------------------------
# Env
# --------------------------------------------------
HOST = os.environ.get("SUPPLY_HOST", "127.0.0.1").strip() or "127.0.0.1"
PORT = int(os.environ.get("SUPPLY_PORT", "8086").strip() or "8086")
LOG_LEVEL = (os.environ.get("SUPPLY_LOG_LEVEL") or "INFO").strip().upper()

STALE_MESSAGE = "Cache is outdated"


def _setup_logging() -> None:
    root = logging.getLogger("supply_server")
    if getattr(root, "_configured", False):
        return

    level = getattr(logging, LOG_LEVEL, logging.INFO)
    root.setLevel(level)
    root.propagate = False

    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    root.addHandler(handler)

    root._configured = True


_setup_logging()
logger = logging.getLogger(__name__)


class StaleCacheError(Exception):
    pass


def _fresh_stats(cache: SupplyCache) -> SupplyStats:
    stats, is_stale = cache.read()
    if is_stale:
        raise StaleCacheError(STALE_MESSAGE)
    return stats


# --------------------------------------------------
# FastAPI App
# --------------------------------------------------
def create_app(
    cache: SupplyCache = GLOBAL_CACHE,
    worker: Optional[CacheWorker] = None,
) -> FastAPI:
    """
    Build the HTTP API around `cache`. With no `worker`, one is created that
    refreshes the same cache; it runs between startup and shutdown.
    """
    if worker is None:
        worker = CacheWorker(cache=cache)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        worker.start()
        try:
            yield
        finally:
            await worker.aclose()

    app = FastAPI(title="Supply API", version="0.1.0", docs_url=None, redoc_url=None, lifespan=lifespan)

    @app.exception_handler(StaleCacheError)
    async def stale_cache_handler(request: Request, exc: StaleCacheError) -> PlainTextResponse:
        return PlainTextResponse(str(exc), status_code=500)

    @app.get("/health")
    def health() -> JSONResponse:
        stats, is_stale = cache.read()
        return JSONResponse({
            "ok": True,
            "ts": int(time.time()),
            "updated_at": stats.updated_at,
            "stale": is_stale,
        })

    # exchange integration reads this one; the json content type is what it expects
    @app.get("/circulation")
    def circulation_endpoint() -> Response:
        stats = _fresh_stats(cache)
        return Response(str(circulation(stats)), media_type="application/json")

    @app.get("/CirculatingSupply")
    def circulating_supply_endpoint() -> JSONResponse:
        stats = _fresh_stats(cache)
        return JSONResponse({"result": format_amount(circulating_supply(stats))})

    @app.get("/TotalSupply")
    def total_supply_endpoint() -> JSONResponse:
        stats = _fresh_stats(cache)
        return JSONResponse({"result": format_amount(total_supply(stats))})

    return app


app = create_app()


def run() -> None:
    import uvicorn

    logger.info("Starting server on %s:%d", HOST, PORT)
    uvicorn.run(app, host=HOST, port=PORT, log_level=LOG_LEVEL.lower())


if __name__ == "__main__":
    run()
