import json

import httpx
import pytest

from supply_server.cache import SupplyCache


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def daemon_transport(height=1000, emission=10 ** 15, fee=0, fail=None, calls=None):
    """
    httpx transport that answers like the daemon's /json_rpc.
    `fail` maps a method name to the response to send instead.
    """
    fail = fail or {}

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        if calls is not None:
            calls.append(body)
        method = body["method"]
        if method in fail:
            override = fail[method]
            if isinstance(override, Exception):
                raise override
            return override
        if method == "get_block_count":
            result = {"count": height, "status": "OK"}
        elif method == "get_coinbase_tx_sum":
            result = {"emission_amount": emission, "fee_amount": fee, "status": "OK"}
        else:
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": "0", "error": {"code": -32601, "message": "Method not found"}})
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})

    return httpx.MockTransport(handler)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def ticker():
    return FakeClock(now=5_000.0)


@pytest.fixture
def cache(clock, ticker):
    return SupplyCache(stale_after=300, clock=clock, monotonic_clock=ticker)
