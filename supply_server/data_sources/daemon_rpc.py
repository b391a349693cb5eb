from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Optional

import httpx


RPC_URL = os.environ.get("SUPPLY_RPC_URL", "http://127.0.0.1:20241/json_rpc").strip()
RPC_TIMEOUT = float(os.environ.get("SUPPLY_RPC_TIMEOUT", "10").strip() or "10")

U64_MAX = 2 ** 64 - 1


class RpcError(Exception):
    """Base class for anything that goes wrong talking to the daemon."""


class TransportError(RpcError):
    pass


class ProtocolError(RpcError):
    pass


@dataclass(frozen=True)
class CoinbaseTxSum:
    emission_amount: int  # atomic units
    fee_amount: int  # atomic units


def _envelope(method: str, params: Optional[dict] = None) -> dict:
    body = {"jsonrpc": "2.0", "id": "0", "method": method}
    if params is not None:
        body["params"] = params
    return body


def _uint(result: dict, key: str) -> int:
    value = result.get(key)
    # bool is an int subclass; the daemon never sends one here
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= U64_MAX:
        raise ProtocolError(f"bad '{key}' in result: {value!r}")
    return value


async def _call(client: httpx.AsyncClient, method: str, params: Optional[dict] = None) -> dict:
    """
    POST one JSON-RPC envelope and return its `result` object.

    The HTTP status is not checked: the daemon reports failures in the
    envelope's `error` field, and a non-JSON body is a protocol failure anyway.
    """
    try:
        r = await client.post(RPC_URL, json=_envelope(method, params))
    except httpx.HTTPError as e:
        raise TransportError(f"{method}: {e}") from e

    try:
        payload: Any = r.json()
    except ValueError as e:
        raise ProtocolError(f"{method}: response is not JSON (HTTP {r.status_code})") from e

    if not isinstance(payload, dict):
        raise ProtocolError(f"{method}: response envelope is not an object")
    if payload.get("error") is not None:
        raise ProtocolError(f"{method}: RPC error: {payload['error']}")

    result = payload.get("result")
    if not isinstance(result, dict):
        raise ProtocolError(f"{method}: missing result")
    return result


async def get_block_count(client: httpx.AsyncClient) -> int:
    result = await _call(client, "get_block_count")
    return _uint(result, "count")


async def get_coinbase_tx_sum(client: httpx.AsyncClient, height: int, count: int) -> CoinbaseTxSum:
    """
    Sum coinbase emission and fees over `count` blocks starting at `height`.
    `count` is a block count, not an end height.
    """
    result = await _call(client, "get_coinbase_tx_sum", {"height": height, "count": count})
    return CoinbaseTxSum(
        emission_amount=_uint(result, "emission_amount"),
        fee_amount=_uint(result, "fee_amount"),
    )
