"""
Supply figures derived from the cached coinbase sums.

Amounts from the daemon are atomic units; 10**12 of them make one coin.
"""
from __future__ import annotations

from supply_server.cache import SupplyStats

ATOMIC_UNITS = 10 ** 12

# first airdrop 500 * 5, twitter + discord tasks 7000, dev team first month 5000
RELEASED = 2500 + 7000 + 5000

# block 0 reward
GENESIS_REWARD = 553402.319999999949


def _minted(stats: SupplyStats) -> int:
    return stats.emission_amount + stats.fee_amount


def circulation(stats: SupplyStats) -> int:
    """Whole coins only; the fractional part is dropped before adding RELEASED."""
    return _minted(stats) // ATOMIC_UNITS + RELEASED


def circulating_supply(stats: SupplyStats) -> float:
    return _minted(stats) / 1e12 + float(RELEASED)


def total_supply(stats: SupplyStats) -> float:
    return _minted(stats) / 1e12 + GENESIS_REWARD


def format_amount(value: float) -> str:
    """
    Fixed-point with exactly 12 decimals. `%` formatting ignores the locale and
    never switches to exponent notation.
    """
    return "%.12f" % value
