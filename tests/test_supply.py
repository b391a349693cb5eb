import re

import pytest

from supply_server.cache import SupplyStats
from supply_server.supply import (
    GENESIS_REWARD,
    RELEASED,
    circulating_supply,
    circulation,
    format_amount,
    total_supply,
)

THOUSAND_COINS = SupplyStats(emission_amount=10 ** 15, fee_amount=0)


def test_constants():
    assert RELEASED == 14500
    assert format_amount(GENESIS_REWARD) == "553402.319999999949"


def test_circulation_is_whole_coins_plus_released():
    assert circulation(THOUSAND_COINS) == 15500
    # fractional coins are truncated
    assert circulation(SupplyStats(emission_amount=10 ** 12 - 1, fee_amount=0)) == 14500
    assert circulation(SupplyStats(emission_amount=6 * 10 ** 11, fee_amount=6 * 10 ** 11)) == 14501


def test_circulating_supply_includes_fees():
    stats = SupplyStats(emission_amount=10 ** 15, fee_amount=5 * 10 ** 11)
    assert format_amount(circulating_supply(stats)) == "15500.500000000000"


def test_total_supply_adds_genesis_reward():
    value = total_supply(THOUSAND_COINS)
    assert value == pytest.approx(554402.32)
    assert format_amount(value) == "554402.319999999949"


def test_zero_stats():
    assert circulation(SupplyStats()) == 14500
    assert format_amount(circulating_supply(SupplyStats())) == "14500.000000000000"


@pytest.mark.parametrize("value", [0.0, 1e-13, 14500.0, 553402.319999999949, 1.5e20])
def test_format_amount_is_fixed_point_with_12_decimals(value):
    assert re.fullmatch(r"\d+\.\d{12}", format_amount(value))
