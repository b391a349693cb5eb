import os
from dataclasses import dataclass
from threading import Lock
from time import monotonic, time
from typing import Callable, Optional, Tuple

STALE_AFTER = float(os.getenv("CACHE_STALE_AFTER", "300"))


@dataclass(frozen=True)
class SupplyStats:
    emission_amount: int = 0
    fee_amount: int = 0
    updated_at: float = 0.0  # wall clock, for display only
    refreshed_at: Optional[float] = None  # monotonic; None = never refreshed


class SupplyCache:
    """
    Latest emission/fee pair from the daemon.

    The record is immutable and swapped whole under the lock, so readers always
    get emission and fee from the same refresh. Age is measured on the
    monotonic clock, so wall-clock steps never make old data look fresh.
    """

    def __init__(
        self,
        stale_after: float = STALE_AFTER,
        clock: Callable[[], float] = time,
        monotonic_clock: Callable[[], float] = monotonic,
    ) -> None:
        self.stale_after = stale_after
        self._clock = clock
        self._monotonic = monotonic_clock
        self._lock = Lock()
        self._stats = SupplyStats()

    def read(self) -> Tuple[SupplyStats, bool]:
        with self._lock:
            stats = self._stats
            is_stale = (
                stats.refreshed_at is None
                or self._monotonic() - stats.refreshed_at > self.stale_after
            )
        return stats, is_stale

    def write(self, emission_amount: int, fee_amount: int) -> None:
        with self._lock:
            self._stats = SupplyStats(
                emission_amount=emission_amount,
                fee_amount=fee_amount,
                updated_at=self._clock(),
                refreshed_at=self._monotonic(),
            )


GLOBAL_CACHE = SupplyCache()
