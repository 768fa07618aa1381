from __future__ import annotations

import threading
from dataclasses import dataclass

# USDC has 6 decimals
MICRO_UNITS_PER_USD = 1_000_000


@dataclass(frozen=True)
class Spending:
    """Session spending: settled USD total and number of paid calls."""

    total_usd: float = 0.0
    calls: int = 0


class SpendingLedger:
    """Accumulates what a client has paid during its lifetime.

    Only settled, paid calls are recorded. Amounts are kept as integer
    micro-units so the running total never drifts.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._total_micro_units = 0
        self._calls = 0

    def record(self, amount_micro_units: int) -> None:
        if amount_micro_units < 0:
            raise ValueError("amount must be non-negative")
        with self._lock:
            self._total_micro_units += amount_micro_units
            self._calls += 1

    def snapshot(self) -> Spending:
        with self._lock:
            return Spending(
                total_usd=self._total_micro_units / MICRO_UNITS_PER_USD,
                calls=self._calls,
            )
