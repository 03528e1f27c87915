"""
Invoice number generation policies.

Two policies are supported and selected through InvoiceConfig:

- Sequential: INV-000123. Scans existing numbers, takes the max and adds one.
  Only unique when the caller serializes read-max-then-insert (the stores do).
- Timestamp: INV-YYYYMMDDHHMMSS in a fixed timezone. Second granularity;
  a -NN suffix is appended when the plain number is already taken.

Either way the store's uniqueness check is the final arbiter and callers
retry with a fresh number on ConflictError.
"""

import re
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, Iterable

from utils.timezone import now_utc, to_local

INVOICE_PREFIX = "INV-"

_SEQUENTIAL_PATTERN = re.compile(r"INV-(\d+)$")


class NumberingPolicy(ABC):
    """Derives the next invoice number from the numbers already in use."""

    name: str

    @abstractmethod
    def generate(self, existing_numbers: Iterable[str]) -> str:
        """Return a number not present in existing_numbers."""


class SequentialNumberingPolicy(NumberingPolicy):
    """INV-<6 digit sequence>, one more than the highest existing number."""

    name = "sequential"

    def __init__(self, width: int = 6):
        self.width = width

    def generate(self, existing_numbers: Iterable[str]) -> str:
        highest = 0
        for number in existing_numbers:
            match = _SEQUENTIAL_PATTERN.search(number)
            if match:
                highest = max(highest, int(match.group(1)))

        return f"{INVOICE_PREFIX}{highest + 1:0{self.width}d}"


class TimestampNumberingPolicy(NumberingPolicy):
    """INV-YYYYMMDDHHMMSS in a named IANA timezone."""

    name = "timestamp"

    def __init__(
        self,
        tz_name: str = "America/Toronto",
        clock: Callable[[], datetime] = now_utc,
    ):
        self.tz_name = tz_name
        self._clock = clock
        # Fail fast on a bad zone name instead of on the first invoice
        to_local(now_utc(), tz_name)

    def generate(self, existing_numbers: Iterable[str]) -> str:
        local = to_local(self._clock(), self.tz_name)
        base = f"{INVOICE_PREFIX}{local.strftime('%Y%m%d%H%M%S')}"

        taken = set(existing_numbers)
        if base not in taken:
            return base

        suffix = 2
        while f"{base}-{suffix:02d}" in taken:
            suffix += 1
        return f"{base}-{suffix:02d}"


def create_policy(name: str, tz_name: str = "America/Toronto") -> NumberingPolicy:
    """
    Build a numbering policy by name.

    Raises:
        ValueError: If name is not 'sequential' or 'timestamp'
    """
    if name == SequentialNumberingPolicy.name:
        return SequentialNumberingPolicy()
    if name == TimestampNumberingPolicy.name:
        return TimestampNumberingPolicy(tz_name=tz_name)
    raise ValueError(f"Unknown numbering policy '{name}'. Valid: sequential, timestamp")
