"""Shared test fixtures for the Invoice Studio test suite."""

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from dotenv import load_dotenv

# Load .env file BEFORE any other imports that might use env vars
load_dotenv(Path(__file__).parent.parent / ".env", override=True)

# Reset vault client singleton to pick up env vars
import clients.vault_client as vault_module
vault_module._vault_client_instance = None
vault_module._secret_cache.clear()

from core.numbering import SequentialNumberingPolicy
from core.store.memory import MemoryInvoiceStore


# =============================================================================
# CLOCK
# =============================================================================

# 2026-10-18 09:30:00 UTC is 05:30 in Toronto (EDT, UTC-4)
FIXED_NOW = datetime(2026, 10, 18, 9, 30, 0, tzinfo=timezone.utc)


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = FIXED_NOW):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


# =============================================================================
# STORE FIXTURES
# =============================================================================


@pytest.fixture
def numbering() -> SequentialNumberingPolicy:
    """Deterministic numbering: INV-000001, INV-000002, ..."""
    return SequentialNumberingPolicy()


@pytest.fixture
def store(numbering, clock) -> MemoryInvoiceStore:
    return MemoryInvoiceStore(numbering, clock=clock)


# =============================================================================
# VALKEY DOUBLE
# =============================================================================


class FakeValkey:
    """
    In-process stand-in for ValkeyClient with the same method surface.

    TTLs are recorded but never expire on their own; tests expire keys
    explicitly with delete().
    """

    def __init__(self):
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value, expire_seconds=None):
        self.data[key] = value
        if expire_seconds is not None:
            self.ttls[key] = expire_seconds
        else:
            self.ttls.pop(key, None)

    def delete(self, key):
        self.ttls.pop(key, None)
        return self.data.pop(key, None) is not None

    def ttl(self, key):
        if key not in self.data:
            return -2
        return self.ttls.get(key, -1)

    def incr(self, key):
        value = int(self.data.get(key, "0")) + 1
        self.data[key] = str(value)
        return value

    def expire(self, key, expire_seconds):
        if key not in self.data:
            return False
        self.ttls[key] = expire_seconds
        return True

    def set_json(self, key, value, expire_seconds=None):
        self.set(key, json.dumps(value), expire_seconds)

    def get_json(self, key):
        value = self.get(key)
        return None if value is None else json.loads(value)

    def close(self):
        pass


@pytest.fixture
def valkey() -> FakeValkey:
    return FakeValkey()
