import itertools
from datetime import datetime, timezone

import pytest

from execution.ledger import SettlementLedger
from execution.sampler import LiquiditySourceSampler
from execution.smart_router import SmartOrderRouter


class FixedRandom:
    """Deterministic RandomSource cycling through preset samples."""

    def __init__(self, values):
        self._values = itertools.cycle(values)

    def uniform(self) -> float:
        return next(self._values)


class FakeExecutor:
    """Settlement executor recording calls; failures are configurable per method."""

    def __init__(self, *, address="0xrelayer", enabled=True, mint_failures=None, transfer_failures=None):
        self.address = address
        self.enabled = enabled
        # None -> never fail, an int -> fail that many times, True -> always fail
        self._mint_failures = mint_failures
        self._transfer_failures = transfer_failures
        self.calls = []
        self._counter = itertools.count(1)

    def _should_fail(self, attr):
        remaining = getattr(self, attr)
        if remaining is True:
            return True
        if remaining:
            setattr(self, attr, remaining - 1)
            return True
        return False

    def mint(self, asset_id, to_address, amount):
        self.calls.append(("mint", asset_id, to_address, amount))
        if self._should_fail("_mint_failures"):
            raise RuntimeError("mint reverted")
        return f"0xmint{next(self._counter)}"

    def transfer(self, asset_id, to_address, amount):
        self.calls.append(("transfer", asset_id, to_address, amount))
        if self._should_fail("_transfer_failures"):
            raise RuntimeError("transfer down")
        return f"0xtransfer{next(self._counter)}"


FIXED_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def fixed_random():
    # Uniswap 1.0008, SushiSwap 0.9988, Curve 1.0, CEX-Quote 0.9996
    return FixedRandom([0.9, 0.1, 0.5, 0.0])


@pytest.fixture
def ledger():
    return SettlementLedger(clock=lambda: FIXED_NOW)


@pytest.fixture
def router(ledger, fixed_random):
    return SmartOrderRouter(
        threshold_usd=5000,
        sampler=LiquiditySourceSampler(rng=fixed_random),
        ledger=ledger,
        rng=fixed_random,
    )


@pytest.fixture
def random_router(ledger):
    return SmartOrderRouter(threshold_usd=5000, ledger=ledger)


@pytest.fixture
def make_executor():
    return FakeExecutor
