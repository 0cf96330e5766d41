"""
Synthetic liquidity venues and the randomness used to jitter their quotes.

Every call draws fresh jitter so repeated samples model live quote movement.
Tests inject a deterministic ``RandomSource`` instead of seeding globals.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import List, Protocol, Sequence, runtime_checkable

from execution.schemas import LiquiditySource

REFERENCE_PRICE = 1.0
_HEX_DIGITS = "0123456789abcdef"


@runtime_checkable
class RandomSource(Protocol):
    """Anything yielding floats uniformly distributed in [0, 1)."""

    def uniform(self) -> float:
        """Return the next sample in [0, 1)."""


class SystemRandomSource:
    """Default randomness backed by the ``random`` module."""

    def uniform(self) -> float:
        return random.random()


@dataclass(slots=True, frozen=True)
class VenueSpec:
    """Static description of a venue: quote jitter amplitude and capacity."""

    name: str
    jitter_amplitude: float
    capacity_usd: float


# CEX quote is the tightest and deepest; SushiSwap models the shallowest pool.
DEFAULT_VENUES: tuple[VenueSpec, ...] = (
    VenueSpec("Uniswap", 0.002, 500_000.0),
    VenueSpec("SushiSwap", 0.003, 200_000.0),
    VenueSpec("Curve", 0.0015, 300_000.0),
    VenueSpec("CEX-Quote", 0.0008, 1_000_000.0),
)


class LiquiditySourceSampler:
    """Produce ranked synthetic liquidity sources, cheapest first."""

    def __init__(
        self,
        venues: Sequence[VenueSpec] | None = None,
        *,
        rng: RandomSource | None = None,
    ) -> None:
        self._venues = tuple(venues) if venues is not None else DEFAULT_VENUES
        self._rng = rng if rng is not None else SystemRandomSource()

    @property
    def venues(self) -> tuple[VenueSpec, ...]:
        return self._venues

    def sample_sources(self) -> List[LiquiditySource]:
        sources = [
            LiquiditySource(
                name=venue.name,
                price_multiplier=REFERENCE_PRICE + (self._rng.uniform() - 0.5) * venue.jitter_amplitude,
                available_usd=venue.capacity_usd,
            )
            for venue in self._venues
        ]
        sources.sort(key=lambda source: source.price_multiplier)
        return sources


def synthetic_tx_hash(rng: RandomSource | None = None) -> str:
    """Return ``0x`` followed by 64 lowercase hex digits."""
    source = rng if rng is not None else SystemRandomSource()
    digits = (_HEX_DIGITS[min(int(source.uniform() * 16), 15)] for _ in range(64))
    return "0x" + "".join(digits)
