"""
Smart order routing: liquidity sampling, order splitting and basket execution.
"""

from .basket_router import BasketRouter
from .ledger import SettlementLedger, default_ledger
from .sampler import LiquiditySourceSampler, RandomSource, synthetic_tx_hash
from .schemas import (
    BasketAllocation,
    BasketRoutingResult,
    LiquiditySource,
    RoutingResult,
    SettlementAttempt,
    SettlementRecord,
)
from .smart_router import SmartOrderRouter
from .validation import InvalidRequest, RoutingError

__all__ = [
    "BasketAllocation",
    "BasketRouter",
    "BasketRoutingResult",
    "InvalidRequest",
    "LiquiditySource",
    "LiquiditySourceSampler",
    "RandomSource",
    "RoutingError",
    "RoutingResult",
    "SettlementAttempt",
    "SettlementLedger",
    "SettlementRecord",
    "SmartOrderRouter",
    "default_ledger",
    "synthetic_tx_hash",
]
