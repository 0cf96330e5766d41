"""
Dataclasses describing liquidity sources, settlement records and routing results.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Tuple


RecordKind = Literal["order", "basket"]
SettlementMethod = Literal["mint", "transfer", "simulated"]


@dataclass(slots=True)
class LiquiditySource:
    """Synthetic venue quote: price relative to 1.0 and a capacity ceiling in USD."""

    name: str
    price_multiplier: float
    available_usd: float

    @property
    def price_impact_pct(self) -> float:
        return (self.price_multiplier - 1.0) * 100

    def to_payload(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "priceMultiplier": self.price_multiplier,
            "availableUsd": self.available_usd,
        }


@dataclass(slots=True, frozen=True)
class BasketAllocation:
    """Share of a basket investment assigned to one asset."""

    symbol: str
    percent: float

    def to_payload(self) -> Dict[str, Any]:
        return {"symbol": self.symbol, "percent": self.percent}


@dataclass(slots=True)
class SettlementAttempt:
    """Outcome of settling a single chunk."""

    tx_hash: Optional[str] = None
    method: Optional[SettlementMethod] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.tx_hash is not None


@dataclass(slots=True, frozen=True)
class SettlementRecord:
    """Immutable ledger entry written once per routing call."""

    id: int
    kind: RecordKind
    asset_identifier: str
    requested_amount_usd: float
    execution_plan: Tuple[str, ...]
    tx_hashes: Tuple[str, ...]
    created_at: datetime
    allocations: Tuple[BasketAllocation, ...] = ()
    fund_share_tx: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "type": self.kind,
            "tokenAddress": self.asset_identifier,
            "amountUsd": self.requested_amount_usd,
            "executionPlan": list(self.execution_plan),
            "txHashes": list(self.tx_hashes),
            "createdAt": self.created_at.isoformat(),
        }
        if self.kind == "basket":
            payload["allocations"] = [allocation.to_payload() for allocation in self.allocations]
            payload["fundTx"] = self.fund_share_tx
        return payload


@dataclass(slots=True)
class RoutingResult:
    """Result of routing one order through the smart router."""

    success: bool
    execution_plan: List[str]
    tx_hashes: List[str]
    settlement_record: SettlementRecord
    routed_usd: float = 0.0
    unrouted_usd: float = 0.0
    # Chunks whose settlement attempt failed; routed + failed + unrouted == requested.
    failed_usd: float = 0.0

    def to_payload(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "executionPlan": list(self.execution_plan),
            "txHashes": list(self.tx_hashes),
            "txRecord": self.settlement_record.to_payload(),
        }


@dataclass(slots=True)
class BasketRoutingResult:
    """Aggregate result of routing every allocation of a basket."""

    success: bool
    execution_plan: List[str]
    tx_hashes: List[str]
    settlement_record: SettlementRecord
    fund_share_tx: Optional[str] = None
    allocation_results: List[RoutingResult] = field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "executionPlan": list(self.execution_plan),
            "txHashes": list(self.tx_hashes),
            "fundTokenTx": self.fund_share_tx,
            "txRecord": self.settlement_record.to_payload(),
        }
