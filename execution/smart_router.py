"""
Smart order router deciding between instant settlement and multi-source fills.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from exchanges.base_client import SettlementExecutor
from execution.ledger import SettlementLedger, default_ledger
from execution.sampler import LiquiditySourceSampler, RandomSource
from execution.schemas import RoutingResult, SettlementAttempt
from execution.settlement import settle_chunk
from execution.validation import ensure_valid_order

logger = logging.getLogger(__name__)

DEFAULT_INSTITUTIONAL_THRESHOLD_USD = 5000.0
# No single source may fill more than this share of the original request.
MAX_SOURCE_SHARE = 0.5
# Float residue below this is treated as fully routed.
_DUST_USD = 1e-9


def format_usd(value: float) -> str:
    return f"${value:,.2f}"


class SmartOrderRouter:
    """
    Route a USD order either as one instant settlement or across sampled venues.

    Orders below the institutional threshold settle in a single attempt. Larger
    orders walk the sampled sources from cheapest to most expensive, taking at
    most half of the original request (and never more than the venue capacity)
    from each, until the order is filled or the sources run out. Settlement
    failures are recorded in the execution plan rather than raised so callers
    can always display the attempted plan.
    """

    def __init__(
        self,
        *,
        threshold_usd: float = DEFAULT_INSTITUTIONAL_THRESHOLD_USD,
        sampler: LiquiditySourceSampler | None = None,
        ledger: SettlementLedger | None = None,
        settlement_executor: SettlementExecutor | None = None,
        rng: RandomSource | None = None,
    ) -> None:
        self.threshold_usd = float(threshold_usd)
        self._rng = rng
        self._sampler = sampler if sampler is not None else LiquiditySourceSampler(rng=rng)
        self._ledger = ledger if ledger is not None else default_ledger()
        self._settlement_executor = settlement_executor

    @property
    def ledger(self) -> SettlementLedger:
        return self._ledger

    @property
    def sampler(self) -> LiquiditySourceSampler:
        return self._sampler

    @property
    def settlement_executor(self) -> SettlementExecutor | None:
        return self._settlement_executor

    def route(
        self,
        asset_identifier: str,
        requested_amount_usd: float,
        recipient: Optional[str] = None,
        settlement_executor: Optional[SettlementExecutor] = None,
    ) -> RoutingResult:
        """
        Route ``requested_amount_usd`` of ``asset_identifier``.

        Raises:
            InvalidRequest: if the asset is missing or the amount is not positive.
        """
        ensure_valid_order(asset_identifier, requested_amount_usd)
        executor = (
            settlement_executor if settlement_executor is not None else self._settlement_executor
        )
        threshold = self.threshold_usd

        plan: List[str] = []
        tx_hashes: List[str] = []

        if requested_amount_usd < threshold:
            routed, failed, remaining = self._route_instant(
                asset_identifier, requested_amount_usd, threshold, recipient, executor, plan, tx_hashes
            )
        else:
            routed, failed, remaining = self._route_smart(
                asset_identifier, requested_amount_usd, recipient, executor, plan, tx_hashes
            )

        record = self._ledger.append(
            kind="order",
            asset_identifier=asset_identifier,
            requested_amount_usd=requested_amount_usd,
            execution_plan=plan,
            tx_hashes=tx_hashes,
        )
        logger.info(
            "Routed %s of %s in %d settlement(s); record #%d",
            format_usd(requested_amount_usd),
            asset_identifier,
            len(tx_hashes),
            record.id,
        )
        return RoutingResult(
            success=len(tx_hashes) > 0,
            execution_plan=plan,
            tx_hashes=tx_hashes,
            settlement_record=record,
            routed_usd=routed,
            unrouted_usd=remaining,
            failed_usd=failed,
        )

    def _route_instant(
        self,
        asset_identifier: str,
        amount_usd: float,
        threshold: float,
        recipient: Optional[str],
        executor: Optional[SettlementExecutor],
        plan: List[str],
        tx_hashes: List[str],
    ) -> tuple[float, float, float]:
        plan.append(f"Instant route: amount below {format_usd(threshold)}")
        plan.append(f"→ Single settlement for {format_usd(amount_usd)}")
        attempt = settle_chunk(
            asset_identifier, amount_usd, recipient=recipient, executor=executor, rng=self._rng
        )
        if attempt.succeeded:
            plan.append(_success_step(attempt))
            tx_hashes.append(attempt.tx_hash)
            return amount_usd, 0.0, 0.0
        plan.append(f"⚠️ Settlement failed: {attempt.error}")
        return 0.0, amount_usd, 0.0

    def _route_smart(
        self,
        asset_identifier: str,
        amount_usd: float,
        recipient: Optional[str],
        executor: Optional[SettlementExecutor],
        plan: List[str],
        tx_hashes: List[str],
    ) -> tuple[float, float, float]:
        plan.append(f"Smart routing engaged for {format_usd(amount_usd)}")
        sources = self._sampler.sample_sources()
        logger.debug(
            "Sampled sources: %s",
            ", ".join(f"{source.name}@{source.price_multiplier:.5f}" for source in sources),
        )
        per_source_cap = amount_usd * MAX_SOURCE_SHARE
        remaining = amount_usd
        routed = 0.0
        failed = 0.0
        for source in sources:
            if remaining <= _DUST_USD:
                break
            take = min(remaining, min(source.available_usd, per_source_cap))
            plan.append(
                f"→ Route {format_usd(take)} via {source.name} "
                f"(impact {source.price_impact_pct:.3f}%)"
            )
            attempt = settle_chunk(
                asset_identifier, take, recipient=recipient, executor=executor, rng=self._rng
            )
            if attempt.succeeded:
                plan.append(_success_step(attempt, venue=source.name))
                tx_hashes.append(attempt.tx_hash)
                routed += take
            else:
                plan.append(f"⚠️ Failed on {source.name}: {attempt.error}")
                failed += take
            remaining -= take

        if remaining > _DUST_USD:
            plan.append(f"⚠️ {format_usd(remaining)} remaining unrouted - fallback to slow settlement")
            logger.warning(
                "Smart routing left %s of %s unrouted", format_usd(remaining), asset_identifier
            )
        else:
            remaining = 0.0
        return routed, failed, remaining

    def is_smart_routed(self, amount_usd: float) -> bool:
        return amount_usd >= self.threshold_usd


def _success_step(attempt: SettlementAttempt, *, venue: Optional[str] = None) -> str:
    if attempt.method == "simulated":
        if venue:
            return f"(sim) Settled {venue} chunk: {attempt.tx_hash}"
        return f"(sim) Settled: {attempt.tx_hash}"
    verb = "minted" if attempt.method == "mint" else "transferred"
    if venue:
        return f"✓ {venue} chunk {verb} on-chain: {attempt.tx_hash}"
    return f"✓ Settled on-chain ({verb}): {attempt.tx_hash}"
