"""
Basket execution: split a USD investment across assets and route each leg.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from exchanges.base_client import SettlementExecutor
from execution.schemas import BasketAllocation, BasketRoutingResult, RoutingResult
from execution.settlement import executor_enabled, format_token_amount
from execution.smart_router import SmartOrderRouter, format_usd
from execution.validation import InvalidRequest, ensure_valid_basket

logger = logging.getLogger(__name__)

DEFAULT_FUND_SHARE_PRICE_USD = 100.0
_PERCENT_TOLERANCE = 0.01


def _format_percent(value: float) -> str:
    return f"{value:g}"


class BasketRouter:
    """
    Route a basket of allocations through a shared SmartOrderRouter.

    Allocations are processed in the order given; one allocation failing does
    not stop the rest. Percentages are applied as given, so a basket that does
    not add up to 100% is under- or over-allocated and flagged in the plan.
    """

    def __init__(
        self,
        router: SmartOrderRouter,
        *,
        default_token: str = "",
        fund_share_price_usd: float = DEFAULT_FUND_SHARE_PRICE_USD,
    ) -> None:
        self._router = router
        self._default_token = default_token
        self._fund_share_price_usd = fund_share_price_usd

    @property
    def router(self) -> SmartOrderRouter:
        return self._router

    def route_basket(
        self,
        allocations: Iterable[BasketAllocation],
        total_usd: float,
        fund_token_identifier: Optional[str] = None,
        recipient: Optional[str] = None,
        settlement_executor: Optional[SettlementExecutor] = None,
    ) -> BasketRoutingResult:
        items = ensure_valid_basket(allocations, total_usd)
        executor = (
            settlement_executor if settlement_executor is not None else self._router.settlement_executor
        )

        plan: List[str] = [f"Executing basket for {format_usd(total_usd)} across {len(items)} assets"]
        tx_hashes: List[str] = []
        leg_results: List[RoutingResult] = []

        percent_total = sum(allocation.percent for allocation in items)
        if abs(percent_total - 100.0) > _PERCENT_TOLERANCE:
            plan.append(f"⚠️ Allocations sum to {_format_percent(percent_total)}% (expected 100%)")

        for allocation in items:
            chunk_usd = total_usd * allocation.percent / 100
            plan.append(
                f"- Allocating {_format_percent(allocation.percent)}% -> "
                f"{format_usd(chunk_usd)} to {allocation.symbol}"
            )
            token = fund_token_identifier or self._default_token or allocation.symbol
            try:
                result = self._router.route(
                    token,
                    chunk_usd,
                    recipient=recipient,
                    settlement_executor=executor,
                )
            except InvalidRequest as exc:
                logger.warning("Skipping basket allocation %s: %s", allocation.symbol, exc)
                plan.append(f"⚠️ Error executing allocation for {allocation.symbol}: {exc}")
                continue
            plan.extend(f"{allocation.symbol}: {step}" for step in result.execution_plan)
            tx_hashes.extend(result.tx_hashes)
            leg_results.append(result)

        fund_share_tx = None
        if fund_token_identifier and executor_enabled(executor):
            fund_share_tx = self._mint_fund_shares(
                fund_token_identifier, total_usd, recipient or executor.address, executor, plan
            )
            if fund_share_tx:
                tx_hashes.append(fund_share_tx)

        record = self._router.ledger.append(
            kind="basket",
            asset_identifier=fund_token_identifier or self._default_token,
            requested_amount_usd=total_usd,
            execution_plan=plan,
            tx_hashes=tx_hashes,
            allocations=items,
            fund_share_tx=fund_share_tx,
        )
        logger.info(
            "Basket of %d assets for %s produced %d settlement(s); record #%d",
            len(items),
            format_usd(total_usd),
            len(tx_hashes),
            record.id,
        )
        return BasketRoutingResult(
            success=len(tx_hashes) > 0,
            execution_plan=plan,
            tx_hashes=tx_hashes,
            settlement_record=record,
            fund_share_tx=fund_share_tx,
            allocation_results=leg_results,
        )

    def _mint_fund_shares(
        self,
        fund_token: str,
        total_usd: float,
        to_address: str,
        executor: SettlementExecutor,
        plan: List[str],
    ) -> Optional[str]:
        shares = format_token_amount(total_usd / self._fund_share_price_usd)
        plan.append(f"Minting {shares} fund-shares to {to_address}")
        try:
            tx_hash = executor.mint(fund_token, to_address, shares)
        except Exception as exc:
            logger.warning("Fund share mint on %s failed: %s", fund_token, exc)
            plan.append(f"⚠️ Failed to mint fund token: {exc}")
            return None
        plan.append(f"✓ Fund token minted: {tx_hash}")
        return tx_hash
