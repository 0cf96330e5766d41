"""
Prefer a remote routing backend and fall back to in-process routing on failure.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Literal, Optional

from exchanges.base_client import SettlementExecutor
from exchanges.ramp_backend import RampBackendClient, RampBackendError
from execution.basket_router import BasketRouter
from execution.schemas import BasketAllocation
from execution.settlement import executor_enabled

logger = logging.getLogger(__name__)

ExecutionSource = Literal["backend", "local"]


@dataclass(slots=True)
class ExecutionOutcome:
    """What the caller displays, regardless of where routing happened."""

    success: bool
    execution_plan: List[str]
    tx_hashes: List[str]
    source: ExecutionSource
    fund_share_tx: Optional[str] = None
    record_id: Optional[int] = None
    warnings: List[str] = field(default_factory=list)


class FallbackOrderExecutor:
    """
    Route through the backend when one is configured, otherwise locally.

    A backend failure is noted as the first step of the local plan so the user
    can see why the result is simulated.
    """

    def __init__(
        self,
        basket_router: BasketRouter,
        *,
        backend: RampBackendClient | None = None,
    ) -> None:
        self._basket_router = basket_router
        self._router = basket_router.router
        self._backend = backend

    def execute_order(
        self,
        token_address: str,
        amount_usd: float,
        *,
        recipient: str | None = None,
        settlement_executor: SettlementExecutor | None = None,
    ) -> ExecutionOutcome:
        preface: List[str] = []
        if self._backend is not None:
            try:
                payload = self._backend.route_order(
                    token_address,
                    amount_usd,
                    recipient=recipient,
                    do_on_chain=executor_enabled(settlement_executor),
                )
            except RampBackendError as exc:
                logger.warning("Backend route-order failed, routing locally: %s", exc)
                preface.append(f"Backend error: {exc}; falling back to local simulation")
            else:
                return _outcome_from_payload(payload)

        result = self._router.route(
            token_address,
            amount_usd,
            recipient=recipient,
            settlement_executor=settlement_executor,
        )
        return ExecutionOutcome(
            success=result.success,
            execution_plan=preface + result.execution_plan,
            tx_hashes=list(result.tx_hashes),
            source="local",
            record_id=result.settlement_record.id,
            warnings=list(preface),
        )

    def execute_basket(
        self,
        allocations: Iterable[BasketAllocation],
        total_usd: float,
        *,
        fund_token_address: str | None = None,
        recipient: str | None = None,
        settlement_executor: SettlementExecutor | None = None,
    ) -> ExecutionOutcome:
        items = list(allocations)
        preface: List[str] = []
        if self._backend is not None:
            try:
                payload = self._backend.execute_basket(
                    items,
                    total_usd,
                    fund_token_address=fund_token_address,
                    recipient=recipient,
                    do_on_chain=executor_enabled(settlement_executor),
                )
            except RampBackendError as exc:
                logger.warning("Backend execute-basket failed, routing locally: %s", exc)
                preface.append(f"Backend error: {exc}; falling back to local simulation")
            else:
                return _outcome_from_payload(payload)

        result = self._basket_router.route_basket(
            items,
            total_usd,
            fund_token_identifier=fund_token_address,
            recipient=recipient,
            settlement_executor=settlement_executor,
        )
        return ExecutionOutcome(
            success=result.success,
            execution_plan=preface + result.execution_plan,
            tx_hashes=list(result.tx_hashes),
            source="local",
            fund_share_tx=result.fund_share_tx,
            record_id=result.settlement_record.id,
            warnings=list(preface),
        )


def _outcome_from_payload(payload: dict) -> ExecutionOutcome:
    record = payload.get("txRecord")
    if not isinstance(record, dict):
        record = {}
    return ExecutionOutcome(
        success=bool(payload.get("success")),
        execution_plan=list(payload.get("executionPlan") or []),
        tx_hashes=list(payload.get("txHashes") or []),
        source="backend",
        fund_share_tx=payload.get("fundTokenTx") or record.get("fundTx"),
        record_id=record.get("id"),
    )
