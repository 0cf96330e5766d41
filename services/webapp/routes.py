"""
HTTP route handlers for the routing web service.
"""

from __future__ import annotations

import logging
import time
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field, field_validator

from config import MAX_THRESHOLD_USD
from exchanges.relayer import RelayerSettlementClient
from execution.basket_router import BasketRouter
from execution.ledger import SettlementLedger
from execution.schemas import BasketAllocation
from execution.smart_router import SmartOrderRouter
from services.storage.settings_store import save_routing_settings
from services.webapp.dependencies import (
    get_basket_router,
    get_settlement_executor,
    get_settlement_ledger,
    get_smart_router,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class QuotePayload(_CamelModel):
    amount_usd: float = Field(..., alias="amountUsd", gt=0, description="Order size in USD.")


class RouteOrderPayload(_CamelModel):
    """Request payload for routing a single order."""

    token_address: str = Field(..., alias="tokenAddress", min_length=1, description="Target token identifier.")
    amount_usd: float = Field(..., alias="amountUsd", description="Order size in USD.")
    recipient: Optional[str] = Field(None, description="Recipient address; defaults to the relayer address.")
    do_on_chain: bool = Field(False, alias="doOnChain", description="Settle through the relayer when configured.")


class AllocationPayload(_CamelModel):
    symbol: str = Field(..., min_length=1)
    percent: float

    @field_validator("symbol")
    @classmethod
    def _normalize_symbol(cls, value: str) -> str:
        symbol = (value or "").strip().upper()
        if not symbol:
            raise ValueError("symbol is required")
        return symbol


class ExecuteBasketPayload(_CamelModel):
    """Request payload for executing a basket of allocations."""

    allocations: List[AllocationPayload] = Field(..., min_length=1)
    total_usd: float = Field(..., alias="totalUsd", description="Total basket investment in USD.")
    fund_token_address: Optional[str] = Field(None, alias="fundTokenAddress")
    recipient: Optional[str] = None
    do_on_chain: bool = Field(False, alias="doOnChain")


class RoutingSettingsPayload(_CamelModel):
    institutional_threshold_usd: float = Field(
        ...,
        alias="institutionalThresholdUsd",
        gt=0,
        le=MAX_THRESHOLD_USD,
        description="USD cutoff between instant settlement and smart routing.",
    )


def _resolve_executor(do_on_chain: bool) -> Optional[RelayerSettlementClient]:
    if not do_on_chain:
        return None
    executor = get_settlement_executor()
    if executor is None:
        logger.info("On-chain settlement requested but no relayer configured; simulating.")
    return executor


@router.get("/health", summary="Service health probe")
def health_check() -> dict:
    """Return a static payload for uptime checks."""
    return {"ok": True, "time": int(time.time() * 1000)}


@router.post("/quote", summary="Sample liquidity sources for an order size")
def quote(
    payload: QuotePayload,
    smart_router: SmartOrderRouter = Depends(get_smart_router),
) -> dict:
    sources = smart_router.sampler.sample_sources()
    return {
        "amountUsd": payload.amount_usd,
        "route": "smart" if smart_router.is_smart_routed(payload.amount_usd) else "instant",
        "sources": [source.to_payload() for source in sources],
    }


@router.post("/route-order", summary="Route an order and settle it")
def route_order(
    payload: RouteOrderPayload,
    smart_router: SmartOrderRouter = Depends(get_smart_router),
) -> dict:
    result = smart_router.route(
        payload.token_address,
        payload.amount_usd,
        recipient=payload.recipient,
        settlement_executor=_resolve_executor(payload.do_on_chain),
    )
    return result.to_payload()


@router.post("/execute-basket", summary="Route every allocation of a basket")
def execute_basket(
    payload: ExecuteBasketPayload,
    basket_router: BasketRouter = Depends(get_basket_router),
) -> dict:
    allocations = [
        BasketAllocation(symbol=item.symbol, percent=item.percent) for item in payload.allocations
    ]
    result = basket_router.route_basket(
        allocations,
        payload.total_usd,
        fund_token_identifier=payload.fund_token_address,
        recipient=payload.recipient,
        settlement_executor=_resolve_executor(payload.do_on_chain),
    )
    return result.to_payload()


@router.get("/txs", summary="List settlement records, newest first")
def list_txs(
    limit: Optional[int] = None,
    ledger: SettlementLedger = Depends(get_settlement_ledger),
) -> dict:
    if limit is not None and limit < 0:
        raise HTTPException(status_code=400, detail="limit must be non-negative.")
    return {"txs": [record.to_payload() for record in ledger.list_recent(limit)]}


@router.get("/settings/routing", summary="Current routing settings")
def get_routing_settings(smart_router: SmartOrderRouter = Depends(get_smart_router)) -> dict:
    return {"institutionalThresholdUsd": smart_router.threshold_usd}


@router.post("/settings/routing", summary="Update routing settings")
def update_routing_settings(
    payload: RoutingSettingsPayload,
    smart_router: SmartOrderRouter = Depends(get_smart_router),
) -> dict:
    smart_router.threshold_usd = payload.institutional_threshold_usd
    save_routing_settings({"institutional_threshold_usd": payload.institutional_threshold_usd})
    logger.info("Institutional threshold updated to %.2f USD", payload.institutional_threshold_usd)
    return {"institutionalThresholdUsd": smart_router.threshold_usd}
