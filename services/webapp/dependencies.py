"""
Application-wide dependency providers for the web service.

The functions declared here are meant to be used with FastAPI's dependency
injection framework while keeping instantiation logic in one place. Each
provider is cached so the whole process shares one ledger and one router.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

import config
from exchanges.relayer import RelayerSettlementClient, build_relayer_client
from execution.basket_router import BasketRouter
from execution.ledger import SettlementLedger, default_ledger
from execution.smart_router import SmartOrderRouter
from services.storage.settings_store import load_routing_settings

logger = logging.getLogger(__name__)


def routing_defaults() -> dict:
    return {"institutional_threshold_usd": config.INSTITUTIONAL_THRESHOLD_USD}


def get_settlement_ledger() -> SettlementLedger:
    return default_ledger()


@lru_cache(maxsize=1)
def get_settlement_executor() -> Optional[RelayerSettlementClient]:
    """Return the relayer executor, or None when settlement is simulated."""
    client = build_relayer_client(
        config.RELAYER_URL,
        api_key=config.RELAYER_API_KEY,
        api_secret=config.RELAYER_API_SECRET,
        address=config.RELAYER_ADDRESS,
        timeout=config.RELAYER_TIMEOUT_SECONDS,
    )
    if client is None:
        logger.info("No relayer configured; settlements will be simulated.")
    return client


@lru_cache(maxsize=1)
def get_smart_router() -> SmartOrderRouter:
    """
    Return the shared router.

    The executor is not bound here: callers opt into on-chain settlement per
    request, otherwise chunks are simulated.
    """
    settings = load_routing_settings(routing_defaults())
    return SmartOrderRouter(
        threshold_usd=settings["institutional_threshold_usd"],
        ledger=get_settlement_ledger(),
    )


@lru_cache(maxsize=1)
def get_basket_router() -> BasketRouter:
    return BasketRouter(
        get_smart_router(),
        default_token=config.DEFAULT_TOKEN_ADDRESS,
        fund_share_price_usd=config.FUND_SHARE_PRICE_USD,
    )
