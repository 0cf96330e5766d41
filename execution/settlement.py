"""
Chunk settlement policy: mint first, transfer on failure, simulate without an executor.
"""

from __future__ import annotations

import logging
from typing import Optional

from exchanges.base_client import SettlementExecutor
from execution.sampler import RandomSource, synthetic_tx_hash
from execution.schemas import SettlementAttempt

logger = logging.getLogger(__name__)


def executor_enabled(executor: Optional[SettlementExecutor]) -> bool:
    return executor is not None and bool(getattr(executor, "enabled", True))


def format_token_amount(amount_usd: float) -> str:
    """Token amount at a 1 USD reference price, six decimals."""
    return f"{amount_usd:.6f}"


def settle_chunk(
    asset_identifier: str,
    amount_usd: float,
    *,
    recipient: Optional[str] = None,
    executor: Optional[SettlementExecutor] = None,
    rng: Optional[RandomSource] = None,
) -> SettlementAttempt:
    """
    Realize one chunk and report the outcome as data.

    Failures never raise: the caller records them in the execution plan.
    """
    if not executor_enabled(executor):
        return SettlementAttempt(tx_hash=synthetic_tx_hash(rng), method="simulated")

    to_address = recipient or executor.address
    amount = format_token_amount(amount_usd)
    try:
        return SettlementAttempt(tx_hash=executor.mint(asset_identifier, to_address, amount), method="mint")
    except Exception as exc:
        logger.debug("Mint of %s %s failed (%s); trying transfer", amount, asset_identifier, exc)
    try:
        return SettlementAttempt(
            tx_hash=executor.transfer(asset_identifier, to_address, amount),
            method="transfer",
        )
    except Exception as exc:
        logger.warning("Settlement of %s %s to %s failed: %s", amount, asset_identifier, to_address, exc)
        return SettlementAttempt(error=str(exc) or exc.__class__.__name__)
