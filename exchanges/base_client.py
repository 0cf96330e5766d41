"""
Abstract definitions for settlement executors.

Concrete executors (e.g. the HTTP relayer) realize a routed chunk by minting or
transferring the target token to a recipient. Both primitives may raise on
network or chain errors; the router decides how to fall back.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(slots=True)
class RelayerCredentials:
    """Typed container for relayer authentication data."""

    api_key: str
    api_secret: str


@runtime_checkable
class SettlementExecutor(Protocol):
    """Protocol describing the capability the router settles chunks through."""

    address: str
    enabled: bool

    def mint(self, asset_id: str, to_address: str, amount: str) -> str:
        """Mint ``amount`` (decimal string) of ``asset_id`` to ``to_address``; return the tx hash."""

    def transfer(self, asset_id: str, to_address: str, amount: str) -> str:
        """Transfer ``amount`` (decimal string) of ``asset_id`` to ``to_address``; return the tx hash."""
