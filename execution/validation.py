"""
Input validation executed before any routing step is logged.
"""

from __future__ import annotations

import math
from typing import Iterable, List, Sequence

from execution.schemas import BasketAllocation


class RoutingError(ValueError):
    """Base class for routing errors surfaced to callers."""


class InvalidRequest(RoutingError):
    """Raised when a routing request is malformed; nothing is logged or recorded."""

    def __init__(self, violations: Sequence[str]) -> None:
        super().__init__("; ".join(violations))
        self.violations = list(violations)


def _is_positive_number(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value > 0


def ensure_valid_order(asset_identifier: str, amount_usd: float) -> None:
    """Raise InvalidRequest unless the asset is named and the amount is positive."""
    violations: List[str] = []
    if not isinstance(asset_identifier, str) or not asset_identifier.strip():
        violations.append("Asset identifier is required.")
    if not _is_positive_number(amount_usd):
        violations.append(f"Amount must be a positive number of USD (got {amount_usd!r}).")
    if violations:
        raise InvalidRequest(violations)


def ensure_valid_basket(allocations: Iterable[BasketAllocation], total_usd: float) -> List[BasketAllocation]:
    """
    Validate basket inputs and return the allocations as a list.

    Percentages are not required to sum to 100; the basket router reports a
    mismatch in the execution plan instead.
    """
    items = list(allocations or [])
    violations: List[str] = []
    if not items:
        violations.append("At least one allocation is required.")
    if not _is_positive_number(total_usd):
        violations.append(f"Total must be a positive number of USD (got {total_usd!r}).")
    for index, allocation in enumerate(items):
        if not allocation.symbol or not allocation.symbol.strip():
            violations.append(f"Allocation #{index + 1} is missing a symbol.")
        if isinstance(allocation.percent, bool) or not isinstance(allocation.percent, (int, float)) \
                or not math.isfinite(allocation.percent):
            violations.append(f"Allocation {allocation.symbol or index + 1} has a non-numeric percent.")
    if violations:
        raise InvalidRequest(violations)
    return items
