"""
In-memory, append-only ledger of settlement records.

Records live for the lifetime of the process only. Id assignment and the append
happen under one lock so ids stay unique and gapless across threads.
"""

from __future__ import annotations

import itertools
from datetime import datetime, timezone
from functools import lru_cache
from threading import Lock
from typing import Callable, Dict, Iterable, List, Optional

from execution.schemas import BasketAllocation, RecordKind, SettlementRecord


def _utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


class SettlementLedger:
    """Process-wide store of routing outcomes."""

    def __init__(
        self,
        *,
        clock: Callable[[], datetime] | None = None,
        id_factory: Callable[[], int] | None = None,
    ) -> None:
        self._clock = clock or _utc_now
        self._next_id = id_factory or itertools.count(1).__next__
        self._records: List[SettlementRecord] = []
        self._index: Dict[int, SettlementRecord] = {}
        self._lock = Lock()

    def append(
        self,
        *,
        kind: RecordKind,
        asset_identifier: str,
        requested_amount_usd: float,
        execution_plan: Iterable[str],
        tx_hashes: Iterable[str],
        allocations: Iterable[BasketAllocation] = (),
        fund_share_tx: Optional[str] = None,
    ) -> SettlementRecord:
        """Create the next record and store it."""
        plan = tuple(execution_plan)
        hashes = tuple(tx_hashes)
        allocation_items = tuple(allocations)
        with self._lock:
            record = SettlementRecord(
                id=self._next_id(),
                kind=kind,
                asset_identifier=asset_identifier,
                requested_amount_usd=requested_amount_usd,
                execution_plan=plan,
                tx_hashes=hashes,
                created_at=self._clock(),
                allocations=allocation_items,
                fund_share_tx=fund_share_tx,
            )
            if record.id in self._index:
                raise RuntimeError(f"Duplicate settlement record id {record.id}")
            self._records.append(record)
            self._index[record.id] = record
        return record

    def get(self, record_id: int) -> Optional[SettlementRecord]:
        with self._lock:
            return self._index.get(record_id)

    def list_recent(self, limit: int | None = None) -> List[SettlementRecord]:
        """Return records newest first."""
        with self._lock:
            records = list(reversed(self._records))
        if limit is not None:
            return records[: max(limit, 0)]
        return records

    def clear(self) -> None:
        with self._lock:
            self._records.clear()
            self._index.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


@lru_cache(maxsize=1)
def default_ledger() -> SettlementLedger:
    """Return the ledger shared by every router in this process."""
    return SettlementLedger()
