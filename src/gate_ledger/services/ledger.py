"""Ledger of access records for the active session.

The ledger is the source of truth during a session. Every mutation persists
the full snapshot through the record store; a failed persist does not undo
the in-memory mutation and is reported through the return value.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from gate_ledger.schemas.access_record import AccessRecord, RecordType

if TYPE_CHECKING:
    from gate_ledger.state_store import RecordStore

logger = logging.getLogger(__name__)


@dataclass
class LedgerSummary:
    """Counters shown on the dashboard."""

    total: int = 0
    entries: int = 0
    exits: int = 0
    material_exits: int = 0
    with_photo: int = 0


class Ledger:
    """Ordered, append-only sequence of access records.

    Usage:
        ledger = Ledger.open(store)
        ledger.append(record)
        records = ledger.snapshot()
    """

    def __init__(self, store: RecordStore, records: Iterable[AccessRecord] = ()) -> None:
        self.store = store
        self._records: list[AccessRecord] = list(records)

    @classmethod
    def open(cls, store: RecordStore) -> Ledger:
        """Rehydrate the ledger from the last persisted snapshot."""
        records = store.load()
        if records:
            logger.info("Restored %d unexported record(s)", len(records))
        return cls(store, records)

    def __len__(self) -> int:
        return len(self._records)

    @property
    def is_empty(self) -> bool:
        return not self._records

    def append(self, record: AccessRecord) -> bool:
        """Add a record at the end and persist.

        No validation of field contents happens here.

        Returns:
            True if the new snapshot was persisted
        """
        self._records.append(record)
        logger.debug("Appended record %s (%s)", record.id, record.type.value)
        return self._persist()

    def clear(self) -> bool:
        """Remove every record and persist the empty state. Irreversible."""
        count = len(self._records)
        self._records = []
        logger.info("Cleared %d record(s) from the ledger", count)
        return self._persist()

    def discard(self, records: Iterable[AccessRecord]) -> bool:
        """Remove exactly the given records, keeping any others in order.

        Records are matched by value, one removal per given record, so records
        appended after a snapshot was taken survive even when they reuse an id.
        """
        pending = Counter(records)
        kept: list[AccessRecord] = []
        for record in self._records:
            if pending[record] > 0:
                pending[record] -= 1
            else:
                kept.append(record)
        removed = len(self._records) - len(kept)
        self._records = kept
        logger.info("Discarded %d record(s), %d remain", removed, len(kept))
        return self._persist()

    def snapshot(self) -> tuple[AccessRecord, ...]:
        """Read-only copy of the current contents, in append order."""
        return tuple(self._records)

    def summary(self) -> LedgerSummary:
        summary = LedgerSummary(total=len(self._records))
        for record in self._records:
            if record.type == RecordType.ENTRY:
                summary.entries += 1
            else:
                summary.exits += 1
            if record.material_exit:
                summary.material_exits += 1
            if record.has_photo:
                summary.with_photo += 1
        return summary

    def _persist(self) -> bool:
        saved = self.store.save(self._records)
        if not saved:
            logger.warning(
                "Ledger change kept in memory only; %d record(s) not persisted",
                len(self._records),
            )
        return saved
