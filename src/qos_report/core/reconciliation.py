"""
Reconciliation of notification extracts.

Two merges live here:
- StatusMerger joins a status extract onto a base extract by trimmed
  notification number (PPAP and deviation exports ship status separately)
- merge_corrections() overlays manually corrected records onto raw ones
  by record id
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Iterable, Protocol, Sequence, TypeVar

from .models import Notification, StatusEntry

logger = logging.getLogger(__name__)

N = TypeVar("N", bound=Notification)


@dataclass
class MergeResult:
    """Summary of merging a status extract onto base records."""

    records: list = field(default_factory=list)
    matched: int = 0
    unmatched: int = 0
    unmatched_numbers: list[str] = field(default_factory=list)

    @property
    def match_rate(self) -> float:
        total = self.matched + self.unmatched
        if total == 0:
            return 0
        return self.matched / total

    def summary(self) -> dict:
        return {
            "total": self.matched + self.unmatched,
            "matched": self.matched,
            "unmatched": self.unmatched,
            "match_rate": f"{self.match_rate:.1%}",
        }


class StatusMerger:
    """
    Attaches status entries to notifications by notification number.

    Matched records take the entry's resolved status and raw text.
    Unmatched records keep whatever status they already carry, which is
    None unless their own parser read one inline.

    Usage:
        merger = StatusMerger(status_entries)
        result = merger.merge(deviations)
    """

    def __init__(self, entries: Iterable[StatusEntry]):
        self._lookup: dict[str, StatusEntry] = {}
        for entry in entries:
            key = self._key(entry.notification_number)
            # Entries without any status never overwrite a record's own
            if key and (entry.status is not None or entry.status_text):
                # Later rows of the status extract win
                self._lookup[key] = entry

    @staticmethod
    def _key(number: str | None) -> str:
        return (number or "").strip()

    def merge(self, records: Sequence[N]) -> MergeResult:
        merged = []
        matched = 0
        unmatched_numbers = []

        for record in records:
            entry = self._lookup.get(self._key(record.notification_number))
            if entry is None:
                merged.append(record)
                unmatched_numbers.append(record.notification_number)
                continue
            merged.append(replace(record, status=entry.status, status_text=entry.status_text))
            matched += 1

        result = MergeResult(
            records=merged,
            matched=matched,
            unmatched=len(unmatched_numbers),
            unmatched_numbers=unmatched_numbers,
        )
        logger.info("Status merge: %s", result.summary())
        return result


class HasId(Protocol):
    id: str


R = TypeVar("R", bound=HasId)


def merge_corrections(raw: Sequence[R], corrected: Sequence[R]) -> list[R]:
    """
    Overlay corrected records onto raw records by id.

    Corrected records come first; raw records whose id was corrected are
    dropped, the rest are appended in their original order.
    """
    corrected_ids = {record.id for record in corrected}
    kept = [record for record in raw if record.id not in corrected_ids]
    return list(corrected) + kept
