from __future__ import annotations
import logging
from dependents_crawler.domain.entities import Dependent
from dependents_crawler.domain.interfaces import IDeduplicator

log = logging.getLogger(__name__)


class RecordDeduplicator(IDeduplicator):
    """
    Two records are duplicates only if EVERY field matches, including the
    backward page link. The same dependent seen on two different pages is
    kept twice.

    Keys go into a set built from `existing`, so each batch costs
    O(len(existing) + len(batch)) instead of a scan per record.
    """

    def key(self, dependent: Dependent) -> object:
        return dependent

    def filter_fresh(self, existing: list[Dependent], batch: list[Dependent]) -> list[Dependent]:
        seen  = {self.key(d) for d in existing}
        fresh = [d for d in batch if self.key(d) not in seen]
        skipped = len(batch) - len(fresh)
        if skipped:
            log.info("Found %d duplicate dependent(s) when parsing, skipping them", skipped)
        return fresh


class IdentityDeduplicator(RecordDeduplicator):
    """
    Two records are duplicates when they name the same repository,
    whatever their counts or backward link.
    """

    def key(self, dependent: Dependent) -> object:
        return (dependent.owner, dependent.repo)


DEDUPLICATORS: dict[str, type[RecordDeduplicator]] = {
    "record":   RecordDeduplicator,
    "identity": IdentityDeduplicator,
}
