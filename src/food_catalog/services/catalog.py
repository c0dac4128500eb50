"""Reconcile search candidates with the global food catalog."""

import logging
from dataclasses import dataclass, field
from typing import Protocol
from uuid import UUID

from food_catalog.domain.errors import CatalogWriteFailure
from food_catalog.domain.foods import CandidateRecord, StoredFoodRecord

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatalogMergeRows:
    """Rows produced by one atomic catalog merge."""

    existing_with_barcode: list[StoredFoodRecord] = field(default_factory=list)
    inserted_with_barcode: list[StoredFoodRecord] = field(default_factory=list)
    inserted_without_barcode: list[StoredFoodRecord] = field(default_factory=list)


class FoodCatalogRepository(Protocol):
    """Persistence interface for the food catalog."""

    def search_foods(
        self, query: str, user_id: UUID | None, limit: int
    ) -> list[StoredFoodRecord]:
        """Search global foods and the user's own foods by name."""

    def get_global_by_barcode(self, barcode: str) -> StoredFoodRecord | None:
        """Return the global food with a barcode, if present."""

    def merge_global(
        self,
        with_barcode: list[CandidateRecord],
        without_barcode: list[CandidateRecord],
    ) -> CatalogMergeRows:
        """Atomically insert candidates as global foods.

        Barcoded candidates are inserted only when the barcode is new; existing
        global rows for those barcodes are returned alongside. Candidates without
        a barcode are always inserted. Raises CatalogWriteFailure and leaves the
        catalog untouched when any write fails.
        """


@dataclass
class CatalogMerger:
    """Insert-or-reuse boundary between search results and the catalog."""

    repository: FoodCatalogRepository

    def merge(self, candidates: list[CandidateRecord]) -> list[StoredFoodRecord]:
        """Persist deduplicated candidates and return their catalog rows."""
        if not candidates:
            return []
        with_barcode = [candidate for candidate in candidates if candidate.barcode]
        without_barcode = [
            candidate for candidate in candidates if not candidate.barcode
        ]
        try:
            rows = self.repository.merge_global(with_barcode, without_barcode)
        except CatalogWriteFailure:
            _logger.exception(
                "Catalog merge failed: barcoded=%s plain=%s",
                len(with_barcode),
                len(without_barcode),
            )
            raise

        combined = [
            *rows.existing_with_barcode,
            *rows.inserted_with_barcode,
            *rows.inserted_without_barcode,
        ]
        seen: set[UUID] = set()
        merged: list[StoredFoodRecord] = []
        for record in combined:
            if record.id in seen:
                continue
            seen.add(record.id)
            merged.append(record)
        _logger.info(
            "Catalog merge: candidates=%s existing=%s inserted=%s",
            len(candidates),
            len(rows.existing_with_barcode),
            len(rows.inserted_with_barcode) + len(rows.inserted_without_barcode),
        )
        return merged
