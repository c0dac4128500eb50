"""Local-first food search backed by the ingestion pipeline."""

import logging
from dataclasses import dataclass
from uuid import UUID

from food_catalog.domain.foods import StoredFoodRecord
from food_catalog.services.cache import Cache
from food_catalog.services.catalog import FoodCatalogRepository
from food_catalog.services.ingestion import FoodIngestionPipeline

_logger = logging.getLogger(__name__)


@dataclass
class FoodSearchService:
    """Search the catalog, falling back to external providers on a miss."""

    repository: FoodCatalogRepository
    pipeline: FoodIngestionPipeline
    cache: Cache
    default_limit: int = 20
    max_limit: int = 50
    debug: bool = False

    async def search(
        self, query: str, limit: int | None = None, user_id: UUID | None = None
    ) -> list[StoredFoodRecord]:
        """Return catalog foods matching a query, ingesting them if needed."""
        cleaned = query.strip()
        resolved_limit = self.clamp_limit(limit)
        owner = user_id or "anon"
        cache_key = f"foods:search:{owner}:{cleaned.lower()}:{resolved_limit}"
        cached = self.cache.get(cache_key)
        if isinstance(cached, tuple):
            return list(cached)

        foods = self.repository.search_foods(cleaned, user_id, resolved_limit)
        if not foods and cleaned:
            foods = await self.pipeline.search_food(cleaned, resolved_limit)
            if self.debug:
                _logger.info(
                    "Food search catalog miss: query=%s ingested=%s",
                    cleaned,
                    len(foods),
                )
        # Cached as a tuple so callers only ever receive copies.
        self.cache.set(cache_key, tuple(foods))
        return list(foods)

    async def lookup_barcode(self, barcode: str) -> StoredFoodRecord | None:
        """Resolve a scanned barcode to a catalog food."""
        return await self.pipeline.lookup_barcode(barcode)

    def invalidate(self) -> None:
        """Forget cached search results after the catalog changed."""
        self.cache.clear()

    def clamp_limit(self, limit: int | None) -> int:
        if limit is None:
            return self.default_limit
        return min(max(limit, 1), self.max_limit)
