"""Food ingestion pipeline: providers to catalog."""

import asyncio
import logging
from dataclasses import dataclass, replace

from food_catalog.domain.errors import FoodSearchUnavailable, ProviderUnavailable
from food_catalog.domain.foods import (
    LOW_TRUST_SOURCES,
    CandidateRecord,
    FoodSource,
    StoredFoodRecord,
)
from food_catalog.services.catalog import CatalogMerger
from food_catalog.services.dedupe import dedupe_candidates
from food_catalog.services.providers import ProviderAdapter
from food_catalog.services.quality import filter_low_quality

_logger = logging.getLogger(__name__)


@dataclass
class FoodIngestionPipeline:
    """Fetch, normalize, filter, dedupe and merge external food data."""

    adapters: list[ProviderAdapter]
    merger: CatalogMerger
    provider_timeout_seconds: float = 10.0

    async def search_food(self, query: str, limit: int) -> list[StoredFoodRecord]:
        """Search every enabled provider and merge the results into the catalog."""
        return await self.ingest(query, limit)

    async def ingest(
        self,
        query: str,
        limit: int,
        sources: set[FoodSource] | None = None,
    ) -> list[StoredFoodRecord]:
        """Search the selected providers and merge the results into the catalog.

        Providers run concurrently; one failing or timing out yields no
        candidates from it but does not abort the others. FoodSearchUnavailable
        is raised only when every selected provider failed. Every merged
        candidate is persisted, but at most ``limit`` records are returned.
        """
        cleaned = query.strip()
        if not cleaned or limit < 1:
            return []
        adapters = [
            adapter
            for adapter in self._enabled_adapters()
            if sources is None or adapter.source in sources
        ]
        if not adapters:
            return []

        batches = await asyncio.gather(
            *(self._search_adapter(adapter, cleaned, limit) for adapter in adapters)
        )
        failed = [
            adapter.source
            for adapter, batch in zip(adapters, batches, strict=True)
            if batch is None
        ]
        if len(failed) == len(adapters):
            raise FoodSearchUnavailable("No food provider is available")

        candidates = [
            candidate for batch in batches if batch for candidate in batch
        ]
        usable = filter_low_quality(candidates)
        unique = dedupe_candidates(usable)
        records = self.merger.merge(unique)
        _logger.info(
            "Food ingestion: query=%s candidates=%s usable=%s unique=%s "
            "records=%s failed=%s",
            cleaned,
            len(candidates),
            len(usable),
            len(unique),
            len(records),
            ",".join(failed) or "-",
        )
        return records[:limit]

    async def lookup_barcode(self, barcode: str) -> StoredFoodRecord | None:
        """Resolve a barcode from the catalog first, then from providers."""
        code = barcode.strip()
        if not code:
            return None
        existing = self.merger.repository.get_global_by_barcode(code)
        if existing is not None:
            return existing

        adapters = [
            adapter for adapter in self._enabled_adapters() if adapter.supports_barcode
        ]
        failures = 0
        for adapter in adapters:
            try:
                candidate = await asyncio.wait_for(
                    adapter.lookup_by_barcode(code),
                    timeout=self.provider_timeout_seconds,
                )
            except (ProviderUnavailable, TimeoutError) as exc:
                failures += 1
                _log_provider_failure(adapter.source, "barcode", exc)
                continue
            except Exception:
                failures += 1
                _logger.exception("Provider %s barcode failed", adapter.source)
                continue
            if candidate is None:
                continue
            if not candidate.barcode:
                candidate = replace(candidate, barcode=code)
            if not filter_low_quality([candidate]):
                _logger.info("Barcode %s from %s rejected", code, adapter.source)
                continue
            records = self.merger.merge([candidate])
            return records[0] if records else None

        if adapters and failures == len(adapters):
            raise FoodSearchUnavailable("No barcode provider is available")
        return None

    def _enabled_adapters(self) -> list[ProviderAdapter]:
        """Return enabled adapters with high-trust sources first."""
        enabled = [adapter for adapter in self.adapters if adapter.enabled]
        return sorted(enabled, key=lambda adapter: adapter.source in LOW_TRUST_SOURCES)

    async def _search_adapter(
        self, adapter: ProviderAdapter, query: str, limit: int
    ) -> list[CandidateRecord] | None:
        """Run one provider search, returning None when it failed."""
        try:
            return await asyncio.wait_for(
                adapter.search(query, limit),
                timeout=self.provider_timeout_seconds,
            )
        except (ProviderUnavailable, TimeoutError) as exc:
            _log_provider_failure(adapter.source, "search", exc)
            return None
        except Exception:
            _logger.exception("Provider %s search failed", adapter.source)
            return None


def _log_provider_failure(source: FoodSource, action: str, exc: Exception) -> None:
    if isinstance(exc, TimeoutError):
        _logger.warning("Provider %s %s timed out", source, action)
    else:
        _logger.warning("Provider %s %s unavailable: %s", source, action, exc)
