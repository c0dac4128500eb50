"""Shared test fixtures."""

import asyncio
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from uuid import UUID, uuid4

import pytest

from food_catalog.config import Settings
from food_catalog.containers import AppContainer
from food_catalog.domain.errors import CatalogWriteFailure
from food_catalog.domain.foods import (
    CandidateMeta,
    CandidateRecord,
    FoodSource,
    StoredFoodRecord,
)
from food_catalog.services.cache import InMemoryCache
from food_catalog.services.catalog import (
    CatalogMerger,
    CatalogMergeRows,
    FoodCatalogRepository,
)
from food_catalog.services.food_search import FoodSearchService
from food_catalog.services.ingestion import FoodIngestionPipeline
from food_catalog.services.providers import ProviderAdapter

# JWT-shaped so supabase accepts it as an API key.
FAKE_SUPABASE_KEY = (
    "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9."
    "eyJyb2xlIjoic2VydmljZV9yb2xlIn0."
    "c2lnbmF0dXJl"
)


def make_candidate(**overrides: object) -> CandidateRecord:
    """Build a usable candidate, overriding selected fields."""
    values: dict[str, object] = {
        "name": "Greek Yogurt",
        "brand": None,
        "barcode": None,
        "source": FoodSource.USDA,
        "portion_label": "170 g",
        "portion_grams": 170.0,
        "kcal": 120,
        "carbs_g": 6.0,
        "protein_g": 15.0,
        "fat_g": 3.0,
    }
    serving_provided = overrides.pop("serving_provided", True)
    values.update(overrides)
    return CandidateRecord(
        **values,
        meta=CandidateMeta(serving_provided=bool(serving_provided)),
    )


@dataclass
class InMemoryFoodCatalogRepository(FoodCatalogRepository):
    """In-memory catalog enforcing one global row per barcode."""

    foods: dict[UUID, StoredFoodRecord] = field(default_factory=dict)
    fail_on_plain_insert: bool = False
    merge_calls: int = 0
    barcode_lookups: list[str] = field(default_factory=list)

    def search_foods(
        self, query: str, user_id: UUID | None, limit: int
    ) -> list[StoredFoodRecord]:
        query_lower = query.lower()
        results = [
            food
            for food in self.foods.values()
            if (food.is_global or (user_id and food.created_by_user_id == user_id))
            and (
                query_lower in food.name.lower()
                or query_lower in (food.brand or "").lower()
            )
        ]
        return sorted(results, key=lambda food: (not food.is_global, food.name))[
            :limit
        ]

    def get_global_by_barcode(self, barcode: str) -> StoredFoodRecord | None:
        self.barcode_lookups.append(barcode)
        for food in self.foods.values():
            if food.is_global and food.barcode == barcode:
                return food
        return None

    def merge_global(
        self,
        with_barcode: list[CandidateRecord],
        without_barcode: list[CandidateRecord],
    ) -> CatalogMergeRows:
        self.merge_calls += 1
        snapshot = dict(self.foods)
        try:
            inserted_with_barcode = [
                self._insert(candidate)
                for candidate in with_barcode
                if not self._has_global_barcode(candidate.barcode)
            ]
            barcodes = {candidate.barcode for candidate in with_barcode}
            existing = [
                food
                for food in self.foods.values()
                if food.is_global and food.barcode in barcodes
            ]
            if self.fail_on_plain_insert and without_barcode:
                raise CatalogWriteFailure("insert failed")
            inserted_without_barcode = [
                self._insert(candidate) for candidate in without_barcode
            ]
        except CatalogWriteFailure:
            self.foods = snapshot
            raise
        return CatalogMergeRows(
            existing_with_barcode=existing,
            inserted_with_barcode=inserted_with_barcode,
            inserted_without_barcode=inserted_without_barcode,
        )

    def add_user_food(self, user_id: UUID, name: str) -> StoredFoodRecord:
        food = self._insert(make_candidate(name=name, source=FoodSource.USER))
        food = replace(food, is_global=False, created_by_user_id=user_id)
        self.foods[food.id] = food
        return food

    def _has_global_barcode(self, barcode: str | None) -> bool:
        return any(
            food.is_global and food.barcode == barcode for food in self.foods.values()
        )

    def _insert(self, candidate: CandidateRecord) -> StoredFoodRecord:
        now = datetime.now(tz=UTC)
        food = StoredFoodRecord(
            id=uuid4(),
            name=candidate.name,
            brand=candidate.brand,
            barcode=candidate.barcode,
            source=str(candidate.source),
            is_global=True,
            created_by_user_id=None,
            portion_label=candidate.portion_label,
            portion_grams=candidate.portion_grams,
            kcal=float(candidate.kcal),
            carbs_g=candidate.carbs_g,
            protein_g=candidate.protein_g,
            fat_g=candidate.fat_g,
            micronutrients=dict(candidate.micronutrients),
            created_at=now,
            updated_at=now,
        )
        self.foods[food.id] = food
        return food


@dataclass
class FakeProviderAdapter(ProviderAdapter):
    """Provider adapter returning canned candidates."""

    source: FoodSource
    results: list[CandidateRecord] = field(default_factory=list)
    barcode_results: dict[str, CandidateRecord] = field(default_factory=dict)
    error: Exception | None = None
    delay_seconds: float = 0.0
    gate: asyncio.Event | None = None
    releases: asyncio.Event | None = None
    supports_barcode: bool = True
    is_enabled: bool = True
    search_calls: list[tuple[str, int]] = field(default_factory=list)
    barcode_calls: list[str] = field(default_factory=list)

    @property
    def enabled(self) -> bool:
        return self.is_enabled

    async def search(self, query: str, limit: int) -> list[CandidateRecord]:
        self.search_calls.append((query, limit))
        if self.releases is not None:
            self.releases.set()
        if self.gate is not None:
            await self.gate.wait()
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if self.error is not None:
            raise self.error
        return list(self.results)[:limit]

    async def lookup_by_barcode(self, barcode: str) -> CandidateRecord | None:
        self.barcode_calls.append(barcode)
        if self.error is not None:
            raise self.error
        return self.barcode_results.get(barcode)


def build_pipeline(
    repository: InMemoryFoodCatalogRepository,
    *adapters: FakeProviderAdapter,
    timeout: float = 1.0,
) -> FoodIngestionPipeline:
    return FoodIngestionPipeline(
        adapters=list(adapters),
        merger=CatalogMerger(repository),
        provider_timeout_seconds=timeout,
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key=FAKE_SUPABASE_KEY,
        admin_token="admin-token",
        fdc_api_key="fdc-key",
    )


@pytest.fixture
def catalog_repository() -> InMemoryFoodCatalogRepository:
    return InMemoryFoodCatalogRepository()


@pytest.fixture
def usda_adapter() -> FakeProviderAdapter:
    return FakeProviderAdapter(source=FoodSource.USDA, supports_barcode=False)


@pytest.fixture
def off_adapter() -> FakeProviderAdapter:
    return FakeProviderAdapter(source=FoodSource.OPENFOODFACTS)


@pytest.fixture
def container(
    settings: Settings,
    catalog_repository: InMemoryFoodCatalogRepository,
    usda_adapter: FakeProviderAdapter,
    off_adapter: FakeProviderAdapter,
) -> AppContainer:
    pipeline = build_pipeline(catalog_repository, usda_adapter, off_adapter)
    food_search_service = FoodSearchService(
        repository=catalog_repository,
        pipeline=pipeline,
        cache=InMemoryCache(),
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        ingestion_pipeline=pipeline,
        food_search_service=food_search_service,
        close_resources=close_resources,
    )
