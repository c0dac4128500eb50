"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from food_catalog.adapters.fdc_client import HttpxFdcClient
from food_catalog.adapters.openfoodfacts_client import HttpxOpenFoodFactsClient
from food_catalog.adapters.supabase_food_catalog_repository import (
    SupabaseFoodCatalogRepository,
)
from food_catalog.config import Settings
from food_catalog.services.cache import InMemoryCache
from food_catalog.services.catalog import CatalogMerger
from food_catalog.services.food_search import FoodSearchService
from food_catalog.services.ingestion import FoodIngestionPipeline
from food_catalog.services.providers import (
    OpenFoodFactsProviderAdapter,
    UsdaProviderAdapter,
)


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    ingestion_pipeline: FoodIngestionPipeline
    food_search_service: FoodSearchService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    catalog_repository = SupabaseFoodCatalogRepository(supabase_client)

    fdc_client = (
        HttpxFdcClient.create(
            api_key=resolved_settings.fdc_api_key,
            base_url=resolved_settings.fdc_base_url,
            timeout_seconds=resolved_settings.provider_timeout_seconds,
        )
        if resolved_settings.fdc_api_key
        else None
    )
    off_client = HttpxOpenFoodFactsClient.create(
        base_url=resolved_settings.off_base_url,
        user_agent=resolved_settings.off_user_agent,
        timeout_seconds=resolved_settings.provider_timeout_seconds,
    )
    pipeline = FoodIngestionPipeline(
        adapters=[
            UsdaProviderAdapter(
                fdc_client,
                retry_attempts=resolved_settings.provider_retry_attempts,
            ),
            OpenFoodFactsProviderAdapter(
                off_client,
                retry_attempts=resolved_settings.provider_retry_attempts,
            ),
        ],
        merger=CatalogMerger(catalog_repository),
        # Covers the retry delay on top of one request timeout per attempt.
        provider_timeout_seconds=resolved_settings.provider_timeout_seconds
        * (resolved_settings.provider_retry_attempts + 1)
        + 1,
    )
    food_search_service = FoodSearchService(
        repository=catalog_repository,
        pipeline=pipeline,
        cache=InMemoryCache(
            ttl_seconds=resolved_settings.search_cache_ttl_seconds,
            max_entries=resolved_settings.search_cache_max_entries,
        ),
        default_limit=resolved_settings.search_limit_default,
        max_limit=resolved_settings.search_limit_max,
        debug=resolved_settings.debug,
    )

    async def close_resources() -> None:
        await off_client.close()
        if fdc_client is not None:
            await fdc_client.close()

    return AppContainer(
        settings=resolved_settings,
        ingestion_pipeline=pipeline,
        food_search_service=food_search_service,
        close_resources=close_resources,
    )
