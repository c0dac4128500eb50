"""Provider adapters mapping external nutrition data to candidate records."""

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

import httpx

from food_catalog.adapters.fdc_client import FdcClient
from food_catalog.adapters.openfoodfacts_client import OpenFoodFactsClient
from food_catalog.domain.errors import MalformedProviderPayload, ProviderUnavailable
from food_catalog.domain.foods import CandidateMeta, CandidateRecord, FoodSource
from food_catalog.services.nutrients import (
    coerce_number,
    keyed_micronutrients,
    named_micronutrients,
    resolve_keyed_nutrients,
    resolve_named_nutrients,
)
from food_catalog.services.servings import parse_serving

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

_logger = logging.getLogger(__name__)

_OFF_FALLBACK_NAME = "Unknown item"
_FDC_UNITS = {"GRM": "g", "G": "g", "MLT": "ml", "ML": "ml"}
_WEIGHT_UNITS = {"g", "ml"}


class ProviderAdapter(Protocol):
    """Uniform interface over external nutrition databases."""

    source: FoodSource
    supports_barcode: bool

    @property
    def enabled(self) -> bool:
        """Whether the provider is configured and should be queried."""

    async def search(self, query: str, limit: int) -> list[CandidateRecord]:
        """Search the provider and return normalized candidates."""

    async def lookup_by_barcode(self, barcode: str) -> CandidateRecord | None:
        """Look up a single product by barcode."""


@dataclass
class UsdaProviderAdapter(ProviderAdapter):
    """Curated USDA FoodData Central source, enabled only with an API key."""

    client: FdcClient | None
    retry_attempts: int = 1
    retry_delay_seconds: float = 0.3

    source = FoodSource.USDA
    supports_barcode = False

    @property
    def enabled(self) -> bool:
        """USDA requires an API key; without one the client is not built."""
        return self.client is not None

    async def search(self, query: str, limit: int) -> list[CandidateRecord]:
        """Search FDC foods."""
        if self.client is None:
            return []
        client = self.client
        payload = await call_with_retry(
            lambda: client.search_foods(query, page_size=limit),
            source=self.source,
            action="search",
            retry_attempts=self.retry_attempts,
            retry_delay_seconds=self.retry_delay_seconds,
        )
        foods = _result_list(payload, "foods", self.source)
        candidates = [map_usda_food(food) for food in foods]
        return [candidate for candidate in candidates if candidate][:limit]

    async def lookup_by_barcode(self, barcode: str) -> CandidateRecord | None:
        return None


@dataclass
class OpenFoodFactsProviderAdapter(ProviderAdapter):
    """Community-maintained Open Food Facts source."""

    client: OpenFoodFactsClient
    retry_attempts: int = 1
    retry_delay_seconds: float = 0.3

    source = FoodSource.OPENFOODFACTS
    supports_barcode = True

    @property
    def enabled(self) -> bool:
        return True

    async def search(self, query: str, limit: int) -> list[CandidateRecord]:
        """Search Open Food Facts products."""
        payload = await call_with_retry(
            lambda: self.client.search_products(query, page_size=limit),
            source=self.source,
            action="search",
            retry_attempts=self.retry_attempts,
            retry_delay_seconds=self.retry_delay_seconds,
        )
        products = _result_list(payload, "products", self.source)
        candidates = [map_off_product(product) for product in products]
        return [candidate for candidate in candidates if candidate][:limit]

    async def lookup_by_barcode(self, barcode: str) -> CandidateRecord | None:
        """Fetch a product by barcode, returning None when it is unknown."""
        payload = await call_with_retry(
            lambda: self.client.get_product(barcode),
            source=self.source,
            action=f"barcode:{barcode}",
            retry_attempts=self.retry_attempts,
            retry_delay_seconds=self.retry_delay_seconds,
        )
        if payload.get("status") != 1:
            return None
        return map_off_product(payload.get("product"))


async def call_with_retry(
    func: "Callable[[], Awaitable[dict[str, object]]]",
    *,
    source: FoodSource,
    action: str,
    retry_attempts: int,
    retry_delay_seconds: float,
) -> dict[str, object]:
    """Call a provider with a short retry, translating failures."""
    attempt = 0
    while True:
        try:
            payload = await func()
            break
        except (httpx.HTTPError, ValueError) as exc:
            attempt += 1
            _logger.warning(
                "Provider %s %s failed (attempt %s/%s, status=%s): %s",
                source,
                action,
                attempt,
                retry_attempts + 1,
                _status_code_from_exception(exc),
                exc,
            )
            if attempt > retry_attempts:
                if isinstance(exc, ValueError):
                    raise MalformedProviderPayload(
                        source, "response is not valid JSON"
                    ) from exc
                raise ProviderUnavailable(source, f"{action} failed") from exc
            await asyncio.sleep(retry_delay_seconds)
    if not isinstance(payload, dict):
        raise MalformedProviderPayload(source, "response is not a JSON object")
    return payload


def map_usda_food(food: object) -> CandidateRecord | None:
    """Map an FDC search hit to a candidate, or None without a usable name."""
    if not isinstance(food, dict):
        return None
    name = _clean_text(food.get("description"))
    if not name:
        return None
    nutrients = food.get("foodNutrients")
    macros = resolve_named_nutrients(nutrients)
    serving_size = coerce_number(food.get("servingSize"))
    unit = _fdc_unit(food.get("servingSizeUnit"))
    serving = parse_serving(f"{serving_size:.10g} {unit}" if serving_size else None)
    return CandidateRecord(
        name=name,
        brand=_clean_text(food.get("brandName")) or _clean_text(food.get("brandOwner")),
        barcode=_clean_text(food.get("gtinUpc")),
        source=FoodSource.USDA,
        portion_label=serving.label,
        portion_grams=serving.grams if unit in _WEIGHT_UNITS else None,
        kcal=macros.kcal,
        carbs_g=macros.carbs_g,
        protein_g=macros.protein_g,
        fat_g=macros.fat_g,
        micronutrients=named_micronutrients(nutrients),
        meta=CandidateMeta(serving_provided=serving.provided),
    )


def map_off_product(product: object) -> CandidateRecord | None:
    """Map an Open Food Facts product to a candidate."""
    if not isinstance(product, dict):
        return None
    name = (
        _clean_text(product.get("product_name"))
        or _clean_text(product.get("product_name_en"))
        or _clean_text(product.get("generic_name"))
        or _OFF_FALLBACK_NAME
    )
    nutriments = product.get("nutriments")
    macros = resolve_keyed_nutrients(nutriments)
    serving = parse_serving(_clean_text(product.get("serving_size")))
    brand = _clean_text(product.get("brands"))
    return CandidateRecord(
        name=name,
        brand=_title_case(brand) if brand else None,
        barcode=_clean_text(product.get("code")),
        source=FoodSource.OPENFOODFACTS,
        portion_label=serving.label,
        portion_grams=serving.grams,
        kcal=macros.kcal,
        carbs_g=macros.carbs_g,
        protein_g=macros.protein_g,
        fat_g=macros.fat_g,
        micronutrients=keyed_micronutrients(nutriments),
        meta=CandidateMeta(serving_provided=serving.provided),
    )


def _result_list(
    payload: dict[str, object], key: str, source: FoodSource
) -> list[object]:
    items = payload.get(key)
    if items is None:
        return []
    if not isinstance(items, list):
        raise MalformedProviderPayload(source, f"'{key}' is not a list")
    return items


def _clean_text(value: object) -> str | None:
    if isinstance(value, int) and not isinstance(value, bool):
        value = str(value)
    if not isinstance(value, str):
        return None
    return value.strip() or None


def _title_case(value: str) -> str:
    return " ".join(part[:1].upper() + part[1:] for part in value.lower().split(" "))


def _fdc_unit(raw: object) -> str:
    if not isinstance(raw, str) or not raw.strip():
        return "g"
    cleaned = raw.strip()
    return _FDC_UNITS.get(cleaned.upper(), cleaned)


def _status_code_from_exception(exc: Exception) -> str:
    """Extract HTTP status code from an exception, if available."""
    response = getattr(exc, "response", None)
    status_code = getattr(response, "status_code", None)
    if isinstance(status_code, int):
        return str(status_code)
    return "n/a"
