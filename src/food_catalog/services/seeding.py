"""Seed the global catalog with common staples."""

import logging

from food_catalog.domain.errors import FoodSearchUnavailable
from food_catalog.domain.foods import FoodSource
from food_catalog.services.ingestion import FoodIngestionPipeline

_logger = logging.getLogger(__name__)

DEFAULT_STAPLES = (
    "chicken breast",
    "eggs",
    "brown rice",
    "oats",
    "salmon",
    "greek yogurt",
    "olive oil",
    "broccoli",
    "spinach",
    "sweet potato",
    "black beans",
    "avocado",
)


async def seed_global_catalog(
    pipeline: FoodIngestionPipeline,
    staples: list[str] | tuple[str, ...] = DEFAULT_STAPLES,
    limit: int = 10,
) -> list[str]:
    """Ingest curated USDA results for each staple and return those seeded."""
    seeded: list[str] = []
    for staple in staples:
        try:
            records = await pipeline.ingest(staple, limit, sources={FoodSource.USDA})
        except FoodSearchUnavailable:
            _logger.warning("Seeding skipped, USDA unavailable: %s", staple)
            continue
        if not records:
            continue
        seeded.append(staple)
        _logger.info("Seeded: %s (%s foods)", staple, len(records))
    _logger.info("Seeding complete (%s staples)", len(seeded))
    return seeded
