"""Food catalog domain models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from uuid import UUID


class FoodSource(StrEnum):
    """Provenance of a food record."""

    USDA = "usda"
    OPENFOODFACTS = "openfoodfacts"
    USER = "user"


LOW_TRUST_SOURCES = frozenset({FoodSource.OPENFOODFACTS})


@dataclass(frozen=True)
class MacroProfile:
    """Macronutrient profile for a food item."""

    kcal: int
    carbs_g: float
    protein_g: float
    fat_g: float


@dataclass(frozen=True)
class CandidateMeta:
    """Provider-side facts about how a candidate was built."""

    serving_provided: bool = True


@dataclass(frozen=True)
class CandidateRecord:
    """Normalized food produced by a provider, not yet persisted."""

    name: str
    brand: str | None
    barcode: str | None
    source: FoodSource
    portion_label: str
    portion_grams: float | None
    kcal: int
    carbs_g: float
    protein_g: float
    fat_g: float
    micronutrients: dict[str, float] = field(default_factory=dict)
    meta: CandidateMeta = field(default_factory=CandidateMeta)

    @property
    def is_low_trust(self) -> bool:
        return self.source in LOW_TRUST_SOURCES


@dataclass(frozen=True)
class StoredFoodRecord:
    """Food row persisted in the catalog."""

    id: UUID
    name: str
    brand: str | None
    barcode: str | None
    source: str
    is_global: bool
    created_by_user_id: UUID | None
    portion_label: str | None
    portion_grams: float | None
    kcal: float
    carbs_g: float
    protein_g: float
    fat_g: float
    micronutrients: dict[str, object] = field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None


def dedupe_key(candidate: CandidateRecord) -> str:
    """Return the in-memory identity key for a candidate."""
    if candidate.barcode:
        return f"barcode:{candidate.barcode}"
    brand = (candidate.brand or "").lower()
    return f"name:{candidate.name.lower()}|brand:{brand}"
