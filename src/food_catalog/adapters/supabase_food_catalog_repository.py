"""Supabase implementation for the global food catalog."""

import re
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

import httpx
from postgrest.exceptions import APIError
from supabase import Client

from food_catalog.domain.errors import CatalogWriteFailure
from food_catalog.domain.foods import CandidateRecord, StoredFoodRecord
from food_catalog.services.catalog import CatalogMergeRows, FoodCatalogRepository

_MERGE_FUNCTION = "merge_global_foods"
_RESERVED_FILTER_CHARS = re.compile(r"[,()*\"\\]")


@dataclass
class SupabaseFoodCatalogRepository(FoodCatalogRepository):
    """Supabase-backed repository for the foods table."""

    client: Client

    def search_foods(
        self, query: str, user_id: UUID | None, limit: int
    ) -> list[StoredFoodRecord]:
        """Search global foods and the user's own foods by name or brand."""
        request = self.client.table("foods").select("*")
        text_filter = _text_filter(query)
        if user_id is None:
            request = request.eq("is_global", True)
            if text_filter:
                request = request.or_(text_filter)
        else:
            owners = ("is_global.eq.true", f"created_by_user_id.eq.{user_id}")
            if text_filter:
                # (global or owned) and (name or brand) as one PostgREST filter.
                request = request.or_(
                    ",".join(f"and({owner},or({text_filter}))" for owner in owners)
                )
            else:
                request = request.or_(",".join(owners))
        response = (
            request.order("is_global", desc=True)
            .order("name", desc=False)
            .limit(limit)
            .execute()
        )
        return [_parse_food(row) for row in response.data or []]

    def get_global_by_barcode(self, barcode: str) -> StoredFoodRecord | None:
        """Return the global food with a barcode, if present."""
        response = (
            self.client.table("foods")
            .select("*")
            .eq("is_global", True)
            .eq("barcode", barcode)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_food(response.data[0])

    def merge_global(
        self,
        with_barcode: list[CandidateRecord],
        without_barcode: list[CandidateRecord],
    ) -> CatalogMergeRows:
        """Run the merge as a single database function call (one transaction)."""
        try:
            response = self.client.rpc(
                _MERGE_FUNCTION,
                {
                    "barcoded": [_candidate_payload(item) for item in with_barcode],
                    "plain": [_candidate_payload(item) for item in without_barcode],
                },
            ).execute()
        except (APIError, httpx.HTTPError) as exc:
            raise CatalogWriteFailure(f"{_MERGE_FUNCTION} failed: {exc}") from exc

        data = response.data
        if not isinstance(data, dict):
            raise CatalogWriteFailure(f"{_MERGE_FUNCTION} returned no result")
        return CatalogMergeRows(
            existing_with_barcode=[
                _parse_food(row) for row in data.get("existing") or []
            ],
            inserted_with_barcode=[
                _parse_food(row) for row in data.get("inserted_with_barcode") or []
            ],
            inserted_without_barcode=[
                _parse_food(row) for row in data.get("inserted_without_barcode") or []
            ],
        )


def _text_filter(query: str) -> str | None:
    """Build a name/brand ilike filter, dropping PostgREST reserved characters."""
    term = _RESERVED_FILTER_CHARS.sub(" ", query).strip()
    if not term:
        return None
    return f"name.ilike.*{term}*,brand.ilike.*{term}*"


def _candidate_payload(candidate: CandidateRecord) -> dict[str, object]:
    return {
        "name": candidate.name,
        "brand": candidate.brand,
        "barcode": candidate.barcode,
        "source": str(candidate.source),
        "portion_label": candidate.portion_label,
        "portion_grams": candidate.portion_grams,
        "kcal": candidate.kcal,
        "carbs_g": candidate.carbs_g,
        "protein_g": candidate.protein_g,
        "fat_g": candidate.fat_g,
        "micronutrients": candidate.micronutrients,
    }


def _parse_food(row: dict[str, object]) -> StoredFoodRecord:
    """Parse a foods row into a domain model."""
    created_by = row.get("created_by_user_id")
    portion_grams = row.get("portion_grams")
    return StoredFoodRecord(
        id=UUID(str(row["id"])),
        name=str(row.get("name", "")),
        brand=row.get("brand"),
        barcode=row.get("barcode"),
        source=str(row.get("source") or ""),
        is_global=bool(row.get("is_global", False)),
        created_by_user_id=UUID(str(created_by)) if created_by else None,
        portion_label=row.get("portion_label"),
        portion_grams=float(portion_grams) if portion_grams is not None else None,
        kcal=float(row.get("kcal") or 0.0),
        carbs_g=float(row.get("carbs_g") or 0.0),
        protein_g=float(row.get("protein_g") or 0.0),
        fat_g=float(row.get("fat_g") or 0.0),
        micronutrients=row.get("micronutrients") or {},
        created_at=_parse_timestamp(row.get("created_at")),
        updated_at=_parse_timestamp(row.get("updated_at")),
    )


def _parse_timestamp(value: object) -> datetime | None:
    if isinstance(value, str) and value:
        return datetime.fromisoformat(value)
    return None
