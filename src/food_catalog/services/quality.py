"""Heuristics for dropping unusable community-sourced candidates."""

from food_catalog.domain.foods import CandidateRecord

_BAD_NAME_FRAGMENTS = ("unknown", "undefined", "product", "test")
_MIN_NAME_LENGTH = 3
_MAX_PORTION_GRAMS = 1000


def is_low_quality(candidate: CandidateRecord) -> bool:
    """Return True when a candidate is unlikely to be usable."""
    name = candidate.name.strip().lower()
    has_bad_name = len(name) < _MIN_NAME_LENGTH or any(
        fragment in name for fragment in _BAD_NAME_FRAGMENTS
    )
    total_macros = candidate.carbs_g + candidate.protein_g + candidate.fat_g
    has_no_macros = total_macros <= 0 or candidate.kcal <= 0
    has_invalid_serving = candidate.portion_grams is not None and (
        candidate.portion_grams <= 0 or candidate.portion_grams > _MAX_PORTION_GRAMS
    )
    # A defaulted serving is tolerated only when a barcode pins the identity.
    has_weak_identity = not candidate.meta.serving_provided and not candidate.barcode
    return has_bad_name or has_no_macros or has_invalid_serving or has_weak_identity


def filter_low_quality(candidates: list[CandidateRecord]) -> list[CandidateRecord]:
    """Drop low-quality candidates from low-trust sources only."""
    return [
        candidate
        for candidate in candidates
        if not (candidate.is_low_trust and is_low_quality(candidate))
    ]
