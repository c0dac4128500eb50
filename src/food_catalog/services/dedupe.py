"""Collapse a multi-source candidate list to one entry per item."""

from food_catalog.domain.foods import CandidateRecord, dedupe_key


def dedupe_candidates(candidates: list[CandidateRecord]) -> list[CandidateRecord]:
    """Keep the first candidate per dedupe key, preserving order.

    Callers place higher-priority sources first so their records win.
    """
    seen: set[str] = set()
    unique: list[CandidateRecord] = []
    for candidate in candidates:
        key = dedupe_key(candidate)
        if key in seen:
            continue
        seen.add(key)
        unique.append(candidate)
    return unique
