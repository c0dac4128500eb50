"""Free-text serving size parsing."""

import re
from dataclasses import dataclass

DEFAULT_SERVING_LABEL = "100 g"
DEFAULT_SERVING_GRAMS = 100.0

# Millilitres are counted as gram-equivalent.
_UNIT = r"(?:grams?|gr|g|ml)\b"
_QUANTITY = r"(\d+(?:[.,]\d+)?)"
_PAREN_PATTERN = re.compile(rf"\(\s*{_QUANTITY}\s*{_UNIT}\s*\)", re.IGNORECASE)
_BARE_PATTERN = re.compile(rf"{_QUANTITY}\s*{_UNIT}", re.IGNORECASE)


@dataclass(frozen=True)
class ServingInfo:
    """Serving label and weight extracted from a provider string."""

    label: str
    grams: float
    provided: bool


def parse_serving(raw: str | None) -> ServingInfo:
    """Extract a label and gram weight from a serving description.

    Malformed input never raises; the weight falls back to 100 g while a
    non-empty label is kept verbatim.
    """
    label = raw.strip() if isinstance(raw, str) else ""
    if not label:
        return ServingInfo(
            label=DEFAULT_SERVING_LABEL, grams=DEFAULT_SERVING_GRAMS, provided=False
        )

    match = _PAREN_PATTERN.search(label) or _BARE_PATTERN.search(label)
    grams = _to_float(match.group(1)) if match else 0.0
    return ServingInfo(
        label=label,
        grams=grams if grams > 0 else DEFAULT_SERVING_GRAMS,
        provided=True,
    )


def _to_float(value: str) -> float:
    try:
        return float(value.replace(",", "."))
    except ValueError:
        return 0.0
