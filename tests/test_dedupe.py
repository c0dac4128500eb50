"""Tests for candidate deduplication."""

from food_catalog.domain.foods import FoodSource, dedupe_key
from food_catalog.services.dedupe import dedupe_candidates
from tests.conftest import make_candidate


def test_first_source_wins_on_shared_barcode() -> None:
    usda = make_candidate(source=FoodSource.USDA, barcode="123")
    off = make_candidate(
        name="Yoghurt Greek Style", source=FoodSource.OPENFOODFACTS, barcode="123"
    )

    assert dedupe_candidates([usda, off]) == [usda]


def test_name_and_brand_collisions_collapse_case_insensitively() -> None:
    first = make_candidate(name="Oat Milk", brand="Oatly")
    second = make_candidate(name="oat milk", brand="OATLY", kcal=50)
    other_brand = make_candidate(name="Oat Milk", brand="Alpro")

    assert dedupe_candidates([first, second, other_brand]) == [first, other_brand]


def test_barcode_and_name_keys_do_not_collide() -> None:
    barcoded = make_candidate(name="Oat Milk", barcode="999")
    plain = make_candidate(name="Oat Milk")

    assert dedupe_candidates([barcoded, plain]) == [barcoded, plain]


def test_dedupe_key_format() -> None:
    assert dedupe_key(make_candidate(barcode="42")) == "barcode:42"
    assert (
        dedupe_key(make_candidate(name="Greek Yogurt", brand=None))
        == "name:greek yogurt|brand:"
    )
