from __future__ import annotations

import random

import pytest

from core.catalog import GENERIC_RESPONSE, build_catalog, select_for_result, select_response


class FixedRandom(random.Random):
    def __init__(self, index: int) -> None:
        super().__init__(0)
        self._index = index

    def choice(self, seq):
        return seq[self._index]


def test_single_variant_is_deterministic() -> None:
    catalog = build_catalog({"random": True, "responses": {"calm": "Breathe."}})
    assert select_response("calm", catalog, random.Random(1)) == "Breathe."
    assert select_response("calm", catalog, random.Random(2)) == "Breathe."


def test_non_random_catalog_uses_first_variant() -> None:
    catalog = build_catalog({"responses": {"calm": ["first", "second"]}})
    assert select_response("calm", catalog, FixedRandom(1)) == "first"


def test_random_catalog_uses_injected_rng() -> None:
    catalog = build_catalog({"random": True, "responses": {"calm": ["first", "second", "third"]}})
    assert select_response("calm", catalog, FixedRandom(2)) == "third"
    seeded = [select_response("calm", catalog, random.Random(7)) for _ in range(3)]
    assert seeded == [select_response("calm", catalog, random.Random(7)) for _ in range(3)]


def test_unknown_category_uses_fallback() -> None:
    catalog = build_catalog({"responses": {"calm": "Breathe."}})
    assert select_response("angry", catalog) == GENERIC_RESPONSE

    pooled = build_catalog(
        {"fallback_category": "neutral", "responses": {"neutral": "Steady.", "calm": "Breathe."}}
    )
    assert select_response("angry", pooled) == "Steady."


def test_select_for_result_uses_first_category() -> None:
    catalog = build_catalog({"responses": {"a": "A", "b": "B"}})
    assert select_for_result(("b", "a"), catalog) == "B"
    assert select_for_result((), catalog) == GENERIC_RESPONSE


def test_invalid_catalogs() -> None:
    with pytest.raises(ValueError):
        build_catalog({"responses": {"calm": []}})
    with pytest.raises(ValueError):
        build_catalog({"fallback_category": "neutral", "responses": {"calm": "Breathe."}})
