"""Response catalogs and variant selection (core domain)."""

from __future__ import annotations

from dataclasses import dataclass
import random
from typing import Mapping, Optional, Sequence, Tuple

GENERIC_RESPONSE = "I'm here to support you. Tell me more about what's on your mind."


@dataclass(frozen=True)
class ResponseEntry:
    """Candidate responses for one category."""

    category: str
    variants: Tuple[str, ...]


@dataclass(frozen=True)
class ResponseCatalog:
    """Category-keyed responses with a single, catalog-wide selection policy.

    ``randomize`` picks uniformly among multiple variants; otherwise the first
    variant always wins. Unknown categories resolve to ``fallback_category``
    when it is configured, else to the ``fallback`` string.
    """

    entries: Mapping[str, ResponseEntry]
    randomize: bool = False
    fallback: str = GENERIC_RESPONSE
    fallback_category: Optional[str] = None

    def entry_for(self, category: str) -> Optional[ResponseEntry]:
        entry = self.entries.get(category)
        if entry is None and self.fallback_category:
            entry = self.entries.get(self.fallback_category)
        return entry


def build_catalog(catalog_config: Mapping) -> ResponseCatalog:
    """Build a catalog from ``{"random", "fallback", "fallback_category", "responses"}``.

    ``responses`` maps a category to either one string or a list of strings.
    """

    entries = {}
    for category, raw in catalog_config.get("responses", {}).items():
        variants = (raw,) if isinstance(raw, str) else tuple(raw)
        if not variants:
            raise ValueError(f"Category {category!r} has no response variants")
        entries[category] = ResponseEntry(category=category, variants=variants)

    fallback_category = catalog_config.get("fallback_category")
    if fallback_category and fallback_category not in entries:
        raise ValueError(f"Fallback category {fallback_category!r} has no responses")

    return ResponseCatalog(
        entries=entries,
        randomize=bool(catalog_config.get("random", False)),
        fallback=catalog_config.get("fallback", GENERIC_RESPONSE),
        fallback_category=fallback_category,
    )


def select_response(
    category: str,
    catalog: ResponseCatalog,
    rng: Optional[random.Random] = None,
) -> str:
    """Return the response text for a category."""

    entry = catalog.entry_for(category)
    if entry is None:
        return catalog.fallback

    variants = entry.variants
    if len(variants) == 1 or not catalog.randomize:
        return variants[0]

    rng = rng or random.Random()
    return rng.choice(variants)


def select_for_result(
    categories: Sequence[str],
    catalog: ResponseCatalog,
    rng: Optional[random.Random] = None,
) -> str:
    """Select a response for a classification result.

    Only the first category counts when several matched; it is the one with
    the highest declared priority.
    """

    if not categories:
        return catalog.fallback
    return select_response(categories[0], catalog, rng)

