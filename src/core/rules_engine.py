"""Rule compilation, matching and classification (core domain)."""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Iterable, List, Optional, Tuple

FIRST_MATCH = "first_match"
MULTI_MATCH = "multi_match"
MATCH_MODES = (FIRST_MATCH, MULTI_MATCH)


@dataclass(frozen=True)
class Rule:
    """Compiled rule used by the classifier."""

    category: str
    keywords: Tuple[str, ...]
    exclude_keywords: Tuple[str, ...]
    require_keywords: Tuple[str, ...]
    regex_patterns: Tuple[re.Pattern, ...]
    raw_regex: Tuple[str, ...]
    priority: int


@dataclass(frozen=True)
class RuleMatch:
    """A single rule match with a human-readable reason."""

    category: str
    reason: str


@dataclass(frozen=True)
class RuleTable:
    """Ordered rules for one bot plus the category used when nothing matches."""

    rules: Tuple[Rule, ...]
    default_category: str
    mode: str = FIRST_MATCH


def build_rules(rules_config: Iterable[dict]) -> List[Rule]:
    """Normalize rule configs and compile regex patterns.

    Keywords are case-folded once here so per-message matching stays minimal.
    Rules are ordered by ``priority`` and then by declaration order; a rule
    without an explicit priority takes its declaration index.
    """

    indexed: List[Tuple[int, int, Rule]] = []
    for index, rule in enumerate(rules_config):
        if not rule.get("enabled", True):
            continue
        raw_regex = tuple(rule.get("regex", []) or [])
        priority = int(rule.get("priority", index))
        compiled = Rule(
            category=rule["category"],
            keywords=tuple(k.casefold() for k in rule.get("keywords", [])),
            exclude_keywords=tuple(k.casefold() for k in rule.get("exclude_keywords", [])),
            require_keywords=tuple(k.casefold() for k in rule.get("require_keywords", [])),
            regex_patterns=tuple(re.compile(pattern, re.IGNORECASE) for pattern in raw_regex),
            raw_regex=raw_regex,
            priority=priority,
        )
        indexed.append((priority, index, compiled))
    indexed.sort(key=lambda item: (item[0], item[1]))
    return [rule for _, _, rule in indexed]


def build_rule_table(table_config: dict) -> RuleTable:
    """Build a RuleTable from ``{"mode", "default", "rules"}``."""

    mode = table_config.get("mode", FIRST_MATCH)
    if mode not in MATCH_MODES:
        raise ValueError(f"Unsupported match mode: {mode}")
    default_category = table_config.get("default")
    if not default_category:
        raise ValueError("A rule table needs a default category")
    return RuleTable(
        rules=tuple(build_rules(table_config.get("rules", []))),
        default_category=default_category,
        mode=mode,
    )


def _normalize(text: Optional[str]) -> str:
    return (text or "").strip()


def match_rules(text: Optional[str], rules: Iterable[Rule]) -> List[RuleMatch]:
    """Return all rule matches for the given text, in rule order.

    Matching logic:
    - If any exclude keyword is present, the rule does not match.
    - Every require keyword must be present.
    - Otherwise, any keyword OR any regex match is sufficient.
    """

    raw = _normalize(text)
    folded = raw.casefold()
    matches: List[RuleMatch] = []

    for rule in rules:
        if any(ex in folded for ex in rule.exclude_keywords):
            continue
        if not all(req in folded for req in rule.require_keywords):
            continue

        keyword_hits = [k for k in rule.keywords if k in folded]
        regex_hits = [pattern.pattern for pattern in rule.regex_patterns if pattern.search(raw)]

        if not keyword_hits and not regex_hits:
            continue

        reason_parts: List[str] = []
        if keyword_hits:
            reason_parts.append(f"keyword(s): {', '.join(sorted(set(keyword_hits)))}")
        if regex_hits:
            reason_parts.append(f"regex: {', '.join(sorted(set(regex_hits)))}")

        matches.append(RuleMatch(category=rule.category, reason="\n".join(reason_parts)))

    return matches


def classify(text: Optional[str], table: RuleTable, mode: Optional[str] = None) -> Tuple[str, ...]:
    """Classify text against a rule table.

    ``first_match`` returns the category of the first matching rule,
    ``multi_match`` returns every matched category in table order. Both fall
    back to the table's default category, so the result is never empty.
    """

    mode = mode or table.mode
    if mode not in MATCH_MODES:
        raise ValueError(f"Unsupported match mode: {mode}")

    if mode == FIRST_MATCH:
        # Stop at the first hit; the remaining rules never need evaluating.
        for rule in table.rules:
            if match_rules(text, (rule,)):
                return (rule.category,)
        return (table.default_category,)

    categories: List[str] = []
    for match in match_rules(text, table.rules):
        if match.category not in categories:
            categories.append(match.category)
    return tuple(categories) or (table.default_category,)
