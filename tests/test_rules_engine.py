from __future__ import annotations

import pytest

from core.rules_engine import (
    FIRST_MATCH,
    MULTI_MATCH,
    build_rule_table,
    build_rules,
    classify,
    match_rules,
)


def _table(mode: str = FIRST_MATCH) -> dict:
    return {
        "mode": mode,
        "default": "other",
        "rules": [
            {"category": "sad", "keywords": ["sad", "down"]},
            {"category": "anxious", "keywords": ["Anxious"]},
            {"category": "failure", "regex": [r"\bcomplete\s+failure\b"]},
        ],
    }


def test_keywords_are_case_insensitive() -> None:
    table = build_rule_table(_table())
    assert classify("I am so ANXIOUS today", table) == ("anxious",)


def test_first_match_uses_declaration_order() -> None:
    table = build_rule_table(_table())
    assert classify("sad and anxious", table) == ("sad",)


def test_multi_match_returns_all_in_order_without_duplicates() -> None:
    table = build_rule_table(_table(MULTI_MATCH))
    result = classify("anxious, down and sad, a complete failure", table)
    assert result == ("sad", "anxious", "failure")


def test_no_match_falls_back_to_default() -> None:
    for mode in (FIRST_MATCH, MULTI_MATCH):
        table = build_rule_table(_table(mode))
        assert classify("blah blah", table) == ("other",)
        assert classify("", table) == ("other",)
        assert classify(None, table) == ("other",)


def test_mode_override() -> None:
    table = build_rule_table(_table(FIRST_MATCH))
    assert classify("sad and anxious", table, mode=MULTI_MATCH) == ("sad", "anxious")


def test_exclude_and_require_keywords() -> None:
    rules = build_rules(
        [
            {"category": "reasoning", "require_keywords": ["i feel"], "keywords": ["so i"]},
            {"category": "news", "keywords": ["news"], "exclude_keywords": ["old news"]},
        ]
    )
    assert [m.category for m in match_rules("I feel useless so I quit", rules)] == ["reasoning"]
    assert match_rules("so I quit", rules) == []
    assert match_rules("that is old news", rules) == []
    assert [m.category for m in match_rules("big news", rules)] == ["news"]


def test_match_reason_lists_hits() -> None:
    rules = build_rules([{"category": "failure", "keywords": ["failure"], "regex": [r"total\s+failure"]}])
    matches = match_rules("A total failure", rules)
    assert len(matches) == 1
    assert "keyword(s): failure" in matches[0].reason
    assert "regex:" in matches[0].reason


def test_priority_and_disabled_rules() -> None:
    rules = build_rules(
        [
            {"category": "late", "keywords": ["x"], "priority": 5},
            {"category": "off", "keywords": ["x"], "enabled": False},
            {"category": "early", "keywords": ["x"], "priority": 0},
        ]
    )
    assert [rule.category for rule in rules] == ["early", "late"]


def test_invalid_table_config() -> None:
    with pytest.raises(ValueError):
        build_rule_table({"mode": "best_match", "default": "x", "rules": []})
    with pytest.raises(ValueError):
        build_rule_table({"rules": []})
    table = build_rule_table(_table())
    with pytest.raises(ValueError):
        classify("sad", table, mode="nope")
