"""Tests for sfblocker/rules/matcher.py — the per-request decision.

Decision rule: blocked iff the path minus one leading "/" is an exact name,
or some pattern finds a match anywhere in it (unless the pattern anchors).
"""

from __future__ import annotations

import pytest

from sfblocker.rules.matcher import Decision, decide, normalize_path
from sfblocker.rules.ruleset import compile_rules


class TestNormalizePath:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("/secrets.txt", "secrets.txt"),
            ("secrets.txt", "secrets.txt"),
            ("//secrets.txt", "/secrets.txt"),
            ("/", ""),
            ("", ""),
            ("/a/b/.env", "a/b/.env"),
        ],
    )
    def test_strips_one_leading_separator(self, raw, expected):
        assert normalize_path(raw) == expected


class TestExactDecision:
    def setup_method(self):
        self.rules = compile_rules(["passwords.txt", "secrets.txt"], [])

    def test_exact_match_blocks(self):
        decision = decide("/secrets.txt", self.rules)
        assert decision == Decision(
            blocked=True, path="secrets.txt", rule="secrets.txt", rule_type="exact"
        )

    def test_without_leading_slash_is_equivalent(self):
        assert decide("secrets.txt", self.rules).blocked is True

    def test_double_slash_not_normalized_away(self):
        assert decide("//secrets.txt", self.rules).blocked is False

    def test_case_sensitive(self):
        rules = compile_rules(["SensitiveFile.txt"], [])
        assert decide("/sensitivefile.txt", rules).blocked is False

    def test_nested_path_is_not_exact(self):
        assert decide("/dir/secrets.txt", self.rules).blocked is False

    def test_root_path_not_blocked(self):
        rules = compile_rules(["somefile.txt"], [])
        decision = decide("/", rules)
        assert decision.blocked is False
        assert decision.rule is None
        assert decision.rule_type is None

    def test_exact_names_are_not_regexes(self):
        rules = compile_rules(["^start.*", "exactfile.txt"], [])
        assert decide("/nonmatching.txt", rules).blocked is False
        assert decide("/start.txt", rules).blocked is False
        assert decide("/^start.*", rules).blocked is True


class TestPatternDecision:
    def setup_method(self):
        self.rules = compile_rules([], ["file.txt", "^begin", "end$", "^all$", ""])

    @pytest.mark.parametrize(
        "path, blocked",
        [
            ("/all.txt", False),
            ("/file.txt", True),
            ("/begin.txt", True),
            ("/end.txt", False),
            ("/someend", True),
            ("/all", True),
            ("/notblocked.txt", False),
            ("/beginandAnother", True),
            ("/end", True),
            ("/endx", False),
            ("/dir/file.txt.bak", True),
        ],
    )
    def test_search_semantics(self, path, blocked):
        assert decide(path, self.rules).blocked is blocked

    def test_first_matching_pattern_reported(self):
        rules = compile_rules([], [r"\.env", r"env$"])
        decision = decide("/.env", rules)
        assert decision.rule == r"\.env"
        assert decision.rule_type == "pattern"


class TestPrecedence:
    def test_exact_wins_over_pattern(self):
        rules = compile_rules(["exactfile.txt"], ["^exact.*"])
        decision = decide("/exactfile.txt", rules)
        assert decision.rule_type == "exact"
        assert decision.rule == "exactfile.txt"

    def test_pattern_used_when_exact_misses(self):
        rules = compile_rules(["exactfile.txt"], ["^exact.*"])
        decision = decide("/exactother.txt", rules)
        assert decision.rule_type == "pattern"

    def test_decision_is_stateless(self):
        rules = compile_rules(["a"], ["b"])
        first = [decide(p, rules) for p in ("/a", "/b", "/c")]
        second = [decide(p, rules) for p in ("/a", "/b", "/c")]
        assert first == second
