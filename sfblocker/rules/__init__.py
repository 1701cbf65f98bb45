"""Blocklist compilation and path matching.

    from sfblocker.rules import RuleSet, compile_rules, decide
"""

from sfblocker.rules.matcher import Decision, decide, normalize_path
from sfblocker.rules.ruleset import RuleSet, compile_rules

__all__ = [
    "Decision",
    "RuleSet",
    "compile_rules",
    "decide",
    "normalize_path",
]
