"""Per-request block decision.

decide() is a pure function of the request path and a compiled RuleSet:

  1. Strip exactly one leading "/" from the path.
  2. Exact membership test against RuleSet.exact_names (O(1), always first).
  3. Otherwise each pattern is searched (not full-matched) in declaration
     order; the first hit blocks.

No state is kept between calls and nothing is allocated per rule.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional

from sfblocker.constants import PATH_SEPARATOR
from sfblocker.rules.ruleset import RuleSet

RuleType = Literal["exact", "pattern"]


@dataclass(frozen=True)
class Decision:
    """Outcome of decide().

    Fields:
        blocked:   True when the request must not reach the next handler.
        path:      The normalized path the rules were tested against.
        rule:      Exact name or pattern source that matched (None when not blocked).
        rule_type: "exact" or "pattern" (None when not blocked).
    """

    blocked: bool
    path: str
    rule: Optional[str] = None
    rule_type: Optional[RuleType] = None


def normalize_path(path: str) -> str:
    """Remove a single leading separator: "/a" -> "a", "//a" -> "/a"."""
    if path.startswith(PATH_SEPARATOR):
        return path[len(PATH_SEPARATOR):]
    return path


def decide(path: str, rules: RuleSet) -> Decision:
    normalized = normalize_path(path)

    if normalized in rules.exact_names:
        return Decision(blocked=True, path=normalized, rule=normalized, rule_type="exact")

    for pattern in rules.patterns:
        if pattern.search(normalized):
            return Decision(
                blocked=True,
                path=normalized,
                rule=pattern.pattern,
                rule_type="pattern",
            )

    return Decision(blocked=False, path=normalized)
