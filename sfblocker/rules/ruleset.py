"""Compiled blocklist for the sensitive files blocker.

A RuleSet is built once, when the middleware is constructed, and never mutated.
Every pattern is compiled exactly once here; request handling only reads it.

IMPORT RULES:
  - ``import re2`` ONLY. Patterns come from operators and are evaluated on
    attacker-controlled paths, so matching must stay linear-time.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

import re2  # google-re2. NEVER: import re

from sfblocker.errors import EmptyRuleSetError, PatternSyntaxError
from sfblocker.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class RuleSet:
    """Exact path names plus ordered, pre-compiled patterns.

    INVARIANT: at least one of ``exact_names`` / ``patterns`` is non-empty.
    ``patterns`` keeps declaration order; the first match is reported.
    """

    exact_names: frozenset[str]
    patterns: tuple["re2._Regexp", ...]

    @property
    def pattern_sources(self) -> tuple[str, ...]:
        return tuple(p.pattern for p in self.patterns)

    def __len__(self) -> int:
        return len(self.exact_names) + len(self.patterns)


def compile_rules(
    exact_list: Iterable[str],
    pattern_list: Iterable[str],
) -> RuleSet:
    """Validate and compile the configured blocklists.

    Exact names are stored verbatim (no trimming). Pattern entries are trimmed;
    blank entries are skipped. The first pattern that fails to compile aborts
    the whole construction, so a partially-compiled RuleSet never exists.

    Raises:
        PatternSyntaxError: a pattern is not valid google-re2 syntax.
        EmptyRuleSetError:  no exact names and no non-blank patterns remain.
    """
    exact_names = frozenset(exact_list)

    compiled: list["re2._Regexp"] = []
    for raw in pattern_list:
        source = raw.strip()
        if not source:
            continue
        try:
            compiled.append(re2.compile(source))
        except re2.error as exc:
            logger.error("Invalid blocklist pattern", pattern=source, error=str(exc))
            raise PatternSyntaxError(source, str(exc)) from exc

    if not exact_names and not compiled:
        raise EmptyRuleSetError()

    logger.debug(
        "Blocklist compiled",
        exact_rules=len(exact_names),
        pattern_rules=len(compiled),
    )
    return RuleSet(exact_names=exact_names, patterns=tuple(compiled))
