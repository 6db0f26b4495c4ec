"""Per-target level filtering parsed from a ``LOG_FILTER`` expression.

The syntax is a comma separated list of entries:

* ``info`` sets the default level for every target;
* ``ferroxide.server=debug`` sets the level for a target and its children;
* ``ferroxide.server`` alone enables every level for that target;
* a trailing ``/regex`` keeps only records whose message matches.

Level names are ``off``, ``error``, ``warn``, ``info``, ``debug`` and ``trace``.
When no bare level is given, targets without a rule are disabled.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass

from .records import LogLevel

DEFAULT_FILTER = "info"
OFF = logging.CRITICAL + 10


def _levelno(name: str) -> int:
    if name.strip().lower() == "off":
        return OFF
    return LogLevel.parse(name).value


@dataclass(frozen=True, slots=True)
class FilterRule:
    target: str | None
    levelno: int

    def matches(self, name: str) -> bool:
        if self.target is None:
            return True
        return name == self.target or name.startswith(self.target + ".")


class TargetFilter(logging.Filter):
    """``logging.Filter`` applying the most specific matching rule to each record."""

    def __init__(self, rules: Sequence[FilterRule], pattern: re.Pattern[str] | None = None) -> None:
        super().__init__()
        self.rules = tuple(rules)
        self.pattern = pattern

    def level_for(self, target: str) -> int:
        best: FilterRule | None = None
        for rule in self.rules:
            if not rule.matches(target):
                continue
            # later rules win ties on specificity
            if best is None or len(rule.target or "") >= len(best.target or ""):
                best = rule
        return best.levelno if best is not None else OFF

    def enabled(self, levelno: int, target: str) -> bool:
        return levelno >= self.level_for(target)

    def min_level(self) -> int:
        return min((rule.levelno for rule in self.rules), default=OFF)

    def filter(self, record: logging.LogRecord) -> bool:
        if not self.enabled(record.levelno, record.name):
            return False
        if self.pattern is not None:
            try:
                message = record.getMessage()
            except Exception:
                return False
            return self.pattern.search(message) is not None
        return True


def parse_filters(expr: str | None) -> tuple[TargetFilter, list[str]]:
    """Parse ``expr`` into a filter plus human-readable warnings for skipped entries.

    An unset or blank expression means ``info``.  An expression without a single
    valid entry also falls back to ``info``, with a warning.
    """

    if expr is None or not expr.strip():
        return TargetFilter([FilterRule(None, logging.INFO)]), []

    warnings: list[str] = []
    directives, _, regex = expr.partition("/")
    pattern: re.Pattern[str] | None = None
    if regex:
        try:
            pattern = re.compile(regex)
        except re.error as exc:
            warnings.append(f"invalid log filter regex {regex!r}: {exc}")

    rules: list[FilterRule] = []
    for raw in directives.split(","):
        entry = raw.strip()
        if not entry:
            continue
        target, sep, level = entry.partition("=")
        target = target.strip()
        try:
            if not sep:
                try:
                    rules.append(FilterRule(None, _levelno(entry)))
                except ValueError:
                    rules.append(FilterRule(entry, LogLevel.TRACE.value))
                continue
            if not target or "=" in level:
                raise ValueError(f"malformed entry {entry!r}")
            rules.append(FilterRule(target, _levelno(level)))
        except ValueError as exc:
            warnings.append(f"ignoring log filter entry {entry!r}: {exc}")

    if not rules:
        if not directives.strip():
            return TargetFilter([FilterRule(None, logging.INFO)], pattern), warnings
        warnings.append(f"invalid log filter {expr!r}; falling back to {DEFAULT_FILTER!r}")
        return TargetFilter([FilterRule(None, logging.INFO)], pattern), warnings
    return TargetFilter(rules, pattern), warnings
