"""Ordered rule tables for advice and recommendation text.

Every coaching string the engine produces comes from a table of
``(predicate, template)`` rules evaluated top to bottom against a
context object.  A table is either read as *first match wins*
(a single piece of advice) or *every match fires* (a list of
independent recommendations).

Usage::

    table = DecisionTable([
        Rule("low_win_rate", lambda c: c.win_rate < 0.4,
             lambda c: f"Win rate {c.win_rate:.0%} is low."),
        Rule("fallback", lambda c: True, "Keep going."),
    ])
    advice = table.first(ctx)
    recommendations = table.all(ctx)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, Sequence, TypeVar

C = TypeVar("C")


@dataclass(frozen=True)
class Rule(Generic[C]):
    """One row of a decision table.

    ``then`` is either a literal value or a callable rendering the
    value from the context.
    """

    name: str
    when: Callable[[C], bool]
    then: Any

    def matches(self, ctx: C) -> bool:
        return bool(self.when(ctx))

    def render(self, ctx: C) -> Any:
        return self.then(ctx) if callable(self.then) else self.then


class DecisionTable(Generic[C]):
    """An ordered list of rules evaluated against one context."""

    def __init__(self, rules: Sequence[Rule[C]]) -> None:
        self._rules = tuple(rules)

    @property
    def rules(self) -> tuple[Rule[C], ...]:
        return self._rules

    def first(self, ctx: C, default: Any = None) -> Any:
        """Render the first matching rule, or ``default``."""
        for rule in self._rules:
            if rule.matches(ctx):
                return rule.render(ctx)
        return default

    def all(self, ctx: C) -> list[Any]:
        """Render every matching rule, in table order."""
        return [rule.render(ctx) for rule in self._rules if rule.matches(ctx)]

    def matching_names(self, ctx: C) -> list[str]:
        return [rule.name for rule in self._rules if rule.matches(ctx)]

    def __len__(self) -> int:
        return len(self._rules)
