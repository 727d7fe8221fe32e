"""Data-driven rules that reshape weekly-hours entries before aggregation.

Source sheets sometimes need person-specific handling: one person's hours
listed under several department rows, or a team row whose hours belong to
several people. Each case is a ``{match -> policy}`` rule in a table instead
of a branch keyed on a literal email. Rules are tried in order; the first
match decides, and unmatched entries pass through unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence, Union

from pydantic import ValidationError

from capacity_engine.domain.interchange import (
    DivideEquallyPolicy,
    FixedSharesPolicy,
    PassthroughPolicy,
    RelabelRolePolicy,
    RuleMatch,
    SplitRuleTable,
)
from capacity_engine.services.extraction import WeeklyHoursEntry


EntryPredicate = Callable[[WeeklyHoursEntry], bool]
SplitPolicy = Callable[[WeeklyHoursEntry], list[WeeklyHoursEntry]]


class SplitStrategyError(Exception):
    """Raised when a split rule table cannot be parsed."""


@dataclass(frozen=True)
class SplitRule:
    name: str
    matches: EntryPredicate
    policy: SplitPolicy


def match_entries(
    emails: Optional[Iterable[str]] = None,
    roles: Optional[Iterable[str]] = None,
) -> EntryPredicate:
    """Match on email and/or role; both must hold when both are given."""

    email_set = frozenset(emails or ())
    role_set = frozenset(roles or ())

    def predicate(entry: WeeklyHoursEntry) -> bool:
        if email_set and entry.email not in email_set:
            return False
        if role_set and entry.role not in role_set:
            return False
        return True

    return predicate


def passthrough() -> SplitPolicy:
    return lambda entry: [entry]


def divide_equally(target_emails: Sequence[str]) -> SplitPolicy:
    targets = list(target_emails)

    def policy(entry: WeeklyHoursEntry) -> list[WeeklyHoursEntry]:
        share = entry.hours / len(targets)
        return [replace(entry, email=email, hours=share) for email in targets]

    return policy


def fixed_shares(shares: Mapping[str, float]) -> SplitPolicy:
    weights = dict(shares)
    total_weight = sum(weights.values())

    def policy(entry: WeeklyHoursEntry) -> list[WeeklyHoursEntry]:
        return [
            replace(entry, email=email, hours=entry.hours * weight / total_weight)
            for email, weight in weights.items()
        ]

    return policy


def relabel_role(role: str) -> SplitPolicy:
    return lambda entry: [replace(entry, role=role)]


def _policy_from_spec(
    spec: Union[PassthroughPolicy, DivideEquallyPolicy, FixedSharesPolicy, RelabelRolePolicy],
) -> SplitPolicy:
    if isinstance(spec, DivideEquallyPolicy):
        return divide_equally(spec.target_emails)
    if isinstance(spec, FixedSharesPolicy):
        return fixed_shares(spec.shares)
    if isinstance(spec, RelabelRolePolicy):
        return relabel_role(spec.role)
    return passthrough()


def _predicate_from_spec(spec: RuleMatch) -> EntryPredicate:
    return match_entries(emails=spec.emails, roles=spec.roles)


class AllocationSplitStrategy:
    def __init__(self, rules: Sequence[SplitRule] = ()) -> None:
        self._rules = list(rules)

    @property
    def rules(self) -> list[SplitRule]:
        return list(self._rules)

    @classmethod
    def from_table(cls, table: Union[SplitRuleTable, Mapping[str, Any]]) -> "AllocationSplitStrategy":
        """Build a strategy from a ``{"rules": [...]}`` document."""
        if not isinstance(table, SplitRuleTable):
            try:
                table = SplitRuleTable.model_validate(table)
            except ValidationError as exc:
                raise SplitStrategyError(f"invalid split rule table: {exc}") from exc
        return cls(
            [
                SplitRule(
                    name=rule.name,
                    matches=_predicate_from_spec(rule.match),
                    policy=_policy_from_spec(rule.policy),
                )
                for rule in table.rules
            ]
        )

    def rule_for(self, entry: WeeklyHoursEntry) -> Optional[SplitRule]:
        for rule in self._rules:
            if rule.matches(entry):
                return rule
        return None

    def apply(self, entries: Iterable[WeeklyHoursEntry]) -> list[WeeklyHoursEntry]:
        result: list[WeeklyHoursEntry] = []
        for entry in entries:
            rule = self.rule_for(entry)
            result.extend(rule.policy(entry) if rule is not None else [entry])
        return result
