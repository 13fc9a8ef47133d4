"""Group membership from attribute rules."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from re import Pattern
from typing import Any

from structlog.stdlib import BoundLogger

from ..config import Config, GroupRegexRule, GroupRule
from ..models.account import LocalAccount
from ..models.attributes import AttributeBag

__all__ = [
    "GroupMembershipEvaluator",
    "apply_group_rules",
    "matches_exact",
    "matches_regex",
]


def matches_exact(values: Sequence[str], accepted: set[str]) -> bool:
    """Whether any attribute value is one of the accepted values."""
    return not accepted.isdisjoint(values)


def matches_regex(values: Sequence[str], pattern: Pattern[str]) -> bool:
    """Whether the pattern matches anywhere in any attribute value."""
    return any(pattern.search(v) for v in values)


def apply_group_rules(
    groups: set[str],
    attributes: AttributeBag,
    rules: Mapping[str, GroupRule] | Mapping[str, GroupRegexRule],
    matcher: Callable[[Sequence[str], Any], bool],
) -> None:
    """Apply one table of group rules to a set of groups.

    For each group, its attributes are checked in order. Attributes absent
    from the assertion are skipped. The first attribute that matches adds
    the group and ends evaluation of that group. An attribute that doesn't
    match removes the group unless the rule is add-only.

    Parameters
    ----------
    groups
        Group memberships, modified in place.
    attributes
        Attributes from the assertion.
    rules
        Rules, keyed by group name, in evaluation order.
    matcher
        Function deciding whether the attribute values match the value of
        the rule for that attribute.
    """
    for group, rule in rules.items():
        for name, expected in rule.attributes.items():
            values = attributes.get(name)
            if not values:
                continue
            if matcher(values, expected):
                groups.add(group)
                break
            if not rule.add_only:
                groups.discard(group)


class GroupMembershipEvaluator:
    """Compute group membership from the attributes of an assertion.

    There are two independent tables of rules: ``groupRules``, which match
    attribute values against lists of accepted values, and
    ``groupRegexRules``, which match them against regular expressions. The
    exact table is applied first and the regex table second, so if a group
    appears in both, the regex table decides whenever one of its attributes
    is present.

    Parameters
    ----------
    config
        samlsync configuration holding the rules.
    logger
        Logger to use.
    """

    def __init__(self, config: Config, logger: BoundLogger) -> None:
        self._config = config
        self._logger = logger

    def apply(self, account: LocalAccount, attributes: AttributeBag) -> bool:
        """Update the groups of an account from assertion attributes.

        Parameters
        ----------
        account
            Account whose groups should be updated in place.
        attributes
            Attributes from the assertion.

        Returns
        -------
        bool
            Whether the group membership of the account changed.
        """
        before = set(account.groups)
        apply_group_rules(
            account.groups, attributes, self._config.group_rules, matches_exact
        )
        apply_group_rules(
            account.groups,
            attributes,
            self._config.group_regex_rules,
            matches_regex,
        )
        if account.groups == before:
            return False
        self._logger.info(
            "Updated group membership",
            user=account.username,
            added=sorted(account.groups - before),
            removed=sorted(before - account.groups),
        )
        return True
