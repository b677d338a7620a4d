"""Collapse free-text third-level categories into canonical labels per service.

Each service has an ordered list of ``CategoryRule`` objects; the first rule
whose predicate accepts the lower-cased input wins. Inputs no rule recognizes
are returned trimmed but otherwise unchanged.
"""
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Mapping, Optional, Sequence, Tuple


Predicate = Callable[[str], bool]


@dataclass(frozen=True)
class CategoryRule:
    label: str
    predicate: Predicate

    def matches(self, lowered: str) -> bool:
        return self.predicate(lowered)


def contains_all(*needles: str) -> Predicate:
    def _check(value: str) -> bool:
        return all(n in value for n in needles)
    return _check


def contains_any(*needles: str) -> Predicate:
    def _check(value: str) -> bool:
        return any(n in value for n in needles)
    return _check


def starts_with(prefix: str) -> Predicate:
    def _check(value: str) -> bool:
        return value.startswith(prefix)
    return _check


def any_of(*predicates: Predicate) -> Predicate:
    def _check(value: str) -> bool:
        return any(p(value) for p in predicates)
    return _check


DEFAULT_CATEGORY_RULES: Mapping[str, Tuple[CategoryRule, ...]] = MappingProxyType({
    "smart_teller": (
        CategoryRule(
            "Interface freezing, slow and or unresponsive",
            contains_any("interface freezing", "unresponsive", "slow"),
        ),
        CategoryRule("Core Banking Error", contains_all("core", "bank", "error")),
        CategoryRule("Assign application to user on Smart Teller", starts_with("assign application to user")),
        CategoryRule("Transaction Failure", starts_with("transaction failure")),
    ),
    "cards": (
        CategoryRule("Card Issuance Connectivity issues", contains_all("issuance", "connect")),
        CategoryRule(
            "Card Complain with error code",
            any_of(contains_all("error code"), contains_all("complain", "error")),
        ),
        CategoryRule("Card error", contains_all("card", "error")),
        CategoryRule("Challenges on indigo", contains_all("indigo")),
    ),
    "flexcube": (
        CategoryRule("Account Maintenance", contains_all("account maintenance")),
        CategoryRule("Cheque Book", contains_all("cheque", "book")),
        CategoryRule("Account Closure", contains_all("account", "closure")),
        CategoryRule("Account Class Transfer", contains_all("account", "class", "transfer")),
    ),
    "ibps": (
        CategoryRule("Account Opening Challenges", contains_all("account", "opening")),
        CategoryRule("AO update Challenges", contains_all("ao", "update")),
        CategoryRule("Account Maintenance", contains_all("account maintenance")),
        CategoryRule(
            "FT validation issue",
            any_of(contains_all("ft", "validation"), contains_all("fund transfer validation")),
        ),
    ),
    "mfs": (
        CategoryRule("Issue creating virtual cards", contains_all("virtual", "card")),
        CategoryRule("Onboarding - Non recipient OTP", contains_all("onboarding", "non", "recipient")),
        CategoryRule("Onboarding related", contains_all("onboarding")),
        CategoryRule("Account Activation", contains_all("account", "activation")),
    ),
})


class CategoryNormalizer:
    """Apply an immutable per-service rule table."""

    def __init__(self, rules: Optional[Mapping[str, Sequence[CategoryRule]]] = None) -> None:
        source = DEFAULT_CATEGORY_RULES if rules is None else rules
        self._rules: Mapping[str, Tuple[CategoryRule, ...]] = MappingProxyType(
            {key: tuple(value) for key, value in source.items()}
        )

    @property
    def services(self) -> Tuple[str, ...]:
        return tuple(self._rules)

    def rules_for(self, service: str) -> Tuple[CategoryRule, ...]:
        return self._rules.get(service, ())

    def normalize(self, service: str, raw: Optional[str]) -> str:
        text = (raw or "").strip()
        if not text:
            return ""
        lowered = text.lower()
        for rule in self.rules_for(service):
            if rule.matches(lowered):
                return rule.label
        return text


_DEFAULT_NORMALIZER = CategoryNormalizer()


def normalize_category(service: str, raw: Optional[str]) -> str:
    """Canonical label for ``raw`` under ``service``; trimmed passthrough when unmatched.

    >>> normalize_category("smart_teller", "Core banking system error")
    'Core Banking Error'
    >>> normalize_category("unknown", "  Something  ")
    'Something'
    """
    return _DEFAULT_NORMALIZER.normalize(service, raw)


__all__ = [
    "CategoryNormalizer",
    "CategoryRule",
    "DEFAULT_CATEGORY_RULES",
    "normalize_category",
]
