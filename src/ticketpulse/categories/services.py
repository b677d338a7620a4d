"""Service definitions and the highlighted categories shown first in trend views."""
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from ..standards.schemas import SERVICE_KEYS, TicketRecord


HIGHLIGHTED_CATEGORIES: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    "flexcube": (
        "Account Maintenance",
        "Cheque Book",
        "Account Closure",
        "Account Class Transfer",
    ),
    "cards": (
        "Card Complain with error code",
        "Card error",
        "Challenges on indigo",
        "Card Issuance Connectivity issues",
    ),
    "ibps": (
        "Account Opening Challenges",
        "AO update Challenges",
        "Account Maintenance",
        "FT validation issue",
    ),
    "mfs": (
        "Issue creating virtual cards",
        "Onboarding related",
        "Account Activation",
        "Onboarding - Non recipient OTP",
    ),
    "smart_teller": (
        "Interface freezing, slow and or unresponsive",
        "Core Banking Error",
        "Assign application to user on Smart Teller",
        "Transaction Failure",
    ),
})


@dataclass(frozen=True)
class ServiceDefinition:
    """How a service's tickets are recognized and which categories it highlights."""

    key: str
    title: str
    match_field: str
    match_value: str
    highlights: Tuple[str, ...] = ()

    def matches(self, record: TicketRecord) -> bool:
        value = (record.get(self.match_field) or "").strip().lower()
        return self.match_value.lower() in value

    def is_highlighted(self, category: Optional[str]) -> bool:
        needle = (category or "").strip().lower()
        return any(h.lower() == needle for h in self.highlights)

    def canonical_highlight(self, category: Optional[str]) -> Optional[str]:
        """The configured spelling of ``category`` if it is highlighted."""
        needle = (category or "").strip().lower()
        for h in self.highlights:
            if h.lower() == needle:
                return h
        return None


# key -> (title, match field, match text)
_SERVICE_MATCHERS: Mapping[str, Tuple[str, str, str]] = MappingProxyType({
    "flexcube": ("F12", "sub_category", "Flexcube"),
    "cards": ("Cards Services", "category", "Cards Services"),
    "ibps": ("IBPS", "sub_category", "IBPS"),
    "mfs": ("Mobile Financial Services", "category", "Mobile Financial Services"),
    "smart_teller": ("Smart Teller", "sub_category", "Smart Teller"),
})


def is_highlighted_category(service: str, category: str) -> bool:
    highlights = HIGHLIGHTED_CATEGORIES.get(service)
    if not highlights:
        return False
    needle = category.strip().lower()
    return any(h.lower() == needle for h in highlights)


def get_highlighted_categories(service: str) -> List[str]:
    return list(HIGHLIGHTED_CATEGORIES.get(service, ()))


def build_service_definitions(
    overrides: Optional[Mapping[str, Sequence[str]]] = None,
) -> Mapping[str, ServiceDefinition]:
    """Service definitions in canonical key order.

    ``overrides`` (typically ``AppConfig.services``) replaces the highlighted
    categories of the services it names.
    """

    overrides = overrides or {}
    unknown = sorted(k for k in overrides if k not in SERVICE_KEYS)
    if unknown:
        raise ValueError(f"Unknown service keys: {unknown}")

    definitions = {}
    for key in SERVICE_KEYS:
        title, match_field, match_value = _SERVICE_MATCHERS[key]
        highlights = overrides.get(key, HIGHLIGHTED_CATEGORIES[key])
        definitions[key] = ServiceDefinition(
            key=key,
            title=title,
            match_field=match_field,
            match_value=match_value,
            highlights=tuple(highlights),
        )
    return MappingProxyType(definitions)


DEFAULT_SERVICES = build_service_definitions()


def resolve_service(service: str | ServiceDefinition) -> ServiceDefinition:
    if isinstance(service, ServiceDefinition):
        return service
    try:
        return DEFAULT_SERVICES[service]
    except KeyError:
        raise ValueError(f"Unknown service key: {service!r}. Expected one of {list(SERVICE_KEYS)}") from None


def filter_service_records(
    records: Iterable[TicketRecord],
    service: str | ServiceDefinition,
) -> List[TicketRecord]:
    """Tickets belonging to ``service`` (case-insensitive containment on its match field)."""
    definition = resolve_service(service)
    return [r for r in records if definition.matches(r)]
