"""Map spreadsheet headers to canonical ticket field names."""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional

from ..standards.schemas import TICKET_FIELDS


# header (lowercased, trimmed) -> canonical field
DEFAULT_COLUMN_ALIASES: Mapping[str, str] = MappingProxyType({
    "ticket id": "ticket_id",
    "ticketid": "ticket_id",
    "ticket_id": "ticket_id",
    "request time": "request_time",
    "requesttime": "request_time",
    "request_time": "request_time",
    "week": "week_label",
    "weeks": "week_label",
    "initiator": "initiator",
    "affiliate": "affiliate",
    "cluster": "cluster",
    "clusters": "cluster",
    "service": "service",
    "service record type": "service_record_type",
    "servicerecordtype": "service_record_type",
    "record type": "service_record_type",
    "category": "category",
    "sub-category": "sub_category",
    "subcategory": "sub_category",
    "sub category": "sub_category",
    "third lvl category": "third_lvl_category",
    "third level category": "third_lvl_category",
    "thirdlvlcategory": "third_lvl_category",
    "3rd lvl category": "third_lvl_category",
    "title": "title",
    "description": "description",
    "name": "name",
    "support group": "support_group",
    "supportgroup": "support_group",
    "process": "process",
    "process manager": "process_manager",
    "processmanager": "process_manager",
    "manager": "process_manager",
    "priority": "priority",
    "status": "status",
    "resolution": "resolution",
    "root cause": "root_cause",
    "rootcause": "root_cause",
    "incident origin": "incident_origin",
    "incidentorigin": "incident_origin",
    "close time": "close_time",
    "closetime": "close_time",
    "sla indicator": "sla_indicator",
    "slaindicator": "sla_indicator",
})

REQUIRED_COLUMN_LABELS: Mapping[str, str] = MappingProxyType({
    "ticket_id": "Ticket ID",
    "request_time": "Request Time",
})


def _header_key(header: str) -> str:
    return str(header).strip().lower()


@dataclass
class ColumnMapping:
    """Result of mapping one header row.

    ``fields`` preserves the input header order; unrecognized headers are
    absent. ``errors`` lists missing required columns.
    """

    fields: Dict[str, str] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)

    def has_field(self, field_name: str) -> bool:
        return field_name in self.fields.values()

    def headers_for(self, field_name: str) -> List[str]:
        return [h for h, f in self.fields.items() if f == field_name]


class ColumnMapper:
    """Case-insensitive, whitespace-tolerant header lookup.

    The alias table is fixed at construction; pass ``extra_aliases`` (canonical
    field -> list of spellings, as found in YAML configuration) to extend it.
    """

    def __init__(
        self,
        aliases: Optional[Mapping[str, str]] = None,
        extra_aliases: Optional[Mapping[str, Iterable[str]]] = None,
    ) -> None:
        table: Dict[str, str] = dict(aliases if aliases is not None else DEFAULT_COLUMN_ALIASES)
        for canonical, spellings in (extra_aliases or {}).items():
            if canonical not in TICKET_FIELDS:
                raise ValueError(f"Unknown ticket field in column aliases: {canonical}")
            for spelling in spellings or []:
                table[_header_key(spelling)] = canonical
        self._aliases: Mapping[str, str] = MappingProxyType(table)

    @property
    def aliases(self) -> Mapping[str, str]:
        return self._aliases

    def normalize_column_name(self, header: str) -> Optional[str]:
        return self._aliases.get(_header_key(header))

    def map_headers(self, headers: Iterable[str]) -> ColumnMapping:
        mapping = ColumnMapping()
        for header in headers:
            canonical = self.normalize_column_name(header)
            if canonical:
                mapping.fields[header] = canonical
        for required, label in REQUIRED_COLUMN_LABELS.items():
            if not mapping.has_field(required):
                mapping.errors.append(f"Missing required column: {label}")
        return mapping


def map_headers(headers: Iterable[str]) -> ColumnMapping:
    """Map headers using the default alias table."""
    return ColumnMapper().map_headers(headers)
