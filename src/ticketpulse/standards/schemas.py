"""Record types shared by the ingestion and analytics stages."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, List, Literal, Optional, Tuple


Priority = Literal["P1", "P2", "P3", "P4"]
PRIORITY_CODES: Tuple[str, ...] = ("P1", "P2", "P3", "P4")

DATE_FIELDS: Tuple[str, ...] = ("request_time", "close_time")
REQUIRED_FIELDS: Tuple[str, ...] = ("ticket_id", "request_time")

SERVICE_KEYS: Tuple[str, ...] = ("flexcube", "cards", "ibps", "mfs", "smart_teller")


@dataclass(frozen=True)
class TicketRecord:
    """One support ticket after header mapping and value normalization.

    ``request_time`` and ``close_time`` hold ISO-8601 UTC instants
    (``2025-01-15T09:30:00.000Z``). ``week_number``/``week_label`` are derived
    by the week assigner unless the source already carried a week column.
    """

    ticket_id: str
    request_time: str
    close_time: Optional[str] = None
    week_number: Optional[int] = None
    week_label: Optional[str] = None
    initiator: Optional[str] = None
    affiliate: Optional[str] = None
    cluster: Optional[str] = None
    service_record_type: Optional[str] = None
    service: Optional[str] = None
    category: Optional[str] = None
    sub_category: Optional[str] = None
    third_lvl_category: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    name: Optional[str] = None
    support_group: Optional[str] = None
    process: Optional[str] = None
    process_manager: Optional[str] = None
    priority: Optional[Priority] = None
    status: Optional[str] = None
    resolution: Optional[str] = None
    root_cause: Optional[str] = None
    incident_origin: Optional[str] = None
    sla_indicator: Optional[str] = None

    def get(self, field_name: str, default: Any = None) -> Any:
        value = getattr(self, field_name, None)
        return default if value is None else value

    def to_dict(self, drop_empty: bool = True) -> Dict[str, Any]:
        data = asdict(self)
        if drop_empty:
            return {k: v for k, v in data.items() if v is not None}
        return data


TICKET_FIELDS: Tuple[str, ...] = tuple(f.name for f in fields(TicketRecord))


class TicketRecordBuilder:
    """Accumulates canonical field values for one row, then validates.

    Only canonical ticket field names are accepted; later values for the same
    field replace earlier ones (duplicate headers mapping to one field).
    """

    def __init__(self) -> None:
        self._values: Dict[str, Any] = {}

    def set(self, field_name: str, value: Any) -> "TicketRecordBuilder":
        if field_name not in TICKET_FIELDS:
            raise KeyError(f"Unknown ticket field: {field_name}")
        self._values[field_name] = value
        return self

    def has(self, field_name: str) -> bool:
        return self._values.get(field_name) not in (None, "")

    def missing_required(self) -> List[str]:
        return [name for name in REQUIRED_FIELDS if not self.has(name)]

    def build(self) -> TicketRecord:
        missing = self.missing_required()
        if missing:
            raise ValueError(f"Missing required ticket fields: {missing}")
        return TicketRecord(**self._values)


@dataclass
class ParseResult:
    """Output of one parse call: records plus collected problems."""

    data: List[TicketRecord] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class CategoryBreakdown:
    category: str
    count: int
    percentage: float


@dataclass(frozen=True)
class TrendPoint:
    period: str
    count: int
