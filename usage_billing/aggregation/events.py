"""Usage events, billable metrics and billing periods.

Events are the records handed over by the persistence layer for one
(subscription, metric, period). Loading helpers accept the same JSON / JSONL
shapes the CLI reads from disk.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional

from ..charge_models.types import ConfigurationError


class AggregationType(str, Enum):
    COUNT = "count"
    UNIQUE_COUNT = "unique_count"
    SUM = "sum"
    MAX = "max"

    @classmethod
    def parse(cls, value: Any) -> "AggregationType":
        if isinstance(value, cls):
            return value
        tag = str(value or "").strip().lower()
        for t in cls:
            if t.value == tag:
                return t
        raise ConfigurationError(f"Unknown aggregation type: {value!r}")


@dataclass(frozen=True)
class BillableMetric:
    code: str
    aggregation_type: AggregationType = AggregationType.COUNT
    field_name: Optional[str] = None
    recurring: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "aggregation_type", AggregationType.parse(self.aggregation_type))
        if self.recurring and self.aggregation_type is not AggregationType.UNIQUE_COUNT:
            raise ConfigurationError(
                f"Metric {self.code}: recurring is only supported for unique_count aggregation"
            )
        if self.aggregation_type in (AggregationType.SUM, AggregationType.MAX) and not self.field_name:
            raise ConfigurationError(f"Metric {self.code}: {self.aggregation_type.value} needs a field_name")


@dataclass(frozen=True)
class BillingPeriod:
    """[start, end) in UTC."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", ensure_utc(self.start))
        object.__setattr__(self, "end", ensure_utc(self.end))
        if self.end <= self.start:
            raise ValueError(f"Billing period end {self.end.isoformat()} must be after start {self.start.isoformat()}")

    def contains(self, ts: datetime) -> bool:
        return self.start <= ts < self.end


@dataclass(frozen=True)
class UsageEvent:
    timestamp: datetime
    properties: Mapping[str, str] = field(default_factory=dict)
    item_id: Optional[str] = None
    transaction_id: Optional[str] = None
    code: Optional[str] = None  # billable metric code, when events of several metrics are mixed

    def __post_init__(self) -> None:
        object.__setattr__(self, "timestamp", ensure_utc(self.timestamp))

    def resolve_item_id(self, field_name: Optional[str]) -> Optional[str]:
        if self.item_id not in (None, ""):
            return str(self.item_id)
        if field_name:
            v = self.properties.get(field_name)
            if v not in (None, ""):
                return str(v)
        return None

    @property
    def is_removal(self) -> bool:
        return str(self.properties.get("operation_type") or "").strip().lower() == "remove"


def ensure_utc(ts: datetime) -> datetime:
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    s = str(value or "").strip()
    if not s:
        raise ValueError("Event timestamp is missing")
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    return ensure_utc(datetime.fromisoformat(s))


def event_from_dict(obj: Mapping[str, Any]) -> UsageEvent:
    if not isinstance(obj, Mapping):
        raise ValueError(f"Event must be an object, got {type(obj).__name__}")
    props = obj.get("properties") or {}
    if not isinstance(props, Mapping):
        raise ValueError("Event properties must be an object")
    return UsageEvent(
        timestamp=parse_timestamp(obj.get("timestamp")),
        properties={str(k): "" if v is None else str(v) for k, v in props.items()},
        item_id=obj.get("item_id"),
        transaction_id=obj.get("transaction_id"),
        code=obj.get("code"),
    )


def events_from_dicts(items: Iterable[Mapping[str, Any]]) -> Iterator[UsageEvent]:
    for obj in items:
        yield event_from_dict(obj)


def load_events(path: Path | str) -> List[UsageEvent]:
    """Read events from a JSON array or a JSONL file, sorted by timestamp."""
    p = Path(path)
    raw = p.read_text(encoding="utf-8")
    if p.suffix.lower() == ".jsonl":
        rows: List[Dict[str, Any]] = [json.loads(line) for line in raw.splitlines() if line.strip()]
    else:
        data = json.loads(raw)
        if isinstance(data, Mapping):
            data = data.get("events") or []
        if not isinstance(data, list):
            raise ValueError(f"Top-level JSON must be a list of events in {p}")
        rows = data
    events = list(events_from_dicts(rows))
    events.sort(key=lambda e: e.timestamp)
    return events
