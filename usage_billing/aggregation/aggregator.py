"""Usage aggregation: events of one billing period -> one quantity per partition.

Partitioning
------------
Events are split by the tuple of their values for the charge's grouping keys.
An event missing any of the keys goes to the ungrouped partition ``()``,
which is also the only partition when there are no grouping keys.

Recurring unique count
----------------------
A recurring metric tracks items that stay billable until removed. The run
starts from the previous period's terminal state (``PeriodState``) instead of
replaying history. An item id is tracked once per metric: it belongs to the
partition where it was first seen and keeps it across periods. An event with
``operation_type=remove`` ends the item.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from ..money import to_decimal
from .events import AggregationType, BillableMetric, BillingPeriod, UsageEvent

_LOGGER = logging.getLogger(__name__)

GroupingValues = Tuple[str, ...]
UNGROUPED: GroupingValues = ()


@dataclass(frozen=True)
class UsageAggregate:
    quantity: Decimal
    grouping_values: GroupingValues
    period_start: datetime
    period_end: datetime
    events_count: int = 0
    # Items active when the period opened (recurring metrics only).
    carried_over_item_ids: FrozenSet[str] = frozenset()
    # Items active when the period closed; seed of the next period.
    item_ids: FrozenSet[str] = frozenset()

    def fingerprint(self) -> str:
        return "|".join(
            [
                str(self.quantity),
                "\x1f".join(self.grouping_values),
                self.period_start.isoformat(),
                self.period_end.isoformat(),
                str(self.events_count),
            ]
        )


@dataclass(frozen=True)
class PeriodState:
    """Terminal state of a recurring run: item id -> grouping values."""

    items: Mapping[str, GroupingValues] = field(default_factory=dict)

    @property
    def carried_over_item_ids(self) -> FrozenSet[str]:
        return frozenset(self.items)

    @classmethod
    def from_aggregates(cls, aggregates: Mapping[GroupingValues, UsageAggregate]) -> "PeriodState":
        items: Dict[str, GroupingValues] = {}
        for group, agg in aggregates.items():
            for item in agg.item_ids:
                items[item] = group
        return cls(items=items)


@dataclass
class _Partition:
    events_count: int = 0
    total: Decimal = Decimal("0")
    maximum: Optional[Decimal] = None
    items: Set[str] = field(default_factory=set)
    carried: Set[str] = field(default_factory=set)


def partition_key(event: UsageEvent, grouping_keys: Sequence[str]) -> GroupingValues:
    if not grouping_keys:
        return UNGROUPED
    values: List[str] = []
    for key in grouping_keys:
        v = event.properties.get(key)
        if v in (None, ""):
            return UNGROUPED
        values.append(str(v))
    return tuple(values)


def _event_value(event: UsageEvent, field_name: str) -> Decimal:
    value = to_decimal(event.properties.get(field_name))
    if value is None:
        raise ValueError(
            f"Event {event.transaction_id or event.timestamp.isoformat()} has no numeric '{field_name}' property"
        )
    return value


def aggregate(
    events: Iterable[UsageEvent],
    metric: BillableMetric,
    period: BillingPeriod,
    *,
    grouping_keys: Sequence[str] = (),
    prior_period_state: Optional[PeriodState] = None,
) -> Dict[GroupingValues, UsageAggregate]:
    """Reduce the events of ``period`` into one UsageAggregate per partition.

    Events outside [period.start, period.end) are skipped and never applied
    retroactively. Duplicate transaction ids are counted once. The result is
    ordered by grouping values.
    """
    keys = tuple(grouping_keys)
    recurring = metric.recurring
    partitions: Dict[GroupingValues, _Partition] = {}
    seen_transactions: Set[str] = set()
    excluded = 0

    # item id -> owning partition (recurring only)
    active: Dict[str, GroupingValues] = {}
    if prior_period_state is not None:
        if recurring:
            active.update({item: tuple(group) for item, group in prior_period_state.items.items()})
            for item, group in active.items():
                partitions.setdefault(group, _Partition()).carried.add(item)
        elif prior_period_state.items:
            _LOGGER.debug("Metric %s is not recurring; ignoring prior period state", metric.code)

    for event in events:
        if not period.contains(event.timestamp):
            excluded += 1
            continue
        if event.transaction_id:
            if event.transaction_id in seen_transactions:
                _LOGGER.debug("Duplicate transaction %s ignored", event.transaction_id)
                continue
            seen_transactions.add(event.transaction_id)

        group = partition_key(event, keys)
        part = partitions.setdefault(group, _Partition())
        part.events_count += 1

        agg_type = metric.aggregation_type
        if agg_type is AggregationType.SUM:
            part.total += _event_value(event, metric.field_name)
        elif agg_type is AggregationType.MAX:
            value = _event_value(event, metric.field_name)
            if part.maximum is None or value > part.maximum:
                part.maximum = value
        elif agg_type is AggregationType.UNIQUE_COUNT:
            item = event.resolve_item_id(metric.field_name)
            if item is None:
                continue
            if not recurring:
                if event.is_removal:
                    part.items.discard(item)
                else:
                    part.items.add(item)
            elif event.is_removal:
                active.pop(item, None)
            elif item not in active:
                active[item] = group

    if excluded:
        _LOGGER.debug("Metric %s: %d event(s) outside %s - %s excluded", metric.code, excluded, period.start, period.end)

    if recurring:
        for item, group in active.items():
            partitions.setdefault(group, _Partition()).items.add(item)

    out: Dict[GroupingValues, UsageAggregate] = {}
    for group in sorted(partitions):
        part = partitions[group]
        out[group] = UsageAggregate(
            quantity=_quantity(metric.aggregation_type, part),
            grouping_values=group,
            period_start=period.start,
            period_end=period.end,
            events_count=part.events_count,
            carried_over_item_ids=frozenset(part.carried),
            item_ids=frozenset(part.items),
        )
    return out


def _quantity(agg_type: AggregationType, part: _Partition) -> Decimal:
    if agg_type is AggregationType.COUNT:
        return Decimal(part.events_count)
    if agg_type is AggregationType.SUM:
        return part.total
    if agg_type is AggregationType.MAX:
        return part.maximum if part.maximum is not None else Decimal("0")
    return Decimal(len(part.items))
