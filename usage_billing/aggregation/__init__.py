from .aggregator import UNGROUPED, PeriodState, UsageAggregate, aggregate, partition_key
from .events import (
    AggregationType,
    BillableMetric,
    BillingPeriod,
    UsageEvent,
    event_from_dict,
    load_events,
)

__all__ = [
    "AggregationType",
    "BillableMetric",
    "BillingPeriod",
    "PeriodState",
    "UNGROUPED",
    "UsageAggregate",
    "UsageEvent",
    "aggregate",
    "event_from_dict",
    "load_events",
    "partition_key",
]
