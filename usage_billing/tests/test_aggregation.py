from decimal import Decimal

import pytest

from usage_billing.aggregation import (
    UNGROUPED,
    BillableMetric,
    BillingPeriod,
    PeriodState,
    UsageEvent,
    aggregate,
)
from usage_billing.charge_models import ConfigurationError
from usage_billing.pricing.rating import rate_aggregates, total_amount_cents

from helpers import make_charge, utc

FEB = BillingPeriod(utc(2024, 2, 6), utc(2024, 3, 6))
MAR = BillingPeriod(utc(2024, 3, 6), utc(2024, 4, 6))

COUNT = BillableMetric(code="api_calls")
UNIQUE = BillableMetric(code="seats", aggregation_type="unique_count", field_name="item_id")
RECURRING = BillableMetric(code="seats", aggregation_type="unique_count", field_name="item_id", recurring=True)


def ev(day, month=2, **props):
    tx = props.pop("tx", None)
    return UsageEvent(timestamp=utc(2024, month, day, 12), properties=props, transaction_id=tx)


def test_count_without_grouping_keys():
    result = aggregate([ev(7), ev(8), ev(9)], COUNT, FEB)
    assert list(result) == [UNGROUPED]
    assert result[()].quantity == Decimal("3")
    assert result[()].events_count == 3
    assert result[()].period_start == FEB.start


def test_events_outside_period_are_excluded():
    events = [ev(1), ev(7), ev(6, month=3), ev(10, month=3)]
    result = aggregate(events, COUNT, FEB)
    assert result[()].quantity == Decimal("1")


def test_no_events_means_no_partitions():
    assert aggregate([], COUNT, FEB) == {}


def test_partitions_by_grouping_keys():
    events = [
        ev(7, region="eu", tier="a"),
        ev(8, region="eu", tier="a"),
        ev(9, region="us", tier="a"),
    ]
    result = aggregate(events, COUNT, FEB, grouping_keys=["region", "tier"])
    assert list(result) == [("eu", "a"), ("us", "a")]
    assert result[("eu", "a")].quantity == Decimal("2")
    assert result[("us", "a")].grouping_values == ("us", "a")


def test_missing_grouping_key_goes_to_ungrouped_partition():
    events = [ev(7, region="eu"), ev(8), ev(9, region="")]
    result = aggregate(events, COUNT, FEB, grouping_keys=["region"])
    assert result[UNGROUPED].quantity == Decimal("2")
    assert result[("eu",)].quantity == Decimal("1")


def test_duplicate_transaction_ids_count_once():
    events = [ev(7, tx="t1"), ev(7, tx="t1"), ev(8, tx="t2")]
    assert aggregate(events, COUNT, FEB)[()].quantity == Decimal("2")


def test_sum_and_max():
    events = [ev(7, value="1.5"), ev(8, value="4"), ev(9, value="2")]
    total = aggregate(events, BillableMetric(code="gb", aggregation_type="sum", field_name="value"), FEB)
    peak = aggregate(events, BillableMetric(code="gb", aggregation_type="max", field_name="value"), FEB)
    assert total[()].quantity == Decimal("7.5")
    assert peak[()].quantity == Decimal("4")


def test_sum_rejects_non_numeric_values():
    metric = BillableMetric(code="gb", aggregation_type="sum", field_name="value")
    with pytest.raises(ValueError, match="value"):
        aggregate([ev(7, value="lots")], metric, FEB)


def test_metric_configuration_errors():
    with pytest.raises(ConfigurationError):
        BillableMetric(code="calls", aggregation_type="count", recurring=True)
    with pytest.raises(ConfigurationError):
        BillableMetric(code="gb", aggregation_type="sum")
    with pytest.raises(ConfigurationError):
        BillableMetric(code="gb", aggregation_type="median")


def test_unique_count_deduplicates_item_ids():
    events = [ev(7, item_id="A"), ev(8, item_id="A"), ev(9, item_id="B"), ev(10)]
    result = aggregate(events, UNIQUE, FEB)
    assert result[()].quantity == Decimal("2")
    assert result[()].events_count == 4
    assert result[()].item_ids == frozenset({"A", "B"})


def test_unique_count_non_recurring_ignores_prior_state():
    prior = PeriodState(items={"A": ()})
    result = aggregate([ev(7, month=3, item_id="B")], UNIQUE, MAR, prior_period_state=prior)
    assert result[()].quantity == Decimal("1")


def test_recurring_items_carry_over_to_a_period_without_events():
    p1 = aggregate([ev(7, item_id="A"), ev(8, item_id="B")], RECURRING, FEB)
    assert p1[()].quantity == Decimal("2")

    state = PeriodState.from_aggregates(p1)
    assert state.carried_over_item_ids == frozenset({"A", "B"})

    p2 = aggregate([], RECURRING, MAR, prior_period_state=state)
    assert p2[()].quantity == Decimal("2")
    assert p2[()].carried_over_item_ids == frozenset({"A", "B"})
    assert p2[()].events_count == 0


def test_recurring_removal_ends_an_item():
    state = PeriodState(items={"A": (), "B": ()})
    events = [ev(7, month=3, item_id="A", operation_type="remove"), ev(8, month=3, item_id="C")]
    p2 = aggregate(events, RECURRING, MAR, prior_period_state=state)
    assert p2[()].quantity == Decimal("2")
    assert p2[()].item_ids == frozenset({"B", "C"})
    assert p2[()].carried_over_item_ids == frozenset({"A", "B"})

    april = BillingPeriod(utc(2024, 4, 6), utc(2024, 5, 6))
    p3 = aggregate([], RECURRING, april, prior_period_state=PeriodState.from_aggregates(p2))
    assert p3[()].quantity == Decimal("2")
    assert p3[()].item_ids == frozenset({"B", "C"})


def test_grouping_keys_and_prior_state_are_keyword_only():
    with pytest.raises(TypeError):
        aggregate([], RECURRING, MAR, PeriodState(items={"A": ()}))


def test_recurring_item_keeps_the_partition_it_was_first_seen_in():
    keys = ["key_1", "key_2", "key_3"]
    events = [
        ev(7, item_id="001", key_1="2024", key_2="Feb", key_3="08"),
        ev(7, item_id="001", key_1="2024", key_2="Feb", key_3="06"),
        ev(7, item_id="002", key_1="2024", key_2="Feb", key_3="06"),
    ]
    result = aggregate(events, RECURRING, FEB, grouping_keys=keys)
    assert {g: a.quantity for g, a in result.items()} == {
        ("2024", "Feb", "06"): Decimal("1"),
        ("2024", "Feb", "08"): Decimal("1"),
    }
    assert result[("2024", "Feb", "08")].item_ids == frozenset({"001"})

    nxt = aggregate([], RECURRING, MAR, grouping_keys=keys, prior_period_state=PeriodState.from_aggregates(result))
    assert nxt[("2024", "Feb", "08")].item_ids == frozenset({"001"})
    assert nxt[("2024", "Feb", "06")].item_ids == frozenset({"002"})


def test_grouped_recurring_unique_count_is_billed_per_partition():
    metric = RECURRING
    charge = make_charge(
        "standard",
        {"amount": "1", "grouped_by": ["key_1", "key_2", "key_3"]},
        metric=metric,
    )
    events = [
        ev(7, item_id="001", key_1="2024", key_2="Feb", key_3="08"),
        ev(7, item_id="001", key_1="2024", key_2="Feb", key_3="06"),
        ev(7, item_id="002", key_1="2024", key_2="Feb", key_3="06"),
    ]
    aggregates = aggregate(events, metric, FEB, grouping_keys=charge.grouping_keys)
    fees = rate_aggregates(charge, aggregates)

    assert len([f for f in fees if f.amount_cents]) == 2
    assert total_amount_cents(fees) == 200


def test_events_are_consumed_lazily():
    def stream():
        for day in (7, 8):
            yield ev(day)

    assert aggregate(stream(), COUNT, FEB)[()].quantity == Decimal("2")


def test_billing_period_must_end_after_start():
    with pytest.raises(ValueError):
        BillingPeriod(utc(2024, 3, 1), utc(2024, 3, 1))
