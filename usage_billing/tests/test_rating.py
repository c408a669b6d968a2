from decimal import Decimal

import pytest

from usage_billing.aggregation import UsageAggregate
from usage_billing.charge_models import build_default_registry
from usage_billing.pricing import cache as rating_cache
from usage_billing.plans import load_plan
from usage_billing.pricing.rating import RatingError, rate, rate_aggregates

from helpers import make_charge, utc

GRADUATED = {
    "graduated_ranges": [
        {"from_value": 0, "to_value": 10, "per_unit_amount": "1", "flat_amount": "2"},
        {"from_value": 10, "to_value": 20, "per_unit_amount": "0.5", "flat_amount": "3"},
        {"from_value": 20, "to_value": None, "per_unit_amount": "0.25", "flat_amount": "0"},
    ]
}

VOLUME = {
    "volume_ranges": [
        {"from_value": 0, "to_value": 100, "per_unit_amount": "2", "flat_amount": "10"},
        {"from_value": 100, "to_value": None, "per_unit_amount": "1", "flat_amount": "50"},
    ]
}


def agg(quantity, events_count=0, grouping_values=()):
    return UsageAggregate(
        quantity=Decimal(str(quantity)),
        grouping_values=tuple(grouping_values),
        period_start=utc(2024, 2, 1),
        period_end=utc(2024, 3, 1),
        events_count=events_count,
    )


def test_standard_fee():
    fee = rate(make_charge("standard", {"amount": "0.25"}), agg(10))
    assert fee.amount_cents == 250
    assert fee.currency == "EUR"
    assert fee.units == Decimal("10")
    assert [c.label for c in fee.breakdown] == ["units"]


def test_standard_rounds_half_up_to_the_cent():
    assert rate(make_charge("standard", {"amount": "0.005"}), agg(1)).amount_cents == 1
    assert rate(make_charge("standard", {"amount": "0.004"}), agg(1), use_cache=False).amount_cents == 0
    assert rate(make_charge("standard", {"amount": "0.333"}, charge_id="c2"), agg(3)).amount_cents == 100


def test_zero_decimal_currency():
    fee = rate(make_charge("standard", {"amount": "1.5"}, currency="JPY"), agg(3))
    assert fee.amount_cents == 5  # 4.5 yen rounds half-up


def test_graduated_consumes_tiers_cumulatively():
    fee = rate(make_charge("graduated", GRADUATED), agg(25))
    assert fee.amount_cents == 1000 + 200 + 500 + 300 + 125
    assert [c.amount_cents for c in fee.breakdown] == [1000, 200, 500, 300, 125]
    assert fee.breakdown[0].label == "tier 0-10"
    assert fee.breakdown[-1].label == "tier 20-∞"


def test_graduated_flat_amount_only_for_touched_tiers():
    charge = make_charge("graduated", GRADUATED)
    assert rate(charge, agg(0)).amount_cents == 0
    assert rate(charge, agg(10)).amount_cents == 1200
    assert rate(charge, agg("10.5")).amount_cents == 1200 + 25 + 300


def test_graduated_last_bounded_range_absorbs_overflow():
    props = {
        "graduated_ranges": [
            {"from_value": 0, "to_value": 10, "per_unit_amount": "1", "flat_amount": "0"},
            {"from_value": 10, "to_value": 20, "per_unit_amount": "2", "flat_amount": "0"},
        ]
    }
    assert rate(make_charge("graduated", props), agg(30)).amount_cents == 1000 + 4000


def test_graduated_breakdown_sums_and_fee_is_monotonic():
    charge = make_charge("graduated", GRADUATED)
    previous = -1
    for i in range(0, 400):
        q = Decimal(i) / Decimal(8)
        fee = rate(charge, agg(q))
        assert sum(c.amount_cents for c in fee.breakdown) == fee.amount_cents
        assert fee.amount_cents >= previous
        previous = fee.amount_cents


def test_volume_prices_whole_quantity_in_one_tier():
    charge = make_charge("volume", VOLUME)
    assert rate(charge, agg(50)).amount_cents == 11000
    assert rate(charge, agg(100)).amount_cents == 15000
    assert rate(charge, agg(1000)).amount_cents == 105000
    assert rate(charge, agg(0)).amount_cents == 0


def test_volume_applies_exactly_one_tier_at_any_magnitude():
    charge = make_charge("volume", VOLUME)
    for q in (1, 99, "99.99", 100, 101, 10 ** 9):
        fee = rate(charge, agg(q))
        tiers = {c.label.replace(" flat", "") for c in fee.breakdown}
        assert len(tiers) == 1
        assert sum(c.amount_cents for c in fee.breakdown) == fee.amount_cents


def test_package_free_units_and_blocks():
    charge = make_charge("package", {"amount": "5", "free_units": 10, "package_size": 100})
    assert rate(charge, agg(0)).amount_cents == 0
    assert rate(charge, agg(10)).amount_cents == 0
    assert rate(charge, agg(110)).amount_cents == 500
    assert rate(charge, agg(111)).amount_cents == 1000


def test_package_without_free_units():
    fee = rate(make_charge("package", {"amount": "5", "package_size": 10}), agg(1))
    assert fee.amount_cents == 500
    assert [c.label for c in fee.breakdown] == ["packages"]


def test_percentage_with_free_units_and_fixed_fee():
    charge = make_charge(
        "percentage",
        {
            "rate": "2.5",
            "fixed_amount": "0.10",
            "free_units_per_events": 2,
            "free_units_per_total_aggregation": "100",
        },
    )
    fee = rate(charge, agg(1000, events_count=5))
    assert [c.label for c in fee.breakdown] == ["percentage", "fixed fee"]
    assert [c.amount_cents for c in fee.breakdown] == [2250, 30]
    assert fee.amount_cents == 2280


def test_percentage_free_offsets_floor_at_zero():
    charge = make_charge(
        "percentage",
        {"rate": "10", "fixed_amount": "1", "free_units_per_events": 10, "free_units_per_total_aggregation": "500"},
    )
    assert rate(charge, agg(100, events_count=3)).amount_cents == 0


def test_percentage_fixed_fee_needs_billable_units():
    charge = make_charge("percentage", {"rate": "1", "fixed_amount": "0.25"})
    fee = rate(charge, agg(0, events_count=4))
    assert fee.amount_cents == 0
    assert [c.units for c in fee.breakdown] == [Decimal("0"), Decimal("0")]

    assert rate(charge, agg(100, events_count=4)).amount_cents == 100 + 100


def test_invalid_charge_is_never_rated():
    with pytest.raises(RatingError):
        rate(make_charge("standard", {"amount": "-1"}), agg(1))


def test_negative_quantity_is_a_contract_violation():
    with pytest.raises(RatingError):
        rate(make_charge("standard", {"amount": "1"}), agg(-1))


def test_rating_is_memoized_per_charge_version():
    charge = make_charge("standard", {"amount": "1"})
    first = rate(charge, agg(3))
    assert rating_cache.cache_size() == 1
    assert rate(charge, agg(3)) is first

    bumped = make_charge("standard", {"amount": "2"}, version=2)
    assert rate(bumped, agg(3)).amount_cents == 600


def test_rate_aggregates_orders_by_grouping_values():
    charge = make_charge("standard", {"amount": "1"})
    fees = rate_aggregates(charge, {("b",): agg(1, grouping_values=("b",)), ("a",): agg(2, grouping_values=("a",))})
    assert [f.grouping_values for f in fees] == [("a",), ("b",)]
    assert [f.amount_cents for f in fees] == [200, 100]


def _seats_plan(tmp_path, code, amount):
    path = tmp_path / f"{code}.yaml"
    path.write_text(
        f"code: {code}\n"
        "currency: EUR\n"
        "billable_metrics: [{code: seats}]\n"
        "charges:\n"
        f"  - {{id: seats, billable_metric: seats, model: standard, properties: {{amount: '{amount}'}}}}\n",
        encoding="utf-8",
    )
    return load_plan(path)


def test_charges_sharing_an_id_across_plans_are_rated_apart(tmp_path):
    basic = _seats_plan(tmp_path, "basic", "1").charge("seats")
    premium = _seats_plan(tmp_path, "premium", "5").charge("seats")
    assert (basic.id, basic.version) == (premium.id, premium.version)

    assert rate(basic, agg(10)).amount_cents == 1000
    assert rate(premium, agg(10)).amount_cents == 5000
    assert rating_cache.cache_size() == 2


def test_changed_properties_are_not_served_from_the_memo():
    cheap = make_charge("standard", {"amount": "1"})
    dear = make_charge("standard", {"amount": "3"})
    assert rate(cheap, agg(2)).amount_cents == 200
    assert rate(dear, agg(2)).amount_cents == 600


def test_custom_registry_is_never_memoized():
    charge = make_charge("standard", {"amount": "1"})
    assert rate(charge, agg(3), registry=build_default_registry()).amount_cents == 300
    assert rating_cache.cache_size() == 0
