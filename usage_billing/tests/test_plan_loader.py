import json
from pathlib import Path

import pytest

from usage_billing.aggregation import AggregationType
from usage_billing.charge_models import ChargeModelKind, ConfigurationError, GraduatedProperties
from usage_billing.plans import load_plan, load_plans

PLANS_DIR = Path(__file__).resolve().parents[2] / "plans"


def test_bundled_plans_load_and_validate():
    plans = load_plans(PLANS_DIR)
    assert [p.code for p in plans] == ["usage_plan"]
    plan = plans[0]
    assert {c.model for c in plan.charges} == set(ChargeModelKind)
    for charge in plan.charges:
        assert charge.validate().valid, (charge.id, charge.errors())
    assert plan.charge("seats").grouping_keys == ("key_1", "key_2", "key_3")
    assert plan.billable_metrics["seats"].recurring


def test_json_plan(tmp_path):
    path = tmp_path / "plan.json"
    path.write_text(
        json.dumps(
            {
                "code": "p1",
                "currency": "usd",
                "billable_metrics": [{"code": "gb", "aggregation_type": "sum", "field_name": "gb"}],
                "charges": [
                    {
                        "billable_metric": "gb",
                        "model": "graduated",
                        "properties": {"ranges": [{"from_value": 0, "to_value": None, "per_unit_amount": "1", "flat_amount": "0"}]},
                    }
                ],
            }
        )
    )
    plan = load_plan(path)
    charge = plan.charges[0]
    assert plan.currency == "USD"
    assert charge.id == "p1-charge-1"
    assert charge.currency == "USD"
    assert isinstance(charge.properties, GraduatedProperties)
    assert charge.billable_metric.aggregation_type is AggregationType.SUM


def _write_yaml(tmp_path, body):
    path = tmp_path / "plan.yaml"
    path.write_text(body, encoding="utf-8")
    return path


def test_unknown_model_fails_at_load_time(tmp_path):
    path = _write_yaml(
        tmp_path,
        "code: p\nbillable_metrics: [{code: m}]\ncharges:\n  - {billable_metric: m, model: dynamic}\n",
    )
    with pytest.raises(ConfigurationError, match="charges\\[0\\]"):
        load_plan(path)


def test_unknown_metric_fails_at_load_time(tmp_path):
    path = _write_yaml(tmp_path, "code: p\ncharges:\n  - {billable_metric: m, model: standard}\n")
    with pytest.raises(ConfigurationError, match="Unknown billable metric"):
        load_plan(path)


def test_missing_plan_code(tmp_path):
    with pytest.raises(ValueError, match="'code'"):
        load_plan(_write_yaml(tmp_path, "currency: EUR\n"))


def test_bad_amounts_load_but_do_not_validate(tmp_path):
    path = _write_yaml(
        tmp_path,
        "code: p\nbillable_metrics: [{code: m}]\n"
        "charges:\n  - {id: c, billable_metric: m, model: package, properties: {amount: '-1', package_size: 0}}\n",
    )
    charge = load_plan(path).charge("c")
    assert charge.errors() == {"properties": ["invalid_amount", "invalid_package_size"]}


def test_missing_plans_dir_is_empty(tmp_path):
    assert load_plans(tmp_path / "nope") == []
