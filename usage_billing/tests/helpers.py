from datetime import datetime, timezone

from usage_billing.aggregation import BillableMetric
from usage_billing.charge_models import ChargeModelKind, parse_properties
from usage_billing.plans import Charge


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


def make_charge(model, properties, *, metric=None, currency="EUR", charge_id="c1", version=1, plan_code=""):
    kind = ChargeModelKind.parse(model)
    return Charge(
        id=charge_id,
        model=kind,
        properties=parse_properties(kind, properties),
        billable_metric=metric or BillableMetric(code="api_calls"),
        currency=currency,
        version=version,
        plan_code=plan_code,
    )
