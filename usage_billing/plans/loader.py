"""Plan definition loader.

Loads YAML/JSON plan definitions (by default from config.PLANS_DIR).

The loader is strict about *structure* and lenient about *values*:
- missing keys, unknown charge models and unknown metrics raise
  ValueError/ConfigurationError with a readable context, so CI fails fast;
- bad amounts inside properties are kept and reported later by the charge
  validators as field errors.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List

import yaml

from ..aggregation.events import BillableMetric
from ..charge_models.properties import parse_properties
from ..charge_models.types import ChargeModelKind, ConfigurationError
from ..config import DEFAULT_CURRENCY, PLANS_DIR
from .schema import Charge, Plan


def _as_list(x: Any) -> List[Any]:
    if x is None:
        return []
    if isinstance(x, list):
        return x
    return [x]


def _require(obj: Dict[str, Any], key: str, *, ctx: str) -> Any:
    if key not in obj or obj[key] in (None, ""):
        raise ValueError(f"Missing required key '{key}' in {ctx}")
    return obj[key]


def _load_one(path: Path) -> Dict[str, Any]:
    raw = path.read_text(encoding="utf-8")
    if path.suffix.lower() in (".yaml", ".yml"):
        data = yaml.safe_load(raw) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Top-level YAML must be a mapping in {path}")
        return data
    if path.suffix.lower() == ".json":
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError(f"Top-level JSON must be an object in {path}")
        return data
    raise ValueError(f"Unsupported definition file type: {path}")


def _parse_metrics(items: List[Any], *, ctx: str) -> Dict[str, BillableMetric]:
    out: Dict[str, BillableMetric] = {}
    for i, it in enumerate(items):
        mctx = f"{ctx}.billable_metrics[{i}]"
        if not isinstance(it, dict):
            raise ValueError(f"billable metric must be an object in {mctx}")
        code = str(_require(it, "code", ctx=mctx)).strip()
        if code in out:
            raise ValueError(f"duplicate billable metric '{code}' in {ctx}")
        out[code] = BillableMetric(
            code=code,
            aggregation_type=it.get("aggregation_type") or "count",
            field_name=(str(it["field_name"]).strip() if it.get("field_name") else None),
            recurring=bool(it.get("recurring", False)),
        )
    return out


def _parse_charges(
    items: List[Any],
    metrics: Dict[str, BillableMetric],
    *,
    currency: str,
    plan_code: str,
    ctx: str,
) -> List[Charge]:
    out: List[Charge] = []
    seen = set()
    for i, it in enumerate(items):
        cctx = f"{ctx}.charges[{i}]"
        if not isinstance(it, dict):
            raise ValueError(f"charge must be an object in {cctx}")
        charge_id = str(it.get("id") or f"{plan_code}-charge-{i + 1}").strip()
        if charge_id in seen:
            raise ValueError(f"duplicate charge id '{charge_id}' in {ctx}")
        seen.add(charge_id)

        try:
            model = ChargeModelKind.parse(_require(it, "model", ctx=cctx))
        except ConfigurationError as ex:
            raise ConfigurationError(f"{ex} in {cctx}") from None

        metric_code = str(_require(it, "billable_metric", ctx=cctx)).strip()
        if metric_code not in metrics:
            raise ConfigurationError(f"Unknown billable metric '{metric_code}' in {cctx}")

        out.append(
            Charge(
                id=charge_id,
                model=model,
                properties=parse_properties(model, it.get("properties")),
                billable_metric=metrics[metric_code],
                currency=currency,
                version=int(it.get("version") or 1),
                plan_code=plan_code,
            )
        )
    return out


def load_plan(path: Path | str) -> Plan:
    p = Path(path)
    data = _load_one(p)
    ctx = f"plan({p.name})"
    code = str(_require(data, "code", ctx=ctx)).strip()
    currency = str(data.get("currency") or DEFAULT_CURRENCY).strip().upper()
    metrics = _parse_metrics(_as_list(data.get("billable_metrics")), ctx=ctx)
    charges = _parse_charges(
        _as_list(data.get("charges")),
        metrics,
        currency=currency,
        plan_code=code,
        ctx=ctx,
    )
    return Plan(
        code=code,
        currency=currency,
        charges=charges,
        billable_metrics=metrics,
        description=str(data.get("description") or ""),
        source_file=p.name,
    )


def load_plans(plans_dir: Path | str | None = None) -> List[Plan]:
    base = Path(plans_dir or PLANS_DIR)
    if not base.exists():
        return []
    paths = sorted([p for p in base.iterdir() if p.is_file() and p.suffix.lower() in (".yaml", ".yml", ".json")])
    return [load_plan(p) for p in paths]
