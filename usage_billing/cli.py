#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
usage-billing CLI

Commands:
- validate: load a plan definition and report charge property errors.
- rate:     aggregate a file of usage events for one billing period and
            price it with every charge of the plan (optionally deducting
            applied coupons and carrying recurring state between runs).
- dispatch: hand a finalized invoice to the configured payment provider.
"""

import argparse
import json
import logging
import sys
from importlib import metadata
from pathlib import Path
from typing import Any, Dict, List, Optional

from rich.console import Console

from .aggregation import BillingPeriod, PeriodState, aggregate, load_events
from .aggregation.events import parse_timestamp
from .charge_models import ConfigurationError
from .config import PAYMENT_PROVIDER_URL, TRACE_FILE
from .coupons.models import AppliedCoupon
from .payments import HttpPaymentProvider, PaymentDispatchJob
from .plans import load_plan
from .pricing.invoice import invoice_total
from .pricing.rating import Fee, rate_aggregates
from .reporting.tables import build_fee_table, build_validation_table, render_fee_table
from .utils.trace import build_trace_logger

console = Console()
logger = logging.getLogger("usage_billing")


# --------------------------------------------------------------------
# Argument parsing
# --------------------------------------------------------------------
def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="usage-billing",
        description="Usage-based billing: validate charges, rate usage events, dispatch invoices.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity.",
    )
    parser.add_argument(
        "--trace-path",
        default=TRACE_FILE or None,
        help="Append JSONL trace records to this file.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_val = sub.add_parser("validate", help="Validate every charge of a plan definition.")
    p_val.add_argument("plan", help="Plan definition (YAML or JSON).")

    p_rate = sub.add_parser("rate", help="Aggregate and rate usage events for one period.")
    p_rate.add_argument("plan", help="Plan definition (YAML or JSON).")
    p_rate.add_argument("events", help="Usage events (JSON array or JSONL).")
    p_rate.add_argument("--start", required=True, help="Period start (ISO 8601, inclusive).")
    p_rate.add_argument("--end", required=True, help="Period end (ISO 8601, exclusive).")
    p_rate.add_argument("--coupons", help="JSON list of applied coupons to deduct.")
    p_rate.add_argument("--prior-state", help="JSON state written by a previous run (--write-state).")
    p_rate.add_argument("--write-state", help="Write recurring metric state for the next period here.")
    p_rate.add_argument("--markdown", help="Also write the fee tables as Markdown to this file.")
    p_rate.add_argument("--json", dest="json_out", help="Write fees and totals as JSON to this file.")

    p_pay = sub.add_parser("dispatch", help="Send an invoice to the payment provider.")
    p_pay.add_argument("invoice_id")
    p_pay.add_argument("--url", default=PAYMENT_PROVIDER_URL, help="Payment provider endpoint.")

    return parser.parse_args(argv)


# --------------------------------------------------------------------
# State files: {charge_id: {item_id: [grouping values...]}}
# One entry per charge on a recurring metric, in that charge's partitions.
# --------------------------------------------------------------------
def _read_state(path: Optional[str]) -> Dict[str, PeriodState]:
    if not path:
        return {}
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"State file must be an object in {path}")
    return {
        charge_id: PeriodState(items={str(k): tuple(v or ()) for k, v in (items or {}).items()})
        for charge_id, items in data.items()
    }


def _write_state(path: str, states: Dict[str, PeriodState]) -> None:
    payload = {charge_id: {k: list(v) for k, v in st.items.items()} for charge_id, st in states.items()}
    Path(path).write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")


def _read_coupons(path: Optional[str]) -> List[AppliedCoupon]:
    if not path:
        return []
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"Coupons file must be a list in {path}")
    return [
        AppliedCoupon(
            customer_id=str(c.get("customer_id") or ""),
            coupon_id=str(c["coupon_id"]),
            amount_cents=int(c["amount_cents"]),
            amount_currency=str(c["amount_currency"]).upper(),
        )
        for c in data
    ]


# --------------------------------------------------------------------
# Commands
# --------------------------------------------------------------------
def cmd_validate(args: argparse.Namespace) -> int:
    plan = load_plan(args.plan)
    results = {c.id: c.validate() for c in plan.charges}
    console.print(build_validation_table(results))
    invalid = [cid for cid, r in results.items() if not r.valid]
    if invalid:
        console.print(f"[red]{len(invalid)} invalid charge(s): {', '.join(invalid)}[/red]")
        return 1
    console.print(f"[green]All {len(results)} charge(s) of plan {plan.code} are valid.[/green]")
    return 0


def cmd_rate(args: argparse.Namespace, trace) -> int:
    plan = load_plan(args.plan)
    invalid = {c.id: c.errors() for c in plan.charges if not c.validate().valid}
    if invalid:
        for cid, errs in invalid.items():
            console.print(f"[red]Charge {cid} is invalid: {errs}[/red]")
        return 1

    period = BillingPeriod(parse_timestamp(args.start), parse_timestamp(args.end))
    events = load_events(args.events)
    prior = _read_state(args.prior_state)
    next_states: Dict[str, PeriodState] = {}

    fees: List[Fee] = []
    for charge in plan.charges:
        metric = charge.billable_metric
        metric_events = [e for e in events if e.code in (None, metric.code)]
        aggregates = aggregate(
            metric_events,
            metric,
            period,
            grouping_keys=charge.grouping_keys,
            prior_period_state=prior.get(charge.id),
        )
        if metric.recurring:
            next_states[charge.id] = PeriodState.from_aggregates(aggregates)
        charge_fees = rate_aggregates(charge, aggregates)
        fees.extend(charge_fees)
        if trace is not None:
            trace.log(
                "charge_rated",
                {
                    "partitions": len(aggregates),
                    "amount_cents": sum(f.amount_cents for f in charge_fees),
                    "period_start": period.start,
                    "period_end": period.end,
                },
                charge_id=charge.id,
            )

    invoice = invoice_total(fees, _read_coupons(args.coupons), currency=plan.currency)
    console.print(build_fee_table(fees, title=f"Plan {plan.code}"))
    console.print(
        f"[bold]Total:[/bold] {invoice.total_amount_cents} {invoice.currency} minor units "
        f"(fees {invoice.fees_amount_cents}, coupons -{invoice.coupons_amount_cents})"
    )

    if args.markdown:
        Path(args.markdown).write_text(render_fee_table(fees, invoice), encoding="utf-8")
        logger.info("Wrote Markdown fee tables to %s", args.markdown)
    if args.json_out:
        payload: Dict[str, Any] = {
            "plan": plan.code,
            "fees": [f.as_dict() for f in fees],
            "fees_amount_cents": invoice.fees_amount_cents,
            "coupons_amount_cents": invoice.coupons_amount_cents,
            "total_amount_cents": invoice.total_amount_cents,
            "currency": invoice.currency,
        }
        Path(args.json_out).write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    if args.write_state:
        _write_state(args.write_state, next_states)
    return 0


def cmd_dispatch(args: argparse.Namespace, trace) -> int:
    job = PaymentDispatchJob(HttpPaymentProvider(url=args.url), trace=trace)
    outcome = job.perform(args.invoice_id)
    console.print(f"Invoice {outcome.invoice_id}: {outcome.status} after {outcome.attempts} attempt(s)")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
    )
    try:
        tool_version = metadata.version("usage-billing")
    except metadata.PackageNotFoundError:
        tool_version = "dev"
    logger.debug("usage-billing %s, arguments: %s", tool_version, args)

    trace = build_trace_logger(args.trace_path) if args.trace_path else None

    try:
        if args.command == "validate":
            return cmd_validate(args)
        if args.command == "rate":
            return cmd_rate(args, trace)
        if args.command == "dispatch":
            return cmd_dispatch(args, trace)
    except (ConfigurationError, ValueError, FileNotFoundError) as ex:
        console.print(f"[red]{ex}[/red]")
        return 2
    return 2


if __name__ == "__main__":
    sys.exit(main())
