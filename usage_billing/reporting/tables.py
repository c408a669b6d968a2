from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Sequence

from rich.table import Table

from ..charge_models.types import ValidationResult
from ..money import format_minor_units
from ..pricing.invoice import InvoiceTotal
from ..pricing.rating import Fee


def _md_escape(v: Any) -> str:
    s = "" if v is None else str(v)
    # Escape pipes so Markdown tables don't break
    return s.replace("|", "\\|").replace("\n", " ").strip()


def _group_label(values: Sequence[str]) -> str:
    return " / ".join(values) if values else "(ungrouped)"


def render_fee_table(fees: Iterable[Fee], invoice: Optional[InvoiceTotal] = None) -> str:
    """Markdown tables: one row per fee, then every breakdown line, then totals."""
    fees = list(fees)
    if not fees:
        return ""

    out: List[str] = []
    out.append("## Fees\n\n")
    out.append("| Charge | Group | Units | Events | Amount |\n")
    out.append("|---|---|---:|---:|---:|\n")
    for f in fees:
        out.append(
            f"| {_md_escape(f.charge_id)} | {_md_escape(_group_label(f.grouping_values))} "
            f"| {_md_escape(f.units)} | {f.events_count} | {format_minor_units(f.amount_cents, f.currency)} |\n"
        )

    out.append("\n**Breakdown**\n\n")
    out.append("| Charge | Group | Component | Units | Amount |\n")
    out.append("|---|---|---|---:|---:|\n")
    for f in fees:
        for c in f.breakdown:
            out.append(
                f"| {_md_escape(f.charge_id)} | {_md_escape(_group_label(f.grouping_values))} "
                f"| {_md_escape(c.label)} | {_md_escape(c.units)} | {format_minor_units(c.amount_cents, f.currency)} |\n"
            )

    if invoice is not None:
        out.append("\n**Invoice total**\n\n")
        out.append("| Fees | Coupons | Total |\n")
        out.append("|---:|---:|---:|\n")
        out.append(
            f"| {format_minor_units(invoice.fees_amount_cents, invoice.currency)} "
            f"| -{format_minor_units(invoice.coupons_amount_cents, invoice.currency)} "
            f"| {format_minor_units(invoice.total_amount_cents, invoice.currency)} |\n"
        )
    return "".join(out)


def build_fee_table(fees: Iterable[Fee], title: str = "Fees") -> Table:
    table = Table(title=title)
    table.add_column("Charge")
    table.add_column("Group")
    table.add_column("Component")
    table.add_column("Units", justify="right")
    table.add_column("Amount", justify="right")
    for f in fees:
        group = _group_label(f.grouping_values)
        for c in f.breakdown:
            table.add_row(f.charge_id, group, c.label, str(c.units), format_minor_units(c.amount_cents, f.currency))
        table.add_row(
            f"[bold]{f.charge_id}[/bold]",
            group,
            "[bold]total[/bold]",
            str(f.units),
            f"[bold]{format_minor_units(f.amount_cents, f.currency)}[/bold]",
        )
    return table


def build_validation_table(results: Dict[str, ValidationResult]) -> Table:
    table = Table(title="Charge validation")
    table.add_column("Charge")
    table.add_column("Valid")
    table.add_column("Errors")
    for charge_id, result in results.items():
        codes = result.flattened().get("properties", [])
        table.add_row(
            charge_id,
            "[green]yes[/green]" if result.valid else "[red]no[/red]",
            ", ".join(codes),
        )
    return table
