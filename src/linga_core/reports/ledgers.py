"""Discount ledger, void log, staff metrics and tender summaries."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import asdict, dataclass
from decimal import Decimal
from typing import Any, Optional

from linga_core.cleaning import ZERO
from linga_core.joins import resolve_name
from linga_core.reports.grouping import AggregateRow, group_by
from linga_core.reports.sales import safe_ratio
from linga_core.schema import (
    DiscountRecord,
    Employee,
    OrderLine,
    PaymentRecord,
    SaleTicket,
)

# Display name when the voiding employee cannot be resolved
VOID_FALLBACK = "Manager"
NO_REASON = "No reason provided"


# ------------------------------------------------------------
# Discounts
# ------------------------------------------------------------


def filter_discounts(records: Iterable[DiscountRecord]) -> list[DiscountRecord]:
    """Drop the ``"Total"`` subtotal rows, keeping individual discount events."""
    return [r for r in records if not r.is_sentinel]


def discount_total(records: Iterable[DiscountRecord]) -> Decimal:
    return sum((r.amount for r in filter_discounts(records)), ZERO)


def group_discounts(records: Iterable[DiscountRecord]) -> list[AggregateRow]:
    """Discount recap: amount and uses per discount name.

    A row's use count is its ``quantity``, or 1 when the report leaves it at
    zero.
    """
    return group_by(
        filter_discounts(records),
        key=lambda r: r.name or "Unnamed",
        value=lambda r: r.amount,
        count=lambda r: r.quantity or 1,
    )


# ------------------------------------------------------------
# Voids
# ------------------------------------------------------------


@dataclass(frozen=True)
class VoidEntry:
    """A voided order line with the voiding employee resolved."""

    ticket_no: str
    menu_item: str
    quantity: int
    reason: str
    voided_by: str
    amount: Decimal
    line: OrderLine

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data.pop("line")
        return data


def filter_voids(
    order_lines: Iterable[OrderLine],
    employees: Optional[Iterable[Employee]] = None,
) -> list[VoidEntry]:
    """Select voided order lines for the void log.

    Args:
        order_lines: Order lines of the selection.
        employees: Employee lookup used to name the voiding employee;
            unresolved ids show as ``"Manager"``.

    Returns:
        One VoidEntry per voided line, in input order.
    """
    staff = tuple(employees or ())
    return [
        VoidEntry(
            ticket_no=line.sale_id,
            menu_item=line.menu_item,
            quantity=line.quantity,
            reason=line.void_reason or NO_REASON,
            voided_by=resolve_name(staff, line.void_by_id, fallback=VOID_FALLBACK),
            amount=line.total_gross,
            line=line,
        )
        for line in order_lines
        if line.is_void
    ]


# ------------------------------------------------------------
# Staff
# ------------------------------------------------------------


@dataclass(frozen=True)
class StaffRow:
    name: str
    checks: int
    covers: int
    net_sales: Decimal
    average_per_cover: Decimal

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def staff_metrics(
    tickets: Iterable[SaleTicket],
    employees: Optional[Iterable[Employee]] = None,
) -> list[StaffRow]:
    """Per-server performance: checks opened, covers, net sales.

    Tickets are attributed to the employee who opened them. Rows are sorted by
    net sales descending, ties in first-appearance order.
    """
    staff = tuple(employees or ())
    tickets = list(tickets)

    def name_of(ticket: SaleTicket) -> str:
        return resolve_name(staff, ticket.employee_id)

    sales = group_by(tickets, key=name_of, value=lambda t: t.net_sales)
    covers = {
        row.key: row.count
        for row in group_by(
            tickets, key=name_of, value=lambda t: ZERO, count=lambda t: t.guest_count
        )
    }
    return [
        StaffRow(
            name=row.key,
            checks=row.count,
            covers=covers.get(row.key, 0),
            net_sales=row.value,
            average_per_cover=safe_ratio(row.value, covers.get(row.key, 0)),
        )
        for row in sales
    ]


# ------------------------------------------------------------
# Tenders
# ------------------------------------------------------------


def tender_totals(payments: Iterable[PaymentRecord]) -> tuple[Decimal, Decimal]:
    """Total settled amount and total tips, kept separate."""
    payments = list(payments)
    settled = sum((p.amount for p in payments), ZERO)
    tips = sum((p.tips for p in payments), ZERO)
    return settled, tips
