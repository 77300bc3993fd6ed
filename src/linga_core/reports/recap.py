"""Daily Sales Recap (DSR): the flagship report.

Combines the ticket totals, meal-period segments, revenue mix, tender
settlements and discount recap into one ``RecapMetrics`` record, plus the
variance against an operational target entered by the manager.

Source-of-truth note: ticket totals and meal periods come from tickets,
revenue mix comes from order lines. The two are reported side by side and
their difference is exposed as ``reconciliation_gap`` instead of being
silently absorbed.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import asdict, dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any

from linga_core.cleaning import ZERO, to_money
from linga_core.reports.grouping import NO_DEPT, UNCATEGORIZED, AggregateRow, group_by
from linga_core.reports.ledgers import discount_total, group_discounts, tender_totals
from linga_core.reports.sales import aggregate_sales, safe_ratio
from linga_core.schema import DiscountRecord, OrderLine, PaymentRecord, ReportBatch, SaleTicket
from linga_core.timebuckets import SEGMENTS, segment_of

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")


class RevenueClass(str, Enum):
    """Fixed revenue classes of the DSR mix table."""

    FOOD = "Food"
    NON_ALCOHOLIC = "Non-Alcoholic Bev"
    ALCOHOLIC = "Alcoholic Bev"
    RETAIL = "Retail / Other"


def revenue_class_of(department: str) -> RevenueClass:
    """Classify a department name into a revenue class.

    Rules (case-insensitive substring matches):
    - contains "food"                                  -> Food
    - contains "bev" or "drink", and "wine" or "alc"
      without a "non" prefix                           -> Alcoholic Bev
    - contains "bev" or "drink" otherwise              -> Non-Alcoholic Bev
    - anything else                                    -> Retail / Other
    """
    dept = (department or "").lower()
    if "food" in dept:
        return RevenueClass.FOOD
    if "bev" in dept or "drink" in dept:
        non_alcoholic = "non-alc" in dept or "non alc" in dept or "nonalc" in dept
        if not non_alcoholic and ("wine" in dept or "alc" in dept):
            return RevenueClass.ALCOHOLIC
        return RevenueClass.NON_ALCOHOLIC
    return RevenueClass.RETAIL


@dataclass(frozen=True)
class SegmentMetrics:
    revenue: Decimal = ZERO
    covers: int = 0
    checks: int = 0

    @property
    def average_spend(self) -> Decimal:
        return safe_ratio(self.revenue, self.covers)


@dataclass(frozen=True)
class MixRow:
    """A revenue-mix line: grouped value plus its share of net sales."""

    key: str
    value: Decimal
    count: int
    share_pct: Decimal


@dataclass(frozen=True)
class RecapMetrics:
    """Every figure shown on the DSR, internally consistent.

    ``segments`` is keyed by meal-period name in report order
    (Breakfast, Lunch, Dinner, Other) and its revenues sum to ``net_total``.
    """

    net_total: Decimal
    gross_total: Decimal
    gross_receipt_total: Decimal
    tax_total: Decimal
    discount_total: Decimal
    guest_count: int
    ticket_count: int
    average_ticket: Decimal
    average_per_guest: Decimal
    segments: dict[str, SegmentMetrics]
    category_mix: list[MixRow]
    department_mix: list[MixRow]
    revenue_classes: list[MixRow]
    tenders: list[PaymentRecord]
    settled_total: Decimal
    tips_total: Decimal
    discount_groups: list[AggregateRow]
    operational_target: Decimal
    variance: Decimal
    variance_pct: Decimal
    line_net_total: Decimal = ZERO
    reconciliation_gap: Decimal = ZERO
    hourly_series: tuple[Decimal, ...] = field(default=())

    @property
    def reconciled(self) -> bool:
        return self.reconciliation_gap == 0

    def to_dict(self) -> dict[str, Any]:
        """Plain data for table renderers, charts and exporters."""
        data = asdict(self)
        data["segments"] = {
            name: {**asdict(seg), "average_spend": seg.average_spend}
            for name, seg in self.segments.items()
        }
        data["hourly_series"] = list(self.hourly_series)
        data["reconciled"] = self.reconciled
        return data


def _share(value: Decimal, net_total: Decimal) -> Decimal:
    return safe_ratio(value, net_total) * HUNDRED


def _mix(rows: Iterable[AggregateRow], net_total: Decimal) -> list[MixRow]:
    return [
        MixRow(
            key=row.key, value=row.value, count=row.count, share_pct=_share(row.value, net_total)
        )
        for row in rows
    ]


def _segments(tickets: Iterable[SaleTicket]) -> dict[str, SegmentMetrics]:
    totals = {seg.value: SegmentMetrics() for seg in SEGMENTS}
    for ticket in tickets:
        name = segment_of(ticket.open_hour).value
        current = totals[name]
        totals[name] = SegmentMetrics(
            revenue=current.revenue + ticket.net_sales,
            covers=current.covers + ticket.guest_count,
            checks=current.checks + 1,
        )
    return totals


def _revenue_classes(order_lines: Iterable[OrderLine], net_total: Decimal) -> list[MixRow]:
    grouped = {
        row.key: row
        for row in group_by(
            order_lines,
            key=lambda line: revenue_class_of(line.department).value,
            value=lambda line: line.net,
            count=lambda line: line.quantity,
        )
    }
    rows = [
        grouped.get(rc.value, AggregateRow(key=rc.value, value=ZERO, count=0))
        for rc in RevenueClass
    ]
    return _mix(rows, net_total)


def compose_daily_recap(
    tickets: Iterable[SaleTicket],
    order_lines: Iterable[OrderLine],
    discounts: Iterable[DiscountRecord],
    payments: Iterable[PaymentRecord],
    operational_target: Any = ZERO,
) -> RecapMetrics:
    """Compose the full Daily Sales Recap.

    Args:
        tickets: Closed checks of the selection.
        order_lines: Menu items sold on those checks.
        discounts: Discount report rows (``"Total"`` rows are ignored).
        payments: Tender settlement summary.
        operational_target: Net sales target entered by the user. Parsed like
            any other amount; unparseable input counts as 0.

    Returns:
        RecapMetrics. ``variance`` is ``net - target``; ``variance_pct`` is
        ``variance / target * 100`` when the target is positive, else 0. With
        no tickets there is nothing to compare and both are 0.

    Examples:
        >>> recap = compose_daily_recap([], [], [], [], 500)
        >>> recap.variance_pct
        Decimal('0')
    """
    tickets = list(tickets)
    order_lines = list(order_lines)
    discounts = list(discounts)
    payments = list(payments)
    target = to_money(operational_target)

    summary = aggregate_sales(tickets)
    net = summary.net_total

    if summary.ticket_count == 0:
        variance = variance_pct = ZERO
    else:
        variance = net - target
        variance_pct = _share(variance, target) if target > 0 else ZERO

    category_rows = group_by(
        order_lines,
        key=lambda line: line.category or UNCATEGORIZED,
        value=lambda line: line.net,
        count=lambda line: line.quantity,
    )
    department_rows = group_by(
        order_lines,
        key=lambda line: line.department or NO_DEPT,
        value=lambda line: line.net,
        count=lambda line: line.quantity,
    )
    line_net_total = sum((row.value for row in category_rows), ZERO)
    gap = net - line_net_total
    if tickets and order_lines and gap != 0:
        logger.warning(
            "Ticket net sales (%s) and order-line net (%s) differ by %s; "
            "revenue mix shares are computed against ticket net",
            net,
            line_net_total,
            gap,
        )

    settled, tips = tender_totals(payments)

    return RecapMetrics(
        net_total=net,
        gross_total=summary.gross_total,
        gross_receipt_total=summary.gross_receipt_total,
        tax_total=summary.tax_total,
        discount_total=discount_total(discounts),
        guest_count=summary.guest_total,
        ticket_count=summary.ticket_count,
        average_ticket=summary.average_ticket,
        average_per_guest=safe_ratio(net, summary.guest_total),
        segments=_segments(tickets),
        category_mix=_mix(category_rows, net),
        department_mix=_mix(department_rows, net),
        revenue_classes=_revenue_classes(order_lines, net),
        tenders=payments,
        settled_total=settled,
        tips_total=tips,
        discount_groups=group_discounts(discounts),
        operational_target=target,
        variance=variance,
        variance_pct=variance_pct,
        line_net_total=line_net_total,
        reconciliation_gap=gap,
        hourly_series=summary.hourly_series,
    )


def recap_for_batch(batch: ReportBatch, operational_target: Any = ZERO) -> RecapMetrics:
    """``compose_daily_recap`` over an ingested batch."""
    return compose_daily_recap(
        batch.tickets,
        batch.order_lines,
        batch.discounts,
        batch.payments,
        operational_target,
    )
