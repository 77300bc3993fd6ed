"""Ticket-level summary totals and the hourly sales series."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import asdict, dataclass, field
from decimal import Decimal
from typing import Any

from linga_core.cleaning import ZERO
from linga_core.schema import SaleTicket
from linga_core.timebuckets import HOURS_PER_DAY


def safe_ratio(numerator: Decimal, denominator: Any) -> Decimal:
    """``numerator / denominator``, or 0 when the denominator is not positive."""
    if not denominator or denominator <= 0:
        return ZERO
    return numerator / Decimal(denominator)


def empty_hourly_series() -> list[Decimal]:
    return [ZERO] * HOURS_PER_DAY


@dataclass(frozen=True)
class SalesSummary:
    """Overview KPIs for a set of tickets.

    ``hourly_series`` always has 24 entries; index ``i`` is the net sales of
    tickets opened during hour ``i``.
    """

    net_total: Decimal = ZERO
    gross_total: Decimal = ZERO
    gross_receipt_total: Decimal = ZERO
    tax_total: Decimal = ZERO
    guest_total: int = 0
    ticket_count: int = 0
    average_ticket: Decimal = ZERO
    hourly_series: tuple[Decimal, ...] = field(default_factory=lambda: tuple(empty_hourly_series()))

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["hourly_series"] = list(self.hourly_series)
        return data


def aggregate_sales(tickets: Iterable[SaleTicket]) -> SalesSummary:
    """Reduce tickets to summary totals and the hourly net sales series.

    Args:
        tickets: Tickets of one selection. May be empty.

    Returns:
        SalesSummary. ``average_ticket`` is ``net_total / ticket_count`` and 0
        for an empty input. Tickets with an unresolved open hour count towards
        every total but not towards the hourly series.

    Examples:
        >>> summary = aggregate_sales([])
        >>> summary.ticket_count, len(summary.hourly_series)
        (0, 24)
    """
    net = gross = receipt = tax = ZERO
    guests = count = 0
    hourly = empty_hourly_series()

    for ticket in tickets:
        net += ticket.net_sales
        gross += ticket.gross_amount
        receipt += ticket.gross_receipt
        tax += ticket.tax
        guests += ticket.guest_count
        count += 1
        if ticket.open_hour is not None:
            hourly[ticket.open_hour] += ticket.net_sales

    return SalesSummary(
        net_total=net,
        gross_total=gross,
        gross_receipt_total=receipt,
        tax_total=tax,
        guest_total=guests,
        ticket_count=count,
        average_ticket=safe_ratio(net, count),
        hourly_series=tuple(hourly),
    )
