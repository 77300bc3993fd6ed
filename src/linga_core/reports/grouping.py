"""Dimensional grouping: one reduction, many pivot axes.

Every grouped view (pivot table, item performance, revenue mix, discount
recap) goes through ``group_by`` and produces ``AggregateRow`` lists, so
tables, charts and spreadsheet exports consume one shape.

The pivot axes form a closed set (``Dimension``). Each one maps to a
``DimensionSpec`` naming the source collection and the key/value/count
selectors; adding an axis means adding a ``DimensionSpec``, not touching ``group_by``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import asdict, dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, TypeVar

import pandas as pd

from linga_core.cleaning import ZERO, to_money
from linga_core.joins import UNKNOWN, resolve_name
from linga_core.schema import OrderLine, ReportBatch, SaleTicket
from linga_core.timebuckets import hour_label

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Placeholders for records whose dimension value is missing
UNCATEGORIZED = "Uncategorized"
NO_DEPT = "No Dept"
OTHER = "Other"


@dataclass(frozen=True)
class AggregateRow:
    """One grouped total: ``value`` summed and ``count`` summed per ``key``."""

    key: str
    value: Decimal
    count: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _sum_money(values: pd.Series) -> Decimal:
    return sum(values, ZERO)


def group_by(
    items: Iterable[T],
    key: Callable[[T], str],
    value: Callable[[T], Any],
    count: Optional[Callable[[T], int]] = None,
) -> list[AggregateRow]:
    """Group items by a key and sum a value and a count per group.

    Args:
        items: Records to reduce. May be empty.
        key: Grouping key per item. Callers apply the placeholder rule so
            that no item is dropped.
        value: Amount per item (normalized to Decimal).
        count: Count per item; defaults to 1 per item.

    Returns:
        Rows sorted by value descending. Ties keep the order in which their
        keys first appear in ``items``. The values of all rows sum to the sum
        of ``value`` over ``items``.

    Examples:
        >>> rows = group_by(
        ...     [("A", 30), ("B", 50), ("C", 50)], key=lambda r: r[0], value=lambda r: r[1]
        ... )
        >>> [r.key for r in rows]
        ['B', 'C', 'A']
    """
    count_of = count if count is not None else (lambda _item: 1)
    records = [(str(key(item)), to_money(value(item)), int(count_of(item))) for item in items]
    if not records:
        return []

    frame = pd.DataFrame.from_records(records, columns=["key", "value", "count"])
    grouped = frame.groupby("key", sort=False).agg(
        value=("value", _sum_money),
        count=("count", "sum"),
    )

    rows = [
        AggregateRow(key=str(k), value=v, count=int(c))
        for k, v, c in grouped.itertuples(name=None)
    ]
    # sorted() is stable, so ties stay in first-appearance order
    return sorted(rows, key=lambda row: row.value, reverse=True)


class Dimension(str, Enum):
    """Pivot axes supported by the analysis view."""

    CATEGORY = "CATEGORY"
    DEPARTMENT = "DEPARTMENT"
    HOUR = "HOUR"
    FLOOR = "FLOOR"
    MENU_ITEM = "MENU_ITEM"
    EMPLOYEE = "EMPLOYEE"


@dataclass(frozen=True)
class DimensionSpec:
    """Selectors for one pivot axis.

    Attributes:
        source: ``"lines"`` (order lines) or ``"tickets"``.
        key: Grouping key; receives the batch for lookups.
        value: Amount summed per group.
        count: Count summed per group.
        label: Column header used by exports.
    """

    source: str
    key: Callable[[Any, ReportBatch], str]
    value: Callable[[Any], Decimal]
    count: Callable[[Any], int]
    label: str


def _line_value(line: OrderLine) -> Decimal:
    return line.total_gross


def _line_count(line: OrderLine) -> int:
    return line.quantity


def _ticket_value(ticket: SaleTicket) -> Decimal:
    return ticket.net_sales


def _one(_item: Any) -> int:
    return 1


DIMENSIONS: dict[Dimension, DimensionSpec] = {
    Dimension.CATEGORY: DimensionSpec(
        source="lines",
        key=lambda line, _batch: line.category or UNCATEGORIZED,
        value=_line_value,
        count=_line_count,
        label="Category",
    ),
    Dimension.DEPARTMENT: DimensionSpec(
        source="lines",
        key=lambda line, _batch: line.department or NO_DEPT,
        value=_line_value,
        count=_line_count,
        label="Department",
    ),
    Dimension.HOUR: DimensionSpec(
        source="lines",
        key=lambda line, _batch: hour_label(line.hour),
        value=_line_value,
        count=_line_count,
        label="Hour",
    ),
    Dimension.MENU_ITEM: DimensionSpec(
        source="lines",
        key=lambda line, _batch: line.menu_item or UNKNOWN,
        value=_line_value,
        count=_line_count,
        label="MenuItem",
    ),
    Dimension.FLOOR: DimensionSpec(
        source="tickets",
        key=lambda ticket, batch: resolve_name(
            batch.floors, ticket.floor_id, field="name", fallback=OTHER
        ),
        value=_ticket_value,
        count=_one,
        label="Floor",
    ),
    Dimension.EMPLOYEE: DimensionSpec(
        source="tickets",
        key=lambda ticket, batch: resolve_name(batch.employees, ticket.employee_id),
        value=_ticket_value,
        count=_one,
        label="Employee",
    ),
}


def parse_dimension(name: str | Dimension) -> Dimension:
    """Resolve a dimension from its name (case-insensitive).

    Raises:
        ValueError: If the name is not a supported dimension.
    """
    if isinstance(name, Dimension):
        return name
    try:
        return Dimension(name.strip().upper().replace("-", "_"))
    except ValueError as e:
        valid = ", ".join(d.value for d in Dimension)
        raise ValueError(f"Invalid dimension '{name}'. Must be one of: {valid}.") from e


def pivot(batch: ReportBatch, dimension: str | Dimension) -> list[AggregateRow]:
    """Group a batch along one pivot axis.

    Args:
        batch: Ingested collections for one selection.
        dimension: Axis to group by.

    Returns:
        AggregateRow list, top performers first.
    """
    spec = DIMENSIONS[parse_dimension(dimension)]
    items: Iterable[Any] = batch.order_lines if spec.source == "lines" else batch.tickets
    rows = group_by(
        items,
        key=lambda item: spec.key(item, batch),
        value=spec.value,
        count=spec.count,
    )
    logger.debug("Pivot by %s: %d group(s)", spec.label, len(rows))
    return rows


def menu_performance(batch: ReportBatch) -> list[AggregateRow]:
    """Item performance view: menu items by total gross, quantity as count."""
    return pivot(batch, Dimension.MENU_ITEM)
