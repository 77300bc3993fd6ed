"""Report aggregation.

Pure functions over an ingested ``ReportBatch``:

- **sales**: overview KPIs and the 24-slot hourly series
- **grouping**: ``group_by`` and the pivot dimensions
- **ledgers**: discount ledger, void log, staff metrics, tenders
- **recap**: the Daily Sales Recap

Example:
    >>> from linga_core.schema import ReportBatch
    >>> from linga_core.reports import aggregate_sales, pivot, recap_for_batch
    >>>
    >>> batch = ReportBatch.from_raw(raw_bundle)
    >>> aggregate_sales(batch.tickets).net_total
    >>> pivot(batch, "CATEGORY")
    >>> recap_for_batch(batch, operational_target=12000)
"""

from linga_core.reports.grouping import (
    AggregateRow,
    Dimension,
    group_by,
    menu_performance,
    parse_dimension,
    pivot,
)
from linga_core.reports.ledgers import (
    StaffRow,
    VoidEntry,
    discount_total,
    filter_discounts,
    filter_voids,
    group_discounts,
    staff_metrics,
    tender_totals,
)
from linga_core.reports.recap import RecapMetrics, compose_daily_recap, recap_for_batch
from linga_core.reports.sales import SalesSummary, aggregate_sales

__all__ = [
    "AggregateRow",
    "Dimension",
    "RecapMetrics",
    "SalesSummary",
    "StaffRow",
    "VoidEntry",
    "aggregate_sales",
    "compose_daily_recap",
    "discount_total",
    "filter_discounts",
    "filter_voids",
    "group_by",
    "group_discounts",
    "menu_performance",
    "parse_dimension",
    "pivot",
    "recap_for_batch",
    "staff_metrics",
    "tender_totals",
]
