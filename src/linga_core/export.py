"""Spreadsheet export of ingested batches and aggregated reports.

Sheets written by ``export_batch``:

    SalesData         one row per ticket, names resolved
    DiscountData      discount events ("Total" rows excluded)
    MenuItemDetailed  one row per order line
    <DIMENSION>       one analysis sheet per requested pivot dimension
    Recap             Daily Sales Recap, metric/value pairs

``.xlsx`` targets are written with openpyxl as one workbook. ``.csv`` targets
get one UTF-8 (with BOM, for Excel) file per sheet. Every text cell goes
through ``neutralize`` so vendor strings cannot become spreadsheet formulas.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional

import numpy as np
import pandas as pd

from linga_core.cleaning import ZERO, neutralize, to_money
from linga_core.exceptions import DataQualityError
from linga_core.joins import UNKNOWN, resolve_name
from linga_core.reports.grouping import DIMENSIONS, AggregateRow, Dimension, pivot
from linga_core.reports.ledgers import filter_discounts
from linga_core.reports.recap import RecapMetrics
from linga_core.schema import ReportBatch
from linga_core.timebuckets import clock_label

logger = logging.getLogger(__name__)

NO_DISCOUNT = "N/A"

_SALES_COLUMNS = [
    "Store",
    "Ticket_No",
    "Customer_Name",
    "Sale_Open_Time",
    "Floor",
    "Table_No",
    "Net_Sales",
    "Total_Tax",
    "Discount",
    "Gross_Receipt",
    "Closed_By",
    "Server_Name",
    "Guest_Count",
    "Final_SaleDate",
]
_DISCOUNT_COLUMNS = [
    "Store",
    "Approved_By",
    "Check",
    "Date",
    "Discount_Amount",
    "Discount_Applied_By",
    "Discount_Coupon",
    "Discount_Name",
    "Discount_Type",
    "Gross_Sales",
    "Is_Total",
    "Menu_Items",
    "Percent",
    "Quantity",
    "Reason",
    "Total_Discounts",
]
_MENU_COLUMNS = [
    "Store",
    "Order_Date",
    "Order_Hour",
    "Ticket_No",
    "Department",
    "CategoryName",
    "SubCategoryName",
    "Quantity",
    "Menu_Item",
    "Gross_Amount",
    "Total_Amount",
    "Discount",
    "DiscountName",
    "Is_Void",
    "Void_Reason",
    "VoidedBy",
]


def _money(values: Iterable[Any]) -> np.ndarray:
    """Decimal amounts as a float column rounded to cents."""
    return np.round(np.asarray([float(to_money(v)) for v in values], dtype=np.float64), 2)


def _day_label(value: str) -> str:
    """Render a vendor timestamp as ``DD-MM-YYYY``; unparseable input is kept."""
    ts = pd.to_datetime(value, errors="coerce")
    if pd.isna(ts):
        return value or ""
    return ts.strftime("%d-%m-%Y")


def _neutralize_frame(df: pd.DataFrame) -> pd.DataFrame:
    out = df.copy()
    for col in out.columns:
        # text columns are object or string dtype depending on the pandas version
        if pd.api.types.is_numeric_dtype(out[col]) or pd.api.types.is_bool_dtype(out[col]):
            continue
        out[col] = out[col].map(neutralize)
    return out


def sales_frame(batch: ReportBatch, store_name: str) -> pd.DataFrame:
    """SalesData sheet: one row per ticket."""
    summaries = {str(s.get("id", "")): s for s in batch.raw_summary}
    rows = []
    for t in batch.tickets:
        summary = summaries.get(t.id, {})
        rows.append(
            {
                "Store": store_name,
                "Ticket_No": t.ticket_no,
                "Customer_Name": t.customer_name,
                "Sale_Open_Time": t.open_time,
                "Floor": resolve_name(batch.floors, t.floor_id),
                "Table_No": t.table_no,
                "Net_Sales": t.net_sales,
                "Total_Tax": t.tax,
                "Discount": summary.get("discounts", ZERO),
                "Gross_Receipt": t.gross_receipt,
                "Closed_By": resolve_name(batch.employees, t.close_employee_id),
                "Server_Name": resolve_name(batch.employees, t.employee_id),
                "Guest_Count": t.guest_count,
                "Final_SaleDate": _day_label(t.start_date),
            }
        )
    df = pd.DataFrame(rows, columns=_SALES_COLUMNS)
    for col in ("Net_Sales", "Total_Tax", "Discount", "Gross_Receipt"):
        df[col] = _money(df[col])
    return df


def discount_frame(batch: ReportBatch, store_name: str) -> pd.DataFrame:
    """DiscountData sheet: individual discount events."""
    rows = [
        {
            "Store": store_name,
            "Approved_By": d.approved_by,
            "Check": d.check,
            "Date": d.date,
            "Discount_Amount": d.amount,
            "Discount_Applied_By": d.applied_by,
            "Discount_Coupon": d.coupon,
            "Discount_Name": d.name,
            "Discount_Type": d.discount_type,
            "Gross_Sales": d.gross_sales,
            "Is_Total": d.is_total,
            "Menu_Items": d.menu_items,
            "Percent": d.percent,
            "Quantity": d.quantity,
            "Reason": d.reason,
            "Total_Discounts": d.total_discounts,
        }
        for d in filter_discounts(batch.discounts)
    ]
    df = pd.DataFrame(rows, columns=_DISCOUNT_COLUMNS)
    for col in ("Discount_Amount", "Gross_Sales", "Total_Discounts"):
        df[col] = _money(df[col])
    return df


def menu_item_frame(batch: ReportBatch, store_name: str) -> pd.DataFrame:
    """MenuItemDetailed sheet: one row per order line.

    ``DiscountName`` is the first discount event recorded on the line's
    ticket, shown only for lines that carry a discount.
    """
    first_discount: dict[str, str] = {}
    for d in filter_discounts(batch.discounts):
        first_discount.setdefault(d.check, d.name)

    rows = []
    for line in batch.order_lines:
        discount_name = NO_DISCOUNT
        if line.discount != 0:
            discount_name = first_discount.get(line.sale_id) or NO_DISCOUNT
        rows.append(
            {
                "Store": store_name,
                "Order_Date": _day_label(line.sale_date),
                "Order_Hour": clock_label(line.order_hour, line.order_minute),
                "Ticket_No": line.sale_id,
                "Department": line.department,
                "CategoryName": line.category,
                "SubCategoryName": line.sub_category,
                "Quantity": line.quantity,
                "Menu_Item": line.menu_item,
                "Gross_Amount": line.unit_gross,
                "Total_Amount": line.total_gross,
                "Discount": line.discount,
                "DiscountName": discount_name,
                "Is_Void": line.is_void,
                "Void_Reason": line.void_reason,
                "VoidedBy": resolve_name(batch.employees, line.void_by_id),
            }
        )
    df = pd.DataFrame(rows, columns=_MENU_COLUMNS)
    for col in ("Gross_Amount", "Total_Amount", "Discount"):
        df[col] = _money(df[col])
    return df


def analysis_frame(rows: Sequence[AggregateRow], label: str) -> pd.DataFrame:
    """Pivot result as ``[label, Quantity, Value]``, order preserved."""
    return pd.DataFrame(
        {
            label: [r.key for r in rows],
            "Quantity": [r.count for r in rows],
            "Value": _money(r.value for r in rows),
        },
        columns=[label, "Quantity", "Value"],
    )


def recap_frame(recap: RecapMetrics) -> pd.DataFrame:
    """Flatten a RecapMetrics into ``Section / Metric / Value`` rows."""
    rows: list[tuple[str, str, Any]] = [
        ("Totals", "Net Sales", recap.net_total),
        ("Totals", "Gross Sales", recap.gross_total),
        ("Totals", "Gross Receipt", recap.gross_receipt_total),
        ("Totals", "Tax", recap.tax_total),
        ("Totals", "Discounts", recap.discount_total),
        ("Totals", "Guests", recap.guest_count),
        ("Totals", "Checks", recap.ticket_count),
        ("Totals", "Average Check", recap.average_ticket),
        ("Totals", "Average per Guest", recap.average_per_guest),
        ("Target", "Operational Target", recap.operational_target),
        ("Target", "Variance", recap.variance),
        ("Target", "Variance %", recap.variance_pct),
    ]
    for name, seg in recap.segments.items():
        rows.append(("Meal Period", f"{name} Revenue", seg.revenue))
        rows.append(("Meal Period", f"{name} Covers", seg.covers))
        rows.append(("Meal Period", f"{name} Average Spend", seg.average_spend))
    for mix in recap.revenue_classes:
        rows.append(("Revenue Mix", mix.key, mix.value))
    for tender in recap.tenders:
        rows.append(("Tenders", tender.name, tender.amount))
    rows.append(("Tenders", "Settled Total", recap.settled_total))
    rows.append(("Tenders", "Tips", recap.tips_total))
    for group in recap.discount_groups:
        rows.append(("Discounts", group.key, group.value))
    rows.append(("Reconciliation", "Order Line Net", recap.line_net_total))
    rows.append(("Reconciliation", "Gap", recap.reconciliation_gap))

    df = pd.DataFrame(rows, columns=["Section", "Metric", "Value"])
    df["Value"] = [
        float(round(v, 2)) if isinstance(v, Decimal) else v for v in df["Value"]
    ]
    return df


def write_sheets(sheets: Mapping[str, pd.DataFrame], out: str | Path) -> list[Path]:
    """Write sheets to ``.xlsx`` (one workbook) or ``.csv`` (one file each).

    Args:
        sheets: Sheet name to DataFrame, in workbook order.
        out: Target path; the suffix picks the format.

    Returns:
        Paths written.

    Raises:
        ValueError: If the suffix is neither ``.xlsx`` nor ``.csv``.
    """
    out = Path(out)
    suffix = out.suffix.lower()
    if suffix not in (".xlsx", ".csv"):
        raise ValueError(f"Unsupported export format {out.suffix!r}; use .xlsx or .csv")
    out.parent.mkdir(parents=True, exist_ok=True)

    if suffix == ".xlsx":
        with pd.ExcelWriter(out, engine="openpyxl") as writer:
            for name, df in sheets.items():
                # Excel caps sheet names at 31 characters
                _neutralize_frame(df).to_excel(writer, sheet_name=name[:31], index=False)
        logger.info("Wrote %s (%d sheet(s))", out, len(sheets))
        return [out]

    written = []
    for name, df in sheets.items():
        path = out if len(sheets) == 1 else out.with_name(f"{out.stem}_{name}.csv")
        _neutralize_frame(df).to_csv(path, index=False, encoding="utf-8-sig")
        logger.info("Wrote %s (%d rows)", path, len(df))
        written.append(path)
    return written


def export_batch(
    batch: ReportBatch,
    out: str | Path,
    store_name: Optional[str] = None,
    recap: Optional[RecapMetrics] = None,
    dimensions: Iterable[Dimension] = (),
) -> list[Path]:
    """Export a batch with its ledgers and optional analysis/recap sheets.

    Raises:
        DataQualityError: If the batch has no tickets.
    """
    if not batch.tickets:
        raise DataQualityError("No data to export: the selection has no tickets")

    store = store_name or UNKNOWN
    sheets: dict[str, pd.DataFrame] = {
        "SalesData": sales_frame(batch, store),
        "DiscountData": discount_frame(batch, store),
        "MenuItemDetailed": menu_item_frame(batch, store),
    }
    for dimension in dimensions:
        label = DIMENSIONS[dimension].label
        sheets[dimension.value] = analysis_frame(pivot(batch, dimension), label)
    if recap is not None:
        sheets["Recap"] = recap_frame(recap)
    return write_sheets(sheets, out)
