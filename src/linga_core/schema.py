"""Canonical entities and the ingestion boundary.

The Linga API returns loosely typed JSON: monetary values arrive as strings
with a ``Str`` suffix (``netSalesStr``), flags as ``"Y"``/``"N"`` or booleans,
hours as zero-padded strings. Everything is parsed exactly once, here, into
frozen dataclasses with ``Decimal`` amounts, so the report functions work on
clean values only.

Grain reference:
    SaleTicket:     one closed check
    OrderLine:      one menu item on a check
    DiscountRecord: one discount application (or a ``"Total"`` subtotal row)
    PaymentRecord:  one tender in the payment summary
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Optional

from linga_core.cleaning import ZERO, clean_text, to_flag, to_int, to_money
from linga_core.exceptions import DataQualityError
from linga_core.timebuckets import hour_of

logger = logging.getLogger(__name__)

# Reserved ``check`` value of report-supplied discount subtotal rows
TOTAL_SENTINEL = "Total"


def _records(raw: Any, name: str) -> list[Mapping[str, Any]]:
    """Validate that a raw collection is a list of JSON objects.

    ``None`` is accepted and treated as an empty collection.
    """
    if raw is None:
        return []
    if not isinstance(raw, Sequence) or isinstance(raw, (str, bytes)):
        raise DataQualityError(f"Collection {name!r} must be a list, got {type(raw).__name__}")
    bad = [i for i, r in enumerate(raw) if not isinstance(r, Mapping)]
    if bad:
        raise DataQualityError(
            f"Collection {name!r} has {len(bad)} non-object record(s), first at index {bad[0]}"
        )
    return list(raw)


@dataclass(frozen=True)
class Employee:
    id: str
    name: str

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> Employee:
        return cls(id=clean_text(raw.get("id")), name=clean_text(raw.get("name")))


@dataclass(frozen=True)
class Floor:
    id: str
    name: str

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> Floor:
        return cls(
            id=clean_text(raw.get("id")),
            name=clean_text(raw.get("floorName") or raw.get("name")),
        )


@dataclass(frozen=True)
class TicketPayment:
    """A tender line embedded in a ticket."""

    method: str
    amount: Decimal
    tip: Decimal

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> TicketPayment:
        return cls(
            method=clean_text(raw.get("paymentMethod")),
            amount=to_money(raw.get("authorizedAmountStr")),
            tip=to_money(raw.get("paymentTipStr")),
        )


@dataclass(frozen=True)
class SaleTicket:
    """One closed check.

    Attributes:
        id: Linga sale id.
        ticket_no: Human-facing check number; order lines and discount rows
            refer to tickets by this value.
        open_time: ``saleOpenTime`` as sent.
        open_hour: Hour bucket of ``open_time`` (None when unparseable).
        floor_id: Reference into the floor lookup.
        employee_id: Employee who opened the check.
        close_employee_id: Employee who closed the check.
        guest_count: Covers on the check.
        net_sales: Revenue excluding tax, after discounts.
        gross_amount: Revenue before discounts, excluding tax.
        gross_receipt: Total charged to the customer including tax.
        tax: Total tax.
    """

    id: str
    ticket_no: str
    start_date: str = ""
    open_time: str = ""
    open_hour: Optional[int] = None
    floor_id: str = ""
    table_no: str = ""
    customer_name: str = ""
    employee_id: str = ""
    close_employee_id: str = ""
    guest_count: int = 0
    net_sales: Decimal = ZERO
    gross_amount: Decimal = ZERO
    gross_receipt: Decimal = ZERO
    tax: Decimal = ZERO
    payments: tuple[TicketPayment, ...] = ()

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any], tz: Optional[str] = None) -> SaleTicket:
        open_time = clean_text(raw.get("saleOpenTime"))
        return cls(
            id=clean_text(raw.get("id")),
            ticket_no=clean_text(raw.get("ticketNo")),
            start_date=clean_text(raw.get("startDate")),
            open_time=open_time,
            open_hour=hour_of(open_time, tz=tz),
            floor_id=clean_text(raw.get("floorId")),
            table_no=clean_text(raw.get("tableNo")),
            customer_name=clean_text(raw.get("customerName")),
            employee_id=clean_text(raw.get("employee")),
            close_employee_id=clean_text(raw.get("saleCloseEmployee")),
            guest_count=to_int(raw.get("guestCount")),
            net_sales=to_money(raw.get("netSalesStr")),
            gross_amount=to_money(raw.get("grossAmountStr")),
            gross_receipt=to_money(raw.get("grossReceiptStr")),
            tax=to_money(raw.get("totalTaxAmountStr")),
            payments=tuple(
                TicketPayment.from_raw(p) for p in _records(raw.get("payments"), "payments")
            ),
        )


@dataclass(frozen=True)
class OrderLine:
    """One menu item sold on a ticket.

    ``total_gross`` is quantity times price as reported by Linga;
    ``discount`` is the discount applied to the line, so ``net`` is the
    discounted gross.
    """

    sale_id: str
    sale_date: str = ""
    order_hour: str = ""
    order_minute: str = ""
    hour: Optional[int] = None
    department: str = ""
    category: str = ""
    sub_category: str = ""
    menu_item: str = ""
    quantity: int = 0
    unit_gross: Decimal = ZERO
    total_gross: Decimal = ZERO
    discount: Decimal = ZERO
    is_void: bool = False
    void_reason: str = ""
    void_by_id: str = ""

    @property
    def net(self) -> Decimal:
        return self.total_gross - self.discount

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any], tz: Optional[str] = None) -> OrderLine:
        order_hour = clean_text(raw.get("orderHour"))
        return cls(
            sale_id=clean_text(raw.get("saleId")),
            sale_date=clean_text(raw.get("saleDate")),
            order_hour=order_hour,
            order_minute=clean_text(raw.get("orderMin")),
            hour=hour_of(order_hour, tz=tz),
            department=clean_text(raw.get("departmentName")),
            category=clean_text(raw.get("categoryName")),
            sub_category=clean_text(raw.get("subCategoryName")),
            menu_item=clean_text(raw.get("menuName")),
            quantity=to_int(raw.get("quantity")),
            unit_gross=to_money(raw.get("grossAmountStr")),
            total_gross=to_money(raw.get("totalGrossAmountStr")),
            discount=to_money(raw.get("totalDiscountAmountStr")),
            is_void=to_flag(raw.get("isVoid")),
            void_reason=clean_text(raw.get("voidError")),
            void_by_id=clean_text(raw.get("voidByEmployee")),
        )


@dataclass(frozen=True)
class DiscountRecord:
    """One row of the discount report.

    Rows whose ``check`` is ``"Total"`` are report subtotals, not discount
    events; see ``is_sentinel``.
    """

    check: str
    name: str = ""
    amount: Decimal = ZERO
    quantity: int = 0
    reason: str = ""
    applied_by: str = ""
    approved_by: str = ""
    date: str = ""
    coupon: str = ""
    discount_type: str = ""
    percent: str = ""
    menu_items: str = ""
    gross_sales: Decimal = ZERO
    total_discounts: Decimal = ZERO
    is_total: bool = False
    id: str = ""

    @property
    def is_sentinel(self) -> bool:
        return self.check == TOTAL_SENTINEL

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> DiscountRecord:
        return cls(
            check=clean_text(raw.get("check")),
            name=clean_text(raw.get("discountName")),
            amount=to_money(raw.get("discountAmtStr")),
            quantity=to_int(raw.get("quantity")),
            reason=clean_text(raw.get("reason")),
            applied_by=clean_text(raw.get("discountAppliedBy")),
            approved_by=clean_text(raw.get("approvedBy")),
            date=clean_text(raw.get("date")),
            coupon=clean_text(raw.get("discountCoupon")),
            discount_type=clean_text(raw.get("discountType")),
            percent=clean_text(raw.get("percent")),
            menu_items=clean_text(raw.get("menuItems")),
            gross_sales=to_money(raw.get("grossSalesStr")),
            total_discounts=to_money(raw.get("totalDiscounts")),
            is_total=to_flag(raw.get("isTotal")),
            id=clean_text(raw.get("id")),
        )


@dataclass(frozen=True)
class PaymentRecord:
    """Settlement totals for one tender."""

    name: str
    count: int = 0
    amount: Decimal = ZERO
    tips: Decimal = ZERO

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> PaymentRecord:
        return cls(
            name=clean_text(raw.get("name")),
            count=to_int(raw.get("count")),
            amount=to_money(raw.get("amount")),
            tips=to_money(raw.get("tips")),
        )


def flatten_orders(raw_sales: Iterable[Mapping[str, Any]]) -> list[dict[str, Any]]:
    """Pull the order lines embedded in raw tickets into a flat list.

    Each line is stamped with the ticket number (``saleId``) and the ticket's
    ``startDate`` (``saleDate``), matching the shape of the detailed menu
    report.
    """
    lines: list[dict[str, Any]] = []
    for sale in raw_sales:
        for order in _records(sale.get("orders"), "orders"):
            lines.append(
                {**order, "saleId": sale.get("ticketNo"), "saleDate": sale.get("startDate")}
            )
    return lines


def summarize_tenders(tickets: Iterable[SaleTicket]) -> list[PaymentRecord]:
    """Build the tender summary from the payments embedded in tickets.

    Amounts and tips are summed per payment method; ``count`` is the number
    of payments. Methods keep first-appearance order.
    """
    tenders: dict[str, PaymentRecord] = {}
    for ticket in tickets:
        for payment in ticket.payments:
            name = payment.method or "Other"
            current = tenders.get(name, PaymentRecord(name=name))
            tenders[name] = PaymentRecord(
                name=name,
                count=current.count + 1,
                amount=current.amount + payment.amount,
                tips=current.tips + payment.tip,
            )
    return list(tenders.values())


@dataclass(frozen=True)
class ReportBatch:
    """Every collection fetched for one (store, date range) selection.

    The batch is a consistent snapshot: it is built once all collections have
    arrived and is replaced wholesale on refresh.
    """

    tickets: tuple[SaleTicket, ...] = ()
    order_lines: tuple[OrderLine, ...] = ()
    discounts: tuple[DiscountRecord, ...] = ()
    payments: tuple[PaymentRecord, ...] = ()
    floors: tuple[Floor, ...] = ()
    employees: tuple[Employee, ...] = ()
    raw_summary: tuple[Mapping[str, Any], ...] = field(default=(), repr=False)

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any], tz: Optional[str] = None) -> ReportBatch:
        """Ingest a raw fetched bundle.

        Expected keys (all optional): ``sales``, ``saleDetails``, ``floors``,
        ``users``, ``detailedMenu``, ``paymentSummary``, ``saleSummary``.

        When ``detailedMenu`` is missing, order lines are taken from the
        tickets' embedded ``orders``. When ``paymentSummary`` is missing,
        tenders are derived from the tickets' embedded ``payments``.

        Raises:
            DataQualityError: If a collection is not a list of objects.
        """
        raw_sales = _records(raw.get("sales"), "sales")
        tickets = tuple(SaleTicket.from_raw(s, tz=tz) for s in raw_sales)

        raw_lines = raw.get("detailedMenu")
        if raw_lines is None:
            raw_lines = flatten_orders(raw_sales)
        order_lines = tuple(
            OrderLine.from_raw(m, tz=tz) for m in _records(raw_lines, "detailedMenu")
        )

        discounts = tuple(
            DiscountRecord.from_raw(d) for d in _records(raw.get("saleDetails"), "saleDetails")
        )

        raw_payments = raw.get("paymentSummary")
        if raw_payments is None:
            payments = tuple(summarize_tenders(tickets))
        else:
            payments = tuple(
                PaymentRecord.from_raw(p) for p in _records(raw_payments, "paymentSummary")
            )

        floors = tuple(Floor.from_raw(f) for f in _records(raw.get("floors"), "floors"))
        employees = tuple(Employee.from_raw(u) for u in _records(raw.get("users"), "users"))
        raw_summary = tuple(_records(raw.get("saleSummary"), "saleSummary"))

        unbucketed = sum(1 for t in tickets if t.open_hour is None)
        if unbucketed:
            logger.warning(
                "%d of %d ticket(s) have an unparseable open time; "
                "they are left out of the hourly series",
                unbucketed,
                len(tickets),
            )
        logger.debug(
            "Ingested %d tickets, %d order lines, %d discount rows, %d tenders, "
            "%d floors, %d employees",
            len(tickets),
            len(order_lines),
            len(discounts),
            len(payments),
            len(floors),
            len(employees),
        )

        return cls(
            tickets=tickets,
            order_lines=order_lines,
            discounts=discounts,
            payments=payments,
            floors=floors,
            employees=employees,
            raw_summary=raw_summary,
        )
