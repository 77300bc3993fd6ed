"""Tests for the discount ledger, void log, staff metrics and tenders."""

from decimal import Decimal

from linga_core.reports.ledgers import (
    discount_total,
    filter_discounts,
    filter_voids,
    group_discounts,
    staff_metrics,
    tender_totals,
)
from linga_core.schema import DiscountRecord, Employee, OrderLine, PaymentRecord, ReportBatch


class TestDiscounts:
    def test_total_sentinel_is_excluded(self) -> None:
        records = [
            DiscountRecord(check="Total", amount=Decimal("999")),
            DiscountRecord(check="1001", name="Happy Hour", amount=Decimal("10")),
        ]
        kept = filter_discounts(records)

        assert len(kept) == 1
        assert discount_total(records) == Decimal("10")

    def test_group_discounts_counts_quantity_or_one(self) -> None:
        records = [
            DiscountRecord(check="1", name="Staff", amount=Decimal("5"), quantity=2),
            DiscountRecord(check="2", name="Happy Hour", amount=Decimal("20"), quantity=0),
            DiscountRecord(check="3", name="Staff", amount=Decimal("7.50"), quantity=1),
            DiscountRecord(check="Total", name="Staff", amount=Decimal("32.50"), quantity=3),
        ]
        rows = group_discounts(records)

        assert [(r.key, r.value, r.count) for r in rows] == [
            ("Happy Hour", Decimal("20"), 1),
            ("Staff", Decimal("12.50"), 3),
        ]

    def test_unnamed_discounts_are_grouped(self) -> None:
        rows = group_discounts([DiscountRecord(check="1", amount=Decimal("1"))])
        assert rows[0].key == "Unnamed"

    def test_batch_ledger(self, batch: ReportBatch) -> None:
        assert discount_total(batch.discounts) == Decimal("10.00")
        assert [d.name for d in filter_discounts(batch.discounts)] == ["Staff Discount"]


class TestVoids:
    def test_void_log(self, batch: ReportBatch) -> None:
        voids = filter_voids(batch.order_lines, batch.employees)

        assert len(voids) == 1
        entry = voids[0]
        assert entry.ticket_no == "1002"
        assert entry.menu_item == "Red Wine"
        assert entry.reason == "Wrong item"
        # e9 is not a known employee
        assert entry.voided_by == "Manager"
        assert entry.amount == Decimal("10")
        assert "line" not in entry.to_dict()

    def test_voiding_employee_resolved(self, batch: ReportBatch) -> None:
        line = batch.order_lines[3]
        staff = [*batch.employees, Employee(id="e9", name="Lina")]
        assert filter_voids([line], staff)[0].voided_by == "Lina"

    def test_missing_reason_and_no_lookup(self, batch: ReportBatch) -> None:
        line = batch.order_lines[3]
        bare = OrderLine(sale_id="5", is_void=True)
        voids = filter_voids([line, bare])
        assert [v.voided_by for v in voids] == ["Manager", "Manager"]
        assert voids[1].reason == "No reason provided"

    def test_no_voids(self, batch: ReportBatch) -> None:
        assert filter_voids(batch.order_lines[:2], batch.employees) == []


def test_staff_metrics(batch: ReportBatch) -> None:
    rows = staff_metrics(batch.tickets, batch.employees)

    assert [(r.name, r.checks, r.covers, r.net_sales) for r in rows] == [
        ("Sara", 1, 2, Decimal("100.00")),
        ("Omar", 1, 1, Decimal("50")),
        ("Unknown", 1, 0, Decimal("0")),
    ]
    assert rows[0].average_per_cover == Decimal("50")
    assert rows[2].average_per_cover == 0


def test_tender_totals_keep_tips_separate() -> None:
    settled, tips = tender_totals(
        [
            PaymentRecord(name="Cash", amount=Decimal("105.00")),
            PaymentRecord(name="Card", amount=Decimal("52.50"), tips=Decimal("5.00")),
        ]
    )
    assert settled == Decimal("157.50")
    assert tips == Decimal("5.00")


def test_tender_totals_empty() -> None:
    assert tender_totals([]) == (Decimal("0"), Decimal("0"))
