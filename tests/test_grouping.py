"""Tests for group_by and the pivot dimensions."""

from decimal import Decimal

import pytest

from linga_core.reports.grouping import (
    AggregateRow,
    Dimension,
    group_by,
    menu_performance,
    parse_dimension,
    pivot,
)
from linga_core.schema import ReportBatch


def _keys(rows: list[AggregateRow]) -> list[str]:
    return [r.key for r in rows]


class TestGroupBy:
    """The shared reduction behind every grouped view."""

    def test_descending_with_ties_in_input_order(self) -> None:
        items = [("A", 30), ("B", 50), ("C", 50)]
        rows = group_by(items, key=lambda i: i[0], value=lambda i: i[1])
        assert _keys(rows) == ["B", "C", "A"]

    def test_ties_follow_first_appearance_of_key(self) -> None:
        items = [("C", 20), ("B", 50), ("C", 30), ("A", 10)]
        rows = group_by(items, key=lambda i: i[0], value=lambda i: i[1])
        assert [(r.key, r.value) for r in rows] == [
            ("C", Decimal("50")),
            ("B", Decimal("50")),
            ("A", Decimal("10")),
        ]

    def test_conservation(self) -> None:
        items = [("x", "10.10"), ("y", "0.20"), ("x", "5"), ("z", "garbage"), ("y", "(1.00)")]
        rows = group_by(items, key=lambda i: i[0], value=lambda i: i[1])
        assert sum(r.value for r in rows) == Decimal("14.30")
        assert sum(r.count for r in rows) == len(items)

    def test_custom_count(self) -> None:
        items = [("x", 1, 3), ("x", 1, 2)]
        rows = group_by(items, key=lambda i: i[0], value=lambda i: i[1], count=lambda i: i[2])
        assert rows == [AggregateRow(key="x", value=Decimal("2"), count=5)]

    def test_empty(self) -> None:
        assert group_by([], key=str, value=lambda i: i) == []

    def test_to_dict(self) -> None:
        row = AggregateRow(key="A", value=Decimal("1"), count=2)
        assert row.to_dict() == {"key": "A", "value": Decimal("1"), "count": 2}


class TestPivot:
    """Each dimension over the shared batch."""

    def test_category(self, batch: ReportBatch) -> None:
        rows = pivot(batch, Dimension.CATEGORY)
        assert [(r.key, r.value, r.count) for r in rows] == [
            ("Breakfast", Decimal("60"), 2),
            ("Coffee", Decimal("50"), 2),
            ("Sandwiches", Decimal("40"), 1),
            ("Wine", Decimal("10"), 1),
        ]

    def test_department(self, batch: ReportBatch) -> None:
        rows = pivot(batch, "department")
        assert _keys(rows) == ["Food", "Beverages", "Alcohol Bev"]
        assert rows[0].value == Decimal("100")

    def test_hour(self, batch: ReportBatch) -> None:
        rows = pivot(batch, Dimension.HOUR)
        assert [(r.key, r.value, r.count) for r in rows] == [
            ("8:00", Decimal("110"), 4),
            ("13:00", Decimal("50"), 2),
        ]

    def test_floor_falls_back_to_other(self, batch: ReportBatch) -> None:
        rows = pivot(batch, Dimension.FLOOR)
        assert [(r.key, r.count) for r in rows] == [
            ("Main Dining", 1),
            ("Terrace", 1),
            ("Other", 1),
        ]

    def test_employee_falls_back_to_unknown(self, batch: ReportBatch) -> None:
        rows = pivot(batch, Dimension.EMPLOYEE)
        assert _keys(rows) == ["Sara", "Omar", "Unknown"]
        assert sum(r.value for r in rows) == Decimal("150")

    def test_missing_category_is_uncategorized(self) -> None:
        batch = ReportBatch.from_raw(
            {"detailedMenu": [{"saleId": "1", "totalGrossAmountStr": "5", "quantity": 1}]}
        )
        assert _keys(pivot(batch, Dimension.CATEGORY)) == ["Uncategorized"]
        assert _keys(pivot(batch, Dimension.DEPARTMENT)) == ["No Dept"]

    def test_menu_performance(self, batch: ReportBatch) -> None:
        rows = menu_performance(batch)
        assert _keys(rows) == ["Eggs Benedict", "Latte", "Club Sandwich", "Red Wine"]
        assert rows[0].count == 2

    def test_empty_batch(self) -> None:
        for dimension in Dimension:
            assert pivot(ReportBatch(), dimension) == []


@pytest.mark.parametrize(
    "name, expected",
    [
        ("CATEGORY", Dimension.CATEGORY),
        ("category", Dimension.CATEGORY),
        (" menu-item ", Dimension.MENU_ITEM),
        (Dimension.FLOOR, Dimension.FLOOR),
    ],
)
def test_parse_dimension(name: object, expected: Dimension) -> None:
    assert parse_dimension(name) is expected


def test_parse_dimension_rejects_unknown() -> None:
    with pytest.raises(ValueError, match="Invalid dimension"):
        parse_dimension("weather")
