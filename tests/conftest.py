"""Shared fixtures: a small, fully known day of trading at one store.

Three tickets:
    1001  08:10  Main Dining  Sara   2 guests  net 100.00  (two lines, 10.00 discount)
    1002  13:45  Terrace      Omar   1 guest   net "AED 50" (one voided wine line)
    1003  ?      (no floor)   ?      0 guests  net "not-a-number"

Order lines are embedded in the tickets and the payment summary is absent,
so ingestion has to derive both.
"""

import copy
from typing import Any

import pytest

from linga_core.schema import ReportBatch

_RAW_BUNDLE: dict[str, Any] = {
    "users": [
        {"id": "e1", "name": "Sara"},
        {"id": "e2", "name": "Omar"},
    ],
    "floors": [
        {"id": "f1", "floorName": "Main Dining"},
        {"id": "f2", "floorName": "Terrace"},
    ],
    "sales": [
        {
            "id": "s1",
            "ticketNo": "1001",
            "startDate": "2024-01-05T08:10:00",
            "saleOpenTime": "2024-01-05T08:10:00",
            "floorId": "f1",
            "tableNo": "12",
            "customerName": "Walk-in",
            "employee": "e1",
            "saleCloseEmployee": "e2",
            "guestCount": "2",
            "netSalesStr": "100.00",
            "grossAmountStr": "110.00",
            "grossReceiptStr": "105.00",
            "totalTaxAmountStr": "5.00",
            "payments": [
                {"paymentMethod": "Cash", "authorizedAmountStr": "105.00", "paymentTipStr": "0"},
            ],
            "orders": [
                {
                    "menuName": "Eggs Benedict",
                    "departmentName": "Food",
                    "categoryName": "Breakfast",
                    "subCategoryName": "Eggs",
                    "quantity": 2,
                    "grossAmountStr": "30.00",
                    "totalGrossAmountStr": "60.00",
                    "totalDiscountAmountStr": "10.00",
                    "orderHour": "08",
                    "orderMin": "10",
                    "isVoid": False,
                },
                {
                    "menuName": "Latte",
                    "departmentName": "Beverages",
                    "categoryName": "Coffee",
                    "subCategoryName": "Hot",
                    "quantity": "2",
                    "grossAmountStr": "25.00",
                    "totalGrossAmountStr": "50.00",
                    "totalDiscountAmountStr": "0.00",
                    "orderHour": "08",
                    "orderMin": "12",
                    "isVoid": "N",
                },
            ],
        },
        {
            "id": "s2",
            "ticketNo": "1002",
            "startDate": "2024-01-05T13:45:00",
            "saleOpenTime": "2024-01-05T13:45:00",
            "floorId": "f2",
            "tableNo": "T4",
            "customerName": "=HYPERLINK(\"http://evil\")",
            "employee": "e2",
            "saleCloseEmployee": "e2",
            "guestCount": 1,
            "netSalesStr": "AED 50",
            "grossAmountStr": "50",
            "grossReceiptStr": "52.50",
            "totalTaxAmountStr": "2.50",
            "payments": [
                {"paymentMethod": "Card", "authorizedAmountStr": "52.50", "paymentTipStr": "5.00"},
            ],
            "orders": [
                {
                    "menuName": "Club Sandwich",
                    "departmentName": "Food",
                    "categoryName": "Sandwiches",
                    "quantity": 1,
                    "grossAmountStr": "40",
                    "totalGrossAmountStr": "40",
                    "totalDiscountAmountStr": "0",
                    "orderHour": "13",
                    "orderMin": "45",
                },
                {
                    "menuName": "Red Wine",
                    "departmentName": "Alcohol Bev",
                    "categoryName": "Wine",
                    "quantity": 1,
                    "grossAmountStr": "10",
                    "totalGrossAmountStr": "10",
                    "totalDiscountAmountStr": "0",
                    "orderHour": "13",
                    "orderMin": "50",
                    "isVoid": "Y",
                    "voidError": "Wrong item",
                    "voidByEmployee": "e9",
                },
            ],
        },
        {
            "id": "s3",
            "ticketNo": "1003",
            "startDate": "2024-01-05",
            "saleOpenTime": "garbage",
            "floorId": "missing",
            "employee": "e404",
            "guestCount": 0,
            "netSalesStr": "not-a-number",
        },
    ],
    "saleDetails": [
        {
            "check": "1001",
            "discountName": "Staff Discount",
            "discountAmtStr": "10.00",
            "quantity": "1",
            "reason": "Staff meal",
            "discountAppliedBy": "Sara",
        },
        {"check": "Total", "discountName": "", "discountAmtStr": "999.00"},
    ],
    "saleSummary": [{"id": "s1", "discounts": "10.00"}],
}


@pytest.fixture
def raw_bundle() -> dict[str, Any]:
    """A fresh copy of the raw fetched bundle (tests may mutate it)."""
    return copy.deepcopy(_RAW_BUNDLE)


@pytest.fixture
def batch(raw_bundle: dict[str, Any]) -> ReportBatch:
    """The raw bundle ingested into a ReportBatch."""
    return ReportBatch.from_raw(raw_bundle)
