from datetime import date, datetime, time

import pytest
from pymongo import ASCENDING, DESCENDING

from services.expense_query import build_expense_query, sort_spec, timeframe_range


def _day_range(start: date, end: date):
    return datetime.combine(start, time.min), datetime.combine(end, time.max)


@pytest.mark.parametrize(
    "token, today, expected",
    [
        ("thisMonth", date(2024, 2, 14), _day_range(date(2024, 2, 1), date(2024, 2, 29))),
        ("lastMonth", date(2024, 3, 10), _day_range(date(2024, 2, 1), date(2024, 2, 29))),
        ("lastMonth", date(2024, 1, 5), _day_range(date(2023, 12, 1), date(2023, 12, 31))),
        ("thisQuarter", date(2024, 5, 20), _day_range(date(2024, 4, 1), date(2024, 6, 30))),
        ("thisQuarter", date(2024, 12, 31), _day_range(date(2024, 10, 1), date(2024, 12, 31))),
        ("thisQuarter", date(2024, 1, 1), _day_range(date(2024, 1, 1), date(2024, 3, 31))),
        ("thisYear", date(2024, 7, 4), _day_range(date(2024, 1, 1), date(2024, 12, 31))),
        ("lastYear", date(2024, 7, 4), _day_range(date(2023, 1, 1), date(2023, 12, 31))),
    ],
)
def test_timeframe_range(token, today, expected):
    assert timeframe_range(token, today=today) == expected


@pytest.mark.parametrize("token", [None, "", "nextWeek", "ThisMonth"])
def test_timeframe_range_unknown_token_means_no_restriction(token):
    assert timeframe_range(token, today=date(2024, 3, 10)) is None


@pytest.mark.parametrize(
    "token, expected",
    [
        ("date", [("expenseDate", DESCENDING)]),
        ("dateAsc", [("expenseDate", ASCENDING)]),
        ("amountDesc", [("amount", DESCENDING)]),
        ("amountAsc", [("amount", ASCENDING)]),
        (None, [("expenseDate", DESCENDING)]),
        ("price", [("expenseDate", DESCENDING)]),
    ],
)
def test_sort_spec(token, expected):
    assert sort_spec(token) == expected


def test_empty_query_has_no_restrictions():
    query = build_expense_query()
    assert query.filter == {}
    assert query.sort == [("expenseDate", DESCENDING)]


def test_category_all_is_ignored():
    assert build_expense_query(category="all").filter == {}
    assert build_expense_query(category="food").filter == {"category": "food"}


def test_search_is_escaped_case_insensitive_substring():
    query = build_expense_query(search="c++ (1)")
    assert query.filter == {"description": {"$regex": r"c\+\+\ \(1\)", "$options": "i"}}


def test_all_dimensions_compose():
    query = build_expense_query(
        category="transport",
        search="taxi",
        timeframe="thisMonth",
        sort_by="amountAsc",
        today=date(2024, 3, 10),
    )
    assert query.filter == {
        "category": "transport",
        "description": {"$regex": "taxi", "$options": "i"},
        "expenseDate": {
            "$gte": datetime(2024, 3, 1),
            "$lte": datetime.combine(date(2024, 3, 31), time.max),
        },
    }
    assert query.sort == [("amount", ASCENDING)]
