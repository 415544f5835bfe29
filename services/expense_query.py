"""Translates list query parameters into a MongoDB filter and sort specification."""
import re
import calendar
import logging
from datetime import date, datetime, time
from typing import Any, Dict, List, Optional, Tuple
from pydantic import BaseModel
from pymongo import ASCENDING, DESCENDING

logger = logging.getLogger(__name__)

ALL_CATEGORIES = "all"

SORT_OPTIONS: Dict[str, Tuple[str, int]] = {
    "date": ("expenseDate", DESCENDING),       # newest first
    "dateAsc": ("expenseDate", ASCENDING),     # oldest first
    "amountDesc": ("amount", DESCENDING),
    "amountAsc": ("amount", ASCENDING),
}
DEFAULT_SORT = SORT_OPTIONS["date"]


class ExpenseQuery(BaseModel):
    filter: Dict[str, Any] = {}
    sort: List[Tuple[str, int]] = [DEFAULT_SORT]


def _month_bounds(year: int, month: int) -> Tuple[date, date]:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def timeframe_range(timeframe: Optional[str], today: Optional[date] = None) -> Optional[Tuple[datetime, datetime]]:
    """
    Maps a timeframe token to an inclusive (start, end) datetime range.

    `start` is midnight of the first day and `end` the last instant of the
    final day, so any expense dated on either boundary day matches.
    Returns None for a missing or unknown token.
    """
    if not timeframe:
        return None
    today = today or date.today()
    year, month = today.year, today.month

    if timeframe == "thisMonth":
        start, end = _month_bounds(year, month)
    elif timeframe == "lastMonth":
        if month == 1:
            start, end = _month_bounds(year - 1, 12)
        else:
            start, end = _month_bounds(year, month - 1)
    elif timeframe == "thisQuarter":
        quarter = (month - 1) // 3
        first_month = quarter * 3 + 1
        start = date(year, first_month, 1)
        end = _month_bounds(year, first_month + 2)[1]
    elif timeframe == "thisYear":
        start, end = date(year, 1, 1), date(year, 12, 31)
    elif timeframe == "lastYear":
        start, end = date(year - 1, 1, 1), date(year - 1, 12, 31)
    else:
        logger.debug(f"Ignoring unknown timeframe '{timeframe}'")
        return None

    return datetime.combine(start, time.min), datetime.combine(end, time.max)


def sort_spec(sort_by: Optional[str]) -> List[Tuple[str, int]]:
    """Returns the sort specification for a sortBy token, newest first by default."""
    return [SORT_OPTIONS.get(sort_by or "", DEFAULT_SORT)]


def build_expense_query(
    category: Optional[str] = None,
    search: Optional[str] = None,
    timeframe: Optional[str] = None,
    sort_by: Optional[str] = None,
    today: Optional[date] = None,
) -> ExpenseQuery:
    """Builds the conjunctive filter and the ordering for an expense listing."""
    filter_doc: Dict[str, Any] = {}

    if category and category != ALL_CATEGORIES:
        filter_doc["category"] = category

    date_range = timeframe_range(timeframe, today=today)
    if date_range:
        start, end = date_range
        filter_doc["expenseDate"] = {"$gte": start, "$lte": end}

    if search:
        # Literal substring match, not a user-supplied pattern
        filter_doc["description"] = {"$regex": re.escape(search), "$options": "i"}

    return ExpenseQuery(filter=filter_doc, sort=sort_spec(sort_by))
