"""Dashboard aggregation over an already-fetched set of expense records.

Records may be ``Expense`` rows or plain mappings with the same keys (the
live feed delivers dicts). Nothing in here touches the database and nothing
raises: a bad amount counts as zero, an unknown currency is left out of the
per-currency buckets.
"""
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import NamedTuple

from ..models.expense import CURRENCIES

NO_CATEGORY = "-"
ZERO = Decimal("0")


class TrendPoint(NamedTuple):
    date: date
    amount: Decimal


class CurrencyTotal(NamedTuple):
    currency: str
    amount: Decimal


def _field(record, name):
    if isinstance(record, dict):
        return record.get(name)
    if name == "date":
        name = "spent_on"
    return getattr(record, name, None)


def parse_amount(value) -> Decimal:
    if value is None or isinstance(value, bool):
        return ZERO
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return ZERO
    if not amount.is_finite():
        return ZERO
    return amount


def parse_date(value):
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            return None
    return None


def compute_totals(records, currencies=CURRENCIES):
    totals = {code: ZERO for code in currencies}
    for record in records:
        code = _field(record, "currency")
        if code in totals:
            totals[code] += parse_amount(_field(record, "amount"))
    return totals


def compute_category_totals(records):
    # dict keeps first-appearance order, which find_extreme_categories relies on
    totals = {}
    for record in records:
        category = _field(record, "category")
        totals[category] = totals.get(category, ZERO) + parse_amount(_field(record, "amount"))
    return totals


def find_extreme_categories(category_totals):
    """Return ``(highest, lowest)``; the first category seen wins a tie."""
    highest = lowest = None
    for category, amount in category_totals.items():
        if highest is None or amount > category_totals[highest]:
            highest = category
        if lowest is None or amount < category_totals[lowest]:
            lowest = category
    if highest is None:
        return NO_CATEGORY, NO_CATEGORY
    return highest, lowest


def build_trend_series(records):
    points = [TrendPoint(parse_date(_field(r, "date")), parse_amount(_field(r, "amount"))) for r in records]
    # undated records go last instead of breaking the sort
    return sorted(points, key=lambda p: (p.date is None, p.date or date.min))


def build_currency_breakdown(records, currencies=CURRENCIES):
    totals = compute_totals(records, currencies)
    return [CurrencyTotal(code, totals[code]) for code in currencies]


def top_n(records, n):
    if n <= 0:
        return []
    return sorted(records, key=lambda r: parse_amount(_field(r, "amount")), reverse=True)[:n]


def summarize(records, top=5):
    """Everything a dashboard view renders, recomputed from scratch."""
    records = list(records)
    category_totals = compute_category_totals(records)
    highest, lowest = find_extreme_categories(category_totals)
    return {
        "totals": compute_totals(records),
        "transaction_count": len(records),
        "category_totals": category_totals,
        "highest_category": highest,
        "lowest_category": lowest,
        "trend": build_trend_series(records),
        "currency_breakdown": build_currency_breakdown(records),
        "top_expenses": top_n(records, top),
    }
