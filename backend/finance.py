# Financial summary - revenue and profit for the current UTC month against the previous six
from __future__ import annotations

from collections import Counter
from typing import Dict, Iterable, List, Optional

from models import ProcedureRecord, procedures
from status_rules import DateLike, add_months_utc, normalize_utc_day

TOP_CATEGORIES_LIMIT = 3
PREVIOUS_MONTHS = 6


def _in_month(proc: ProcedureRecord, year: int, month: int) -> bool:
    if not proc.performedDate:
        return False
    day = normalize_utc_day(proc.performedDate)
    return day.year == year and day.month == month


def _month_key(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def revenue_variation(current: float, average: float) -> float:
    """Percent change against the average; 100 when there was no history but there is revenue now."""
    if average > 0:
        return (current - average) / average * 100
    if current > 0:
        return 100.0
    return 0.0


def monthly_financials(today: DateLike, records: Optional[Iterable[ProcedureRecord]] = None) -> Dict:
    """
    Revenue, profit, procedure count, average ticket and top categories
    for procedures performed in today's calendar month (UTC), plus the
    average revenue of the six previous months, the variation against it
    and a seven-month revenue series (oldest first).
    Defaults to every stored procedure.
    """
    reference = normalize_utc_day(today)
    source = list(procedures if records is None else records)
    month_procs = [p for p in source if _in_month(p, reference.year, reference.month)]

    revenue = 0.0
    profit = 0.0
    categories: Counter = Counter()
    for proc in month_procs:
        charged = proc.chargedValue or 0
        revenue += charged
        profit += charged - proc.total_cost()
        categories[proc.category or "Other"] += 1

    first_of_month = reference.replace(day=1)
    series: List[Dict] = []
    for offset in range(PREVIOUS_MONTHS, 0, -1):
        month_start = add_months_utc(first_of_month, -offset)
        month_revenue = sum(
            p.chargedValue or 0 for p in source if _in_month(p, month_start.year, month_start.month)
        )
        series.append({
            "month": _month_key(month_start.year, month_start.month),
            "revenue": round(month_revenue, 2),
        })
    average = sum(item["revenue"] for item in series) / PREVIOUS_MONTHS
    series.append({"month": _month_key(reference.year, reference.month), "revenue": round(revenue, 2)})

    count = len(month_procs)
    return {
        "month": _month_key(reference.year, reference.month),
        "revenue": round(revenue, 2),
        "profit": round(profit, 2),
        "procedureCount": count,
        "averageTicket": round(revenue / count, 2) if count else 0.0,
        "topCategories": [
            {"name": name, "count": n} for name, n in categories.most_common(TOP_CATEGORIES_LIMIT)
        ],
        "previousSixMonthAverage": round(average, 2),
        "variationPct": round(revenue_variation(revenue, average), 2),
        "isPositive": revenue > 0 and revenue >= average,
        "revenueSeries": series,
    }
