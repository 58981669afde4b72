"""Calendar arithmetic for instalment periods.

Pure functions on datetime.date. Periods run from one instalment date
(inclusive) to the next (exclusive).
"""

import calendar
from collections import Counter
from datetime import date, timedelta

from dateutil.relativedelta import relativedelta


def days_in_month(d: date) -> int:
    return calendar.monthrange(d.year, d.month)[1]


def add_months(d: date, n: int) -> date:
    """Calendar month addition, clamped to the end of the target month.

    add_months(date(2024, 1, 31), 1) -> date(2024, 2, 29)
    """
    return d + relativedelta(months=n)


def days_between(start: date, end: date) -> int:
    """Days from start (inclusive) to end (exclusive)."""
    return (end - start).days


def instalment_date(first_instalment: date, index: int) -> date:
    """Due date of the instalment at 0-based index.

    Always offset from the first date so a 31st anchor does not drift to
    the 28th after February.
    """
    return add_months(first_instalment, index)


def period_bounds(first_instalment: date, index: int) -> tuple[date, date]:
    """(start inclusive, end exclusive) of the period at 0-based index."""
    return instalment_date(first_instalment, index), instalment_date(first_instalment, index + 1)


def contract_end_date(first_instalment: date, total_instalments: int) -> date:
    """Day the final period closes (exclusive bound of the last period)."""
    return add_months(first_instalment, total_instalments)


def months_elapsed(anchor: date, as_of: date) -> int:
    """Largest k with add_months(anchor, k) <= as_of; 0 before the anchor."""
    if as_of < anchor:
        return 0
    k = (as_of.year - anchor.year) * 12 + (as_of.month - anchor.month)
    while k > 0 and add_months(anchor, k) > as_of:
        k -= 1
    while add_months(anchor, k + 1) <= as_of:
        k += 1
    return k


def day_distribution(first_instalment: date, total_instalments: int) -> dict[int, int]:
    """Count of periods by length in days, e.g. {31: 7, 30: 4, 29: 1}."""
    counts: Counter[int] = Counter()
    for i in range(total_instalments):
        start, end = period_bounds(first_instalment, i)
        counts[days_between(start, end)] += 1
    return dict(sorted(counts.items(), reverse=True))


def last_day_of_period(end_exclusive: date) -> date:
    return end_exclusive - timedelta(days=1)
