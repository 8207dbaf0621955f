"""
Tenor parsing and calendar-period arithmetic.
"""

from datetime import date
from typing import Union

from dateutil.relativedelta import relativedelta

TenorLike = Union[str, relativedelta]


def parse_tenor(tenor: TenorLike) -> relativedelta:
    """Convert a tenor string (e.g. '1D', '2W', '3M', '5Y') to a period."""
    if isinstance(tenor, relativedelta):
        return tenor
    t = tenor.upper().strip()
    if len(t) < 2 or not t[:-1].isdigit():
        raise ValueError(f"Unsupported tenor: {tenor}")
    amount = int(t[:-1])
    unit = t[-1]
    if unit == "D":
        return relativedelta(days=amount)
    if unit == "W":
        return relativedelta(weeks=amount)
    if unit == "M":
        return relativedelta(months=amount)
    if unit == "Y":
        return relativedelta(years=amount)
    raise ValueError(f"Unsupported tenor: {tenor}")


def tenor_to_months(tenor: TenorLike) -> int:
    """Number of whole months in a month/year tenor."""
    period = parse_tenor(tenor)
    if period.days or period.weeks:
        raise ValueError(f"Tenor {tenor} is not a whole number of months")
    return period.years * 12 + period.months


def add_tenor(start: date, tenor: TenorLike, multiple: int = 1) -> date:
    """Add ``multiple`` times ``tenor`` to ``start``.

    Month arithmetic clamps to the last day of the target month and the
    period is multiplied before it is applied, so ``add_tenor(d, '6M', 2)``
    equals ``add_tenor(d, '12M')`` rather than two successive rolls.
    """
    period = parse_tenor(tenor)
    return start + period * multiple
