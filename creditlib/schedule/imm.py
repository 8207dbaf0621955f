"""IMM date helpers for standard CDS contracts (20th of Mar/Jun/Sep/Dec)."""

from datetime import date
from typing import List, Sequence

from .tenor import TenorLike, add_tenor

IMM_DAY = 20
INDEX_ROLL_MONTHS = (3, 9)


def is_imm_date(dt: date) -> bool:
    return dt.month % 3 == 0 and dt.day == IMM_DAY


def next_imm_date(dt: date) -> date:
    """First IMM date strictly after ``dt``."""
    if dt.month % 3 == 0:
        if dt.day < IMM_DAY:
            return date(dt.year, dt.month, IMM_DAY)
        if dt.month == 12:
            return date(dt.year + 1, 3, IMM_DAY)
        return date(dt.year, dt.month + 3, IMM_DAY)
    return date(dt.year, (dt.month // 3 + 1) * 3, IMM_DAY)


def is_index_roll_date(dt: date) -> bool:
    return dt.month in INDEX_ROLL_MONTHS and dt.day == IMM_DAY


def next_index_roll_date(dt: date) -> date:
    """First index roll date (20 March or 20 September) strictly after ``dt``."""
    for month in INDEX_ROLL_MONTHS:
        roll = date(dt.year, month, IMM_DAY)
        if roll > dt:
            return roll
    return date(dt.year + 1, INDEX_ROLL_MONTHS[0], IMM_DAY)


def previous_imm_date(dt: date) -> date:
    """Last IMM date strictly before ``dt``."""
    if dt.month % 3 == 0:
        if dt.day > IMM_DAY:
            return date(dt.year, dt.month, IMM_DAY)
        if dt.month == 3:
            return date(dt.year - 1, 12, IMM_DAY)
        return date(dt.year, dt.month - 3, IMM_DAY)
    month = dt.month // 3 * 3
    if month == 0:
        return date(dt.year - 1, 12, IMM_DAY)
    return date(dt.year, month, IMM_DAY)


def imm_date_set(base_imm: date, tenors: Sequence[TenorLike]) -> List[date]:
    """IMM maturities ``base_imm + tenor`` for each tenor."""
    return [add_tenor(base_imm, tenor) for tenor in tenors]
