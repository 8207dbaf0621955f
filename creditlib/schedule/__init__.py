"""
Schedule generation: tenors, IMM dates, fixed and premium legs.
"""

from .generator import (
    SchedulePeriod,
    fixed_leg_payment_dates,
    premium_leg_schedule,
    truncate_schedule,
)
from .imm import (
    imm_date_set,
    is_imm_date,
    is_index_roll_date,
    next_imm_date,
    next_index_roll_date,
    previous_imm_date,
)
from .tenor import add_tenor, parse_tenor, tenor_to_months

__all__ = [
    "SchedulePeriod",
    "fixed_leg_payment_dates",
    "premium_leg_schedule",
    "truncate_schedule",
    "imm_date_set",
    "is_imm_date",
    "is_index_roll_date",
    "next_imm_date",
    "next_index_roll_date",
    "previous_imm_date",
    "add_tenor",
    "parse_tenor",
    "tenor_to_months",
]
