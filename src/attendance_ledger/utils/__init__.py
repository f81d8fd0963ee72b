from .dates import (
    InvalidDateError,
    WEEKDAY_OPTIONS,
    coerce_date,
    day_of_week,
    iter_dates,
    percentage,
    round_half_up,
    to_iso,
    weekday_label,
)

__all__ = [
    "WEEKDAY_OPTIONS",
    "InvalidDateError",
    "coerce_date",
    "day_of_week",
    "iter_dates",
    "percentage",
    "round_half_up",
    "to_iso",
    "weekday_label",
]
