"""Resolve a requested payment day into a concrete calendar date."""
import calendar
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Dict, Optional, Union

from rules.enums import InternationalPaymentDay, PaymentDay, parse_payment_day

logger = logging.getLogger(__name__)

# Upper bound on month rolls; any legal day resolves within a few months.
_MAX_MONTH_ROLLS = 24


@dataclass(frozen=True)
class ResolvedPaymentDate:
    date: date
    day: PaymentDay
    requested_date: date
    is_adjusted: bool
    is_next_month: bool
    days_until: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "day": self.day.value,
            "requested_date": self.requested_date.isoformat(),
            "is_adjusted": self.is_adjusted,
            "is_next_month": self.is_next_month,
            "days_until": self.days_until,
        }


def last_business_day(year: int, month: int) -> date:
    """Last calendar day of the month moved back to Friday if it falls on a weekend."""
    candidate = date(year, month, calendar.monthrange(year, month)[1])
    while candidate.weekday() >= 5:
        candidate -= timedelta(days=1)
    return candidate


def _add_months(year: int, month: int, offset: int):
    index = year * 12 + (month - 1) + offset
    return index // 12, index % 12 + 1


def _occurrence(year: int, month: int, day: PaymentDay) -> date:
    if day == InternationalPaymentDay.LAST_BUSINESS_DAY:
        return last_business_day(year, month)
    return date(year, month, min(day.value, calendar.monthrange(year, month)[1]))


def resolve_payment_date(
    open_date: Union[date, datetime],
    selected_day: Any,
    min_days_advance: int,
    is_outside_window: bool = False,
    is_domestic: bool = True,
) -> Optional[ResolvedPaymentDate]:
    """Find the first occurrence of ``selected_day`` at least ``min_days_advance`` days out.

    Resolution starts at the occurrence in the open month and rolls month by
    month until it clears the minimum advance. Returns None when the request is
    out-of-window or the day is not legal for the currency scope.
    """
    if is_outside_window:
        return None
    day = parse_payment_day(selected_day, is_domestic)
    if day is None:
        return None

    opened = open_date.date() if isinstance(open_date, datetime) else open_date
    earliest = opened + timedelta(days=min_days_advance)
    requested = _occurrence(opened.year, opened.month, day)

    resolved = requested
    rolls = 0
    while resolved < earliest:
        rolls += 1
        if rolls > _MAX_MONTH_ROLLS:
            logger.error(f"Could not resolve payment day {day.value} from {opened}")
            return None
        year, month = _add_months(opened.year, opened.month, rolls)
        resolved = _occurrence(year, month, day)

    result = ResolvedPaymentDate(
        date=resolved,
        day=day,
        requested_date=requested,
        is_adjusted=rolls > 0,
        is_next_month=(resolved.year, resolved.month) != (opened.year, opened.month),
        days_until=(resolved - opened).days,
    )
    logger.debug(f"Payment day {day.value} resolved to {resolved} (adjusted={result.is_adjusted})")
    return result
