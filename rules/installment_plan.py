"""Installment schedule preview per payer company."""
import calendar
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_DOWN
from typing import Any, Dict, Iterable, List

from rules.allocation_ledger import AllocationRow
from utils.helpers import CENT, ZERO

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InstallmentLine:
    company_id: str
    number: int
    due_date: date
    amount: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "company_id": self.company_id,
            "number": self.number,
            "due_date": self.due_date.isoformat(),
            "amount": str(self.amount),
        }


def add_months(start: date, months: int) -> date:
    """Step whole calendar months, clamping the day to the target month's length."""
    index = start.year * 12 + (start.month - 1) + months
    year, month = index // 12, index % 12 + 1
    return date(year, month, min(start.day, calendar.monthrange(year, month)[1]))


def build_installment_plan(rows: Iterable[AllocationRow], count: int,
                           first_due_date: date) -> List[InstallmentLine]:
    """Split each payer company's total into ``count`` monthly installments.

    Only complete rows count. The cents lost to rounding down land on the last
    installment, so every company's lines add up to its allocated total.
    """
    if count < 1:
        return []

    totals: Dict[str, Decimal] = {}
    for row in rows:
        if row.is_complete:
            totals[row.company_id] = totals.get(row.company_id, ZERO) + row.amount

    plan: List[InstallmentLine] = []
    for company_id, total in totals.items():
        share = (total / count).quantize(CENT, rounding=ROUND_DOWN)
        for number in range(1, count + 1):
            amount = share if number < count else total - share * (count - 1)
            plan.append(InstallmentLine(
                company_id=company_id,
                number=number,
                due_date=add_months(first_due_date, number - 1),
                amount=amount,
            ))
    logger.debug(f"Installment plan built: {len(totals)} companies x {count} installments")
    return plan
