"""Cost-center allocation rows and the checks run over them."""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional, Set, Tuple

from rules.reference_data import CostCenter, GLAccount, MatrixEntry, ReferenceDataPort
from utils.helpers import ZERO, money, percent_of, to_decimal

logger = logging.getLogger(__name__)


@dataclass
class AllocationRow:
    """One payer split. company_id, balance and percentage are derived."""
    cost_center_id: Optional[str] = None
    gl_account_id: Optional[str] = None
    company_id: Optional[str] = None
    balance: Decimal = ZERO
    amount: Decimal = ZERO
    percentage: Decimal = ZERO

    @property
    def pair(self) -> Optional[Tuple[str, str]]:
        if self.cost_center_id and self.gl_account_id:
            return (self.cost_center_id, self.gl_account_id)
        return None

    @property
    def balance_exceeded(self) -> bool:
        return self.amount > self.balance

    @property
    def has_accounting(self) -> bool:
        """Cost center and GL account chosen and a payer company resolved."""
        return bool(self.cost_center_id and self.gl_account_id and self.company_id)

    @property
    def is_complete(self) -> bool:
        return self.has_accounting and self.amount > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cost_center_id": self.cost_center_id,
            "gl_account_id": self.gl_account_id,
            "company_id": self.company_id,
            "balance": str(self.balance),
            "amount": str(self.amount),
            "percentage": str(self.percentage),
        }


class AllocationLedger:
    """Ordered allocation rows checked against the order total.

    Rule violations never raise; they are reported through the boolean
    queries. Only an out-of-range row index raises ``IndexError``.
    """

    def __init__(self, reference: ReferenceDataPort, rows: Optional[List[AllocationRow]] = None):
        self.reference = reference
        self._rows: List[AllocationRow] = list(rows) if rows else [AllocationRow()]

    @property
    def rows(self) -> List[AllocationRow]:
        return list(self._rows)

    def row(self, index: int) -> AllocationRow:
        if index < 0 or index >= len(self._rows):
            raise IndexError(f"Allocation row {index} out of range (0..{len(self._rows) - 1})")
        return self._rows[index]

    # Row lifecycle

    def append_row(self) -> int:
        self._rows.append(AllocationRow())
        logger.debug(f"Allocation row appended, now {len(self._rows)} rows")
        return len(self._rows) - 1

    def remove_row(self, index: int, total_value: Decimal = ZERO) -> bool:
        """Remove a row; the last remaining row is never removed."""
        self.row(index)
        if len(self._rows) <= 1:
            logger.warning("Refusing to remove the only allocation row")
            return False
        del self._rows[index]
        self.recompute_percentages(total_value)
        return True

    def clear_row(self, index: int, total_value: Decimal = ZERO) -> None:
        self.row(index)
        self._rows[index] = AllocationRow()
        self.recompute_percentages(total_value)

    # Field edits

    def select_cost_center(self, index: int, cost_center_id: Optional[str], is_domestic: bool,
                           total_value: Decimal = ZERO) -> bool:
        """Set a row's cost center; refused when the pair is already used by another row."""
        row = self.row(index)
        cost_center_id = cost_center_id or None
        if self._pair_taken(index, cost_center_id, row.gl_account_id):
            logger.warning(f"Cost center {cost_center_id} / GL {row.gl_account_id} already allocated on another row")
            return False
        row.cost_center_id = cost_center_id
        self._derive(row, is_domestic, total_value)
        return True

    def select_gl_account(self, index: int, gl_account_id: Optional[str], is_domestic: bool,
                          total_value: Decimal = ZERO) -> bool:
        row = self.row(index)
        gl_account_id = gl_account_id or None
        if self._pair_taken(index, row.cost_center_id, gl_account_id):
            logger.warning(f"Cost center {row.cost_center_id} / GL {gl_account_id} already allocated on another row")
            return False
        row.gl_account_id = gl_account_id
        self._derive(row, is_domestic, total_value)
        return True

    def _pair_taken(self, index: int, cost_center_id: Optional[str], gl_account_id: Optional[str]) -> bool:
        if not cost_center_id or not gl_account_id:
            return False
        return (cost_center_id, gl_account_id) in self._claimed_by_others(index)

    def set_amount(self, index: int, amount: Any, total_value: Decimal) -> bool:
        """Set a row amount; returns True when the amount is above the row balance.

        Input that is not a finite number leaves the row untouched and returns False.
        """
        row = self.row(index)
        try:
            row.amount = money(to_decimal(amount))
        except ValueError as e:
            logger.warning(f"Row {index} amount refused: {e}")
            return False
        self.recompute_percentages(total_value)
        if row.balance_exceeded:
            logger.warning(f"Row {index} amount {row.amount} exceeds available balance {row.balance}")
        return row.balance_exceeded

    def recompute_percentages(self, total_value: Decimal) -> None:
        for row in self._rows:
            row.percentage = percent_of(row.amount, total_value)

    def rederive_all(self, is_domestic: bool, total_value: Decimal = ZERO) -> None:
        """Re-run the matrix lookup for every row, e.g. after a scope flip."""
        for row in self._rows:
            self._derive(row, is_domestic, total_value, recompute=False)
        self.recompute_percentages(total_value)

    def _match(self, cost_center_id: Optional[str], gl_account_id: Optional[str],
               is_domestic: bool) -> Optional[MatrixEntry]:
        if not cost_center_id or not gl_account_id:
            return None
        for entry in self.reference.list_matrix_entries():
            if (entry.is_active
                    and entry.cost_center_id == cost_center_id
                    and entry.gl_account_id == gl_account_id
                    and entry.is_domestic == is_domestic):
                return entry
        return None

    def _derive(self, row: AllocationRow, is_domestic: bool, total_value: Decimal,
                recompute: bool = True) -> None:
        entry = self._match(row.cost_center_id, row.gl_account_id, is_domestic)
        if entry is None:
            row.company_id = None
            row.balance = ZERO
            row.percentage = ZERO
        else:
            row.company_id = entry.company_id
            row.balance = entry.balance
        if recompute:
            self.recompute_percentages(total_value)

    # Aggregates

    @property
    def total_allocated(self) -> Decimal:
        return sum((row.amount for row in self._rows), ZERO)

    def is_overflow(self, target: Decimal) -> bool:
        return target > 0 and self.total_allocated > target

    def is_balanced(self, target: Decimal) -> bool:
        return target > 0 and self.total_allocated == target

    @property
    def balance_exceeded_flags(self) -> List[bool]:
        return [row.balance_exceeded for row in self._rows]

    @property
    def has_balance_exceeded(self) -> bool:
        return any(self.balance_exceeded_flags)

    @property
    def has_duplicate_pairs(self) -> bool:
        pairs = [row.pair for row in self._rows if row.pair]
        return len(pairs) != len(set(pairs))

    @property
    def all_rows_complete(self) -> bool:
        return all(row.is_complete for row in self._rows)

    def distinct_cost_center_ids(self) -> List[str]:
        """Cost centers of rows with full accounting, in first-seen order."""
        seen: List[str] = []
        for row in self._rows:
            if row.has_accounting and row.cost_center_id not in seen:
                seen.append(row.cost_center_id)
        return seen

    # Picker candidates

    def _scope_pairs(self, is_domestic: bool) -> Set[Tuple[str, str]]:
        active_cc = {c.id for c in self.reference.list_cost_centers() if c.is_active}
        active_gl = {g.id for g in self.reference.list_gl_accounts() if g.is_active}
        return {
            (e.cost_center_id, e.gl_account_id)
            for e in self.reference.list_matrix_entries()
            if e.is_active and e.is_domestic == is_domestic
            and e.cost_center_id in active_cc and e.gl_account_id in active_gl
        }

    def _claimed_by_others(self, index: int) -> Set[Tuple[str, str]]:
        return {row.pair for i, row in enumerate(self._rows) if i != index and row.pair}

    def candidate_cost_centers(self, index: int, is_domestic: bool) -> List[CostCenter]:
        row = self.row(index)
        free = self._scope_pairs(is_domestic) - self._claimed_by_others(index)
        if row.gl_account_id:
            allowed = {cc for cc, gl in free if gl == row.gl_account_id}
        else:
            allowed = {cc for cc, _ in free}
        return [c for c in self.reference.list_cost_centers() if c.is_active and c.id in allowed]

    def candidate_gl_accounts(self, index: int, is_domestic: bool) -> List[GLAccount]:
        row = self.row(index)
        free = self._scope_pairs(is_domestic) - self._claimed_by_others(index)
        if row.cost_center_id:
            allowed = {gl for cc, gl in free if cc == row.cost_center_id}
        else:
            allowed = {gl for _, gl in free}
        return [g for g in self.reference.list_gl_accounts() if g.is_active and g.id in allowed]

    def snapshot(self) -> List[Dict[str, Any]]:
        return [row.to_dict() for row in self._rows]
