"""Per-section validity, reachability and visibility for the intake form."""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Optional

from rules.enums import PaymentFrequency, Section
from utils.helpers import ZERO

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SectionState:
    section: Section
    valid: bool
    reached: bool
    visible: bool
    empty: bool

    def to_dict(self) -> Dict[str, object]:
        return {
            "section": int(self.section),
            "name": self.section.name.lower(),
            "valid": self.valid,
            "reached": self.reached,
            "visible": self.visible,
            "empty": self.empty,
        }


@dataclass(frozen=True)
class SectionInputs:
    """Facts the section predicates are evaluated over."""
    beneficiary_set: bool = False
    currency_set: bool = False
    expense_nature_set: bool = False
    total_value: Decimal = ZERO
    total_allocated: Decimal = ZERO
    allocation_balanced: bool = False
    supplier_set: bool = False
    contract_satisfied: bool = True
    payment_method_set: bool = False
    standard_day_chosen: bool = False
    is_outside_window: bool = False
    custom_day_set: bool = False
    justification_set: bool = False
    frequency: Optional[PaymentFrequency] = None
    installments: int = 1


def compute_local_validity(inputs: SectionInputs) -> Dict[Section, bool]:
    """What each section demands of its own fields, ignoring earlier sections."""
    out_of_window_ok = inputs.is_outside_window and inputs.custom_day_set and inputs.justification_set
    return {
        Section.BASICS: (
            inputs.beneficiary_set
            and inputs.currency_set
            and inputs.expense_nature_set
            and inputs.total_value > 0
        ),
        Section.ALLOCATION: inputs.expense_nature_set and inputs.allocation_balanced,
        Section.SUPPLIER: inputs.supplier_set and inputs.contract_satisfied,
        Section.PAYMENT_METHOD: inputs.payment_method_set,
        Section.PAYMENT_DAY: inputs.standard_day_chosen or out_of_window_ok,
        Section.PAYMENT_FREQUENCY: (
            inputs.frequency is not None
            and (inputs.frequency != PaymentFrequency.INSTALLMENTS or inputs.installments >= 2)
        ),
        # Description length is only enforced by the submit gate.
        Section.DESCRIPTION: True,
    }


def compute_emptiness(inputs: SectionInputs) -> Dict[Section, bool]:
    return {
        Section.BASICS: not inputs.beneficiary_set and inputs.total_value <= 0,
        Section.ALLOCATION: not inputs.expense_nature_set and inputs.total_allocated <= 0,
        Section.SUPPLIER: not inputs.supplier_set,
        Section.PAYMENT_METHOD: not inputs.payment_method_set,
        Section.PAYMENT_DAY: not inputs.standard_day_chosen and not inputs.is_outside_window,
        Section.PAYMENT_FREQUENCY: inputs.frequency is None,
        Section.DESCRIPTION: False,
    }


class SectionGateEngine:
    """Owns the reached bits and folds them with validity into section states.

    Reached(N) is set once section N-1 is valid and is only cleared when an
    earlier section becomes empty.
    """

    def __init__(self, all_reached: bool = False):
        self._reached: Dict[Section, bool] = {
            section: all_reached or section == Section.BASICS for section in Section
        }

    @property
    def reached(self) -> Dict[Section, bool]:
        return dict(self._reached)

    def evaluate(self, local_valid: Dict[Section, bool], empty: Dict[Section, bool]) -> List[SectionState]:
        valid: Dict[Section, bool] = {}
        previous_valid = True
        for section in Section:
            valid[section] = previous_valid and bool(local_valid.get(section, False))
            previous_valid = valid[section]

        for section in Section:
            if section != Section.BASICS and valid[Section(section - 1)]:
                self._reached[section] = True

        for section in Section:
            if empty.get(section, False):
                for later in Section:
                    if later > section and self._reached[later]:
                        logger.debug(f"Section {section.name} empty, resetting reached for {later.name}")
                        self._reached[later] = False

        states = []
        for section in Section:
            if section == Section.BASICS:
                visible = True
            else:
                previous_empty = empty.get(Section(section - 1), False)
                visible = valid[section] or (self._reached[section] and not previous_empty)
            states.append(SectionState(
                section=section,
                valid=valid[section],
                reached=self._reached[section],
                visible=visible,
                empty=bool(empty.get(section, False)),
            ))
        return states
