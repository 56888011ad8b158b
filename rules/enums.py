"""Closed vocabularies used by the intake rules."""
from enum import Enum, IntEnum
from typing import Any, Optional, Tuple, Union


class Scope(str, Enum):
    NATIONAL = "NATIONAL"
    INTERNATIONAL = "INTERNATIONAL"

    @classmethod
    def for_domestic(cls, is_domestic: bool) -> "Scope":
        return cls.NATIONAL if is_domestic else cls.INTERNATIONAL


class DomesticPaymentDay(Enum):
    DAY_5 = 5
    DAY_15 = 15
    DAY_25 = 25


class InternationalPaymentDay(Enum):
    DAY_10 = 10
    DAY_20 = 20
    LAST_BUSINESS_DAY = "last-business-day"


PaymentDay = Union[DomesticPaymentDay, InternationalPaymentDay]

_LAST_BUSINESS_DAY_ALIASES = {"last-business-day", "last", "ultimo"}


def payment_days_for_scope(is_domestic: bool) -> Tuple[PaymentDay, ...]:
    """Legal standard days in calendar order."""
    return tuple(DomesticPaymentDay) if is_domestic else tuple(InternationalPaymentDay)


def parse_payment_day(value: Any, is_domestic: bool) -> Optional[PaymentDay]:
    """Map raw input (enum, int or string) onto the legal day set of the scope.

    Returns None when the value is not a standard day of that scope.
    """
    if value is None or value == "":
        return None
    legal = payment_days_for_scope(is_domestic)
    if isinstance(value, (DomesticPaymentDay, InternationalPaymentDay)):
        return value if value in legal else None
    if isinstance(value, str) and value.strip().lower() in _LAST_BUSINESS_DAY_ALIASES:
        return None if is_domestic else InternationalPaymentDay.LAST_BUSINESS_DAY
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    for day in legal:
        if day.value == number:
            return day
    return None


class PaymentMethodCode(str, Enum):
    BANK_TRANSFER = "TRANSFERENCIA"
    BANK_SLIP = "BOLETO"
    WIRE_USA = "TRANSFER_USA"
    WIRE_NON_USA = "TRANSFER_NON_USA_SUPPLIER"
    WIRE_CONTA_E_ORDEM = "TRANSFER_CONTA_E_ORDEM"

    @property
    def scope(self) -> Scope:
        if self in (PaymentMethodCode.BANK_TRANSFER, PaymentMethodCode.BANK_SLIP):
            return Scope.NATIONAL
        return Scope.INTERNATIONAL


class PaymentFrequency(str, Enum):
    SINGLE = "single"
    INSTALLMENTS = "installments"
    RECURRING = "recurring"


class OrderSubtype(str, Enum):
    PRODUCT = "product"
    SERVICE = "service"


class ApproverLevel(str, Enum):
    FUNCTIONAL = "functional"
    SENIOR = "senior"


class BeneficiaryKind(str, Enum):
    FUND_GP = "FUNDO_GP"
    PORTCO = "PORTCO"


class ExpenseNatureKind(str, Enum):
    DEAL_EXPENSE = "deal_expense"
    ONGOING = "ongoing"


class ContractMode(str, Enum):
    NONE = "none"
    SELECT = "select"
    REQUEST = "request"


class ContractGateState(str, Enum):
    NO_REQUIREMENT = "no-requirement"
    REQUIREMENT_UNMET = "requirement-unmet"
    CONTRACT_SELECTED = "contract-selected"
    REQUEST_PENDING = "request-pending"
    REQUEST_SUBMITTED_LOCALLY = "request-submitted-locally"
    CANCELLATION_REQUESTED = "cancellation-requested"


class ContractRequestStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    FINALIZED = "finalized"
    CANCELLATION_REQUESTED = "cancellation-requested"
    CANCELLED = "cancelled"

    @property
    def is_open(self) -> bool:
        return self in (ContractRequestStatus.PENDING, ContractRequestStatus.IN_PROGRESS)


class Section(IntEnum):
    BASICS = 1
    ALLOCATION = 2
    SUPPLIER = 3
    PAYMENT_METHOD = 4
    PAYMENT_DAY = 5
    PAYMENT_FREQUENCY = 6
    DESCRIPTION = 7


class SubmitBlocker(str, Enum):
    """Reasons the final submit gate stays closed, reported in this order."""
    BASICS_INVALID = "basics-invalid"
    ALLOCATION_INVALID = "allocation-invalid"
    SUPPLIER_INVALID = "supplier-invalid"
    PAYMENT_METHOD_INVALID = "payment-method-invalid"
    PAYMENT_DAY_INVALID = "payment-day-invalid"
    PAYMENT_FREQUENCY_INVALID = "payment-frequency-invalid"
    DESCRIPTION_NOT_VISIBLE = "description-not-visible"
    DESCRIPTION_TOO_SHORT = "description-too-short"
    ALLOCATION_INCOMPLETE = "allocation-incomplete"
    BALANCE_EXCEEDED = "balance-exceeded"
    ALLOCATION_OVERFLOW = "allocation-overflow"
    SUPPLIER_NOT_APPROVED = "supplier-not-approved"
    PAYMENT_DETAILS_INCOMPLETE = "payment-details-incomplete"
    FUNCTIONAL_APPROVER_MISSING = "functional-approver-missing"
    SENIOR_APPROVER_MISSING = "senior-approver-missing"

    @classmethod
    def for_invalid_section(cls, section: "Section") -> "SubmitBlocker":
        return _SECTION_BLOCKERS[section]


_SECTION_BLOCKERS = {
    Section.BASICS: SubmitBlocker.BASICS_INVALID,
    Section.ALLOCATION: SubmitBlocker.ALLOCATION_INVALID,
    Section.SUPPLIER: SubmitBlocker.SUPPLIER_INVALID,
    Section.PAYMENT_METHOD: SubmitBlocker.PAYMENT_METHOD_INVALID,
    Section.PAYMENT_DAY: SubmitBlocker.PAYMENT_DAY_INVALID,
    Section.PAYMENT_FREQUENCY: SubmitBlocker.PAYMENT_FREQUENCY_INVALID,
}
