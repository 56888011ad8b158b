"""State definitions for the PO intake workflow."""
from dataclasses import asdict, dataclass, field, fields
from decimal import Decimal
from typing import Any, Dict, List, Optional, TypedDict

from rules.approval_resolver import ApprovalRequirement
from rules.enums import OrderSubtype, PaymentDay, PaymentFrequency, PaymentMethodCode, SubmitBlocker
from rules.payment_date_resolver import ResolvedPaymentDate
from utils.helpers import ZERO
from workflows.section_gate import SectionState


@dataclass
class PaymentSelection:
    selected_day: Optional[PaymentDay] = None
    is_outside_window: bool = False
    custom_day: Optional[int] = None
    justification: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "selected_day": self.selected_day.value if self.selected_day else None,
            "is_outside_window": self.is_outside_window,
            "custom_day": self.custom_day,
            "justification": self.justification,
        }


@dataclass
class PaymentDetails:
    """Method-specific fields; which ones matter depends on the payment method."""
    bank_name: str = ""
    agency: str = ""
    account: str = ""
    barcode: str = ""
    slip_file: str = ""
    beneficiary_name: str = ""
    account_number: str = ""
    swift_code: str = ""
    iban: str = ""
    routing_number: str = ""
    bank_address: str = ""

    @classmethod
    def field_names(cls) -> List[str]:
        return [f.name for f in fields(cls)]

    def clear(self) -> None:
        for name in self.field_names():
            setattr(self, name, "")

    def missing_for(self, code: PaymentMethodCode) -> List[str]:
        """Names of required fields still blank for the given method."""
        if code == PaymentMethodCode.BANK_TRANSFER:
            required = ["bank_name", "agency", "account"]
        elif code == PaymentMethodCode.BANK_SLIP:
            return []
        else:
            required = ["beneficiary_name", "account_number"]
        return [name for name in required if not getattr(self, name).strip()]

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


@dataclass
class IntakeFields:
    subtype: OrderSubtype = OrderSubtype.PRODUCT
    beneficiary_id: Optional[str] = None
    currency_id: Optional[str] = None
    total_value: Decimal = ZERO
    expense_nature_id: Optional[str] = None
    has_gross_up: bool = False
    ic_approved: bool = False
    supplier_id: Optional[str] = None
    payment_method_id: Optional[str] = None
    frequency: Optional[PaymentFrequency] = None
    installments: int = 1
    description: str = ""
    functional_approver_id: Optional[str] = None
    senior_approver_id: Optional[str] = None
    lead_partner_id: Optional[str] = None
    special_justification: str = ""

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["subtype"] = self.subtype.value
        data["total_value"] = str(self.total_value)
        data["frequency"] = self.frequency.value if self.frequency else None
        return data


@dataclass
class Notice:
    """Transient message queued for the host to show once."""
    level: str
    code: str
    message: str
    details: Dict[str, Any] = field(default_factory=dict)


class IntakeGraphState(TypedDict, total=False):
    """State carried through one recompute pass."""

    # Inputs
    total_value: Decimal
    is_domestic: bool

    # Component results
    allocation: Dict[str, Any]
    approval: ApprovalRequirement
    contract: Dict[str, Any]
    payment_date: Optional[ResolvedPaymentDate]

    # Gating
    sections: List[SectionState]
    submit_enabled: bool
    submit_blockers: List[SubmitBlocker]
