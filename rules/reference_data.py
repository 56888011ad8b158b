"""Read-only reference data consumed by the intake rules.

The engine never talks to a backing store directly. Everything it needs
(suppliers, the payer accounting matrix, approver assignments, contracts...)
comes through ``ReferenceDataPort``. ``ReferenceDataStore`` is the in-memory
implementation used by the demo app and the tests; it can be built from a dict
or from a JSON file with the same shape::

    {
      "currencies": [{"id": "cur-001", "code": "BRL", "is_domestic": true}],
      "accounting_matrix": [{"cost_center_id": "cc-001", "gl_account_id": "gl-001",
                             "is_domestic": true, "company_id": "co-001",
                             "balance": 50000}],
      ...
    }
"""
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Protocol

from rules.enums import (
    ApproverLevel,
    BeneficiaryKind,
    ContractRequestStatus,
    ExpenseNatureKind,
    PaymentMethodCode,
    Scope,
)
from utils.helpers import DataManager, to_decimal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Beneficiary:
    id: str
    kind: BeneficiaryKind
    name: str = ""

    @property
    def requires_special_approval(self) -> bool:
        return self.kind == BeneficiaryKind.PORTCO


@dataclass(frozen=True)
class ExpenseNature:
    id: str
    kind: ExpenseNatureKind
    name: str = ""


@dataclass(frozen=True)
class Currency:
    id: str
    code: str
    is_domestic: bool
    name: str = ""
    prefix: str = ""


@dataclass(frozen=True)
class Supplier:
    id: str
    legal_name: str
    requires_contract: bool = False
    is_approved: bool = False
    scope: Scope = Scope.NATIONAL
    tax_id: str = ""
    trade_name: str = ""


@dataclass(frozen=True)
class CostCenter:
    id: str
    code: str = ""
    name: str = ""
    is_active: bool = True


@dataclass(frozen=True)
class GLAccount:
    id: str
    code: str = ""
    name: str = ""
    is_active: bool = True


@dataclass(frozen=True)
class Company:
    id: str
    code: str = ""
    name: str = ""
    is_active: bool = True


@dataclass(frozen=True)
class MatrixEntry:
    """One cost center x GL account x scope cell of the payer accounting matrix."""
    cost_center_id: str
    gl_account_id: str
    is_domestic: bool
    company_id: str
    balance: Decimal
    is_active: bool = True


@dataclass(frozen=True)
class PaymentMethod:
    id: str
    code: PaymentMethodCode
    is_active: bool = True

    @property
    def scope(self) -> Scope:
        return self.code.scope


@dataclass(frozen=True)
class ApproverAssignment:
    cost_center_id: str
    approver_id: str
    level: ApproverLevel
    is_active: bool = True


@dataclass(frozen=True)
class User:
    id: str
    name: str
    email: str = ""
    function: str = ""


@dataclass(frozen=True)
class ContractDocument:
    id: str
    supplier_id: str
    file_name: str = ""
    valid_from: Optional[date] = None
    valid_until: Optional[date] = None
    has_validity: bool = True
    is_active: bool = True

    def is_within_validity(self, on: date) -> bool:
        """A contract is selectable only while inside its validity window."""
        if not self.is_active:
            return False
        if not self.has_validity:
            return True
        if self.valid_from is None and self.valid_until is None:
            return False
        if self.valid_until is not None and self.valid_until < on:
            return False
        if self.valid_from is not None and self.valid_from > on:
            return False
        return True


@dataclass(frozen=True)
class ContractRequest:
    id: str
    supplier_id: str
    status: ContractRequestStatus
    code: str = ""


class ReferenceDataPort(Protocol):
    """Read-only lookups the engine depends on."""

    def get_beneficiary(self, beneficiary_id: str) -> Optional[Beneficiary]: ...

    def get_expense_nature(self, expense_nature_id: str) -> Optional[ExpenseNature]: ...

    def get_currency(self, currency_id: str) -> Optional[Currency]: ...

    def get_company(self, company_id: str) -> Optional[Company]: ...

    def get_supplier(self, supplier_id: str) -> Optional[Supplier]: ...

    def get_user(self, user_id: str) -> Optional[User]: ...

    def get_payment_method(self, payment_method_id: str) -> Optional[PaymentMethod]: ...

    def list_payment_methods(self) -> List[PaymentMethod]: ...

    def list_cost_centers(self) -> List[CostCenter]: ...

    def list_gl_accounts(self) -> List[GLAccount]: ...

    def list_matrix_entries(self) -> List[MatrixEntry]: ...

    def approver_assignments(self, cost_center_id: str) -> List[ApproverAssignment]: ...

    def contract_documents(self, supplier_id: str) -> List[ContractDocument]: ...

    def contract_requests(self, supplier_id: str) -> List[ContractRequest]: ...


def _parse_date(value: Any) -> Optional[date]:
    if not value:
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _by_id(items: List[Any]) -> Dict[str, Any]:
    return {item.id: item for item in items}


class ReferenceDataStore:
    """In-memory ReferenceDataPort implementation."""

    def __init__(
        self,
        beneficiaries: Optional[List[Beneficiary]] = None,
        expense_natures: Optional[List[ExpenseNature]] = None,
        currencies: Optional[List[Currency]] = None,
        suppliers: Optional[List[Supplier]] = None,
        cost_centers: Optional[List[CostCenter]] = None,
        gl_accounts: Optional[List[GLAccount]] = None,
        companies: Optional[List[Company]] = None,
        matrix: Optional[List[MatrixEntry]] = None,
        payment_methods: Optional[List[PaymentMethod]] = None,
        approver_assignments: Optional[List[ApproverAssignment]] = None,
        users: Optional[List[User]] = None,
        contract_documents: Optional[List[ContractDocument]] = None,
        contract_requests: Optional[List[ContractRequest]] = None,
    ):
        self._beneficiaries = _by_id(beneficiaries or [])
        self._expense_natures = _by_id(expense_natures or [])
        self._currencies = _by_id(currencies or [])
        self._suppliers = _by_id(suppliers or [])
        self._cost_centers = list(cost_centers or [])
        self._gl_accounts = list(gl_accounts or [])
        self._companies = _by_id(companies or [])
        self._matrix = list(matrix or [])
        self._payment_methods = list(payment_methods or [])
        self._assignments = list(approver_assignments or [])
        self._users = _by_id(users or [])
        self._contract_documents = list(contract_documents or [])
        self._contract_requests = list(contract_requests or [])

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReferenceDataStore":
        """Build a store from plain JSON-style records."""
        store = cls(
            beneficiaries=[
                Beneficiary(id=b["id"], kind=BeneficiaryKind(b["kind"]), name=b.get("name", ""))
                for b in data.get("beneficiaries", [])
            ],
            expense_natures=[
                ExpenseNature(id=e["id"], kind=ExpenseNatureKind(e["kind"]), name=e.get("name", ""))
                for e in data.get("expense_natures", [])
            ],
            currencies=[
                Currency(
                    id=c["id"],
                    code=c.get("code", ""),
                    is_domestic=bool(c.get("is_domestic", False)),
                    name=c.get("name", ""),
                    prefix=c.get("prefix", ""),
                )
                for c in data.get("currencies", [])
            ],
            suppliers=[
                Supplier(
                    id=s["id"],
                    legal_name=s.get("legal_name", ""),
                    requires_contract=bool(s.get("requires_contract", False)),
                    is_approved=bool(s.get("is_approved", False)),
                    scope=Scope(s.get("scope", Scope.NATIONAL.value)),
                    tax_id=s.get("tax_id", ""),
                    trade_name=s.get("trade_name") or "",
                )
                for s in data.get("suppliers", [])
            ],
            cost_centers=[
                CostCenter(id=c["id"], code=c.get("code", ""), name=c.get("name", ""),
                           is_active=c.get("is_active", True))
                for c in data.get("cost_centers", [])
            ],
            gl_accounts=[
                GLAccount(id=g["id"], code=g.get("code", ""), name=g.get("name", ""),
                          is_active=g.get("is_active", True))
                for g in data.get("gl_accounts", [])
            ],
            companies=[
                Company(id=c["id"], code=c.get("code", ""), name=c.get("name", ""),
                        is_active=c.get("is_active", True))
                for c in data.get("companies", [])
            ],
            matrix=[
                MatrixEntry(
                    cost_center_id=m["cost_center_id"],
                    gl_account_id=m["gl_account_id"],
                    is_domestic=bool(m.get("is_domestic", True)),
                    company_id=m["company_id"],
                    balance=to_decimal(m.get("balance", 0)),
                    is_active=m.get("is_active", True),
                )
                for m in data.get("accounting_matrix", [])
            ],
            payment_methods=[
                PaymentMethod(id=p["id"], code=PaymentMethodCode(p["code"]),
                              is_active=p.get("is_active", True))
                for p in data.get("payment_methods", [])
            ],
            approver_assignments=[
                ApproverAssignment(
                    cost_center_id=a["cost_center_id"],
                    approver_id=a["approver_id"],
                    level=ApproverLevel(a["level"]),
                    is_active=a.get("is_active", True),
                )
                for a in data.get("approver_assignments", [])
            ],
            users=[
                User(id=u["id"], name=u.get("name", ""), email=u.get("email", ""),
                     function=u.get("function", ""))
                for u in data.get("users", [])
            ],
            contract_documents=[
                ContractDocument(
                    id=d["id"],
                    supplier_id=d["supplier_id"],
                    file_name=d.get("file_name", ""),
                    valid_from=_parse_date(d.get("valid_from")),
                    valid_until=_parse_date(d.get("valid_until")),
                    has_validity=d.get("has_validity", True),
                    is_active=d.get("is_active", True),
                )
                for d in data.get("contract_documents", [])
            ],
            contract_requests=[
                ContractRequest(
                    id=r["id"],
                    supplier_id=r["supplier_id"],
                    status=ContractRequestStatus(r["status"]),
                    code=r.get("code", ""),
                )
                for r in data.get("contract_requests", [])
            ],
        )
        logger.info(
            f"Reference data loaded: {len(store._suppliers)} suppliers, "
            f"{len(store._matrix)} matrix entries, {len(store._assignments)} approver assignments"
        )
        return store

    @classmethod
    def from_json(cls, file_path: str) -> "ReferenceDataStore":
        """Load a store from a JSON file; a missing file yields an empty store."""
        return cls.from_dict(DataManager.load_json_data(file_path))

    def get_beneficiary(self, beneficiary_id: str) -> Optional[Beneficiary]:
        return self._beneficiaries.get(beneficiary_id)

    def get_expense_nature(self, expense_nature_id: str) -> Optional[ExpenseNature]:
        return self._expense_natures.get(expense_nature_id)

    def get_currency(self, currency_id: str) -> Optional[Currency]:
        return self._currencies.get(currency_id)

    def get_supplier(self, supplier_id: str) -> Optional[Supplier]:
        return self._suppliers.get(supplier_id)

    def get_company(self, company_id: str) -> Optional[Company]:
        return self._companies.get(company_id)

    def get_user(self, user_id: str) -> Optional[User]:
        return self._users.get(user_id)

    def get_payment_method(self, payment_method_id: str) -> Optional[PaymentMethod]:
        for method in self._payment_methods:
            if method.id == payment_method_id:
                return method
        return None

    def list_payment_methods(self) -> List[PaymentMethod]:
        return list(self._payment_methods)

    def list_cost_centers(self) -> List[CostCenter]:
        return list(self._cost_centers)

    def list_gl_accounts(self) -> List[GLAccount]:
        return list(self._gl_accounts)

    def list_matrix_entries(self) -> List[MatrixEntry]:
        return list(self._matrix)

    def approver_assignments(self, cost_center_id: str) -> List[ApproverAssignment]:
        return [a for a in self._assignments if a.cost_center_id == cost_center_id]

    def contract_documents(self, supplier_id: str) -> List[ContractDocument]:
        return [d for d in self._contract_documents if d.supplier_id == supplier_id]

    def contract_requests(self, supplier_id: str) -> List[ContractRequest]:
        return [r for r in self._contract_requests if r.supplier_id == supplier_id]
