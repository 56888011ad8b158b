"""PO intake session built on a LangGraph recompute pass.

Every mutator edits the raw field state and then runs the compiled graph once:

    allocate -> resolve_approvers -> check_contract -> resolve_payment_date
        -> evaluate_sections -> gate_submit

Each node reads the session's components and returns a partial state update.
The final graph state is kept as the session view that the query properties
read from. Submission and draft save are the only async calls.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from langgraph.graph import END, StateGraph

from config import EngineConfig, engine_config
from rules.allocation_ledger import AllocationLedger, AllocationRow
from rules.approval_resolver import ApprovalRequirement, resolve_approvers
from rules.contract_gate import ContractGate
from rules.enums import (
    ContractMode,
    ExpenseNatureKind,
    OrderSubtype,
    PaymentFrequency,
    Scope,
    Section,
    SubmitBlocker,
    parse_payment_day,
)
from rules.installment_plan import InstallmentLine, build_installment_plan
from rules.payment_date_resolver import ResolvedPaymentDate, resolve_payment_date
from rules.reference_data import (
    CostCenter,
    ContractDocument,
    GLAccount,
    PaymentMethod,
    ReferenceDataPort,
    Supplier,
)
from utils.helpers import format_currency, generate_intake_id, money, to_decimal
from workflows.intake_state import (
    IntakeFields,
    IntakeGraphState,
    Notice,
    PaymentDetails,
    PaymentSelection,
)
from workflows.section_gate import (
    SectionGateEngine,
    SectionInputs,
    SectionState,
    compute_emptiness,
    compute_local_validity,
)
from workflows.submission import InMemorySubmissionService, SubmissionService

logger = logging.getLogger(__name__)


class IntakeWorkflow:
    """One purchase-order intake session."""

    def __init__(
        self,
        reference: ReferenceDataPort,
        submission: Optional[SubmissionService] = None,
        config: Optional[EngineConfig] = None,
        opened_at: Optional[datetime] = None,
        all_reached: bool = False,
    ):
        self.reference = reference
        self.submission = submission or InMemorySubmissionService()
        self.config = config or engine_config
        self.opened_at = opened_at or datetime.now()
        self.session_id = generate_intake_id()
        self.is_submitted = False

        self.fields = IntakeFields(currency_id=self.config.default_currency_id or None)
        self.payment = PaymentSelection()
        self.details = PaymentDetails()
        self.ledger = AllocationLedger(reference)
        self.contract = ContractGate(reference, self.opened_at.date())
        self.gate = SectionGateEngine(all_reached=all_reached)

        self._notices: List[Notice] = []
        self._view: IntakeGraphState = {}
        self._graph = None
        self._build_workflow()
        self._recompute()
        self._baseline = self._fingerprint()
        logger.info(f"Intake session {self.session_id} opened at {self.opened_at.isoformat()}")

    # ------------------------------------------------------------------
    # Recompute graph
    # ------------------------------------------------------------------

    def _build_workflow(self):
        """Build the LangGraph recompute pass."""
        workflow = StateGraph(IntakeGraphState)

        workflow.add_node("allocate", self._allocation_node)
        workflow.add_node("resolve_approvers", self._approval_node)
        workflow.add_node("check_contract", self._contract_node)
        workflow.add_node("resolve_payment_date", self._payment_date_node)
        workflow.add_node("evaluate_sections", self._sections_node)
        workflow.add_node("gate_submit", self._submit_gate_node)

        workflow.set_entry_point("allocate")
        workflow.add_edge("allocate", "resolve_approvers")
        workflow.add_edge("resolve_approvers", "check_contract")
        workflow.add_edge("check_contract", "resolve_payment_date")
        workflow.add_edge("resolve_payment_date", "evaluate_sections")
        workflow.add_edge("evaluate_sections", "gate_submit")
        workflow.add_edge("gate_submit", END)

        self._graph = workflow.compile()
        logger.debug("Intake recompute graph built")

    def _recompute(self) -> None:
        self._view = self._graph.invoke({
            "total_value": self.fields.total_value,
            "is_domestic": self.is_domestic,
        })

    def _allocation_node(self, state: IntakeGraphState) -> Dict[str, Any]:
        target = state["total_value"]
        return {"allocation": {
            "total_allocated": self.ledger.total_allocated,
            "is_overflow": self.ledger.is_overflow(target),
            "is_balanced": self.ledger.is_balanced(target),
            "balance_exceeded": self.ledger.balance_exceeded_flags,
            "has_balance_exceeded": self.ledger.has_balance_exceeded,
            "has_duplicate_pairs": self.ledger.has_duplicate_pairs,
            "all_rows_complete": self.ledger.all_rows_complete,
            "cost_center_ids": self.ledger.distinct_cost_center_ids(),
        }}

    def _approval_node(self, state: IntakeGraphState) -> Dict[str, Any]:
        requirement = resolve_approvers(
            state["allocation"]["cost_center_ids"],
            state["total_value"],
            self.reference,
            self.config.senior_approver_threshold,
        )
        # Choices that left the resolved lists are dropped
        if self.fields.functional_approver_id and self.fields.functional_approver_id not in requirement.functional_ids:
            logger.debug(f"Functional approver {self.fields.functional_approver_id} no longer eligible")
            self.fields.functional_approver_id = None
        if self.fields.senior_approver_id and self.fields.senior_approver_id not in requirement.senior_ids:
            logger.debug(f"Senior approver {self.fields.senior_approver_id} no longer eligible")
            self.fields.senior_approver_id = None
        return {"approval": requirement}

    def _contract_node(self, state: IntakeGraphState) -> Dict[str, Any]:
        return {"contract": self.contract.summary()}

    def _payment_date_node(self, state: IntakeGraphState) -> Dict[str, Any]:
        return {"payment_date": resolve_payment_date(
            self.opened_at,
            self.payment.selected_day,
            self.config.min_days_advance,
            is_outside_window=self.payment.is_outside_window,
            is_domestic=state["is_domestic"],
        )}

    def _sections_node(self, state: IntakeGraphState) -> Dict[str, Any]:
        allocation = state["allocation"]
        inputs = SectionInputs(
            beneficiary_set=bool(self.fields.beneficiary_id),
            currency_set=bool(self.fields.currency_id),
            expense_nature_set=bool(self.fields.expense_nature_id),
            total_value=state["total_value"],
            total_allocated=allocation["total_allocated"],
            allocation_balanced=allocation["is_balanced"],
            supplier_set=bool(self.fields.supplier_id),
            contract_satisfied=state["contract"]["is_satisfied"],
            payment_method_set=bool(self.fields.payment_method_id),
            standard_day_chosen=self.payment.selected_day is not None and not self.payment.is_outside_window,
            is_outside_window=self.payment.is_outside_window,
            custom_day_set=self.payment.custom_day is not None,
            justification_set=bool(self.payment.justification.strip()),
            frequency=self.fields.frequency,
            installments=self.fields.installments,
        )
        sections = self.gate.evaluate(compute_local_validity(inputs), compute_emptiness(inputs))
        return {"sections": sections}

    def _submit_gate_node(self, state: IntakeGraphState) -> Dict[str, Any]:
        sections = state["sections"]
        allocation = state["allocation"]
        approval: ApprovalRequirement = state["approval"]
        blockers: List[SubmitBlocker] = []

        for section_state in sections:
            if section_state.section != Section.DESCRIPTION and not section_state.valid:
                blockers.append(SubmitBlocker.for_invalid_section(section_state.section))
        if not sections[Section.DESCRIPTION - 1].visible:
            blockers.append(SubmitBlocker.DESCRIPTION_NOT_VISIBLE)
        if len(self.fields.description.strip()) < self.config.min_description_length:
            blockers.append(SubmitBlocker.DESCRIPTION_TOO_SHORT)
        if not allocation["all_rows_complete"]:
            blockers.append(SubmitBlocker.ALLOCATION_INCOMPLETE)
        if allocation["has_balance_exceeded"]:
            blockers.append(SubmitBlocker.BALANCE_EXCEEDED)
        if allocation["is_overflow"]:
            blockers.append(SubmitBlocker.ALLOCATION_OVERFLOW)
        if self.supplier_blocks_service_order:
            blockers.append(SubmitBlocker.SUPPLIER_NOT_APPROVED)
        method = self.payment_method
        if method is not None and self.details.missing_for(method.code):
            blockers.append(SubmitBlocker.PAYMENT_DETAILS_INCOMPLETE)
        if approval.functional_approvers and self.fields.functional_approver_id not in approval.functional_ids:
            blockers.append(SubmitBlocker.FUNCTIONAL_APPROVER_MISSING)
        if (approval.senior_required and approval.senior_approvers
                and self.fields.senior_approver_id not in approval.senior_ids):
            blockers.append(SubmitBlocker.SENIOR_APPROVER_MISSING)

        return {"submit_enabled": not blockers, "submit_blockers": blockers}

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    @property
    def is_domestic(self) -> bool:
        """Scope of the order currency; domestic until a currency says otherwise."""
        if not self.fields.currency_id:
            return True
        currency = self.reference.get_currency(self.fields.currency_id)
        return currency.is_domestic if currency else True

    @property
    def scope(self) -> Scope:
        return Scope.for_domestic(self.is_domestic)

    @property
    def supplier(self) -> Optional[Supplier]:
        if not self.fields.supplier_id:
            return None
        return self.reference.get_supplier(self.fields.supplier_id)

    @property
    def payment_method(self) -> Optional[PaymentMethod]:
        if not self.fields.payment_method_id:
            return None
        return self.reference.get_payment_method(self.fields.payment_method_id)

    @property
    def supplier_blocks_service_order(self) -> bool:
        supplier = self.supplier
        return (
            self.fields.subtype == OrderSubtype.SERVICE
            and supplier is not None
            and not supplier.is_approved
        )

    @property
    def special_approval_required(self) -> bool:
        if not self.fields.beneficiary_id:
            return False
        beneficiary = self.reference.get_beneficiary(self.fields.beneficiary_id)
        return beneficiary is not None and beneficiary.requires_special_approval

    def _notify(self, level: str, code: str, message: str, **details: Any) -> None:
        self._notices.append(Notice(level=level, code=code, message=message, details=details))

    def _warn_if_supplier_blocks(self) -> None:
        if self.supplier_blocks_service_order:
            self._notify(
                "warning",
                "supplier-not-approved",
                "Supplier is not approved for service orders",
                supplier_id=self.fields.supplier_id,
            )

    # ------------------------------------------------------------------
    # Section 1: order basics
    # ------------------------------------------------------------------

    def set_subtype(self, subtype: Any) -> None:
        self.fields.subtype = OrderSubtype(subtype)
        if self.fields.subtype != OrderSubtype.SERVICE and self.fields.has_gross_up:
            self.fields.has_gross_up = False
        self.contract.set_subtype(self.fields.subtype)
        self._warn_if_supplier_blocks()
        logger.debug(f"Subtype set to {self.fields.subtype.value}")
        self._recompute()

    def set_beneficiary(self, beneficiary_id: Optional[str]) -> bool:
        if beneficiary_id and self.reference.get_beneficiary(beneficiary_id) is None:
            logger.warning(f"Unknown beneficiary {beneficiary_id}")
            return False
        self.fields.beneficiary_id = beneficiary_id or None
        if not self.special_approval_required:
            self.fields.lead_partner_id = None
            self.fields.special_justification = ""
        self._recompute()
        return True

    def set_currency(self, currency_id: Optional[str]) -> bool:
        if currency_id and self.reference.get_currency(currency_id) is None:
            logger.warning(f"Unknown currency {currency_id}")
            return False
        was_domestic = self.is_domestic
        self.fields.currency_id = currency_id or None
        if self.is_domestic != was_domestic:
            self._on_scope_changed()
        self._recompute()
        return True

    def _on_scope_changed(self) -> None:
        scope = self.scope
        logger.info(f"Currency scope changed to {scope.value}")
        method = self.payment_method
        if method is not None and method.scope != scope:
            self.fields.payment_method_id = None
            self.details.clear()
            self._notify(
                "info",
                "payment-method-cleared",
                "Payment method cleared because it is not available for the new currency",
                payment_method=method.code.value,
            )
        if self.payment.selected_day is not None:
            if parse_payment_day(self.payment.selected_day, self.is_domestic) is None:
                self.payment.selected_day = None
        self.ledger.rederive_all(self.is_domestic, self.fields.total_value)

    def set_total_value(self, value: Any) -> bool:
        try:
            amount = money(to_decimal(value))
        except ValueError as e:
            logger.warning(f"Refusing order value: {e}")
            return False
        if amount < 0:
            logger.warning(f"Refusing negative order value {amount}")
            return False
        self.fields.total_value = amount
        self.ledger.recompute_percentages(amount)
        self._recompute()
        return True

    def set_expense_nature(self, expense_nature_id: Optional[str]) -> bool:
        nature = self.reference.get_expense_nature(expense_nature_id) if expense_nature_id else None
        if expense_nature_id and nature is None:
            logger.warning(f"Unknown expense nature {expense_nature_id}")
            return False
        self.fields.expense_nature_id = expense_nature_id or None
        if nature is None or nature.kind != ExpenseNatureKind.DEAL_EXPENSE:
            self.fields.ic_approved = False
        self._recompute()
        return True

    def set_gross_up(self, enabled: bool) -> bool:
        if enabled and self.fields.subtype != OrderSubtype.SERVICE:
            logger.warning("Gross-up is only available for service orders")
            return False
        self.fields.has_gross_up = bool(enabled)
        self._recompute()
        return True

    def set_ic_approved(self, approved: bool) -> bool:
        nature = (self.reference.get_expense_nature(self.fields.expense_nature_id)
                  if self.fields.expense_nature_id else None)
        if approved and (nature is None or nature.kind != ExpenseNatureKind.DEAL_EXPENSE):
            logger.warning("IC approval only applies to deal expenses")
            return False
        self.fields.ic_approved = bool(approved)
        self._recompute()
        return True

    # ------------------------------------------------------------------
    # Section 2: allocation
    # ------------------------------------------------------------------

    def append_allocation_row(self) -> int:
        index = self.ledger.append_row()
        self._recompute()
        return index

    def remove_allocation_row(self, index: int) -> bool:
        removed = self.ledger.remove_row(index, self.fields.total_value)
        self._recompute()
        return removed

    def clear_allocation_row(self, index: int) -> None:
        self.ledger.clear_row(index, self.fields.total_value)
        self._recompute()

    def select_cost_center(self, index: int, cost_center_id: Optional[str]) -> bool:
        changed = self.ledger.select_cost_center(index, cost_center_id, self.is_domestic, self.fields.total_value)
        self._recompute()
        return changed

    def select_gl_account(self, index: int, gl_account_id: Optional[str]) -> bool:
        changed = self.ledger.select_gl_account(index, gl_account_id, self.is_domestic, self.fields.total_value)
        self._recompute()
        return changed

    def set_allocation_amount(self, index: int, amount: Any) -> bool:
        """Returns True when the amount is above the row's available balance."""
        exceeded = self.ledger.set_amount(index, amount, self.fields.total_value)
        if exceeded:
            row = self.ledger.row(index)
            self._notify(
                "error",
                "amount-exceeds-balance",
                "Amount exceeds the available balance for this cost center",
                row=index,
                amount=str(row.amount),
                balance=str(row.balance),
            )
        self._recompute()
        return exceeded

    def candidate_cost_centers(self, index: int) -> List[CostCenter]:
        return self.ledger.candidate_cost_centers(index, self.is_domestic)

    def candidate_gl_accounts(self, index: int) -> List[GLAccount]:
        return self.ledger.candidate_gl_accounts(index, self.is_domestic)

    # ------------------------------------------------------------------
    # Section 3: supplier and contract
    # ------------------------------------------------------------------

    def select_supplier(self, supplier_id: Optional[str]) -> bool:
        supplier = self.reference.get_supplier(supplier_id) if supplier_id else None
        if supplier_id and supplier is None:
            logger.warning(f"Unknown supplier {supplier_id}")
            return False
        self.fields.supplier_id = supplier_id or None
        self.contract.set_subtype(self.fields.subtype)
        self.contract.on_supplier_changed(supplier)
        self._warn_if_supplier_blocks()
        self._recompute()
        return True

    def valid_contracts(self) -> List[ContractDocument]:
        return self.contract.valid_contracts()

    def select_contract(self, contract_id: str) -> bool:
        selected = self.contract.select_contract(contract_id)
        self._recompute()
        return selected

    def clear_contract_selection(self) -> None:
        self.contract.clear_selection()
        self._recompute()

    def submit_contract_request(self, notes: str = "") -> bool:
        submitted = self.contract.submit_request(notes)
        if submitted:
            self._notify("success", "contract-request-submitted", "Contract request submitted",
                         supplier_id=self.fields.supplier_id)
        self._recompute()
        return submitted

    def request_contract_cancellation(self) -> bool:
        withdrawing = not self.contract.is_blocked
        requested = self.contract.request_cancellation()
        if requested and withdrawing:
            self._notify("info", "contract-request-withdrawn", "Contract request withdrawn",
                         supplier_id=self.fields.supplier_id)
        elif requested:
            self._notify("info", "contract-cancellation-requested", "Cancellation of the contract request was requested",
                         request_id=self.contract.state.pending_request_id)
        self._recompute()
        return requested

    def accept_contract_cancellation(self) -> bool:
        accepted = self.contract.accept_cancellation()
        if accepted:
            self._notify("success", "contract-cancellation-accepted", "Contract request cancelled")
        self._recompute()
        return accepted

    # ------------------------------------------------------------------
    # Sections 4-6: payment
    # ------------------------------------------------------------------

    def available_payment_methods(self) -> List[PaymentMethod]:
        scope = self.scope
        return [m for m in self.reference.list_payment_methods() if m.is_active and m.scope == scope]

    def set_payment_method(self, payment_method_id: Optional[str]) -> bool:
        if payment_method_id and payment_method_id not in {m.id for m in self.available_payment_methods()}:
            logger.warning(f"Payment method {payment_method_id} is not available for {self.scope.value} orders")
            return False
        if payment_method_id != self.fields.payment_method_id:
            self.details.clear()
        self.fields.payment_method_id = payment_method_id or None
        self._recompute()
        return True

    def set_payment_detail(self, name: str, value: Optional[str]) -> None:
        if name not in PaymentDetails.field_names():
            raise ValueError(f"Unknown payment detail field: {name}")
        setattr(self.details, name, (value or "").strip())
        self._recompute()

    def select_payment_day(self, day: Any) -> bool:
        if day is None or day == "":
            self.payment.selected_day = None
            self._recompute()
            return True
        parsed = parse_payment_day(day, self.is_domestic)
        if parsed is None:
            logger.warning(f"Payment day {day!r} is not a standard day for {self.scope.value} orders")
            return False
        self.payment = PaymentSelection(selected_day=parsed)
        self._recompute()
        resolved = self.payment_date_info
        if resolved is not None and resolved.is_adjusted:
            self._notify(
                "info",
                "payment-date-adjusted",
                f"Payment date moved to {resolved.date.isoformat()} to respect the "
                f"{self.config.min_days_advance}-day minimum advance",
                requested_date=resolved.requested_date.isoformat(),
                resolved_date=resolved.date.isoformat(),
                min_days_advance=self.config.min_days_advance,
            )
        return True

    def set_outside_window(self, enabled: bool) -> None:
        self.payment = PaymentSelection(is_outside_window=bool(enabled))
        self._recompute()

    def set_custom_payment_day(self, day: Optional[int]) -> bool:
        if not self.payment.is_outside_window:
            logger.warning("Custom payment day requires out-of-window mode")
            return False
        if day is None or day == "":
            self.payment.custom_day = None
            self._recompute()
            return True
        try:
            custom_day = int(day)
        except (TypeError, ValueError):
            logger.warning(f"Custom payment day {day!r} is not a number")
            return False
        if not 1 <= custom_day <= 31:
            logger.warning(f"Custom payment day {day} is not a calendar day")
            return False
        self.payment.custom_day = custom_day
        self._recompute()
        return True

    def set_payment_justification(self, text: str) -> bool:
        if not self.payment.is_outside_window:
            logger.warning("Payment justification requires out-of-window mode")
            return False
        self.payment.justification = text or ""
        self._recompute()
        return True

    def set_frequency(self, frequency: Any) -> None:
        self.fields.frequency = PaymentFrequency(frequency) if frequency else None
        if self.fields.frequency == PaymentFrequency.RECURRING:
            self.fields.installments = self.config.recurring_installments
        else:
            self.fields.installments = 1
        self._recompute()

    def set_installments(self, count: int) -> bool:
        if self.fields.frequency != PaymentFrequency.INSTALLMENTS:
            logger.warning("Installment count is only editable for installment payments")
            return False
        try:
            installments = int(count)
        except (TypeError, ValueError):
            logger.warning(f"Installment count {count!r} is not a number")
            return False
        if installments < 1:
            logger.warning(f"Refusing installment count {count}")
            return False
        self.fields.installments = installments
        self._recompute()
        return True

    def installment_plan(self) -> List[InstallmentLine]:
        resolved = self.payment_date_info
        if resolved is None or self.fields.frequency is None:
            return []
        return build_installment_plan(self.ledger.rows, self.fields.installments, resolved.date)

    # ------------------------------------------------------------------
    # Section 7 and approvers
    # ------------------------------------------------------------------

    def set_description(self, text: str) -> None:
        self.fields.description = text or ""
        self._recompute()

    def choose_functional_approver(self, user_id: Optional[str]) -> bool:
        if user_id and user_id not in self.approval_requirement.functional_ids:
            logger.warning(f"User {user_id} is not a functional approver for the selected cost centers")
            return False
        self.fields.functional_approver_id = user_id or None
        self._recompute()
        return True

    def choose_senior_approver(self, user_id: Optional[str]) -> bool:
        if user_id and user_id not in self.approval_requirement.senior_ids:
            logger.warning(f"User {user_id} is not a senior approver for the selected cost centers")
            return False
        self.fields.senior_approver_id = user_id or None
        self._recompute()
        return True

    def set_lead_partner(self, user_id: Optional[str]) -> bool:
        if not self.special_approval_required:
            logger.warning("Lead partner only applies to PortCo beneficiaries")
            return False
        self.fields.lead_partner_id = user_id or None
        self._recompute()
        return True

    def set_special_justification(self, text: str) -> bool:
        if not self.special_approval_required:
            logger.warning("Special approval justification only applies to PortCo beneficiaries")
            return False
        self.fields.special_justification = text or ""
        self._recompute()
        return True

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    @property
    def sections(self) -> List[SectionState]:
        return list(self._view["sections"])

    def section(self, section: Any) -> SectionState:
        return self._view["sections"][Section(section) - 1]

    @property
    def submit_enabled(self) -> bool:
        return bool(self._view["submit_enabled"])

    @property
    def submit_blockers(self) -> List[SubmitBlocker]:
        return list(self._view["submit_blockers"])

    @property
    def allocation_summary(self) -> Dict[str, Any]:
        return dict(self._view["allocation"])

    @property
    def approval_requirement(self) -> ApprovalRequirement:
        return self._view["approval"]

    @property
    def contract_summary(self) -> Dict[str, Any]:
        return dict(self._view["contract"])

    @property
    def payment_date_info(self) -> Optional[ResolvedPaymentDate]:
        return self._view.get("payment_date")

    @property
    def has_unsaved_changes(self) -> bool:
        return self._fingerprint() != self._baseline

    def drain_notices(self) -> List[Notice]:
        notices, self._notices = self._notices, []
        return notices

    def _fingerprint(self) -> Dict[str, Any]:
        return {
            "fields": self.fields.to_dict(),
            "payment": self.payment.to_dict(),
            "details": self.details.to_dict(),
            "rows": [(r.cost_center_id, r.gl_account_id, str(r.amount)) for r in self.ledger.rows],
            "contract": self.contract.state.to_dict(),
        }

    def snapshot(self) -> Dict[str, Any]:
        """Everything a host needs to render the form."""
        resolved = self.payment_date_info
        approval = self.approval_requirement
        return {
            "session_id": self.session_id,
            "sections": [s.to_dict() for s in self.sections],
            "allocation": {
                "rows": self.ledger.snapshot(),
                "total_allocated": str(self.ledger.total_allocated),
                "is_overflow": self._view["allocation"]["is_overflow"],
                "is_balanced": self._view["allocation"]["is_balanced"],
                "balance_exceeded": self._view["allocation"]["balance_exceeded"],
            },
            "payment_date": resolved.to_dict() if resolved else None,
            "approval": {
                "functional": approval.functional_ids,
                "senior": approval.senior_ids,
                "senior_required": approval.senior_required,
            },
            "contract": self.contract_summary,
            "special_approval_required": self.special_approval_required,
            "submit_enabled": self.submit_enabled,
            "submit_blockers": [b.value for b in self.submit_blockers],
            "has_unsaved_changes": self.has_unsaved_changes,
        }

    def _allocations_payload(self) -> List[Dict[str, Any]]:
        entries = self.ledger.snapshot()
        for entry in entries:
            company = self.reference.get_company(entry["company_id"]) if entry["company_id"] else None
            entry["company_code"] = company.code if company else None
        return entries

    def build_payload(self) -> Dict[str, Any]:
        resolved = self.payment_date_info
        method = self.payment_method
        return {
            "session_id": self.session_id,
            "opened_at": self.opened_at.isoformat(),
            "subtype": self.fields.subtype.value,
            "beneficiary_id": self.fields.beneficiary_id,
            "currency_id": self.fields.currency_id,
            "total_value": str(self.fields.total_value),
            "expense_nature_id": self.fields.expense_nature_id,
            "has_gross_up": self.fields.has_gross_up,
            "ic_approved": self.fields.ic_approved,
            "supplier_id": self.fields.supplier_id,
            "allocations": self._allocations_payload(),
            "contract": self.contract.state.to_dict(),
            "payment": {
                "method_id": self.fields.payment_method_id,
                "method_code": method.code.value if method else None,
                "details": self.details.to_dict(),
                **self.payment.to_dict(),
                "resolved_date": resolved.date.isoformat() if resolved else None,
                "frequency": self.fields.frequency.value if self.fields.frequency else None,
                "installments": self.fields.installments,
            },
            "description": self.fields.description,
            "approvers": {
                "functional": self.fields.functional_approver_id,
                "senior": self.fields.senior_approver_id,
                "senior_required": self.approval_requirement.senior_required,
            },
            "special_approval": {
                "required": self.special_approval_required,
                "lead_partner_id": self.fields.lead_partner_id,
                "justification": self.fields.special_justification,
            },
        }

    # ------------------------------------------------------------------
    # Async boundary
    # ------------------------------------------------------------------

    async def _call_collaborator(self, action, payload: Dict[str, Any], kind: str) -> Dict[str, Any]:
        try:
            result = await action(payload)
            if not isinstance(result, dict):
                return {"success": False, "message": f"Unexpected {kind} response: {result!r}"}
            return result
        except Exception as e:
            error_msg = f"{kind} failed: {str(e)}"
            logger.error(error_msg)
            return {"success": False, "message": error_msg}

    async def submit(self) -> Dict[str, Any]:
        """Hand the order to the submission service when the gate is open."""
        if not self.submit_enabled:
            blockers = [b.value for b in self.submit_blockers]
            logger.warning(f"Submit refused for {self.session_id}: {blockers}")
            return {"success": False, "message": "Order is not ready to submit", "blockers": blockers}

        logger.info(f"Submitting order {self.session_id} for {format_currency(self.fields.total_value, None)}")
        result = await self._call_collaborator(self.submission.submit, self.build_payload(), "Submission")
        if result.get("success"):
            self.is_submitted = True
            self._baseline = self._fingerprint()
            self._notify("success", "order-submitted", result.get("message", "Order submitted"),
                         order_id=result.get("order_id"))
            logger.info(f"Order {self.session_id} submitted as {result.get('order_id')}")
        else:
            self._notify("error", "order-submit-failed", result.get("message", "Submission failed"))
            logger.error(f"Order {self.session_id} submission failed: {result.get('message')}")
        return result

    async def save_draft(self) -> Dict[str, Any]:
        result = await self._call_collaborator(self.submission.save_draft, self.build_payload(), "Draft save")
        if result.get("success"):
            self._notify("success", "draft-saved", result.get("message", "Draft saved"),
                         order_id=result.get("order_id"))
            logger.info(f"Draft for {self.session_id} saved")
        else:
            self._notify("error", "draft-save-failed", result.get("message", "Draft save failed"))
            logger.error(f"Draft for {self.session_id} failed: {result.get('message')}")
        return result

    # ------------------------------------------------------------------
    # Seeding
    # ------------------------------------------------------------------

    @classmethod
    def from_existing(
        cls,
        reference: ReferenceDataPort,
        order_payload: Dict[str, Any],
        submission: Optional[SubmissionService] = None,
        config: Optional[EngineConfig] = None,
        opened_at: Optional[datetime] = None,
    ) -> "IntakeWorkflow":
        """Start a session pre-filled from a previous order's payload.

        Every section starts reached. Approver choices are not carried over.
        """
        workflow = cls(reference, submission=submission, config=config, opened_at=opened_at, all_reached=True)
        fields = workflow.fields
        payment = order_payload.get("payment") or {}

        fields.subtype = OrderSubtype(order_payload.get("subtype") or OrderSubtype.PRODUCT.value)
        fields.beneficiary_id = order_payload.get("beneficiary_id")
        fields.currency_id = order_payload.get("currency_id") or fields.currency_id
        fields.total_value = money(to_decimal(order_payload.get("total_value")))
        fields.expense_nature_id = order_payload.get("expense_nature_id")
        fields.has_gross_up = bool(order_payload.get("has_gross_up")) and fields.subtype == OrderSubtype.SERVICE
        fields.ic_approved = bool(order_payload.get("ic_approved"))
        fields.description = order_payload.get("description") or ""
        special = order_payload.get("special_approval") or {}
        fields.lead_partner_id = special.get("lead_partner_id")
        fields.special_justification = special.get("justification") or ""

        is_domestic = workflow.is_domestic
        rows = order_payload.get("allocations") or []
        ledger = AllocationLedger(reference, [AllocationRow() for _ in rows] or None)
        for index, row in enumerate(rows):
            ledger.select_cost_center(index, row.get("cost_center_id"), is_domestic)
            ledger.select_gl_account(index, row.get("gl_account_id"), is_domestic)
            ledger.set_amount(index, row.get("amount"), fields.total_value)
        workflow.ledger = ledger

        supplier_id = order_payload.get("supplier_id")
        supplier = reference.get_supplier(supplier_id) if supplier_id else None
        fields.supplier_id = supplier.id if supplier else None
        workflow.contract.set_subtype(fields.subtype)
        workflow.contract.on_supplier_changed(supplier)
        contract = order_payload.get("contract") or {}
        if contract.get("selected_contract_id"):
            workflow.contract.select_contract(contract["selected_contract_id"])
        elif contract.get("mode") == ContractMode.REQUEST.value and contract.get("local_request_submitted"):
            workflow.contract.submit_request(contract.get("request_notes") or "")

        method_id = payment.get("method_id")
        if method_id in {m.id for m in workflow.available_payment_methods()}:
            fields.payment_method_id = method_id
            for name, value in (payment.get("details") or {}).items():
                if name in PaymentDetails.field_names():
                    setattr(workflow.details, name, value or "")
        if payment.get("is_outside_window"):
            workflow.payment = PaymentSelection(
                is_outside_window=True,
                custom_day=payment.get("custom_day"),
                justification=payment.get("justification") or "",
            )
        else:
            workflow.payment = PaymentSelection(
                selected_day=parse_payment_day(payment.get("selected_day"), is_domestic),
            )
        if payment.get("frequency"):
            fields.frequency = PaymentFrequency(payment["frequency"])
            fields.installments = int(payment.get("installments") or 1)
            if fields.frequency == PaymentFrequency.RECURRING:
                fields.installments = workflow.config.recurring_installments

        workflow._recompute()
        workflow._notices.clear()
        workflow._baseline = workflow._fingerprint()
        logger.info(f"Intake session {workflow.session_id} seeded from existing order")
        return workflow
