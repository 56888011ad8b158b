"""Shared fixtures: reference data, a fixed session clock and workflow factories."""
from datetime import datetime
from decimal import Decimal

import pytest

from config import EngineConfig
from rules.reference_data import ReferenceDataStore
from workflows.intake_workflow import IntakeWorkflow
from workflows.submission import InMemorySubmissionService

OPENED_AT = datetime(2024, 1, 20, 9, 30)

REFERENCE_DATA = {
    "beneficiaries": [
        {"id": "ben-fund", "kind": "FUNDO_GP", "name": "Fundo IV / GP"},
        {"id": "ben-portco", "kind": "PORTCO", "name": "PortCo Alpha"},
    ],
    "expense_natures": [
        {"id": "nat-deal", "kind": "deal_expense"},
        {"id": "nat-ongoing", "kind": "ongoing"},
    ],
    "currencies": [
        {"id": "cur-brl", "code": "BRL", "is_domestic": True},
        {"id": "cur-usd", "code": "USD", "is_domestic": False},
        {"id": "cur-eur", "code": "EUR", "is_domestic": False},
    ],
    "suppliers": [
        {"id": "sup-001", "legal_name": "Consultoria Alfa", "requires_contract": True, "is_approved": True},
        {"id": "sup-002", "legal_name": "Grafica Beta", "requires_contract": False, "is_approved": False},
        {"id": "sup-003", "legal_name": "Global Advisors", "requires_contract": True, "is_approved": True,
         "scope": "INTERNATIONAL"},
        {"id": "sup-004", "legal_name": "Auditoria Gama", "requires_contract": True, "is_approved": True},
        {"id": "sup-005", "legal_name": "Juridico Delta", "requires_contract": True, "is_approved": True},
        {"id": "sup-006", "legal_name": "Engenharia Epsilon", "requires_contract": True, "is_approved": True},
    ],
    "cost_centers": [
        {"id": "cc-100", "code": "100"},
        {"id": "cc-200", "code": "200"},
        {"id": "cc-300", "code": "300"},
        {"id": "cc-900", "code": "900", "is_active": False},
    ],
    "gl_accounts": [
        {"id": "gl-410", "code": "4.1.0"},
        {"id": "gl-420", "code": "4.2.0"},
    ],
    "companies": [
        {"id": "co-01", "code": "GP01"},
        {"id": "co-02", "code": "FD04"},
    ],
    "accounting_matrix": [
        {"cost_center_id": "cc-100", "gl_account_id": "gl-410", "is_domestic": True,
         "company_id": "co-01", "balance": 200000},
        {"cost_center_id": "cc-100", "gl_account_id": "gl-420", "is_domestic": True,
         "company_id": "co-01", "balance": 50000},
        {"cost_center_id": "cc-200", "gl_account_id": "gl-410", "is_domestic": True,
         "company_id": "co-02", "balance": 150000},
        {"cost_center_id": "cc-900", "gl_account_id": "gl-410", "is_domestic": True,
         "company_id": "co-02", "balance": 999999},
        {"cost_center_id": "cc-100", "gl_account_id": "gl-410", "is_domestic": False,
         "company_id": "co-01", "balance": 30000},
        {"cost_center_id": "cc-300", "gl_account_id": "gl-410", "is_domestic": False,
         "company_id": "co-02", "balance": 80000},
        {"cost_center_id": "cc-300", "gl_account_id": "gl-420", "is_domestic": False,
         "company_id": "co-02", "balance": 80000, "is_active": False},
    ],
    "payment_methods": [
        {"id": "pm-ted", "code": "TRANSFERENCIA"},
        {"id": "pm-boleto", "code": "BOLETO"},
        {"id": "pm-usa", "code": "TRANSFER_USA"},
        {"id": "pm-non-usa", "code": "TRANSFER_NON_USA_SUPPLIER"},
        {"id": "pm-conta-ordem", "code": "TRANSFER_CONTA_E_ORDEM", "is_active": False},
    ],
    "approver_assignments": [
        {"cost_center_id": "cc-100", "approver_id": "u-ana", "level": "functional"},
        {"cost_center_id": "cc-100", "approver_id": "u-bruno", "level": "senior"},
        {"cost_center_id": "cc-200", "approver_id": "u-carla", "level": "functional"},
        {"cost_center_id": "cc-200", "approver_id": "u-bruno", "level": "senior"},
        {"cost_center_id": "cc-200", "approver_id": "u-ghost", "level": "functional"},
        {"cost_center_id": "cc-200", "approver_id": "u-dora", "level": "functional", "is_active": False},
        {"cost_center_id": "cc-300", "approver_id": "u-ana", "level": "functional"},
    ],
    "users": [
        {"id": "u-ana", "name": "Ana Souza", "email": "ana@example.com", "function": "Finance Manager"},
        {"id": "u-bruno", "name": "Bruno Lima", "email": "bruno@example.com", "function": "Partner"},
        {"id": "u-carla", "name": "Carla Dias", "email": "carla@example.com", "function": "Operations"},
        {"id": "u-dora", "name": "Dora Reis", "email": "dora@example.com", "function": "Operations"},
    ],
    "contract_documents": [
        {"id": "ct-001", "supplier_id": "sup-001", "valid_from": "2023-01-01", "valid_until": "2025-12-31"},
        {"id": "ct-002", "supplier_id": "sup-001", "valid_from": "2020-01-01", "valid_until": "2022-12-31"},
        {"id": "ct-003", "supplier_id": "sup-005", "valid_from": "2020-01-01", "valid_until": "2023-06-30"},
        {"id": "ct-004", "supplier_id": "sup-003", "has_validity": False},
    ],
    "contract_requests": [
        {"id": "req-001", "code": "CR-0007", "supplier_id": "sup-004", "status": "pending"},
        {"id": "req-002", "code": "CR-0008", "supplier_id": "sup-006", "status": "in-progress"},
        {"id": "req-003", "code": "CR-0001", "supplier_id": "sup-001", "status": "finalized"},
    ],
}


def fill_ready_order(workflow: IntakeWorkflow) -> IntakeWorkflow:
    """Drive a session to a submittable service order worth 150,000.00."""
    workflow.set_subtype("service")
    workflow.set_beneficiary("ben-fund")
    workflow.set_currency("cur-brl")
    workflow.set_total_value("150000")
    workflow.set_expense_nature("nat-deal")

    workflow.select_cost_center(0, "cc-100")
    workflow.select_gl_account(0, "gl-410")
    workflow.set_allocation_amount(0, "100000")
    workflow.append_allocation_row()
    workflow.select_cost_center(1, "cc-200")
    workflow.select_gl_account(1, "gl-410")
    workflow.set_allocation_amount(1, "50000")

    workflow.select_supplier("sup-001")
    workflow.select_contract("ct-001")

    workflow.set_payment_method("pm-ted")
    workflow.set_payment_detail("bank_name", "Banco do Brasil")
    workflow.set_payment_detail("agency", "1234")
    workflow.set_payment_detail("account", "56789-0")
    workflow.select_payment_day(15)
    workflow.set_frequency("single")
    workflow.set_description("Due diligence advisory services")

    workflow.choose_functional_approver("u-ana")
    workflow.choose_senior_approver("u-bruno")
    return workflow


@pytest.fixture
def reference():
    return ReferenceDataStore.from_dict(REFERENCE_DATA)


@pytest.fixture
def config():
    return EngineConfig(
        min_days_advance=10,
        senior_approver_threshold=Decimal("100000"),
        min_description_length=10,
        recurring_installments=18,
        default_currency_id="",
    )


@pytest.fixture
def submission():
    return InMemorySubmissionService()


@pytest.fixture
def make_workflow(reference, config, submission):
    def _make(**kwargs):
        kwargs.setdefault("submission", submission)
        kwargs.setdefault("config", config)
        kwargs.setdefault("opened_at", OPENED_AT)
        return IntakeWorkflow(reference, **kwargs)
    return _make


@pytest.fixture
def workflow(make_workflow):
    return make_workflow()


@pytest.fixture
def ready_workflow(make_workflow):
    return fill_ready_order(make_workflow())
