from datetime import date

import pytest

from rules.contract_gate import ContractGate
from rules.enums import ContractGateState, ContractMode, OrderSubtype

TODAY = date(2024, 1, 20)


@pytest.fixture
def gate(reference):
    gate = ContractGate(reference, TODAY)
    gate.set_subtype(OrderSubtype.SERVICE)
    return gate


def with_supplier(gate, reference, supplier_id):
    gate.on_supplier_changed(reference.get_supplier(supplier_id))
    return gate


class TestRequirement:

    def test_service_with_contract_supplier(self, gate, reference):
        with_supplier(gate, reference, "sup-001")
        assert gate.requirement_active is True
        assert gate.gate_state == ContractGateState.REQUIREMENT_UNMET
        assert gate.is_satisfied is False

    def test_product_order_has_no_requirement(self, gate, reference):
        with_supplier(gate, reference, "sup-001")
        gate.set_subtype(OrderSubtype.PRODUCT)
        assert gate.gate_state == ContractGateState.NO_REQUIREMENT
        assert gate.is_satisfied is True

    def test_supplier_without_contract_flag(self, gate, reference):
        with_supplier(gate, reference, "sup-002")
        assert gate.requirement_active is False

    def test_valid_contracts_exclude_expired(self, gate, reference):
        with_supplier(gate, reference, "sup-001")
        assert [c.id for c in gate.valid_contracts()] == ["ct-001"]
        assert gate.has_only_expired_contracts is False

    def test_only_expired_contracts_advisory(self, gate, reference):
        with_supplier(gate, reference, "sup-005")
        assert gate.has_only_expired_contracts is True

    def test_contract_without_validity_window(self, gate, reference):
        with_supplier(gate, reference, "sup-003")
        assert [c.id for c in gate.valid_contracts()] == ["ct-004"]


class TestSelectionAndRequest:

    def test_select_valid_contract(self, gate, reference):
        with_supplier(gate, reference, "sup-001")
        assert gate.select_contract("ct-001") is True
        assert gate.state.mode == ContractMode.SELECT
        assert gate.gate_state == ContractGateState.CONTRACT_SELECTED
        assert gate.is_satisfied is True

    def test_expired_contract_refused(self, gate, reference):
        with_supplier(gate, reference, "sup-001")
        assert gate.select_contract("ct-002") is False
        assert gate.state.selected_contract_id is None

    def test_clear_selection(self, gate, reference):
        with_supplier(gate, reference, "sup-001")
        gate.select_contract("ct-001")
        gate.clear_selection()
        assert gate.state.mode == ContractMode.NONE
        assert gate.is_satisfied is False

    def test_local_request(self, gate, reference):
        with_supplier(gate, reference, "sup-001")
        assert gate.submit_request("MSA needed") is True
        assert gate.gate_state == ContractGateState.REQUEST_SUBMITTED_LOCALLY
        assert gate.is_satisfied is True
        assert gate.submit_request("again") is False

    def test_local_request_can_be_withdrawn(self, gate, reference):
        with_supplier(gate, reference, "sup-005")
        assert gate.can_cancel is False
        gate.submit_request("need one")
        assert gate.can_cancel is True

        assert gate.request_cancellation() is True
        assert gate.gate_state == ContractGateState.REQUIREMENT_UNMET
        assert gate.state.mode == ContractMode.NONE
        assert gate.state.local_request_submitted is False
        assert gate.can_cancel is False
        assert gate.submit_request("second try") is True

    def test_request_and_selection_are_exclusive(self, gate, reference):
        with_supplier(gate, reference, "sup-001")
        gate.select_contract("ct-001")
        gate.submit_request()
        assert gate.state.mode == ContractMode.REQUEST
        assert gate.state.selected_contract_id is None

    def test_finalized_request_does_not_block(self, gate, reference):
        with_supplier(gate, reference, "sup-001")
        assert gate.is_blocked is False

    def test_request_needs_supplier(self, gate):
        assert gate.submit_request() is False


class TestExternalPendingRequest:

    @pytest.mark.parametrize("supplier_id", ["sup-004", "sup-006"])
    def test_open_request_blocks_and_satisfies(self, gate, reference, supplier_id):
        with_supplier(gate, reference, supplier_id)
        assert gate.is_blocked is True
        assert gate.gate_state == ContractGateState.REQUEST_PENDING
        assert gate.state.mode == ContractMode.REQUEST
        assert gate.is_satisfied is True
        assert gate.can_cancel is True
        assert gate.submit_request() is False

    def test_cancellation_lifecycle(self, gate, reference):
        with_supplier(gate, reference, "sup-004")
        assert gate.state.pending_request_id == "req-001"

        assert gate.request_cancellation() is True
        assert gate.gate_state == ContractGateState.CANCELLATION_REQUESTED
        assert gate.is_satisfied is False
        assert gate.can_cancel is False
        assert gate.request_cancellation() is False

        assert gate.accept_cancellation() is True
        assert gate.gate_state == ContractGateState.REQUIREMENT_UNMET
        assert gate.is_blocked is False
        assert gate.submit_request() is True

    def test_accept_without_request(self, gate, reference):
        with_supplier(gate, reference, "sup-004")
        assert gate.accept_cancellation() is False


class TestSupplierChange:

    def test_changing_supplier_resets_state(self, gate, reference):
        with_supplier(gate, reference, "sup-001")
        gate.select_contract("ct-001")
        with_supplier(gate, reference, "sup-005")
        assert gate.state.mode == ContractMode.NONE
        assert gate.state.selected_contract_id is None
        assert gate.gate_state == ContractGateState.REQUIREMENT_UNMET

    def test_reselecting_same_supplier_also_resets(self, gate, reference):
        with_supplier(gate, reference, "sup-004")
        gate.request_cancellation()
        gate.accept_cancellation()
        with_supplier(gate, reference, "sup-004")
        assert gate.is_blocked is True
        assert gate.state.external_request_cancelled is False

    def test_summary_shape(self, gate, reference):
        with_supplier(gate, reference, "sup-001")
        summary = gate.summary()
        assert summary["state"] == "requirement-unmet"
        assert summary["mode"] == "none"
        assert summary["requirement_active"] is True
