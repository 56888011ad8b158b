"""Binding-contract requirement and the request/cancel lifecycle around it."""
import logging
from dataclasses import asdict, dataclass
from datetime import date
from typing import Any, Dict, List, Optional

from rules.enums import ContractGateState, ContractMode, OrderSubtype
from rules.reference_data import ContractDocument, ContractRequest, ReferenceDataPort, Supplier

logger = logging.getLogger(__name__)


@dataclass
class ContractState:
    mode: ContractMode = ContractMode.NONE
    selected_contract_id: Optional[str] = None
    pending_request_id: Optional[str] = None
    cancellation_requested: bool = False
    local_request_submitted: bool = False
    external_request_cancelled: bool = False
    request_notes: str = ""

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["mode"] = self.mode.value
        return data


class ContractGate:
    """Tracks whether a contract must be attached to the order and how it is met.

    A contract is required when the supplier demands one and the order is a
    service. An open request already on file for the supplier blocks new
    selections and requests until its cancellation is accepted.
    """

    def __init__(self, reference: ReferenceDataPort, today: date):
        self.reference = reference
        self.today = today
        self.supplier: Optional[Supplier] = None
        self.subtype: OrderSubtype = OrderSubtype.PRODUCT
        self._state = ContractState()

    @property
    def state(self) -> ContractState:
        return self._state

    # Events

    def on_supplier_changed(self, supplier: Optional[Supplier]) -> None:
        """Any supplier change discards the previous contract state."""
        self.supplier = supplier
        self._state = ContractState()
        pending = self.external_pending_request()
        if pending is not None:
            self._state.mode = ContractMode.REQUEST
            self._state.pending_request_id = pending.id
            logger.info(f"Supplier {supplier.id} already has open contract request {pending.id}")

    def set_subtype(self, subtype: OrderSubtype) -> None:
        self.subtype = subtype

    def restore(self, state: ContractState) -> None:
        self._state = state

    # Queries

    @property
    def requirement_active(self) -> bool:
        return bool(
            self.supplier is not None
            and self.supplier.requires_contract
            and self.subtype == OrderSubtype.SERVICE
        )

    def all_contracts(self) -> List[ContractDocument]:
        if self.supplier is None:
            return []
        return self.reference.contract_documents(self.supplier.id)

    def valid_contracts(self) -> List[ContractDocument]:
        return [c for c in self.all_contracts() if c.is_within_validity(self.today)]

    @property
    def has_only_expired_contracts(self) -> bool:
        contracts = self.all_contracts()
        return bool(contracts) and not self.valid_contracts()

    def external_pending_request(self) -> Optional[ContractRequest]:
        if self.supplier is None or self._state.external_request_cancelled:
            return None
        for request in self.reference.contract_requests(self.supplier.id):
            if request.status.is_open:
                return request
        return None

    @property
    def is_blocked(self) -> bool:
        return self.external_pending_request() is not None

    @property
    def can_cancel(self) -> bool:
        if self._state.cancellation_requested:
            return False
        return self.is_blocked or self._state.local_request_submitted

    @property
    def gate_state(self) -> ContractGateState:
        if not self.requirement_active:
            return ContractGateState.NO_REQUIREMENT
        if self._state.cancellation_requested:
            return ContractGateState.CANCELLATION_REQUESTED
        if self.is_blocked:
            return ContractGateState.REQUEST_PENDING
        if self._state.local_request_submitted:
            return ContractGateState.REQUEST_SUBMITTED_LOCALLY
        if self._state.mode == ContractMode.SELECT and self._state.selected_contract_id:
            return ContractGateState.CONTRACT_SELECTED
        return ContractGateState.REQUIREMENT_UNMET

    @property
    def is_satisfied(self) -> bool:
        return self.gate_state in (
            ContractGateState.NO_REQUIREMENT,
            ContractGateState.CONTRACT_SELECTED,
            ContractGateState.REQUEST_PENDING,
            ContractGateState.REQUEST_SUBMITTED_LOCALLY,
        )

    # Actions

    def select_contract(self, contract_id: str) -> bool:
        if self.is_blocked:
            logger.warning(f"Contract selection refused: open request {self._state.pending_request_id} on file")
            return False
        if contract_id not in {c.id for c in self.valid_contracts()}:
            logger.warning(f"Contract {contract_id} is not a valid contract for the supplier")
            return False
        self._state.mode = ContractMode.SELECT
        self._state.selected_contract_id = contract_id
        self._state.local_request_submitted = False
        self._state.request_notes = ""
        logger.debug(f"Contract {contract_id} selected")
        return True

    def clear_selection(self) -> None:
        if self._state.mode == ContractMode.SELECT:
            self._state.mode = ContractMode.NONE
        self._state.selected_contract_id = None

    def submit_request(self, notes: str = "") -> bool:
        if self.supplier is None:
            logger.warning("Contract request refused: no supplier selected")
            return False
        if self.is_blocked:
            logger.warning(f"Contract request refused: request {self._state.pending_request_id} already open")
            return False
        if self._state.local_request_submitted:
            logger.warning("Contract request refused: a request was already submitted in this session")
            return False
        self._state.mode = ContractMode.REQUEST
        self._state.selected_contract_id = None
        self._state.local_request_submitted = True
        self._state.request_notes = notes
        logger.info(f"Contract request submitted for supplier {self.supplier.id}")
        return True

    def request_cancellation(self) -> bool:
        """Cancel the open request.

        A request submitted in this session is withdrawn at once; a request on
        file needs the cancellation to be accepted first.
        """
        if not self.can_cancel:
            logger.warning("Contract request cancellation refused: nothing to cancel")
            return False
        if not self.is_blocked:
            self._state.local_request_submitted = False
            self._state.request_notes = ""
            self._state.mode = ContractMode.NONE
            logger.info("Contract request submitted in this session withdrawn")
            return True
        self._state.cancellation_requested = True
        logger.info(f"Cancellation requested for contract request {self._state.pending_request_id}")
        return True

    def accept_cancellation(self) -> bool:
        if not self._state.cancellation_requested:
            logger.warning("No contract request cancellation is pending")
            return False
        cancelled = self._state.pending_request_id
        self._state.cancellation_requested = False
        self._state.external_request_cancelled = True
        self._state.pending_request_id = None
        self._state.mode = ContractMode.NONE
        logger.info(f"Contract request {cancelled} cancelled")
        return True

    def summary(self) -> Dict[str, Any]:
        return {
            "state": self.gate_state.value,
            "requirement_active": self.requirement_active,
            "is_satisfied": self.is_satisfied,
            "is_blocked": self.is_blocked,
            "can_cancel": self.can_cancel,
            "has_only_expired_contracts": self.has_only_expired_contracts,
            **self._state.to_dict(),
        }
