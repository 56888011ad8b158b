"""
Rules package.

Exposes
-------
AllocationLedger     : allocation rows, totals and balance checks
resolve_payment_date : requested payment day -> concrete calendar date
resolve_approvers    : required approver lists for the selected cost centers
ContractGate         : contract requirement and request/cancel lifecycle
ReferenceDataStore   : in-memory reference data (suppliers, matrix, approvers...)
"""

from .allocation_ledger import AllocationLedger, AllocationRow            # noqa: F401
from .approval_resolver import ApprovalRequirement, ApproverInfo, resolve_approvers  # noqa: F401
from .contract_gate import ContractGate, ContractState                    # noqa: F401
from .installment_plan import InstallmentLine, build_installment_plan     # noqa: F401
from .payment_date_resolver import (                                      # noqa: F401
    ResolvedPaymentDate,
    last_business_day,
    resolve_payment_date,
)
from .reference_data import ReferenceDataPort, ReferenceDataStore        # noqa: F401

__all__: list[str] = [
    "AllocationLedger",
    "AllocationRow",
    "ApprovalRequirement",
    "ApproverInfo",
    "resolve_approvers",
    "ContractGate",
    "ContractState",
    "InstallmentLine",
    "build_installment_plan",
    "ResolvedPaymentDate",
    "last_business_day",
    "resolve_payment_date",
    "ReferenceDataPort",
    "ReferenceDataStore",
]
