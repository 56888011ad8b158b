"""Derive the approvers an order needs from its allocation cost centers."""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from rules.enums import ApproverLevel
from rules.reference_data import ReferenceDataPort

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApproverInfo:
    user_id: str
    name: str
    email: str
    function: str
    level: ApproverLevel


@dataclass(frozen=True)
class ApprovalRequirement:
    functional_approvers: Tuple[ApproverInfo, ...] = ()
    senior_approvers: Tuple[ApproverInfo, ...] = ()
    senior_required: bool = False

    @property
    def functional_ids(self) -> List[str]:
        return [a.user_id for a in self.functional_approvers]

    @property
    def senior_ids(self) -> List[str]:
        return [a.user_id for a in self.senior_approvers]

    def is_satisfied(self, functional_choice: Optional[str], senior_choice: Optional[str]) -> bool:
        """Every non-empty required list must have one of its members chosen."""
        if self.functional_approvers and functional_choice not in self.functional_ids:
            return False
        if self.senior_required and self.senior_approvers and senior_choice not in self.senior_ids:
            return False
        return True


def resolve_approvers(
    cost_center_ids: Iterable[str],
    total_value: Decimal,
    reference: ReferenceDataPort,
    senior_threshold: Decimal,
) -> ApprovalRequirement:
    """Collect functional and senior approvers across all selected cost centers."""
    cost_center_ids = list(dict.fromkeys(cost_center_ids))
    if not cost_center_ids:
        return ApprovalRequirement()

    found: Dict[ApproverLevel, Dict[str, ApproverInfo]] = {
        ApproverLevel.FUNCTIONAL: {},
        ApproverLevel.SENIOR: {},
    }
    for cost_center_id in cost_center_ids:
        for assignment in reference.approver_assignments(cost_center_id):
            if not assignment.is_active:
                continue
            bucket = found[assignment.level]
            if assignment.approver_id in bucket:
                continue
            user = reference.get_user(assignment.approver_id)
            if user is None:
                logger.warning(f"Approver {assignment.approver_id} for cost center {cost_center_id} not found")
                continue
            bucket[user.id] = ApproverInfo(
                user_id=user.id,
                name=user.name,
                email=user.email,
                function=user.function,
                level=assignment.level,
            )

    requirement = ApprovalRequirement(
        functional_approvers=tuple(found[ApproverLevel.FUNCTIONAL].values()),
        senior_approvers=tuple(found[ApproverLevel.SENIOR].values()),
        senior_required=total_value > senior_threshold,
    )
    logger.debug(
        f"Approvers for {cost_center_ids}: {len(requirement.functional_approvers)} functional, "
        f"{len(requirement.senior_approvers)} senior, senior_required={requirement.senior_required}"
    )
    return requirement
