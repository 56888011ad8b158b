"""
Workflow package.

Exposes
-------
IntakeWorkflow            : one PO intake session (recompute graph + submit)
SectionGateEngine         : per-section validity / reached / visibility
InMemorySubmissionService : submission collaborator kept in memory
"""

from .intake_workflow import IntakeWorkflow                        # noqa: F401
from .section_gate import SectionGateEngine, SectionState           # noqa: F401
from .submission import InMemorySubmissionService, SubmissionService  # noqa: F401

__all__: list[str] = [
    "IntakeWorkflow",
    "SectionGateEngine",
    "SectionState",
    "InMemorySubmissionService",
    "SubmissionService",
]
