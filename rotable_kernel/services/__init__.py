"""Services for the rotable kernel (write side)."""

from rotable_kernel.services.approval_service import ApprovalService
from rotable_kernel.services.inspection_service import InspectionService
from rotable_kernel.services.ledger_service import LedgerService
from rotable_kernel.services.lifecycle_kernel import LifecycleKernel
from rotable_kernel.services.transition_service import TransitionService

__all__ = [
    "ApprovalService",
    "InspectionService",
    "LedgerService",
    "LifecycleKernel",
    "TransitionService",
]
