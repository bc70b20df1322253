"""
Kernel Invariants Contract.

These invariants are structural law for the component lifecycle. No
workshop configuration may switch them off.

This module exists solely to declare these invariants explicitly. The
enforcement is distributed across the pure domain rules
(``domain/lifecycle``, ``domain/inspection``, ``domain/fabrication``,
``domain/installation``), the persistence adapters, and the SQL models.
"""

from enum import Enum, unique


@unique
class KernelInvariant(str, Enum):
    """Non-configurable invariants enforced by the kernel.

    Each value names one structural guarantee that the kernel provides
    unconditionally.
    """

    SINGLE_TRANSITION_TABLE = "single_transition_table"
    """Status changes only happen along an edge of LIFECYCLE_TRANSITIONS.
    Enforced by domain.lifecycle.apply_transition."""

    QA_STAGE_DERIVED = "qa_stage_derived"
    """current_qa_stage is defined exactly while status is qa-N and equals
    N. Enforced by deriving it from the status (domain.component)."""

    STAGE_GATING = "stage_gating"
    """Stage N+1 is entered only after stage N's record is completed with
    every checklist item checked. Enforced by domain.inspection and the
    complete-stage guard."""

    SINGLE_OPEN_REQUEST = "single_open_request"
    """At most one non-terminal fabrication request per component.
    Enforced by InspectionService.request_fabrication."""

    SINGLE_OPEN_INSTALL = "single_open_install"
    """At most one open install record per component. Enforced by
    LedgerService.install."""

    EXACT_LIFETIME = "exact_lifetime"
    """lifetime = hm_end - hm_start with integer arithmetic, added to the
    component exactly once. Enforced by domain.installation.close_record."""

    OPTIMISTIC_VERSION = "optimistic_version"
    """A component save succeeds only against the version it was loaded
    at. Enforced by every persistence adapter."""

    APPEND_ONLY_TIMELINE = "append_only_timeline"
    """Timeline events are never updated or deleted. Enforced by the
    adapters (append only) and ORM listeners (models.timeline)."""


# All invariants as a frozenset for programmatic checks.
ALL_KERNEL_INVARIANTS: frozenset[KernelInvariant] = frozenset(KernelInvariant)

# The kernel package may not import from these packages.
# This is enforced by tests/architecture/test_kernel_boundary.py.
FORBIDDEN_KERNEL_IMPORTS: tuple[str, ...] = (
    "rotable_config",
)
