"""
Typed Exception Hierarchy for the Rotable Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Every lifecycle rule violation has its own class, a machine-readable
``code`` class attribute, and structured attributes.  Callers branch on the
type (or the code), never on the message text.

Inside the kernel, rules RAISE these exceptions.  The service layer
catches ``RotableKernelError`` at its public boundary and hands it back
inside a ``Result`` (see ``rotable_kernel.domain.result``), so callers of
``LifecycleKernel`` never see an exception for an expected domain condition.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    RotableKernelError (base)
    |
    +-- TransitionError
    |   +-- InvalidTransitionError
    |
    +-- InspectionError
    |   +-- StageOutOfOrderError
    |   +-- ChecklistIncompleteError
    |   +-- UnknownStageError
    |
    +-- FabricationError
    |   +-- AlreadyHasOpenRequestError
    |   +-- ApprovalAlreadyResolvedError
    |   +-- UnauthorizedApproverError
    |
    +-- LedgerError
    |   +-- ComponentNotRFUError
    |   +-- AlreadyInstalledError
    |   +-- AlreadyRemovedError
    |   +-- InvalidHourMeterError
    |
    +-- ConcurrencyError
    |   +-- ConcurrentModificationError
    |
    +-- PersistenceError
    |   +-- PersistenceTimeoutError
    |   +-- NotFoundError
    |   +-- DuplicateComponentError
    |   +-- PartialCommitError
    |
    +-- ImmutabilityViolationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                        | When Raised
-------------|-----------------------------|----------------------------------------
Transition   | INVALID_TRANSITION          | No edge for (status, event) or guard failed
-------------|-----------------------------|----------------------------------------
Inspection   | STAGE_OUT_OF_ORDER          | Stage != component's current QA stage
             | CHECKLIST_INCOMPLETE        | Unchecked or missing checklist item
             | UNKNOWN_STAGE               | Stage number outside 1..7
-------------|-----------------------------|----------------------------------------
Fabrication  | ALREADY_HAS_OPEN_REQUEST    | Component already has an open request
             | APPROVAL_ALREADY_RESOLVED   | Request is planner-approved or rejected
             | UNAUTHORIZED_APPROVER       | Role does not own the current step
-------------|-----------------------------|----------------------------------------
Ledger       | COMPONENT_NOT_RFU           | Install on a component that is not RFU
             | ALREADY_INSTALLED           | Component has an open install record
             | ALREADY_REMOVED             | Install record already closed
             | INVALID_HOUR_METER          | hm_end < hm_start, or negative reading
-------------|-----------------------------|----------------------------------------
Concurrency  | CONCURRENT_MODIFICATION     | Component version changed under us
-------------|-----------------------------|----------------------------------------
Persistence  | PERSISTENCE_TIMEOUT         | Port call exceeded its time budget
             | NOT_FOUND                   | Entity id unknown to the store
             | DUPLICATE_COMPONENT         | Receiving a component id twice
             | PARTIAL_COMMIT              | Status saved, follow-up record write failed
-------------|-----------------------------|----------------------------------------
Immutability | IMMUTABILITY_VIOLATION      | UPDATE/DELETE on a timeline event

===============================================================================
HANDLING PATTERNS
===============================================================================

1. BRANCH ON THE RESULT, NOT ON MESSAGES:

    result = kernel.install("CMP-2024-001", "EX-2200-017", 12500, today)
    if not result.is_ok:
        if isinstance(result.error, ComponentNotRFUError):
            show_form_error(f"{result.error.component_id} is {result.error.status}")

2. CONCURRENCY IS THE CALLER'S RETRY DECISION:

    if isinstance(result.error, ConcurrentModificationError):
        reload_and_ask_user()   # the kernel never retries

===============================================================================
"""


class RotableKernelError(Exception):
    """
    Base exception for all rotable kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "ROTABLE_KERNEL_ERROR"


# Transition-related exceptions


class TransitionError(RotableKernelError):
    """Base exception for lifecycle transition errors."""

    code: str = "TRANSITION_ERROR"


class InvalidTransitionError(TransitionError):
    """No legal edge exists for the attempted event from the current state."""

    code: str = "INVALID_TRANSITION"

    def __init__(
        self,
        component_id: str,
        current_status: str,
        event: str,
        target_status: str | None = None,
        reason: str = "",
    ):
        self.component_id = component_id
        self.current_status = current_status
        self.event = event
        self.target_status = target_status
        self.reason = reason
        detail = f": {reason}" if reason else ""
        super().__init__(
            f"Invalid transition for {component_id}: "
            f"'{event}' not allowed from '{current_status}'{detail}"
        )


# Inspection-related exceptions


class InspectionError(RotableKernelError):
    """Base exception for QA inspection errors."""

    code: str = "INSPECTION_ERROR"


class StageOutOfOrderError(InspectionError):
    """Attempted to complete a stage other than the component's current one."""

    code: str = "STAGE_OUT_OF_ORDER"

    def __init__(self, component_id: str, stage: int, current_stage: int | None):
        self.component_id = component_id
        self.stage = stage
        self.current_stage = current_stage
        super().__init__(
            f"Stage QA-{stage} is out of order for {component_id}: "
            f"current stage is {f'QA-{current_stage}' if current_stage else 'none'}"
        )


class ChecklistIncompleteError(InspectionError):
    """One or more checklist items are unchecked or missing."""

    code: str = "CHECKLIST_INCOMPLETE"

    def __init__(self, component_id: str, stage: int, unchecked: tuple[str, ...]):
        self.component_id = component_id
        self.stage = stage
        self.unchecked = unchecked
        super().__init__(
            f"QA-{stage} checklist incomplete for {component_id}: "
            f"{len(unchecked)} item(s) not checked ({', '.join(unchecked)})"
        )


class UnknownStageError(InspectionError):
    """Stage number is not one of the seven QA stages."""

    code: str = "UNKNOWN_STAGE"

    def __init__(self, stage: int):
        self.stage = stage
        super().__init__(f"Unknown QA stage: {stage}")


# Fabrication-related exceptions


class FabricationError(RotableKernelError):
    """Base exception for fabrication request and approval errors."""

    code: str = "FABRICATION_ERROR"


class AlreadyHasOpenRequestError(FabricationError):
    """Component already has a pending or GL-approved fabrication request."""

    code: str = "ALREADY_HAS_OPEN_REQUEST"

    def __init__(self, component_id: str, request_id: str):
        self.component_id = component_id
        self.request_id = request_id
        super().__init__(
            f"Component {component_id} already has open fabrication request {request_id}"
        )


class ApprovalAlreadyResolvedError(FabricationError):
    """Fabrication request is in a terminal status."""

    code: str = "APPROVAL_ALREADY_RESOLVED"

    def __init__(self, request_id: str, status: str):
        self.request_id = request_id
        self.status = status
        super().__init__(
            f"Fabrication request {request_id} is already resolved (status={status})"
        )


class UnauthorizedApproverError(FabricationError):
    """The approver's role does not own the request's current approval step."""

    code: str = "UNAUTHORIZED_APPROVER"

    def __init__(self, request_id: str, approver: str, role: str, status: str):
        self.request_id = request_id
        self.approver = approver
        self.role = role
        self.status = status
        super().__init__(
            f"{approver} ({role}) cannot decide fabrication request "
            f"{request_id} in status {status}"
        )


# Ledger-related exceptions


class LedgerError(RotableKernelError):
    """Base exception for installation cycle ledger errors."""

    code: str = "LEDGER_ERROR"


class ComponentNotRFUError(LedgerError):
    """Install attempted on a component that is not Ready For Use."""

    code: str = "COMPONENT_NOT_RFU"

    def __init__(self, component_id: str, status: str):
        self.component_id = component_id
        self.status = status
        super().__init__(
            f"Component {component_id} is not RFU (status={status})"
        )


class AlreadyInstalledError(LedgerError):
    """Component already has an open install record."""

    code: str = "ALREADY_INSTALLED"

    def __init__(self, component_id: str, install_record_id: str, unit_id: str):
        self.component_id = component_id
        self.install_record_id = install_record_id
        self.unit_id = unit_id
        super().__init__(
            f"Component {component_id} is already installed on {unit_id} "
            f"(record {install_record_id})"
        )


class AlreadyRemovedError(LedgerError):
    """Install record has already been closed by a removal."""

    code: str = "ALREADY_REMOVED"

    def __init__(self, install_record_id: str, remove_date: str):
        self.install_record_id = install_record_id
        self.remove_date = remove_date
        super().__init__(
            f"Install record {install_record_id} was already removed on {remove_date}"
        )


class InvalidHourMeterError(LedgerError):
    """Hour meter reading is negative or runs backwards."""

    code: str = "INVALID_HOUR_METER"

    def __init__(self, hm_start: int | None, hm_end: int | None, reason: str):
        self.hm_start = hm_start
        self.hm_end = hm_end
        self.reason = reason
        super().__init__(f"Invalid hour meter (start={hm_start}, end={hm_end}): {reason}")


# Concurrency-related exceptions


class ConcurrencyError(RotableKernelError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class ConcurrentModificationError(ConcurrencyError):
    """Optimistic version check failed: the component changed since it was loaded."""

    code: str = "CONCURRENT_MODIFICATION"

    def __init__(self, entity_type: str, entity_id: str, expected_version: int):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.expected_version = expected_version
        super().__init__(
            f"Concurrent modification on {entity_type} {entity_id}: "
            f"expected version {expected_version}"
        )


# Persistence-related exceptions


class PersistenceError(RotableKernelError):
    """Base exception for errors surfaced by the persistence port."""

    code: str = "PERSISTENCE_ERROR"


class PersistenceTimeoutError(PersistenceError):
    """A persistence port call did not finish within its time budget."""

    code: str = "PERSISTENCE_TIMEOUT"

    def __init__(self, operation: str, timeout_seconds: float):
        self.operation = operation
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"Persistence call '{operation}' timed out after {timeout_seconds}s"
        )


class NotFoundError(PersistenceError):
    """Entity with the given id does not exist in the store."""

    code: str = "NOT_FOUND"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} not found: {entity_id}")


class DuplicateComponentError(PersistenceError):
    """A component with this id has already been received."""

    code: str = "DUPLICATE_COMPONENT"

    def __init__(self, component_id: str):
        self.component_id = component_id
        super().__init__(f"Component already exists: {component_id}")


class PartialCommitError(PersistenceError):
    """The component status was saved but a write that belongs with it failed.

    ``status`` and ``version`` describe what is now stored.  ``missing``
    names the record that may be absent; when the cause was a timeout the
    write can still land later.  The original error is chained as
    ``__cause__``.
    """

    code: str = "PARTIAL_COMMIT"

    def __init__(self, component_id: str, status: str, version: int, missing: str):
        self.component_id = component_id
        self.status = status
        self.version = version
        self.missing = missing
        super().__init__(
            f"Component {component_id} was saved as {status} (version {version}) "
            f"but the {missing} was not confirmed written"
        )


# Immutability-related exceptions


class ImmutabilityViolationError(RotableKernelError):
    """Attempted to modify or delete an append-only record."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Cannot modify immutable {entity_type} {entity_id}: {reason}"
        )
