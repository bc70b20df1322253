"""
BaseService -- abstract base for all kernel services.

Responsibility:
    Provides the common constructor (injected persistence port and clock)
    and the ``kernel_operation`` boundary decorator shared by every
    service in the kernel layer.

Architecture position:
    Kernel > Services -- imperative shell around the pure domain layer.

Invariants enforced:
    - Public operations never raise for expected domain conditions.  Inside
      a service, rules raise typed ``RotableKernelError`` subclasses; the
      ``kernel_operation`` decorator turns them into ``Result.fail`` at the
      public boundary.  Anything else (TypeError, ValueError from bad
      arguments) is a programming error and propagates.
    - No retries.  A port error is reported once, unchanged.

Failure modes:
    - Whatever the persistence port raises (PersistenceTimeoutError,
      NotFoundError, ConcurrentModificationError) comes back as a failed
      Result carrying that same error object.
"""

from __future__ import annotations

import functools
from abc import ABC
from typing import Callable, ParamSpec, TypeVar

from rotable_kernel.domain.clock import Clock, SystemClock
from rotable_kernel.domain.ports import PersistencePort
from rotable_kernel.domain.result import Result
from rotable_kernel.exceptions import RotableKernelError
from rotable_kernel.logging_config import LogContext, get_logger

logger = get_logger("services")

P = ParamSpec("P")
T = TypeVar("T")


def kernel_operation(operation: str) -> Callable[[Callable[P, T]], Callable[P, Result[T]]]:
    """Mark a service method as a public kernel operation.

    The wrapped method runs with ``operation`` bound in the log context.
    Its return value is wrapped in ``Result.ok``; a ``RotableKernelError``
    becomes ``Result.fail``.
    """

    def decorator(fn: Callable[P, T]) -> Callable[P, Result[T]]:
        @functools.wraps(fn)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> Result[T]:
            with LogContext.bind(operation=operation):
                try:
                    return Result.ok(fn(*args, **kwargs))
                except RotableKernelError as exc:
                    logger.info(
                        "operation_rejected",
                        extra={"error_code": exc.code, "error": str(exc)},
                    )
                    return Result.fail(exc)

        return wrapper

    return decorator


class BaseService(ABC):
    """
    Abstract base class for all kernel services.

    Contract:
        Receives the persistence port and clock by constructor injection.
        Services never reach for module-level stores or the wall clock.
    """

    def __init__(self, persistence: PersistencePort, clock: Clock | None = None):
        self._persistence = persistence
        self._clock = clock or SystemClock()

    @property
    def persistence(self) -> PersistencePort:
        return self._persistence

    @property
    def clock(self) -> Clock:
        return self._clock
