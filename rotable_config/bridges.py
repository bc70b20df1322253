"""
Config-to-Kernel Bridges (``rotable_config.bridges``).

Responsibility
--------------
Translate a validated ``WorkshopConfig`` into kernel objects: the QA stage
catalog, the persistence port (wrapped in the timeout decorator) and a
ready ``LifecycleKernel``.

Architecture position
---------------------
**Config layer** -- sits above ``rotable_kernel``.  This is the only
place where configuration and kernel types meet; the kernel never
imports ``rotable_config``.
"""

from __future__ import annotations

from pathlib import Path

from rotable_config.schema import (
    BACKEND_MEMORY,
    BACKEND_SQLALCHEMY,
    BACKEND_WORKBOOK,
    WorkshopConfig,
)
from rotable_config.validator import log_level
from rotable_kernel.adapters.memory import InMemoryPersistence
from rotable_kernel.adapters.sql import SqlAlchemyPersistence
from rotable_kernel.adapters.timeout import TimeoutBoundedPersistence
from rotable_kernel.adapters.workbook import WorkbookPersistence
from rotable_kernel.domain.clock import Clock
from rotable_kernel.domain.inspection import QAStageDefinition, StageCatalog
from rotable_kernel.domain.ports import NotificationPort, PersistencePort
from rotable_kernel.logging_config import configure_logging
from rotable_kernel.services.lifecycle_kernel import LifecycleKernel


def build_stage_catalog(config: WorkshopConfig) -> StageCatalog:
    return StageCatalog(stages=tuple(
        QAStageDefinition(
            stage=s.stage,
            name=s.name,
            title=s.title,
            checklist=s.checklist,
        )
        for s in config.stages
    ))


def build_store(config: WorkshopConfig, base_dir: Path | None = None) -> PersistencePort:
    """The raw adapter named by ``persistence.backend``."""
    persistence = config.persistence
    if persistence.backend == BACKEND_MEMORY:
        return InMemoryPersistence()
    if persistence.backend == BACKEND_SQLALCHEMY:
        return SqlAlchemyPersistence.from_url(persistence.database_url)
    if persistence.backend == BACKEND_WORKBOOK:
        path = Path(persistence.workbook_path)
        if base_dir is not None and not path.is_absolute():
            path = base_dir / path
        return WorkbookPersistence(path)
    raise ValueError(f"Unknown persistence backend {persistence.backend!r}")


def build_persistence(
    config: WorkshopConfig, base_dir: Path | None = None,
) -> TimeoutBoundedPersistence:
    """The configured adapter, bounded by ``persistence.timeout_seconds``."""
    return TimeoutBoundedPersistence(
        build_store(config, base_dir), config.persistence.timeout_seconds,
    )


def build_kernel(
    config: WorkshopConfig,
    notifier: NotificationPort | None = None,
    clock: Clock | None = None,
    base_dir: Path | None = None,
) -> LifecycleKernel:
    """Configure logging and wire a kernel from ``config``."""
    configure_logging(level=log_level(config))
    return LifecycleKernel(
        build_persistence(config, base_dir),
        notifier=notifier,
        clock=clock,
        catalog=build_stage_catalog(config),
    )
