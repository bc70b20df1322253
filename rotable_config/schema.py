"""
Configuration Schema (``rotable_config.schema``).

Responsibility
--------------
Frozen dataclasses describing one workshop configuration: the QA stage
templates, the persistence backend, and logging.

Architecture position
---------------------
**Config layer** -- pure data.  No dependency on the kernel.
"""

from __future__ import annotations

from dataclasses import dataclass, field

BACKEND_MEMORY = "memory"
BACKEND_SQLALCHEMY = "sqlalchemy"
BACKEND_WORKBOOK = "workbook"

SUPPORTED_BACKENDS = frozenset({BACKEND_MEMORY, BACKEND_SQLALCHEMY, BACKEND_WORKBOOK})


@dataclass(frozen=True)
class StageConfig:
    """Template for one QA stage."""

    stage: int
    name: str
    title: str
    checklist: tuple[str, ...] = ()


@dataclass(frozen=True)
class PersistenceConfig:
    """Which store to use and how long a call may take."""

    backend: str = BACKEND_MEMORY
    database_url: str | None = None
    workbook_path: str | None = None
    timeout_seconds: float = 5.0


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"


@dataclass(frozen=True)
class WorkshopConfig:
    """A complete, validated workshop configuration."""

    config_id: str
    version: int
    stages: tuple[StageConfig, ...]
    persistence: PersistenceConfig = field(default_factory=PersistenceConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    checksum: str = ""
