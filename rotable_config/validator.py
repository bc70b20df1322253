"""
Configuration Validator (``rotable_config.validator``).

Responsibility
--------------
Structural checks on a parsed ``WorkshopConfig`` before anything is built
from it.

Invariants enforced
-------------------
* Exactly seven QA stages numbered 1..7 in order, each with a name and
  unique checklist labels.
* A supported persistence backend with the settings it needs, and a
  positive timeout.
* A standard logging level name.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from rotable_config.schema import (
    BACKEND_SQLALCHEMY,
    BACKEND_WORKBOOK,
    SUPPORTED_BACKENDS,
    WorkshopConfig,
)

QA_STAGE_COUNT = 7

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


@dataclass
class ConfigValidationResult:
    """
    Result of configuration validation.

    ``is_valid`` is True only when ``errors`` is empty.  Warnings do not
    block use of the configuration.
    """

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)


def validate_configuration(config: WorkshopConfig) -> ConfigValidationResult:
    result = ConfigValidationResult()
    _validate_stages(config, result)
    _validate_persistence(config, result)
    _validate_logging(config, result)
    return result


def _validate_stages(config: WorkshopConfig, result: ConfigValidationResult) -> None:
    numbers = [s.stage for s in config.stages]
    expected = list(range(1, QA_STAGE_COUNT + 1))
    if numbers != expected:
        result.add_error(f"stages must be numbered {expected} in order, got {numbers}")
    for stage in config.stages:
        if not stage.name.strip():
            result.add_error(f"stage {stage.stage} has an empty name")
        if len(set(stage.checklist)) != len(stage.checklist):
            result.add_error(f"stage {stage.stage} has duplicate checklist labels")
        if not stage.checklist:
            result.add_warning(
                f"stage {stage.stage} has no checklist; any submission completes it"
            )


def _validate_persistence(config: WorkshopConfig, result: ConfigValidationResult) -> None:
    persistence = config.persistence
    if persistence.backend not in SUPPORTED_BACKENDS:
        result.add_error(
            f"unknown persistence backend {persistence.backend!r}; "
            f"expected one of {sorted(SUPPORTED_BACKENDS)}"
        )
    if persistence.backend == BACKEND_SQLALCHEMY and not persistence.database_url:
        result.add_error("persistence.database_url is required for the sqlalchemy backend")
    if persistence.backend == BACKEND_WORKBOOK and not persistence.workbook_path:
        result.add_error("persistence.workbook_path is required for the workbook backend")
    if persistence.timeout_seconds <= 0:
        result.add_error(
            f"persistence.timeout_seconds must be > 0, got {persistence.timeout_seconds}"
        )


def _validate_logging(config: WorkshopConfig, result: ConfigValidationResult) -> None:
    if config.logging.level not in _LOG_LEVELS:
        result.add_error(f"unknown logging level {config.logging.level!r}")


def log_level(config: WorkshopConfig) -> int:
    """Numeric logging level for a validated configuration."""
    return logging.getLevelName(config.logging.level)
