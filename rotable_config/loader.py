"""
Configuration Loader (``rotable_config.loader``).

Responsibility
--------------
Loads a workshop YAML file and parses it into ``rotable_config.schema``
dataclasses.  Runtime callers go through ``rotable_config.get_active_config()``
instead of calling this module directly.

Invariants enforced
-------------------
* Required keys raise ``KeyError`` when missing; there are no silent
  defaults for stage definitions.
* ``compute_checksum`` is a deterministic SHA-256 of the parsed document.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from rotable_config.schema import (
    LoggingConfig,
    PersistenceConfig,
    StageConfig,
    WorkshopConfig,
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file and return its contents as a dict."""
    with open(path) as f:
        return yaml.safe_load(f) or {}


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def parse_stage(data: dict[str, Any]) -> StageConfig:
    return StageConfig(
        stage=int(data["stage"]),
        name=data["name"],
        title=data.get("title") or f"{data['name']} Sheet",
        checklist=tuple(str(label) for label in data.get("checklist", ())),
    )


def parse_persistence(data: dict[str, Any]) -> PersistenceConfig:
    return PersistenceConfig(
        backend=data.get("backend", "memory"),
        database_url=data.get("database_url"),
        workbook_path=data.get("workbook_path"),
        timeout_seconds=float(data.get("timeout_seconds", 5.0)),
    )


def parse_logging(data: dict[str, Any]) -> LoggingConfig:
    return LoggingConfig(level=str(data.get("level", "INFO")).upper())


def parse_workshop_config(data: dict[str, Any]) -> WorkshopConfig:
    """Parse a whole document into a ``WorkshopConfig`` with its checksum."""
    return WorkshopConfig(
        config_id=data["config_id"],
        version=int(data["version"]),
        stages=tuple(parse_stage(s) for s in data["stages"]),
        persistence=parse_persistence(data.get("persistence") or {}),
        logging=parse_logging(data.get("logging") or {}),
        checksum=compute_checksum(data),
    )


def load_workshop_config(path: Path) -> WorkshopConfig:
    return parse_workshop_config(load_yaml_file(path))
