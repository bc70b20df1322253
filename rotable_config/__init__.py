"""
rotable_config -- single public entrypoint for workshop configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  Returns a validated, frozen
    ``WorkshopConfig``.  ``rotable_config.bridges`` turns it into kernel
    objects.

Architecture position:
    Configuration -- sits above ``rotable_kernel``.  The kernel MUST NEVER
    import from ``rotable_config``.

Failure modes:
    - ``FileNotFoundError`` -- the configuration file does not exist.
    - ``ValueError`` -- structural validation failed.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``ROTABLE_CONFIG_TRACE`` log entry with the config id, version,
    checksum and backend, tying every kernel instance to the exact
    configuration that built it.
"""

from __future__ import annotations

from pathlib import Path

from rotable_config.loader import load_workshop_config
from rotable_config.schema import WorkshopConfig
from rotable_config.validator import validate_configuration
from rotable_kernel.logging_config import get_logger

_logger = get_logger("config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_active_config(config_path: Path | str | None = None) -> WorkshopConfig:
    """The ONLY public configuration entrypoint.

    Args:
        config_path: YAML file to load.  Defaults to
            ``rotable_config/sets/default.yaml``.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If validation fails.
    """
    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    if not path.is_file():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    config = load_workshop_config(path)

    validation = validate_configuration(config)
    if not validation.is_valid:
        raise ValueError(
            "Configuration validation failed:\n"
            + "\n".join(f"  - {e}" for e in validation.errors)
        )
    for warning in validation.warnings:
        _logger.warning("config_warning", extra={"warning": warning})

    _logger.info(
        "ROTABLE_CONFIG_TRACE",
        extra={
            "trace_type": "ROTABLE_CONFIG_TRACE",
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "backend": config.persistence.backend,
            "stage_count": len(config.stages),
        },
    )
    return config


__all__ = ["DEFAULT_CONFIG_PATH", "WorkshopConfig", "get_active_config"]
