"""
docform_config -- single public entrypoint for engine configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration files
    or environment variables directly.

Architecture position:
    Configuration -- YAML-driven settings and document profiles.
    Sits above ``docform_kernel`` and below ``docform_services``.  The
    kernel and the engines MUST NEVER import from ``docform_config``.

Resolution order for the configuration file:
    1. ``config_path`` argument
    2. ``DOCFORM_CONFIG`` environment variable
    3. the bundled ``defaults.yaml``

Failure modes:
    - ``ConfigNotFoundError`` -- the resolved path does not exist.
    - ``InvalidConfigError`` -- malformed YAML or invalid values.

Audit relevance:
    Every successful call emits a ``DOCFORM_CONFIG_TRACE`` log record with
    the config path, version, checksum and profile count.
"""

from __future__ import annotations

import os
from pathlib import Path

from docform_config.loader import load_yaml_file, parse_config
from docform_config.schema import (
    DocformConfig,
    DocumentProfile,
    EngineSettings,
    HeaderFieldAliases,
    LineFieldAliases,
)
from docform_kernel.logging_config import get_logger

__all__ = [
    "DocformConfig",
    "DocumentProfile",
    "EngineSettings",
    "HeaderFieldAliases",
    "LineFieldAliases",
    "get_active_config",
]

_logger = get_logger("config")

CONFIG_ENV_VAR = "DOCFORM_CONFIG"

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"


def get_active_config(config_path: Path | str | None = None) -> DocformConfig:
    """The ONLY public configuration entrypoint.

    Args:
        config_path: Override path to a YAML configuration file.

    Returns:
        DocformConfig -- frozen, validated configuration.

    Raises:
        ConfigNotFoundError: If the resolved file does not exist.
        InvalidConfigError: If parsing or validation fails.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    path = Path(config_path or env_path or _DEFAULT_CONFIG_PATH)

    config = parse_config(load_yaml_file(path))

    _logger.info(
        "DOCFORM_CONFIG_TRACE",
        extra={
            "trace_type": "DOCFORM_CONFIG_TRACE",
            "config_path": str(path),
            "config_version": config.version,
            "checksum": config.checksum,
            "profile_count": len(config.profiles),
            "write_tolerance": str(config.settings.write_tolerance),
        },
    )
    return config
