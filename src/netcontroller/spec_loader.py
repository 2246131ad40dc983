"""Declared configuration loading with validation.

SECURITY: File size is checked before reading. Input validation is
performed at the boundary, so reconcilers only ever see validated models.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError as PydanticValidationError

from .config import MAX_SPEC_FILE_SIZE_BYTES
from .models import DeclaredConfig

logger = logging.getLogger(__name__)


class SpecLoadError(Exception):
    """Raised when a configuration document cannot be loaded or validated."""

    pass


def format_validation_errors(error: PydanticValidationError) -> str:
    """Render pydantic errors one per line as ``loc: message``."""
    lines = []
    for item in error.errors():
        loc = ".".join(str(x) for x in item["loc"]) or "<root>"
        lines.append(f"  - {loc}: {item['msg']}")
    return "\n".join(lines)


def parse_declared_config(raw_data: object, source: str = "<input>") -> DeclaredConfig:
    """Validate an already parsed document.

    Both the flat format and the apiVersion/kind/spec wrapper are accepted.

    Raises:
        SpecLoadError: If the document is not a mapping or fails validation.
    """
    if raw_data is None:
        raw_data = {}
    if not isinstance(raw_data, dict):
        raise SpecLoadError(f"Configuration must be a YAML mapping: {source}")

    if "apiVersion" in raw_data and "spec" in raw_data:
        spec_data = raw_data.get("spec") or {}
        if not isinstance(spec_data, dict):
            raise SpecLoadError(f"Spec section must be a mapping: {source}")
    else:
        spec_data = raw_data

    try:
        return DeclaredConfig.model_validate(spec_data)
    except PydanticValidationError as e:
        raise SpecLoadError(
            f"Validation failed for {source}:\n{format_validation_errors(e)}"
        ) from e


def load_declared_config(path: Path) -> DeclaredConfig:
    """Load and validate a declared configuration document.

    Args:
        path: YAML file declaring networks, nics, securityGroups and
            securityGroupRules.

    Returns:
        Validated configuration.

    Raises:
        SpecLoadError: If the file is missing, too large, not valid YAML, or
            fails validation.
    """
    if not path.exists():
        raise SpecLoadError(f"Configuration file not found: {path}")

    # SECURITY: Check file size before reading
    try:
        file_size = path.stat().st_size
    except OSError as e:
        raise SpecLoadError(f"Failed to stat configuration file {path}: {e}") from e

    if file_size > MAX_SPEC_FILE_SIZE_BYTES:
        raise SpecLoadError(
            f"Configuration file exceeds maximum size of {MAX_SPEC_FILE_SIZE_BYTES} bytes: {path}"
        )

    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise SpecLoadError(f"Failed to read configuration file {path}: {e}") from e

    try:
        raw_data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise SpecLoadError(f"Invalid YAML in {path}: {e}") from e

    declared = parse_declared_config(raw_data, str(path))
    logger.info(
        "Loaded declared configuration from %s",
        path,
        extra={"resource_count": declared.resource_count},
    )
    return declared
