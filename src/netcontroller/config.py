"""Configuration management with validation.

Timeouts are configured per operation and passed explicitly to every
reconciler. Nothing here is read from module-level state at call time.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum


class Operation(str, Enum):
    """Reconciliation verbs that carry their own timeout budget."""

    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


class ConfigurationError(Exception):
    """Raised when configuration validation fails."""

    pass


# Configuration constants with documented bounds
DEFAULT_OPERATION_TIMEOUT_SECONDS = 300
MIN_OPERATION_TIMEOUT_SECONDS = 1
MAX_OPERATION_TIMEOUT_SECONDS = 3600

# Security constraints - enforced limits on declared configuration files
MAX_SPEC_FILE_SIZE_BYTES = 1024 * 1024  # 1MB max declared configuration

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class OperationTimeouts:
    """Timeout budget in seconds for each reconciliation verb."""

    create: float = DEFAULT_OPERATION_TIMEOUT_SECONDS
    read: float = DEFAULT_OPERATION_TIMEOUT_SECONDS
    update: float = DEFAULT_OPERATION_TIMEOUT_SECONDS
    delete: float = DEFAULT_OPERATION_TIMEOUT_SECONDS

    def for_operation(self, operation: Operation) -> float:
        """Get the timeout for an operation."""
        return float(getattr(self, operation.value))


@dataclass(frozen=True)
class Config:
    """Controller configuration.

    All fields are validated at construction time. Invalid configurations
    raise ConfigurationError immediately rather than failing at runtime.
    """

    timeouts: OperationTimeouts = field(default_factory=OperationTimeouts)

    # Logging
    log_level: str = "INFO"
    json_logs: bool = True

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        errors: list[str] = []

        for operation in Operation:
            value = self.timeouts.for_operation(operation)
            if not (MIN_OPERATION_TIMEOUT_SECONDS <= value <= MAX_OPERATION_TIMEOUT_SECONDS):
                errors.append(
                    f"NETCTL_{operation.name}_TIMEOUT must be between "
                    f"{MIN_OPERATION_TIMEOUT_SECONDS} and {MAX_OPERATION_TIMEOUT_SECONDS} "
                    f"seconds: {value}"
                )

        if self.log_level.upper() not in VALID_LOG_LEVELS:
            errors.append(f"NETCTL_LOG_LEVEL must be one of {VALID_LOG_LEVELS}: {self.log_level}")

        if errors:
            error_msg = "Configuration validation failed:\n  - " + "\n  - ".join(errors)
            raise ConfigurationError(error_msg)

    @classmethod
    def from_env(cls) -> Config:
        """Load configuration from environment variables.

        Environment Variables:
            NETCTL_TIMEOUT: Default timeout for every operation (default: 300)
            NETCTL_CREATE_TIMEOUT: Timeout for create operations
            NETCTL_READ_TIMEOUT: Timeout for read, exists and import operations
            NETCTL_UPDATE_TIMEOUT: Timeout for update operations
            NETCTL_DELETE_TIMEOUT: Timeout for delete operations
            NETCTL_LOG_LEVEL: Logging level (default: INFO)
            NETCTL_JSON_LOGS: If "false", log plain text instead of JSON (default: true)
        """

        def get_float(key: str, default: float) -> float:
            value = os.environ.get(key)
            if value is None:
                return default
            try:
                return float(value)
            except ValueError as e:
                raise ConfigurationError(f"{key} must be a number: {value}") from e

        def get_bool(key: str, default: bool) -> bool:
            value = os.environ.get(key, "").lower()
            if not value:
                return default
            return value in ("true", "1", "yes")

        default_timeout = get_float("NETCTL_TIMEOUT", DEFAULT_OPERATION_TIMEOUT_SECONDS)

        return cls(
            timeouts=OperationTimeouts(
                create=get_float("NETCTL_CREATE_TIMEOUT", default_timeout),
                read=get_float("NETCTL_READ_TIMEOUT", default_timeout),
                update=get_float("NETCTL_UPDATE_TIMEOUT", default_timeout),
                delete=get_float("NETCTL_DELETE_TIMEOUT", default_timeout),
            ),
            log_level=os.environ.get("NETCTL_LOG_LEVEL", "INFO").upper(),
            json_logs=get_bool("NETCTL_JSON_LOGS", True),
        )
