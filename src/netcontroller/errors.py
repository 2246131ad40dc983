"""Error taxonomy for network reconciliation.

Every error raised by this package derives from ReconcileError. Validation
errors also derive from ValueError so pydantic field validators surface them
as regular field errors.

PROPAGATION:
- Validation errors are raised before any remote call is issued
- Remote errors propagate verbatim unless an Exists check downgrades them
- The only suppressed failure is a failed compensating delete (logged)
"""

from __future__ import annotations

from enum import IntEnum


class ErrorCode(IntEnum):
    """Provider API error codes."""

    UNAUTHORIZED = 401
    METHOD_NOT_ALLOWED = 405
    UNSUPPORTED_ACTION_ERROR = 422
    API_LIMIT_EXCEEDED = 429
    MALFORMED_PARAMETER_ERROR = 430
    PARAM_ERROR = 431
    INTERNAL_ERROR = 530
    ACCOUNT_ERROR = 531
    ACCOUNT_RESOURCE_LIMIT_ERROR = 532
    INSUFFICIENT_CAPACITY_ERROR = 533
    RESOURCE_UNAVAILABLE_ERROR = 534
    RESOURCE_ALLOCATION_ERROR = 535
    RESOURCE_IN_USE_ERROR = 536
    NETWORK_RULE_CONFLICT_ERROR = 537


class ReconcileError(Exception):
    """Base class for reconciliation errors."""

    pass


class ValidationError(ReconcileError, ValueError):
    """Raised for malformed input. Never sent to the remote."""

    pass


class InvalidCIDR(ValidationError):
    """Raised when a CIDR is malformed or not of the expected family."""

    pass


class InvalidUUID(ValidationError):
    """Raised when an identifier is not a well-formed UUID."""

    pass


class UnsupportedOffering(ValidationError):
    """Raised when a network offering requires features not supported here."""

    pass


class AmbiguousTarget(ReconcileError):
    """Raised when none of the mutually exclusive rule targets is populated."""

    pass


class NotFound(ReconcileError):
    """Raised when a remote lookup returned no match."""

    pass


class AmbiguousReference(ReconcileError):
    """Raised when a name lookup returned more than one match."""

    pass


class ResidualAttachment(ReconcileError):
    """Raised when a removal reported success but the attachment is still present."""

    pass


class OperationCancelled(ReconcileError):
    """Raised when the cancellation token fired before a remote call."""

    pass


class RemoteError(ReconcileError):
    """Opaque failure reported by the transport or the provider API.

    Attributes:
        error_code: Provider error code, if the API returned one.
        error_text: Provider error message.
    """

    def __init__(self, error_text: str, error_code: int | None = None) -> None:
        self.error_text = error_text
        self.error_code = error_code
        if error_code is not None:
            super().__init__(f"API error {error_code}: {error_text}")
        else:
            super().__init__(error_text)

    @property
    def not_found(self) -> bool:
        """Whether the provider reported the queried object as missing."""
        return self.error_code == ErrorCode.PARAM_ERROR


class CompensationFailure(ReconcileError):
    """A compensating action failed after a partial failure.

    Never raised to callers: it is logged and attached as a note on the
    original error, which is the one propagated.
    """

    def __init__(self, action: str, original: BaseException, cause: BaseException) -> None:
        self.action = action
        self.original = original
        self.cause = cause
        super().__init__(f"Compensating {action} failed: {cause}")


def is_not_found(error: BaseException) -> bool:
    """Check whether an error means the remote object does not exist."""
    if isinstance(error, NotFound):
        return True
    if isinstance(error, RemoteError):
        return error.not_found
    return False
