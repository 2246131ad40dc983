"""Opaque identifier parsing."""

from __future__ import annotations

from uuid import UUID

from .errors import InvalidUUID


def parse_uuid(value: str | UUID, field: str = "id") -> UUID:
    """Parse a provider identifier.

    Raises:
        InvalidUUID: If the value is not a well-formed UUID.
    """
    if isinstance(value, UUID):
        return value
    try:
        return UUID(value.strip())
    except (ValueError, AttributeError) as e:
        raise InvalidUUID(f"{field} is not a valid UUID: {value!r}") from e


def is_uuid(value: str) -> bool:
    """Check whether a reference is an identifier rather than a name."""
    try:
        parse_uuid(value)
    except InvalidUUID:
        return False
    return True
