"""Local representation of one reconciled resource.

A ResourceState pairs the declared configuration of a resource with its
remote identity and lifecycle. Reconcilers refresh ``config`` from the
remote after every write, so a successful call always leaves the state
matching what the provider reports.

Change tracking compares ``config`` (desired) against ``prior`` (last
observed). Updates record each sub-field as it completes, so a failure
halfway leaves an inspectable partial state instead of one flag.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

ConfigT = TypeVar("ConfigT", bound=BaseModel)


class Lifecycle(str, Enum):
    """Reconciliation states of a resource."""

    ABSENT = "absent"
    DECLARING = "declaring"
    PRESENT = "present"
    UPDATING = "updating"
    REMOVING = "removing"


@dataclass
class ResourceState(Generic[ConfigT]):
    """Declared configuration plus remote identity of a resource."""

    config: ConfigT
    id: str = ""
    resource_type: str = ""
    prior: ConfigT | None = None
    lifecycle: Lifecycle = Lifecycle.ABSENT
    partial: bool = False
    completed_fields: set[str] = field(default_factory=set)

    def __post_init__(self) -> None:
        if self.id and self.lifecycle == Lifecycle.ABSENT:
            self.lifecycle = Lifecycle.PRESENT

    @property
    def is_present(self) -> bool:
        return bool(self.id)

    def has_change(self, name: str) -> bool:
        """Whether a field differs between desired and last observed values."""
        if self.prior is None:
            return True
        return bool(getattr(self.prior, name) != getattr(self.config, name))

    def previous(self, name: str) -> Any:
        """Last observed value of a field, or None if never observed."""
        if self.prior is None:
            return None
        return getattr(self.prior, name)

    def apply(self, **values: Any) -> None:
        """Overwrite configuration fields with observed remote values."""
        self.config = self.config.model_copy(update=values)

    def observe(self, **values: Any) -> None:
        """Record fields as observed remotely, leaving the rest of prior as is."""
        if self.prior is not None:
            self.prior = self.prior.model_copy(update=values)

    def mark_observed(self) -> None:
        """Record the current configuration as the last observed remote state."""
        self.prior = self.config.model_copy(deep=True)
        if self.lifecycle != Lifecycle.UPDATING:
            self.lifecycle = Lifecycle.PRESENT

    def mark_absent(self) -> None:
        """Clear the remote identity after the object was found missing."""
        self.id = ""
        self.prior = None
        self.lifecycle = Lifecycle.ABSENT

    def transition(self, lifecycle: Lifecycle) -> None:
        self.lifecycle = lifecycle

    def begin_partial(self) -> None:
        self.partial = True
        self.completed_fields.clear()

    def set_partial(self, *names: str) -> None:
        """Mark sub-fields of a partial update as completed."""
        self.completed_fields.update(names)

    def end_partial(self) -> None:
        self.partial = False
        self.completed_fields.clear()
