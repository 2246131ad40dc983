"""Shared machinery of the per-entity reconcilers.

Each entity (network, NIC, security group, security group rule) has a
reconciler exposing the same verbs: create, read, exists, update, delete.
This module holds what they have in common:

- Binding every verb to its timeout budget and the cancellation token
- Interpreting "not found" differently per verb:
    * Exists downgrades it to ``exists=False``
    * Read clears the local identity without raising
    * Anything else propagates it
- Downgrading other Exists failures: the object is assumed to still exist
  so that an ambiguous error never causes a spurious destroy/recreate
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, ClassVar, Generic

from .client import ComputeClient
from .config import Config, Operation
from .context import BoundClient, CancellationToken, OperationContext
from .errors import NotFound, RemoteError, is_not_found
from .state import ConfigT, ResourceState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExistsResult:
    """Outcome of an existence check.

    ``error`` is set when the check could not be completed; ``exists`` then
    reflects whether the resource had an identity before the check.
    """

    exists: bool
    error: Exception | None = None


def handle_not_found(state: ResourceState[Any], error: Exception) -> None:
    """Mark the resource absent if error means it is gone, else re-raise.

    Must be called from an ``except`` block.
    """
    if is_not_found(error):
        logger.info(
            "Resource no longer exists remotely",
            extra={"resource_type": state.resource_type, "resource_id": state.id},
        )
        state.mark_absent()
        return
    raise error


class ResourceReconciler(Generic[ConfigT]):
    """Base class of the per-entity reconcilers."""

    resource_type: ClassVar[str] = ""

    def __init__(
        self,
        client: ComputeClient,
        config: Config | None = None,
        token: CancellationToken | None = None,
    ) -> None:
        """Initialize reconciler.

        Args:
            client: Provider client. Calls go through a BoundClient.
            config: Controller configuration; defaults apply when omitted.
            token: Cancellation token shared with the caller.
        """
        self._client = client
        self._config = config or Config()
        self._token = token or CancellationToken()

    @property
    def config(self) -> Config:
        return self._config

    @property
    def token(self) -> CancellationToken:
        return self._token

    @asynccontextmanager
    async def _operation(
        self, operation: Operation, state: ResourceState[Any]
    ) -> AsyncIterator[BoundClient]:
        """Run the enclosed calls under the operation's timeout and token."""
        context = OperationContext(
            operation=operation,
            timeout_seconds=self._config.timeouts.for_operation(operation),
            token=self._token,
            resource_type=self.resource_type,
            resource_id=state.id,
        )
        async with context.deadline():
            yield BoundClient(self._client, context)

    def _new_state(self, config: ConfigT, resource_id: str = "") -> ResourceState[ConfigT]:
        return ResourceState(config=config, id=resource_id, resource_type=self.resource_type)

    async def exists(self, state: ResourceState[ConfigT]) -> ExistsResult:
        """Check whether the resource still exists remotely.

        Returns:
            ExistsResult(False) when the provider reports it missing (the
            local identity is cleared), ExistsResult(True) when found, and
            ExistsResult(<had identity>, error) on any other failure.
        """
        async with self._operation(Operation.READ, state) as client:
            try:
                found = await self._probe(client, state)
            except (RemoteError, NotFound) as e:
                if is_not_found(e):
                    state.mark_absent()
                    return ExistsResult(False)
                logger.warning(
                    "Existence check failed, assuming resource still exists",
                    extra={
                        "resource_type": self.resource_type,
                        "resource_id": state.id,
                        "error": str(e),
                    },
                )
                return ExistsResult(state.id != "", e)

        if not found:
            state.mark_absent()
            return ExistsResult(False)
        return ExistsResult(True)

    async def _probe(self, client: BoundClient, state: ResourceState[ConfigT]) -> bool:
        """Look the resource up; return False when absent."""
        raise NotImplementedError("Subclasses must implement _probe")

    def _log_write(self, action: str, state: ResourceState[Any], **extra: Any) -> None:
        logger.info(
            f"{self.resource_type} {action}",
            extra={"resource_type": self.resource_type, "resource_id": state.id, **extra},
        )
