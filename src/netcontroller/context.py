"""Cancellation and timeout binding for remote calls.

Every reconciliation verb runs inside an OperationContext: a timeout budget
taken from Config and a cooperative CancellationToken. The token is checked
before each remote call, so a cancelled operation never issues another
request and leaves the entity as the last completed call left it.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, TypeVar

from .config import Operation
from .errors import OperationCancelled

if TYPE_CHECKING:
    from .client import ComputeClient
    from .commands import Command
    from .remote import SecurityGroup

logger = logging.getLogger(__name__)

GetT = TypeVar("GetT", bound="SecurityGroup")


class CancellationToken:
    """Cooperative cancellation flag shared by the caller and the reconciler."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason = ""

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str:
        return self._reason

    def cancel(self, reason: str = "cancelled by caller") -> None:
        """Request cancellation. Idempotent."""
        if not self._event.is_set():
            self._reason = reason
            self._event.set()

    def raise_if_cancelled(self) -> None:
        """Raise OperationCancelled if cancellation was requested."""
        if self._event.is_set():
            raise OperationCancelled(self._reason)


@dataclass(frozen=True)
class OperationContext:
    """Timeout budget and cancellation token for one reconciliation verb."""

    operation: Operation
    timeout_seconds: float
    token: CancellationToken = field(default_factory=CancellationToken)
    resource_type: str = ""
    resource_id: str = ""

    @asynccontextmanager
    async def deadline(self) -> AsyncIterator[OperationContext]:
        """Bound the enclosed calls by the timeout budget.

        Raises:
            TimeoutError: If the enclosed calls exceed the budget.
            OperationCancelled: If the token is already cancelled.
        """
        self.token.raise_if_cancelled()
        try:
            async with asyncio.timeout(self.timeout_seconds):
                yield self
        except TimeoutError:
            logger.error(
                f"{self.resource_type} {self.operation.value} timed out",
                extra={
                    "resource_type": self.resource_type,
                    "resource_id": self.resource_id,
                    "timeout_seconds": self.timeout_seconds,
                },
            )
            raise


class BoundClient:
    """ComputeClient wrapper that honours an OperationContext."""

    def __init__(self, client: ComputeClient, context: OperationContext) -> None:
        self._client = client
        self._context = context

    @property
    def context(self) -> OperationContext:
        return self._context

    async def request(self, command: Command) -> Any:
        self._context.token.raise_if_cancelled()
        logger.debug("Issuing %s", command.api_name, extra={"command": command.api_name})
        return await self._client.request(command)

    async def boolean_request(self, command: Command) -> None:
        self._context.token.raise_if_cancelled()
        logger.debug("Issuing %s", command.api_name, extra={"command": command.api_name})
        await self._client.boolean_request(command)

    async def get(self, query: GetT) -> GetT:
        self._context.token.raise_if_cancelled()
        return await self._client.get(query)
