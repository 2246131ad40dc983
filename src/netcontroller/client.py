"""Transport collaborator interface.

The HTTP transport and authentication live outside this package. Anything
that implements ComputeClient can be reconciled against: a real API client,
or the in-memory double used by the tests.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, TypeVar, runtime_checkable

if TYPE_CHECKING:
    from .commands import Command
    from .remote import SecurityGroup

GetT = TypeVar("GetT", bound="SecurityGroup")


@runtime_checkable
class ComputeClient(Protocol):
    """Asynchronous provider client.

    Implementations raise RemoteError for API failures. A lookup through
    get() that matches nothing raises RemoteError with ErrorCode.PARAM_ERROR.
    """

    async def request(self, command: Command) -> Any:
        """Issue a command and return its typed response."""
        ...

    async def boolean_request(self, command: Command) -> None:
        """Issue a command whose response is a success flag."""
        ...

    async def get(self, query: GetT) -> GetT:
        """Fetch the single object matching the id or name set on query."""
        ...
