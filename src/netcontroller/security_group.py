"""Security group reconciliation.

Name and description are immutable, so there is no in-place update: a
changed group is replaced by the orchestrator. Rules are separate
resources (see security_group_rule).
"""

from __future__ import annotations

import logging

from .commands import CreateSecurityGroup, DeleteSecurityGroup
from .config import Operation
from .context import BoundClient
from .errors import NotFound
from .models import SecurityGroupConfig
from .reconciler import ResourceReconciler, handle_not_found
from .remote import SecurityGroup
from .resolver import GroupReference, get_security_group
from .state import Lifecycle, ResourceState

logger = logging.getLogger(__name__)


def apply_security_group(state: ResourceState[SecurityGroupConfig], group: SecurityGroup) -> None:
    """Refresh local state from a remote group."""
    state.id = group.id or ""
    state.apply(name=group.name or "", description=group.description)
    state.mark_observed()


class SecurityGroupReconciler(ResourceReconciler[SecurityGroupConfig]):
    """Create, read and delete security groups."""

    resource_type = "security_group"

    async def create(self, state: ResourceState[SecurityGroupConfig]) -> None:
        config = state.config
        state.transition(Lifecycle.DECLARING)

        async with self._operation(Operation.CREATE, state) as client:
            group: SecurityGroup = await client.request(
                CreateSecurityGroup(name=config.name, description=config.description or None)
            )

        state.id = group.id or ""
        self._log_write("created", state, name=config.name)
        state.transition(Lifecycle.PRESENT)
        await self.read(state)

    async def read(self, state: ResourceState[SecurityGroupConfig]) -> None:
        """Refresh state; a group missing remotely clears the identity."""
        async with self._operation(Operation.READ, state) as client:
            try:
                group = await get_security_group(client, GroupReference.parse(state.id))
            except NotFound as e:
                handle_not_found(state, e)
                return

        apply_security_group(state, group)

    async def _probe(
        self, client: BoundClient, state: ResourceState[SecurityGroupConfig]
    ) -> bool:
        await get_security_group(client, GroupReference.parse(state.id))
        return True

    async def update(self, state: ResourceState[SecurityGroupConfig]) -> None:
        await self.read(state)

    async def delete(self, state: ResourceState[SecurityGroupConfig]) -> None:
        """Delete the group by name and clear the local identity."""
        state.transition(Lifecycle.REMOVING)

        async with self._operation(Operation.DELETE, state) as client:
            await client.boolean_request(DeleteSecurityGroup(name=state.config.name))

        self._log_write("deleted", state, name=state.config.name)
        state.mark_absent()

    async def import_group(
        self, identifier: str
    ) -> tuple[ResourceState[SecurityGroupConfig], SecurityGroup]:
        """Adopt an existing group by id or name.

        Returns:
            The group's state and the remote group with its rule lists.

        Raises:
            NotFound: If no such group exists.
        """
        reference = GroupReference.parse(identifier)
        probe = self._new_state(SecurityGroupConfig.model_construct())

        async with self._operation(Operation.READ, probe) as client:
            group = await get_security_group(client, reference)

        state = self._new_state(SecurityGroupConfig(name=group.name or identifier), group.id or "")
        apply_security_group(state, group)
        return state, group
