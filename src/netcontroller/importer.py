"""Adoption of existing remote resources into declared configuration.

Import turns one identity into an ordered list of resource states. The
first state is the referenced resource itself; any further states are
children discovered on it. Only a security group has children: its rules,
egress rules first, each list in remote order.
"""

from __future__ import annotations

import logging
from typing import Any

from .client import ComputeClient
from .config import Config
from .context import CancellationToken
from .errors import ValidationError
from .network import NetworkReconciler
from .resolver import iter_rules
from .security_group import SecurityGroupReconciler
from .security_group_rule import SecurityGroupRuleReconciler
from .state import ResourceState

logger = logging.getLogger(__name__)


class Importer:
    """Expand an identity into the resource states it adopts."""

    def __init__(
        self,
        client: ComputeClient,
        config: Config | None = None,
        token: CancellationToken | None = None,
    ) -> None:
        self.networks = NetworkReconciler(client, config, token)
        self.security_groups = SecurityGroupReconciler(client, config, token)
        self.security_group_rules = SecurityGroupRuleReconciler(client, config, token)

    async def import_resources(
        self, resource_type: str, identifier: str
    ) -> list[ResourceState[Any]]:
        """Import the resource of a type by identifier.

        Args:
            resource_type: "network", "security_group" or "security_group_rule".
            identifier: Network id, security group id or name, or a rule
                reference ``<group>/<rule-id>``.

        Raises:
            ValidationError: For an unknown resource type or bad identifier.
            NotFound: If the resource does not exist.
        """
        if resource_type == NetworkReconciler.resource_type:
            states: list[ResourceState[Any]] = list(
                await self.networks.import_state(identifier)
            )
        elif resource_type == SecurityGroupReconciler.resource_type:
            states = await self.import_security_group(identifier)
        elif resource_type == SecurityGroupRuleReconciler.resource_type:
            states = list(await self.security_group_rules.import_state(identifier))
        else:
            raise ValidationError(f"Resource type {resource_type!r} cannot be imported")

        logger.info(
            "Imported resources",
            extra={"resource_type": resource_type, "identifier": identifier, "count": len(states)},
        )
        return states

    async def import_security_group(self, identifier: str) -> list[ResourceState[Any]]:
        """Import a group and every rule it currently holds.

        Returns:
            [group, egress rules..., ingress rules...]
        """
        group_state, group = await self.security_groups.import_group(identifier)

        states: list[ResourceState[Any]] = [group_state]
        for direction, rule in iter_rules(group):
            states.append(self.security_group_rules.state_from_remote(group, rule, direction))
        return states
