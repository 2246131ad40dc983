"""Security group rule reconciliation.

Rules have no lookup primitive and no update: every field forces
replacement. A rule is found by fetching its parent group and scanning the
group's egress and ingress lists for the rule id; the list it appears in
gives its direction.
"""

from __future__ import annotations

import logging

from .config import Operation
from .context import BoundClient
from .errors import NotFound, RemoteError
from .models import Direction, Protocol, SecurityGroupRuleConfig
from .reconciler import ResourceReconciler, handle_not_found
from .remote import SecurityGroup, SecurityGroupRule
from .resolver import GroupReference, RuleReference, find_rule, get_security_group
from .rules import canonical_request, for_direction, resolve_target, revoke_command
from .state import Lifecycle, ResourceState

logger = logging.getLogger(__name__)

ICMP_PROTOCOLS = frozenset({Protocol.ICMP, Protocol.ICMPV6})


def rule_values(
    group: SecurityGroup, rule: SecurityGroupRule, direction: Direction
) -> dict[str, object]:
    """Declared-configuration values observed on a remote rule.

    Port range and ICMP type/code are mutually exclusive declared inputs;
    only the pair matching the protocol is kept.
    """
    try:
        protocol = Protocol.parse(rule.protocol)
    except ValueError as e:
        raise RemoteError(
            f"Rule {rule.rule_id} in security group {group.name} has unknown protocol "
            f"{rule.protocol!r}"
        ) from e

    is_icmp = protocol in ICMP_PROTOCOLS
    return {
        "direction": direction,
        "security_group_id": group.id,
        "security_group": group.name,
        "description": rule.description,
        "protocol": protocol,
        "cidr": rule.cidr or None,
        "start_port": None if is_icmp else rule.start_port,
        "end_port": None if is_icmp else rule.end_port,
        "icmp_type": rule.icmp_type if is_icmp else None,
        "icmp_code": rule.icmp_code if is_icmp else None,
        "user_security_group": rule.security_group_name or None,
    }


def apply_security_group_rule(
    state: ResourceState[SecurityGroupRuleConfig],
    group: SecurityGroup,
    rule: SecurityGroupRule,
    direction: Direction,
) -> None:
    """Refresh local state from a remote rule found in group."""
    state.id = rule.rule_id
    state.apply(**rule_values(group, rule, direction))
    state.mark_observed()


class SecurityGroupRuleReconciler(ResourceReconciler[SecurityGroupRuleConfig]):
    """Authorize, read and revoke security group rules."""

    resource_type = "security_group_rule"

    @staticmethod
    def _group_reference(config: SecurityGroupRuleConfig) -> GroupReference:
        return GroupReference.from_fields(config.security_group_id, config.security_group)

    def state_from_remote(
        self, group: SecurityGroup, rule: SecurityGroupRule, direction: Direction
    ) -> ResourceState[SecurityGroupRuleConfig]:
        """Build the state of an existing rule discovered in group."""
        seed = SecurityGroupRuleConfig(direction=direction, security_group_id=group.id)
        state = self._new_state(seed, rule.rule_id)
        apply_security_group_rule(state, group, rule, direction)
        return state

    async def create(self, state: ResourceState[SecurityGroupRuleConfig]) -> None:
        """Authorize the rule on its parent group.

        Raises:
            ValidationError: If neither parent group id nor name is set.
            AmbiguousTarget: If no CIDR or user security group is set.
            NotFound: If the parent or peer group does not exist, or the
                response carries no rule for the direction.
        """
        config = state.config
        state.transition(Lifecycle.DECLARING)

        async with self._operation(Operation.CREATE, state) as client:
            group = await get_security_group(client, self._group_reference(config))
            target = await resolve_target(client, config)

            request = canonical_request(group.id or "", config, target)
            response: SecurityGroup = await client.request(for_direction(request, config.direction))

        # The provider returns the group with only the new rule in the list
        rules = (
            response.ingress_rules
            if config.direction is Direction.INGRESS
            else response.egress_rules
        )
        if not rules:
            state.transition(Lifecycle.ABSENT)
            raise NotFound(
                f"No {config.direction.value.lower()} rule returned by security group {group.name}"
            )

        state.id = rules[0].rule_id
        self._log_write(
            "created", state, direction=config.direction.value, security_group=group.name
        )
        state.transition(Lifecycle.PRESENT)
        await self.read(state)

    async def read(self, state: ResourceState[SecurityGroupRuleConfig]) -> None:
        """Refresh state from the parent group's rule lists.

        A missing group or a rule absent from both lists clears the identity.
        """
        async with self._operation(Operation.READ, state) as client:
            try:
                group = await get_security_group(client, self._group_reference(state.config))
            except NotFound as e:
                handle_not_found(state, e)
                return

        found = find_rule(group, state.id)
        if found is None:
            logger.info(
                "Rule no longer present in its security group",
                extra={"resource_id": state.id, "security_group": group.name},
            )
            state.mark_absent()
            return

        direction, rule = found
        apply_security_group_rule(state, group, rule, direction)

    async def _probe(
        self, client: BoundClient, state: ResourceState[SecurityGroupRuleConfig]
    ) -> bool:
        group = await get_security_group(client, self._group_reference(state.config))
        return find_rule(group, state.id) is not None

    async def delete(self, state: ResourceState[SecurityGroupRuleConfig]) -> None:
        """Revoke the rule with the command matching its direction."""
        direction = state.config.direction
        state.transition(Lifecycle.REMOVING)

        async with self._operation(Operation.DELETE, state) as client:
            await client.boolean_request(revoke_command(direction, state.id))

        self._log_write("deleted", state, direction=direction.value)
        state.mark_absent()

    async def import_state(
        self, identifier: str
    ) -> list[ResourceState[SecurityGroupRuleConfig]]:
        """Adopt an existing rule from a compound reference.

        Raises:
            ValidationError: If identifier is not a valid rule reference.
            NotFound: If the group or rule does not exist, or the rule has
                a different direction than the one referenced.
        """
        reference = RuleReference.parse(identifier)
        probe = self._new_state(SecurityGroupRuleConfig.model_construct(), reference.rule_id)

        async with self._operation(Operation.READ, probe) as client:
            group = await get_security_group(client, reference.group)

        found = find_rule(group, reference.rule_id)
        if found is None or (reference.direction and found[0] is not reference.direction):
            raise NotFound(f"Security group rule not found: {identifier}")

        direction, rule = found
        return [self.state_from_remote(group, rule, direction)]
