"""Mutually exclusive field resolution for security group rules.

A rule targets either a CIDR block or a peer security group, never both,
and selects traffic either by port range or by ICMP type/code. This module
decides which alternative is populated and normalizes the rule into the
provider's request shape.

Ingress and egress requests carry identical fields. The request is built
once in its canonical form and then tagged with the direction, instead of
keeping two copies of the construction logic.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from .commands import (
    AuthorizeSecurityGroupEgress,
    AuthorizeSecurityGroupIngress,
    AuthorizeSecurityGroupRule,
    RevokeSecurityGroupEgress,
    RevokeSecurityGroupIngress,
)
from .errors import AmbiguousTarget
from .identifiers import parse_uuid
from .ipcalc import validate_cidr
from .models import Direction, SecurityGroupRuleConfig
from .remote import UserSecurityGroup
from .resolver import GroupReference, get_security_group

if TYPE_CHECKING:
    from .context import BoundClient

AUTHORIZE_COMMANDS: dict[Direction, type[AuthorizeSecurityGroupRule]] = {
    Direction.INGRESS: AuthorizeSecurityGroupIngress,
    Direction.EGRESS: AuthorizeSecurityGroupEgress,
}

REVOKE_COMMANDS: dict[Direction, type[RevokeSecurityGroupIngress | RevokeSecurityGroupEgress]] = {
    Direction.INGRESS: RevokeSecurityGroupIngress,
    Direction.EGRESS: RevokeSecurityGroupEgress,
}


class TargetKind(str, Enum):
    """Which target alternative a rule uses."""

    CIDR = "cidr"
    USER_SECURITY_GROUP = "user_security_group"


@dataclass(frozen=True)
class RuleTarget:
    """Resolved rule target in the provider's list form."""

    cidr_list: tuple[str, ...] = ()
    user_security_groups: tuple[UserSecurityGroup, ...] = ()


def select_target(config: SecurityGroupRuleConfig) -> TargetKind:
    """Determine which target alternative is populated.

    The CIDR is checked first, so it takes priority if both are set.

    Raises:
        AmbiguousTarget: If neither a CIDR nor a user security group is set.
    """
    if config.cidr:
        return TargetKind.CIDR
    if config.user_security_group_id or config.user_security_group:
        return TargetKind.USER_SECURITY_GROUP
    raise AmbiguousTarget("No CIDR, User Security Group ID or Name were provided")


async def resolve_target(client: BoundClient, config: SecurityGroupRuleConfig) -> RuleTarget:
    """Resolve the populated target alternative.

    A peer group is looked up so the request can carry its account and name.

    Raises:
        AmbiguousTarget: If no target is populated.
        NotFound: If the peer group does not exist.
    """
    if config.cidr:
        return RuleTarget(cidr_list=(validate_cidr(config.cidr),))

    # Raises AmbiguousTarget when no peer group is named either
    select_target(config)
    reference = GroupReference.from_fields(
        config.user_security_group_id, config.user_security_group
    )
    group = await get_security_group(client, reference)
    return RuleTarget(
        user_security_groups=(UserSecurityGroup(account=group.account, group=group.name or ""),)
    )


def canonical_request(
    security_group_id: UUID | str,
    config: SecurityGroupRuleConfig,
    target: RuleTarget,
) -> AuthorizeSecurityGroupRule:
    """Build the direction-independent authorization request.

    Port range and ICMP type/code are passed through as declared; the unset
    pair is sent as zeros.
    """
    return AuthorizeSecurityGroupRule(
        security_group_id=parse_uuid(security_group_id, "security group id"),
        cidr_list=list(target.cidr_list),
        user_security_group_list=list(target.user_security_groups),
        description=config.description or None,
        protocol=config.protocol.wire_name,
        start_port=config.start_port or 0,
        end_port=config.end_port or 0,
        icmp_type=config.icmp_type or 0,
        icmp_code=config.icmp_code or 0,
    )


def for_direction(
    request: AuthorizeSecurityGroupRule, direction: Direction
) -> AuthorizeSecurityGroupRule:
    """Tag a canonical request as an ingress or egress command."""
    command_class = AUTHORIZE_COMMANDS[direction]
    return command_class(**dict(request))


def revoke_command(
    direction: Direction, rule_id: str
) -> RevokeSecurityGroupIngress | RevokeSecurityGroupEgress:
    """Build the revocation command for a rule of the given direction."""
    return REVOKE_COMMANDS[direction](id=parse_uuid(rule_id, "rule id"))


def target_summary(config: SecurityGroupRuleConfig) -> str:
    """Human readable target of a declared rule, without remote lookups."""
    if select_target(config) is TargetKind.CIDR:
        return f"cidr:{config.cidr}"
    return f"group:{config.user_security_group_id or config.user_security_group}"
