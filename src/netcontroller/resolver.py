"""Identity resolution for declared references.

A reference is either an opaque identifier or a human name. Strings that
parse as a UUID are resolved by identifier, anything else by name.

Security group rules have no lookup primitive of their own: a rule is found
by fetching its parent group and scanning the embedded rule lists, egress
first, then ingress. The scan is linear; rule sets are small enough that an
index would not pay for itself.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING
from uuid import UUID

from .commands import ListNetworkOfferings, ListZones
from .errors import AmbiguousReference, NotFound, RemoteError, ValidationError
from .identifiers import is_uuid, parse_uuid
from .models import Direction
from .remote import (
    ListNetworkOfferingsResponse,
    ListZonesResponse,
    NetworkOffering,
    SecurityGroup,
    SecurityGroupRule,
    Zone,
)

if TYPE_CHECKING:
    from .context import BoundClient

logger = logging.getLogger(__name__)


async def get_zone(client: BoundClient, reference: str) -> Zone:
    """Resolve a zone by id or name.

    Raises:
        NotFound: If no zone matches.
        AmbiguousReference: If more than one zone matches the name.
    """
    if is_uuid(reference):
        command = ListZones(id=parse_uuid(reference))
    else:
        command = ListZones(name=reference)

    response: ListZonesResponse = await client.request(command)
    if response.count == 0 or not response.zones:
        raise NotFound(f"Zone not found: {reference}")
    if response.count > 1:
        raise AmbiguousReference(f"More than one zone found for: {reference}")
    return response.zones[0]


async def get_network_offering(
    client: BoundClient, reference: str, zone_id: str | None = None
) -> NetworkOffering:
    """Resolve a network offering by id or name.

    Raises:
        NotFound: If no offering matches.
        AmbiguousReference: If more than one offering matches the name.
    """
    zone = parse_uuid(zone_id, "zone id") if zone_id else None
    if is_uuid(reference):
        command = ListNetworkOfferings(id=parse_uuid(reference), zone_id=zone)
    else:
        command = ListNetworkOfferings(name=reference, zone_id=zone)

    response: ListNetworkOfferingsResponse = await client.request(command)
    if response.count == 0 or not response.network_offerings:
        raise NotFound(f"Network offering not found: {reference}")
    if response.count > 1:
        raise AmbiguousReference(f"More than one network offering found for: {reference}")
    return response.network_offerings[0]


@dataclass(frozen=True)
class GroupReference:
    """Reference to a security group by id or by name."""

    id: UUID | None = None
    name: str | None = None

    def __post_init__(self) -> None:
        if self.id is None and not self.name:
            raise ValidationError("Missing either Security Group ID or Name")

    @classmethod
    def parse(cls, reference: str) -> GroupReference:
        """Build a reference from a string that is either an id or a name."""
        if is_uuid(reference):
            return cls(id=parse_uuid(reference))
        return cls(name=reference)

    @classmethod
    def from_fields(cls, group_id: str | None, group_name: str | None) -> GroupReference:
        """Build a reference from mutually exclusive id and name inputs.

        The id wins when both are set.
        """
        if group_id:
            return cls(id=parse_uuid(group_id, "security group id"))
        return cls(name=group_name)

    def to_query(self) -> SecurityGroup:
        if self.id is not None:
            return SecurityGroup(id=str(self.id))
        return SecurityGroup(name=self.name)

    def __str__(self) -> str:
        return str(self.id) if self.id is not None else str(self.name)


async def get_security_group(client: BoundClient, reference: GroupReference) -> SecurityGroup:
    """Fetch a security group with its rule lists.

    Raises:
        NotFound: If the provider reports no such group.
        RemoteError: For any other provider failure.
    """
    try:
        return await client.get(reference.to_query())
    except RemoteError as e:
        if e.not_found:
            raise NotFound(f"Security group not found: {reference}") from e
        raise


def iter_rules(group: SecurityGroup) -> Iterator[tuple[Direction, SecurityGroupRule]]:
    """Yield every rule of a group with its direction, egress rules first."""
    for rule in group.egress_rules:
        yield Direction.EGRESS, rule
    for rule in group.ingress_rules:
        yield Direction.INGRESS, rule


def find_rule(
    group: SecurityGroup, rule_id: str
) -> tuple[Direction, SecurityGroupRule] | None:
    """Find a rule in a group by identifier.

    Returns:
        The direction and rule of the first match, or None when the rule is
        no longer present.
    """
    wanted = rule_id.lower()
    for direction, rule in iter_rules(group):
        if rule.rule_id.lower() == wanted:
            return direction, rule
    return None


@dataclass(frozen=True)
class RuleReference:
    """Compound reference to a rule: group, optional direction, rule id.

    Accepted forms are ``<group>/<rule-id>`` and
    ``<group>/<INGRESS|EGRESS>/<rule-id>``, where ``<group>`` is a
    security group id or name.
    """

    group: GroupReference
    rule_id: str
    direction: Direction | None = None

    @classmethod
    def parse(cls, reference: str) -> RuleReference:
        parts = reference.split("/")
        if len(parts) == 2:
            group, rule_id = parts
            direction = None
        elif len(parts) == 3:
            group, raw_direction, rule_id = parts
            try:
                direction = Direction.parse(raw_direction)
            except ValueError as e:
                raise ValidationError(str(e)) from e
        else:
            raise ValidationError(
                f"Invalid rule reference {reference!r}, expected "
                "<group>/<rule-id> or <group>/<INGRESS|EGRESS>/<rule-id>"
            )
        if not group:
            raise ValidationError(f"Invalid rule reference {reference!r}: empty group")
        return cls(
            group=GroupReference.parse(group),
            rule_id=str(parse_uuid(rule_id, "rule id")),
            direction=direction,
        )
