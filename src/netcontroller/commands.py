"""Provider API commands.

Each command is a frozen pydantic model whose aliases are the provider's
parameter names. ``api_name`` is the command name sent on the wire and
``to_params()`` renders the parameters, omitting unset optional fields.

Ingress and egress authorization share one field set
(AuthorizeSecurityGroupRule); the concrete subclasses only differ by the
command they are sent as. The same holds for revocation.
"""

from __future__ import annotations

from typing import Any, ClassVar
from uuid import UUID

from pydantic import BaseModel, Field

from .remote import ResourceTag, UserSecurityGroup


class Command(BaseModel):
    """Base class of provider commands."""

    model_config = {"extra": "forbid", "populate_by_name": True, "frozen": True}

    api_name: ClassVar[str] = ""

    def to_params(self) -> dict[str, Any]:
        """Render the command parameters with wire names."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


# =============================================================================
# Lookups
# =============================================================================


class ListZones(Command):
    api_name: ClassVar[str] = "listZones"

    id: UUID | None = None
    name: str | None = None


class ListNetworkOfferings(Command):
    api_name: ClassVar[str] = "listNetworkOfferings"

    id: UUID | None = None
    name: str | None = None
    zone_id: UUID | None = Field(None, alias="zoneid")


# =============================================================================
# Networks
# =============================================================================


class CreateNetwork(Command):
    api_name: ClassVar[str] = "createNetwork"

    name: str
    display_text: str = Field(alias="displaytext")
    network_offering_id: UUID = Field(alias="networkofferingid")
    zone_id: UUID = Field(alias="zoneid")
    netmask: str | None = None
    gateway: str | None = None


class UpdateNetwork(Command):
    api_name: ClassVar[str] = "updateNetwork"

    id: UUID
    name: str | None = None
    display_text: str | None = Field(None, alias="displaytext")


class DeleteNetwork(Command):
    api_name: ClassVar[str] = "deleteNetwork"

    id: UUID


class ListNetworks(Command):
    api_name: ClassVar[str] = "listNetworks"

    id: UUID | None = None
    zone_id: UUID | None = Field(None, alias="zoneid")


# =============================================================================
# NICs
# =============================================================================


class AddNicToVirtualMachine(Command):
    api_name: ClassVar[str] = "addNicToVirtualMachine"

    network_id: UUID = Field(alias="networkid")
    virtual_machine_id: UUID = Field(alias="virtualmachineid")
    ip_address: str | None = Field(None, alias="ipaddress")


class RemoveNicFromVirtualMachine(Command):
    api_name: ClassVar[str] = "removeNicFromVirtualMachine"

    nic_id: UUID = Field(alias="nicid")
    virtual_machine_id: UUID = Field(alias="virtualmachineid")


class ListNics(Command):
    api_name: ClassVar[str] = "listNics"

    nic_id: UUID | None = Field(None, alias="nicid")
    virtual_machine_id: UUID = Field(alias="virtualmachineid")
    network_id: UUID | None = Field(None, alias="networkid")


class UpdateVmNicIp(Command):
    api_name: ClassVar[str] = "updateVmNicIp"

    nic_id: UUID = Field(alias="nicid")
    ip_address: str | None = Field(None, alias="ipaddress")


# =============================================================================
# Security groups
# =============================================================================


class CreateSecurityGroup(Command):
    api_name: ClassVar[str] = "createSecurityGroup"

    name: str
    description: str | None = None


class DeleteSecurityGroup(Command):
    api_name: ClassVar[str] = "deleteSecurityGroup"

    id: UUID | None = None
    name: str | None = None


class AuthorizeSecurityGroupRule(Command):
    """Canonical rule authorization shape shared by both directions."""

    security_group_id: UUID = Field(alias="securitygroupid")
    cidr_list: list[str] = Field(default_factory=list, alias="cidrlist")
    user_security_group_list: list[UserSecurityGroup] = Field(
        default_factory=list, alias="usersecuritygrouplist"
    )
    description: str | None = None
    protocol: str
    start_port: int = Field(0, alias="startport")
    end_port: int = Field(0, alias="endport")
    icmp_type: int = Field(0, alias="icmptype")
    icmp_code: int = Field(0, alias="icmpcode")


class AuthorizeSecurityGroupIngress(AuthorizeSecurityGroupRule):
    api_name: ClassVar[str] = "authorizeSecurityGroupIngress"


class AuthorizeSecurityGroupEgress(AuthorizeSecurityGroupRule):
    api_name: ClassVar[str] = "authorizeSecurityGroupEgress"


class RevokeSecurityGroupRule(Command):
    """Canonical rule revocation shape shared by both directions."""

    id: UUID


class RevokeSecurityGroupIngress(RevokeSecurityGroupRule):
    api_name: ClassVar[str] = "revokeSecurityGroupIngress"


class RevokeSecurityGroupEgress(RevokeSecurityGroupRule):
    api_name: ClassVar[str] = "revokeSecurityGroupEgress"


# =============================================================================
# Tags
# =============================================================================


class CreateTags(Command):
    api_name: ClassVar[str] = "createTags"

    resource_ids: list[str] = Field(alias="resourceids")
    resource_type: str = Field(alias="resourcetype")
    tags: list[ResourceTag]


class DeleteTags(Command):
    api_name: ClassVar[str] = "deleteTags"

    resource_ids: list[str] = Field(alias="resourceids")
    resource_type: str = Field(alias="resourcetype")
    tags: list[ResourceTag] = Field(default_factory=list)
