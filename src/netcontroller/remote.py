"""Pydantic models of provider objects.

Field aliases are the provider's wire names. Unknown fields are ignored so
newer API versions keep parsing.
"""

from __future__ import annotations

from typing import ClassVar

from pydantic import BaseModel, Field

# =============================================================================
# Shared
# =============================================================================


class ResourceTag(BaseModel):
    """Key/value tag attached to a provider resource."""

    model_config = {"extra": "ignore", "populate_by_name": True}

    key: str
    value: str = ""
    resource_id: str | None = Field(None, alias="resourceid")
    resource_type: str | None = Field(None, alias="resourcetype")


class UserSecurityGroup(BaseModel):
    """Peer group reference used as a rule target."""

    model_config = {"extra": "ignore", "populate_by_name": True}

    account: str = ""
    group: str


# =============================================================================
# Zones and offerings
# =============================================================================


class Zone(BaseModel):
    """Availability zone."""

    model_config = {"extra": "ignore", "populate_by_name": True}

    id: str
    name: str


class NetworkOffering(BaseModel):
    """Network offering."""

    model_config = {"extra": "ignore", "populate_by_name": True}

    id: str
    name: str
    display_text: str = Field("", alias="displaytext")
    specify_ip_ranges: bool = Field(False, alias="specifyipranges")


# =============================================================================
# Networks and NICs
# =============================================================================


class Network(BaseModel):
    """Logical network."""

    model_config = {"extra": "ignore", "populate_by_name": True}

    resource_type: ClassVar[str] = "Network"

    id: str
    name: str = ""
    display_text: str = Field("", alias="displaytext")
    zone_id: str | None = Field(None, alias="zoneid")
    zone_name: str = Field("", alias="zonename")
    network_offering_id: str | None = Field(None, alias="networkofferingid")
    network_offering_name: str = Field("", alias="networkofferingname")
    cidr: str | None = None
    netmask: str | None = None
    gateway: str | None = None
    tags: list[ResourceTag] = Field(default_factory=list)

    def tag_map(self) -> dict[str, str]:
        """Tags as a plain mapping."""
        return {tag.key: tag.value for tag in self.tags}


class Nic(BaseModel):
    """Virtual network interface attaching a machine to a network."""

    model_config = {"extra": "ignore", "populate_by_name": True}

    id: str
    virtual_machine_id: str = Field("", alias="virtualmachineid")
    network_id: str = Field("", alias="networkid")
    ip_address: str | None = Field(None, alias="ipaddress")
    netmask: str | None = None
    gateway: str | None = None
    mac_address: str | None = Field(None, alias="macaddress")
    is_default: bool = Field(False, alias="isdefault")


class VirtualMachine(BaseModel):
    """Compute instance, as returned by NIC attach and detach commands."""

    model_config = {"extra": "ignore", "populate_by_name": True}

    id: str
    name: str = ""
    nics: list[Nic] = Field(default_factory=list, alias="nic")

    def nic_by_network_id(self, network_id: str) -> Nic | None:
        """Find the NIC attached to a network, if any."""
        wanted = network_id.lower()
        for nic in self.nics:
            if nic.network_id.lower() == wanted:
                return nic
        return None


# =============================================================================
# Security groups
# =============================================================================


class SecurityGroupRule(BaseModel):
    """Ingress or egress rule. Both directions share this shape."""

    model_config = {"extra": "ignore", "populate_by_name": True}

    rule_id: str = Field(alias="ruleid")
    description: str = ""
    cidr: str | None = None
    protocol: str = ""
    start_port: int = Field(0, alias="startport")
    end_port: int = Field(0, alias="endport")
    icmp_type: int = Field(0, alias="icmptype")
    icmp_code: int = Field(0, alias="icmpcode")
    security_group_name: str = Field("", alias="securitygroupname")
    account: str = ""


class SecurityGroup(BaseModel):
    """Security group with its embedded rule lists.

    Also used as the query object for ComputeClient.get(): set id or name.
    """

    model_config = {"extra": "ignore", "populate_by_name": True}

    id: str | None = None
    name: str | None = None
    description: str = ""
    account: str = ""
    ingress_rules: list[SecurityGroupRule] = Field(default_factory=list, alias="ingressrule")
    egress_rules: list[SecurityGroupRule] = Field(default_factory=list, alias="egressrule")


# =============================================================================
# List responses
# =============================================================================


class ListZonesResponse(BaseModel):
    model_config = {"extra": "ignore", "populate_by_name": True}

    count: int = 0
    zones: list[Zone] = Field(default_factory=list, alias="zone")


class ListNetworkOfferingsResponse(BaseModel):
    model_config = {"extra": "ignore", "populate_by_name": True}

    count: int = 0
    network_offerings: list[NetworkOffering] = Field(
        default_factory=list, alias="networkoffering"
    )


class ListNetworksResponse(BaseModel):
    model_config = {"extra": "ignore", "populate_by_name": True}

    count: int = 0
    networks: list[Network] = Field(default_factory=list, alias="network")


class ListNicsResponse(BaseModel):
    model_config = {"extra": "ignore", "populate_by_name": True}

    count: int = 0
    nics: list[Nic] = Field(default_factory=list, alias="nic")
