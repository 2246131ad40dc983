"""Pydantic models for declared configuration with validation.

These models provide:
1. Type-safe YAML parsing
2. Validation at the boundary (fail fast, fail loudly)
3. One typed record per entity instead of string-keyed field access
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated

from pydantic import BaseModel, Field, field_validator, model_validator

from .identifiers import parse_uuid
from .ipcalc import parse_ipv4_cidr, validate_cidr, validate_ipv4_address

# =============================================================================
# Enumerations
# =============================================================================


class Direction(str, Enum):
    """Traffic direction of a security group rule."""

    INGRESS = "INGRESS"
    EGRESS = "EGRESS"

    @classmethod
    def parse(cls, value: str | Direction) -> Direction:
        """Parse a direction case-insensitively."""
        if isinstance(value, Direction):
            return value
        try:
            return cls(value.strip().upper())
        except ValueError as e:
            valid = [d.value for d in cls]
            raise ValueError(f"type must be one of {valid}: {value}") from e


class Protocol(str, Enum):
    """Rule protocols. Values are the upper-cased protocol names."""

    TCP = "TCP"
    UDP = "UDP"
    ICMP = "ICMP"
    ICMPV6 = "ICMPV6"
    AH = "AH"
    ESP = "ESP"
    GRE = "GRE"
    ALL = "ALL"

    @classmethod
    def parse(cls, value: str | Protocol) -> Protocol:
        """Parse a protocol case-insensitively."""
        if isinstance(value, Protocol):
            return value
        try:
            return cls(value.strip().upper())
        except ValueError as e:
            valid = ["TCP", "UDP", "ICMP", "ICMPv6", "AH", "ESP", "GRE", "ALL"]
            raise ValueError(f"protocol must be one of {valid}: {value}") from e

    @property
    def wire_name(self) -> str:
        """Protocol name as sent to the provider."""
        return self.value.lower()


Port = Annotated[int, Field(ge=0, le=65535)]
IcmpValue = Annotated[int, Field(ge=0, le=255)]


# =============================================================================
# Network
# =============================================================================


class NetworkConfig(BaseModel):
    """Logical network.

    CIDR and zone are immutable after creation; name and display text can be
    updated in place. netmask and gateway are computed from the remote.
    """

    model_config = {"extra": "ignore", "populate_by_name": True}

    name: Annotated[str, Field(min_length=1)]
    display_text: str = Field("", alias="displayText")
    network_offering: Annotated[str, Field(min_length=1, alias="networkOffering")]
    zone: Annotated[str, Field(min_length=1)]
    cidr: str | None = None
    tags: dict[str, str] = Field(default_factory=dict)

    # Computed
    netmask: str | None = None
    gateway: str | None = None

    @field_validator("cidr")
    @classmethod
    def validate_cidr(cls, v: str | None) -> str | None:
        if v:
            parse_ipv4_cidr(v)
        return v or None


# =============================================================================
# NIC
# =============================================================================


class NicConfig(BaseModel):
    """NIC attachment of one machine to one network.

    The machine and network are fixed for the life of the attachment; only
    the IP address can be updated.
    """

    model_config = {"extra": "ignore", "populate_by_name": True}

    compute_id: str = Field(alias="computeId")
    network_id: str = Field(alias="networkId")
    ip_address: str | None = Field(None, alias="ipAddress")

    # Computed
    netmask: str | None = None
    gateway: str | None = None
    mac_address: str | None = Field(None, alias="macAddress")

    @field_validator("compute_id", "network_id")
    @classmethod
    def validate_ids(cls, v: str) -> str:
        return str(parse_uuid(v))

    @field_validator("ip_address")
    @classmethod
    def validate_ip_address(cls, v: str | None) -> str | None:
        if v:
            return validate_ipv4_address(v)
        return None


# =============================================================================
# Security group
# =============================================================================


class SecurityGroupConfig(BaseModel):
    """Security group. Name and description are immutable."""

    model_config = {"extra": "ignore", "populate_by_name": True}

    name: Annotated[str, Field(min_length=1)]
    description: str = ""
    tags: dict[str, str] = Field(default_factory=dict)

    @field_validator("tags")
    @classmethod
    def reject_tags(cls, v: dict[str, str]) -> dict[str, str]:
        if v:
            raise ValueError("Tags cannot be set on security groups for the time being")
        return v


class SecurityGroupRuleConfig(BaseModel):
    """Security group rule. Every field forces replacement when changed.

    Mutually exclusive inputs:
    - security_group_id / security_group
    - cidr / user_security_group_id / user_security_group
    - start_port, end_port / icmp_type, icmp_code
    """

    model_config = {"extra": "ignore", "populate_by_name": True}

    direction: Direction = Field(alias="type")
    security_group_id: str | None = Field(None, alias="securityGroupId")
    security_group: str | None = Field(None, alias="securityGroup")
    description: str = ""
    protocol: Protocol = Protocol.TCP
    cidr: str | None = None
    start_port: Port | None = Field(None, alias="startPort")
    end_port: Port | None = Field(None, alias="endPort")
    icmp_type: IcmpValue | None = Field(None, alias="icmpType")
    icmp_code: IcmpValue | None = Field(None, alias="icmpCode")
    user_security_group_id: str | None = Field(None, alias="userSecurityGroupId")
    user_security_group: str | None = Field(None, alias="userSecurityGroup")

    @field_validator("direction", mode="before")
    @classmethod
    def parse_direction(cls, v: object) -> object:
        if isinstance(v, str):
            return Direction.parse(v)
        return v

    @field_validator("protocol", mode="before")
    @classmethod
    def parse_protocol(cls, v: object) -> object:
        if isinstance(v, str):
            return Protocol.parse(v)
        return v

    @field_validator("cidr")
    @classmethod
    def validate_rule_cidr(cls, v: str | None) -> str | None:
        if v:
            return validate_cidr(v)
        return None

    @field_validator("security_group_id", "user_security_group_id")
    @classmethod
    def validate_group_ids(cls, v: str | None) -> str | None:
        if v:
            return str(parse_uuid(v))
        return None

    @model_validator(mode="after")
    def check_conflicts(self) -> SecurityGroupRuleConfig:
        conflicts: list[str] = []
        if self.security_group_id and self.security_group:
            conflicts.append("securityGroupId conflicts with securityGroup")
        targets = [
            name
            for name, value in (
                ("cidr", self.cidr),
                ("userSecurityGroupId", self.user_security_group_id),
                ("userSecurityGroup", self.user_security_group),
            )
            if value
        ]
        if len(targets) > 1:
            conflicts.append(f"{' and '.join(targets)} are mutually exclusive")
        has_ports = self.start_port is not None or self.end_port is not None
        has_icmp = self.icmp_type is not None or self.icmp_code is not None
        if has_ports and has_icmp:
            conflicts.append("startPort/endPort conflict with icmpType/icmpCode")
        if conflicts:
            raise ValueError("; ".join(conflicts))
        return self


# =============================================================================
# Declared configuration document
# =============================================================================


class DeclaredConfig(BaseModel):
    """All resources declared in one configuration document."""

    model_config = {"extra": "ignore", "populate_by_name": True}

    networks: list[NetworkConfig] = Field(default_factory=list)
    nics: list[NicConfig] = Field(default_factory=list)
    security_groups: list[SecurityGroupConfig] = Field(
        default_factory=list, alias="securityGroups"
    )
    security_group_rules: list[SecurityGroupRuleConfig] = Field(
        default_factory=list, alias="securityGroupRules"
    )

    @property
    def resource_count(self) -> int:
        return (
            len(self.networks)
            + len(self.nics)
            + len(self.security_groups)
            + len(self.security_group_rules)
        )
