"""IPv4 subnet arithmetic for network creation.

The gateway handed to the provider is the last address of the subnet
(subnet address plus the mask complement). This is the provider's
convention and is kept as is; it is NOT the first usable address.
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass

from .errors import InvalidCIDR

ZERO_ADDRESS = "0.0.0.0"


@dataclass(frozen=True)
class SubnetParameters:
    """Netmask and gateway derived from a CIDR."""

    netmask: str = ZERO_ADDRESS
    gateway: str = ZERO_ADDRESS

    @property
    def is_default(self) -> bool:
        """True when both values are the zero address (no CIDR declared)."""
        return self.netmask == ZERO_ADDRESS and self.gateway == ZERO_ADDRESS


def parse_ipv4_cidr(cidr: str) -> tuple[ipaddress.IPv4Address, ipaddress.IPv4Network]:
    """Parse an IPv4 CIDR, keeping the host bits of the address.

    Raises:
        InvalidCIDR: If the string is malformed or not IPv4.
    """
    try:
        interface = ipaddress.ip_interface(cidr.strip())
    except ValueError as e:
        raise InvalidCIDR(f"Invalid CIDR {cidr!r}: {e}") from e

    if "/" not in cidr:
        raise InvalidCIDR(f"Invalid CIDR {cidr!r}: missing prefix length")

    if not isinstance(interface, ipaddress.IPv4Interface):
        raise InvalidCIDR(f"Provided cidr {cidr} is not an IPv4 address")

    return interface.ip, interface.network


def validate_cidr(cidr: str) -> str:
    """Validate a CIDR of either family, as accepted by security group rules.

    Returns:
        The CIDR in canonical network form.

    Raises:
        InvalidCIDR: If the string is not a CIDR.
    """
    if "/" not in cidr:
        raise InvalidCIDR(f"Invalid CIDR {cidr!r}: missing prefix length")
    try:
        return str(ipaddress.ip_network(cidr.strip(), strict=False))
    except ValueError as e:
        raise InvalidCIDR(f"Invalid CIDR {cidr!r}: {e}") from e


def validate_ipv4_address(value: str) -> str:
    """Validate a single IPv4 address.

    Raises:
        InvalidCIDR: If the value is not an IPv4 address.
    """
    try:
        address = ipaddress.ip_address(value.strip())
    except ValueError as e:
        raise InvalidCIDR(f"Invalid IP address {value!r}: {e}") from e
    if not isinstance(address, ipaddress.IPv4Address):
        raise InvalidCIDR(f"{value} is not an IPv4 address")
    return str(address)


def subnet_parameters(cidr: str | None) -> SubnetParameters:
    """Compute netmask and gateway from a CIDR.

    The netmask renders the four mask octets; the gateway is the masked
    subnet address with each octet's mask complement added.

    Args:
        cidr: IPv4 CIDR, or None/empty when no CIDR is declared.

    Returns:
        SubnetParameters, both zero addresses when cidr is empty.

    Raises:
        InvalidCIDR: If the CIDR is malformed or not IPv4.
    """
    if not cidr:
        return SubnetParameters()

    ip, network = parse_ipv4_cidr(cidr)
    mask = network.netmask.packed
    subnet = bytes(a & m for a, m in zip(ip.packed, mask, strict=True))
    last = bytes((s + (~m & 0xFF)) & 0xFF for s, m in zip(subnet, mask, strict=True))

    return SubnetParameters(
        netmask=str(ipaddress.IPv4Address(mask)),
        gateway=str(ipaddress.IPv4Address(last)),
    )
