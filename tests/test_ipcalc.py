"""Tests for subnet arithmetic."""

import pytest

from netcontroller.errors import InvalidCIDR, ValidationError
from netcontroller.ipcalc import (
    ZERO_ADDRESS,
    SubnetParameters,
    subnet_parameters,
    validate_cidr,
    validate_ipv4_address,
)


class TestSubnetParameters:
    """Tests for netmask and gateway derivation."""

    @pytest.mark.parametrize(
        ("cidr", "netmask", "gateway"),
        [
            ("10.0.0.0/24", "255.255.255.0", "10.0.0.255"),
            ("192.168.1.0/30", "255.255.255.252", "192.168.1.3"),
            ("172.16.0.0/12", "255.240.0.0", "172.31.255.255"),
            ("10.1.2.3/32", "255.255.255.255", "10.1.2.3"),
            ("0.0.0.0/0", "0.0.0.0", "255.255.255.255"),
        ],
    )
    def test_netmask_and_gateway(self, cidr: str, netmask: str, gateway: str) -> None:
        assert subnet_parameters(cidr) == SubnetParameters(netmask=netmask, gateway=gateway)

    def test_host_bits_are_masked(self) -> None:
        """The address part may carry host bits; they do not leak into the gateway."""
        assert subnet_parameters("10.0.0.77/24").gateway == "10.0.0.255"

    @pytest.mark.parametrize("cidr", [None, ""])
    def test_no_cidr_yields_zero_addresses(self, cidr: str | None) -> None:
        params = subnet_parameters(cidr)

        assert params.netmask == ZERO_ADDRESS
        assert params.gateway == ZERO_ADDRESS
        assert params.is_default

    def test_ipv6_is_rejected(self) -> None:
        with pytest.raises(InvalidCIDR, match="is not an IPv4 address"):
            subnet_parameters("fd00::/64")

    @pytest.mark.parametrize("cidr", ["10.0.0.0", "10.0.0.0/33", "not-a-cidr"])
    def test_malformed_cidr(self, cidr: str) -> None:
        with pytest.raises(InvalidCIDR):
            subnet_parameters(cidr)


class TestValidators:
    """Tests for the standalone validators."""

    def test_validate_cidr_accepts_both_families(self) -> None:
        assert validate_cidr("10.0.0.1/8") == "10.0.0.0/8"
        assert validate_cidr("::/0") == "::/0"

    def test_validate_cidr_requires_prefix(self) -> None:
        with pytest.raises(InvalidCIDR):
            validate_cidr("10.0.0.1")

    def test_validate_ipv4_address(self) -> None:
        assert validate_ipv4_address(" 10.0.0.5 ") == "10.0.0.5"

        with pytest.raises(InvalidCIDR):
            validate_ipv4_address("fd00::1")

    def test_invalid_cidr_is_a_value_error(self) -> None:
        with pytest.raises(ValueError):
            subnet_parameters("garbage")
        assert issubclass(InvalidCIDR, ValidationError)
