"""netctl command line interface.

Offline tooling around declared network configuration. Nothing here talks
to the provider.

Usage:
    netctl validate config.yaml   # Validate a declared configuration
    netctl cidr 10.0.0.0/24       # Show netmask and gateway of a CIDR
    netctl plan config.yaml       # Preview the create commands
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import click
import yaml

from .commands import AddNicToVirtualMachine, CreateSecurityGroup
from .config import Config, ConfigurationError
from .errors import ReconcileError
from .identifiers import parse_uuid
from .ipcalc import subnet_parameters
from .main import setup_logging
from .models import DeclaredConfig
from .rules import AUTHORIZE_COMMANDS, target_summary
from .spec_loader import SpecLoadError, load_declared_config

logger = logging.getLogger(__name__)


def _load(path: Path) -> DeclaredConfig:
    try:
        return load_declared_config(path)
    except SpecLoadError as e:
        raise click.ClickException(str(e)) from e


def build_plan(declared: DeclaredConfig) -> list[dict[str, Any]]:
    """Describe the create command each declared resource maps to.

    Zone, offering and group names are shown as declared; they are only
    resolved against the provider at reconciliation time.
    """
    plan: list[dict[str, Any]] = []

    for network in declared.networks:
        subnet = subnet_parameters(network.cidr)
        entry: dict[str, Any] = {
            "resource": "network",
            "name": network.name,
            "command": "createNetwork",
            "displaytext": network.display_text or network.name,
            "zone": network.zone,
            "networkOffering": network.network_offering,
        }
        if not subnet.is_default:
            entry["netmask"] = subnet.netmask
            entry["gateway"] = subnet.gateway
        if network.tags:
            entry["tags"] = dict(sorted(network.tags.items()))
        plan.append(entry)

    for nic in declared.nics:
        command = AddNicToVirtualMachine(
            network_id=parse_uuid(nic.network_id),
            virtual_machine_id=parse_uuid(nic.compute_id),
            ip_address=nic.ip_address,
        )
        plan.append({"resource": "nic", "command": command.api_name, **command.to_params()})

    for group in declared.security_groups:
        command = CreateSecurityGroup(name=group.name, description=group.description or None)
        plan.append(
            {"resource": "security_group", "command": command.api_name, **command.to_params()}
        )

    for rule in declared.security_group_rules:
        entry = {
            "resource": "security_group_rule",
            "command": AUTHORIZE_COMMANDS[rule.direction].api_name,
            "securityGroup": rule.security_group_id or rule.security_group,
            "protocol": rule.protocol.wire_name,
            "target": target_summary(rule),
        }
        if rule.start_port is not None or rule.end_port is not None:
            entry["ports"] = f"{rule.start_port or 0}-{rule.end_port or 0}"
        if rule.icmp_type is not None or rule.icmp_code is not None:
            entry["icmp"] = f"{rule.icmp_type or 0}/{rule.icmp_code or 0}"
        plan.append(entry)

    return plan


# =============================================================================
# Main CLI Group
# =============================================================================


@click.group()
@click.version_option(version="0.1.0", prog_name="netctl")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Network controller CLI (netctl).

    \b
    Quick Start:
        netctl validate config.yaml
        netctl plan config.yaml
    """
    try:
        config = Config.from_env()
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e
    if verbose:
        config = Config(timeouts=config.timeouts, log_level="DEBUG", json_logs=config.json_logs)
    setup_logging(config)


@cli.command()
@click.argument("path", type=click.Path(path_type=Path))
def validate(path: Path) -> None:
    """Validate a declared configuration file."""
    declared = _load(path)
    click.secho(f"✓ {path} is valid ({declared.resource_count} resources)", fg="green")


@cli.command()
@click.argument("cidr")
def cidr(cidr: str) -> None:
    """Show the netmask and gateway derived from an IPv4 CIDR."""
    try:
        subnet = subnet_parameters(cidr)
    except ReconcileError as e:
        raise click.ClickException(str(e)) from e
    click.echo(yaml.safe_dump({"netmask": subnet.netmask, "gateway": subnet.gateway}), nl=False)


@cli.command()
@click.argument("path", type=click.Path(path_type=Path))
def plan(path: Path) -> None:
    """Preview the create commands for a declared configuration."""
    declared = _load(path)
    try:
        entries = build_plan(declared)
    except ReconcileError as e:
        raise click.ClickException(str(e)) from e
    if not entries:
        click.echo("Nothing declared.")
        return
    click.echo(yaml.safe_dump(entries, sort_keys=False), nl=False)
