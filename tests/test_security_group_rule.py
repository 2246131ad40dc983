"""Tests for security group rule reconciliation."""

from __future__ import annotations

import pytest
from compute_mock import MockComputeClient, MockComputeState

from netcontroller.commands import (
    AuthorizeSecurityGroupEgress,
    AuthorizeSecurityGroupIngress,
    RevokeSecurityGroupEgress,
    RevokeSecurityGroupIngress,
)
from netcontroller.errors import AmbiguousTarget, NotFound, RemoteError
from netcontroller.models import Direction, Protocol, SecurityGroupRuleConfig
from netcontroller.remote import SecurityGroup
from netcontroller.security_group_rule import SecurityGroupRuleReconciler
from netcontroller.state import Lifecycle, ResourceState


@pytest.fixture
def group(compute_state: MockComputeState) -> SecurityGroup:
    return compute_state.add_security_group("web")


@pytest.fixture
def reconciler(compute_client: MockComputeClient) -> SecurityGroupRuleReconciler:
    return SecurityGroupRuleReconciler(compute_client)


def declare(**fields: object) -> ResourceState[SecurityGroupRuleConfig]:
    config = SecurityGroupRuleConfig.model_validate(fields)
    return ResourceState(config=config, resource_type="security_group_rule")


class TestCreate:
    """Tests for SecurityGroupRuleReconciler.create()."""

    @pytest.mark.asyncio
    async def test_ingress_cidr_rule(
        self,
        reconciler: SecurityGroupRuleReconciler,
        compute_client: MockComputeClient,
        group: SecurityGroup,
    ) -> None:
        state = declare(
            type="INGRESS", securityGroup="web", cidr="0.0.0.0/0", startPort=22, endPort=22
        )

        await reconciler.create(state)

        assert compute_client.call_names() == ["get", "authorizeSecurityGroupIngress", "get"]
        (command,) = compute_client.calls_of(AuthorizeSecurityGroupIngress)
        assert command.to_params() == {
            "securitygroupid": group.id,
            "cidrlist": ["0.0.0.0/0"],
            "usersecuritygrouplist": [],
            "protocol": "tcp",
            "startport": 22,
            "endport": 22,
            "icmptype": 0,
            "icmpcode": 0,
        }
        (remote_rule,) = group.ingress_rules
        assert state.id == remote_rule.rule_id
        assert state.config.direction is Direction.INGRESS
        assert state.config.security_group_id == group.id
        assert state.config.security_group == "web"
        assert state.config.protocol is Protocol.TCP
        assert state.lifecycle is Lifecycle.PRESENT

    @pytest.mark.asyncio
    async def test_egress_rule_to_peer_group(
        self,
        reconciler: SecurityGroupRuleReconciler,
        compute_client: MockComputeClient,
        compute_state: MockComputeState,
        group: SecurityGroup,
    ) -> None:
        peer = compute_state.add_security_group("db")
        state = declare(
            type="egress",
            securityGroupId=group.id,
            userSecurityGroupId=peer.id,
            protocol="udp",
            startPort=5432,
            endPort=5432,
        )

        await reconciler.create(state)

        (command,) = compute_client.calls_of(AuthorizeSecurityGroupEgress)
        params = command.to_params()
        expected = [{"account": compute_state.account, "group": "db"}]
        assert params["usersecuritygrouplist"] == expected
        assert params["cidrlist"] == []
        (remote_rule,) = group.egress_rules
        assert state.id == remote_rule.rule_id
        assert state.config.direction is Direction.EGRESS
        assert state.config.user_security_group == "db"
        assert state.config.cidr is None

    @pytest.mark.asyncio
    async def test_icmp_rule_keeps_icmp_values(
        self, reconciler: SecurityGroupRuleReconciler, group: SecurityGroup
    ) -> None:
        state = declare(
            type="INGRESS", securityGroup="web", cidr="0.0.0.0/0", protocol="ICMP", icmpType=8
        )

        await reconciler.create(state)

        assert state.config.icmp_type == 8
        assert state.config.icmp_code == 0
        assert state.config.start_port is None

    @pytest.mark.asyncio
    async def test_no_target(
        self,
        reconciler: SecurityGroupRuleReconciler,
        compute_client: MockComputeClient,
        group: SecurityGroup,
    ) -> None:
        state = declare(type="INGRESS", securityGroup="web")

        with pytest.raises(AmbiguousTarget):
            await reconciler.create(state)

        assert "authorizeSecurityGroupIngress" not in compute_client.call_names()

    @pytest.mark.asyncio
    async def test_unknown_parent_group(self, reconciler: SecurityGroupRuleReconciler) -> None:
        state = declare(type="INGRESS", securityGroup="ghost", cidr="0.0.0.0/0")

        with pytest.raises(NotFound, match="Security group not found: ghost"):
            await reconciler.create(state)


class TestReadAndDelete:
    """Tests for rule discovery and revocation."""

    @pytest.mark.asyncio
    async def test_read_recovers_direction(
        self,
        reconciler: SecurityGroupRuleReconciler,
        compute_state: MockComputeState,
        group: SecurityGroup,
    ) -> None:
        rule = compute_state.add_rule(group, ingress=False, start_port=443, end_port=443)
        state = declare(type="INGRESS", securityGroupId=group.id)
        state.id = rule.rule_id

        await reconciler.read(state)

        assert state.config.direction is Direction.EGRESS
        assert state.config.start_port == 443
        assert state.config.cidr == "0.0.0.0/0"

    @pytest.mark.asyncio
    async def test_read_twice_is_stable(
        self,
        reconciler: SecurityGroupRuleReconciler,
        compute_state: MockComputeState,
        group: SecurityGroup,
    ) -> None:
        compute_state.add_rule(group, ingress=True, start_port=80, end_port=80)
        rule = compute_state.add_rule(group, ingress=True, start_port=443, end_port=443)
        state = declare(type="INGRESS", securityGroup="web")
        state.id = rule.rule_id

        await reconciler.read(state)
        first = (state.id, state.config)
        await reconciler.read(state)

        assert (state.id, state.config) == first
        assert state.id == rule.rule_id
        assert state.config.start_port == 443

    @pytest.mark.asyncio
    async def test_read_missing_rule_clears_identity(
        self,
        reconciler: SecurityGroupRuleReconciler,
        compute_state: MockComputeState,
        group: SecurityGroup,
    ) -> None:
        rule = compute_state.add_rule(group, ingress=True)
        state = declare(type="INGRESS", securityGroup="web")
        state.id = rule.rule_id
        group.ingress_rules.clear()

        await reconciler.read(state)

        assert state.id == ""
        assert state.lifecycle is Lifecycle.ABSENT

    @pytest.mark.asyncio
    async def test_read_missing_group_clears_identity(
        self, reconciler: SecurityGroupRuleReconciler, compute_state: MockComputeState
    ) -> None:
        group = compute_state.add_security_group("gone")
        rule = compute_state.add_rule(group, ingress=True)
        state = declare(type="INGRESS", securityGroup="gone")
        state.id = rule.rule_id
        compute_state.groups.clear()

        await reconciler.read(state)

        assert state.id == ""

    @pytest.mark.asyncio
    async def test_exists(
        self,
        reconciler: SecurityGroupRuleReconciler,
        compute_state: MockComputeState,
        group: SecurityGroup,
    ) -> None:
        rule = compute_state.add_rule(group, ingress=True)
        state = declare(type="INGRESS", securityGroup="web")
        state.id = rule.rule_id

        assert (await reconciler.exists(state)).exists is True

        group.ingress_rules.clear()

        assert (await reconciler.exists(state)).exists is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("direction", "ingress", "command_type"),
        [
            ("INGRESS", True, RevokeSecurityGroupIngress),
            ("EGRESS", False, RevokeSecurityGroupEgress),
        ],
    )
    async def test_delete_uses_direction(
        self,
        reconciler: SecurityGroupRuleReconciler,
        compute_client: MockComputeClient,
        compute_state: MockComputeState,
        group: SecurityGroup,
        direction: str,
        ingress: bool,
        command_type: type,
    ) -> None:
        rule = compute_state.add_rule(group, ingress=ingress)
        state = declare(type=direction, securityGroup="web")
        state.id = rule.rule_id

        await reconciler.delete(state)

        (command,) = compute_client.calls_of(command_type)
        assert str(command.id) == rule.rule_id
        assert group.ingress_rules == []
        assert group.egress_rules == []
        assert state.id == ""


class TestImport:
    """Tests for importing a single rule."""

    @pytest.mark.asyncio
    async def test_import_by_reference(
        self,
        reconciler: SecurityGroupRuleReconciler,
        compute_state: MockComputeState,
        group: SecurityGroup,
    ) -> None:
        rule = compute_state.add_rule(group, ingress=True, start_port=80, end_port=80)

        (state,) = await reconciler.import_state(f"web/{rule.rule_id}")

        assert state.id == rule.rule_id
        assert state.config.direction is Direction.INGRESS
        assert state.config.security_group_id == group.id

    @pytest.mark.asyncio
    async def test_import_direction_mismatch(
        self,
        reconciler: SecurityGroupRuleReconciler,
        compute_state: MockComputeState,
        group: SecurityGroup,
    ) -> None:
        rule = compute_state.add_rule(group, ingress=True)

        with pytest.raises(NotFound):
            await reconciler.import_state(f"{group.id}/EGRESS/{rule.rule_id}")

    @pytest.mark.asyncio
    async def test_unknown_remote_protocol(
        self,
        reconciler: SecurityGroupRuleReconciler,
        compute_state: MockComputeState,
        group: SecurityGroup,
    ) -> None:
        rule = compute_state.add_rule(group, ingress=True, protocol="sctp")

        with pytest.raises(RemoteError, match=f"Rule {rule.rule_id} .* unknown protocol 'sctp'"):
            await reconciler.import_state(f"web/{rule.rule_id}")
