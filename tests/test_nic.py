"""Tests for NIC reconciliation."""

from __future__ import annotations

import pytest
import pytest_asyncio
from compute_mock import MockComputeClient, MockComputeState

from netcontroller.commands import AddNicToVirtualMachine, UpdateVmNicIp
from netcontroller.errors import ErrorCode, NotFound, RemoteError, ResidualAttachment
from netcontroller.models import NicConfig
from netcontroller.nic import NicReconciler
from netcontroller.remote import Network, NetworkOffering, VirtualMachine, Zone
from netcontroller.state import Lifecycle, ResourceState


@pytest.fixture
def network(compute_state: MockComputeState, zone: Zone, offering: NetworkOffering) -> Network:
    return compute_state.add_network(
        "backend", zone, offering, netmask="255.255.255.0", gateway="10.0.0.255"
    )


@pytest.fixture
def machine(compute_state: MockComputeState) -> VirtualMachine:
    return compute_state.add_machine("web-1")


def declare(
    machine: VirtualMachine, network: Network, ip_address: str | None = "10.0.0.20"
) -> ResourceState[NicConfig]:
    config = NicConfig(compute_id=machine.id, network_id=network.id, ip_address=ip_address)
    return ResourceState(config=config, resource_type="nic")


class TestCreate:
    """Tests for NicReconciler.create()."""

    @pytest.mark.asyncio
    async def test_create(
        self,
        compute_client: MockComputeClient,
        compute_state: MockComputeState,
        machine: VirtualMachine,
        network: Network,
    ) -> None:
        state = declare(machine, network)

        await NicReconciler(compute_client).create(state)

        assert compute_client.call_names() == ["addNicToVirtualMachine", "listNics"]
        assert compute_client.calls_of(AddNicToVirtualMachine)[0].to_params() == {
            "networkid": network.id,
            "virtualmachineid": machine.id,
            "ipaddress": "10.0.0.20",
        }
        (nic,) = compute_state.machines[machine.id].nics
        assert state.id == nic.id
        assert state.config.netmask == "255.255.255.0"
        assert state.config.gateway == "10.0.0.255"
        assert state.config.mac_address == nic.mac_address
        assert state.lifecycle is Lifecycle.PRESENT

    @pytest.mark.asyncio
    async def test_missing_nic_after_create(
        self, compute_state: MockComputeState, machine: VirtualMachine, network: Network
    ) -> None:
        client = MockComputeClient(compute_state, drop_created_nic=True)
        state = declare(machine, network)

        with pytest.raises(NotFound, match="NIC addition didn't create a NIC for network"):
            await NicReconciler(client).create(state)

        assert state.id == ""


class TestReadUpdateDelete:
    """Tests for the remaining NIC verbs."""

    @pytest_asyncio.fixture
    async def attached(
        self, compute_client: MockComputeClient, machine: VirtualMachine, network: Network
    ) -> ResourceState[NicConfig]:
        state = declare(machine, network)
        await NicReconciler(compute_client).create(state)
        compute_client.calls.clear()
        return state

    @pytest.mark.asyncio
    async def test_read_empty_listing_is_an_error(
        self,
        compute_client: MockComputeClient,
        compute_state: MockComputeState,
        machine: VirtualMachine,
        attached: ResourceState[NicConfig],
    ) -> None:
        compute_state.machines[machine.id].nics.clear()

        with pytest.raises(NotFound, match="No NIC found for ID"):
            await NicReconciler(compute_client).read(attached)

    @pytest.mark.asyncio
    async def test_exists_after_machine_removed(
        self,
        compute_client: MockComputeClient,
        compute_state: MockComputeState,
        machine: VirtualMachine,
        attached: ResourceState[NicConfig],
    ) -> None:
        del compute_state.machines[machine.id]

        result = await NicReconciler(compute_client).exists(attached)

        assert result.exists is False
        assert attached.id == ""

    @pytest.mark.asyncio
    async def test_update_ip_address(
        self,
        compute_client: MockComputeClient,
        compute_state: MockComputeState,
        machine: VirtualMachine,
        attached: ResourceState[NicConfig],
    ) -> None:
        attached.config = attached.config.model_copy(update={"ip_address": "10.0.0.30"})

        await NicReconciler(compute_client).update(attached)

        assert compute_client.call_names() == ["updateVmNicIp", "listNics"]
        assert compute_client.calls_of(UpdateVmNicIp)[0].to_params()["ipaddress"] == "10.0.0.30"
        assert compute_state.machines[machine.id].nics[0].ip_address == "10.0.0.30"
        assert attached.config.ip_address == "10.0.0.30"
        assert attached.partial is False
        assert attached.lifecycle is Lifecycle.PRESENT

    @pytest.mark.asyncio
    async def test_failed_refresh_leaves_partial_state(
        self, compute_client: MockComputeClient, attached: ResourceState[NicConfig]
    ) -> None:
        attached.config = attached.config.model_copy(update={"ip_address": "10.0.0.30"})
        compute_client.fail("listNics", RemoteError("busy", ErrorCode.INTERNAL_ERROR))

        with pytest.raises(RemoteError):
            await NicReconciler(compute_client).update(attached)

        assert attached.partial is True
        assert attached.completed_fields == {"ip_address"}
        assert attached.has_change("ip_address") is False
        assert attached.lifecycle is Lifecycle.UPDATING

    @pytest.mark.asyncio
    async def test_update_without_change_only_reads(
        self, compute_client: MockComputeClient, attached: ResourceState[NicConfig]
    ) -> None:
        await NicReconciler(compute_client).update(attached)

        assert compute_client.call_names() == ["listNics"]

    @pytest.mark.asyncio
    async def test_delete(
        self,
        compute_client: MockComputeClient,
        compute_state: MockComputeState,
        machine: VirtualMachine,
        attached: ResourceState[NicConfig],
    ) -> None:
        await NicReconciler(compute_client).delete(attached)

        assert compute_state.machines[machine.id].nics == []
        assert attached.id == ""

    @pytest.mark.asyncio
    async def test_residual_attachment_keeps_identity(
        self,
        compute_client: MockComputeClient,
        attached: ResourceState[NicConfig],
    ) -> None:
        nic_id = attached.id
        compute_client.residual_detach = True

        with pytest.raises(ResidualAttachment):
            await NicReconciler(compute_client).delete(attached)

        assert attached.id == nic_id
        assert attached.lifecycle is Lifecycle.PRESENT

    @pytest.mark.asyncio
    async def test_detach_from_missing_machine_propagates(
        self,
        compute_client: MockComputeClient,
        compute_state: MockComputeState,
        machine: VirtualMachine,
        attached: ResourceState[NicConfig],
    ) -> None:
        del compute_state.machines[machine.id]

        with pytest.raises(RemoteError) as exc_info:
            await NicReconciler(compute_client).delete(attached)

        assert exc_info.value.error_code == ErrorCode.PARAM_ERROR
