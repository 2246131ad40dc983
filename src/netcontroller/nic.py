"""NIC reconciliation.

A NIC is the attachment of one machine to one network. Attach and detach
commands return the whole machine, so the NIC is located in the returned
machine by network id. A machine carries at most one NIC per network.
"""

from __future__ import annotations

import logging

from .commands import AddNicToVirtualMachine, ListNics, RemoveNicFromVirtualMachine, UpdateVmNicIp
from .config import Operation
from .context import BoundClient
from .errors import NotFound, RemoteError, ResidualAttachment
from .identifiers import parse_uuid
from .models import NicConfig
from .reconciler import ResourceReconciler, handle_not_found
from .remote import ListNicsResponse, Nic, VirtualMachine
from .state import Lifecycle, ResourceState

logger = logging.getLogger(__name__)


def apply_nic(state: ResourceState[NicConfig], nic: Nic) -> None:
    """Refresh local state from a remote NIC."""
    state.id = nic.id
    state.apply(
        compute_id=nic.virtual_machine_id,
        network_id=nic.network_id,
        ip_address=nic.ip_address,
        netmask=nic.netmask,
        gateway=nic.gateway,
        mac_address=nic.mac_address,
    )
    state.mark_observed()


class NicReconciler(ResourceReconciler[NicConfig]):
    """Attach, read, re-address and detach NICs."""

    resource_type = "nic"

    def _list_command(self, state: ResourceState[NicConfig]) -> ListNics:
        return ListNics(
            nic_id=parse_uuid(state.id, "nic id"),
            virtual_machine_id=parse_uuid(state.config.compute_id, "compute id"),
        )

    async def create(self, state: ResourceState[NicConfig]) -> None:
        """Attach the machine to the network.

        Raises:
            NotFound: If the returned machine has no NIC on the network.
        """
        config = state.config
        state.transition(Lifecycle.DECLARING)

        async with self._operation(Operation.CREATE, state) as client:
            vm: VirtualMachine = await client.request(
                AddNicToVirtualMachine(
                    network_id=parse_uuid(config.network_id, "network id"),
                    virtual_machine_id=parse_uuid(config.compute_id, "compute id"),
                    ip_address=config.ip_address,
                )
            )

        nic = vm.nic_by_network_id(config.network_id)
        if nic is None:
            state.transition(Lifecycle.ABSENT)
            raise NotFound(f"NIC addition didn't create a NIC for network {config.network_id}")

        state.id = nic.id
        self._log_write(
            "created", state, compute_id=config.compute_id, network_id=config.network_id
        )
        state.transition(Lifecycle.PRESENT)
        await self.read(state)

    async def read(self, state: ResourceState[NicConfig]) -> None:
        """Refresh state from the remote NIC.

        Raises:
            NotFound: If the listing succeeds but contains no NIC.
        """
        async with self._operation(Operation.READ, state) as client:
            try:
                response: ListNicsResponse = await client.request(self._list_command(state))
            except RemoteError as e:
                handle_not_found(state, e)
                return

        if response.count == 0 or not response.nics:
            raise NotFound(f"No NIC found for ID: {state.id}")

        apply_nic(state, response.nics[0])

    async def _probe(self, client: BoundClient, state: ResourceState[NicConfig]) -> bool:
        response: ListNicsResponse = await client.request(self._list_command(state))
        return response.count > 0 and bool(response.nics)

    async def update(self, state: ResourceState[NicConfig]) -> None:
        """Change the NIC's IP address if it differs, then refresh.

        The address is recorded in state.completed_fields once the provider
        accepted it, so a failing refresh leaves the state partial.
        """
        if not state.has_change("ip_address"):
            await self.read(state)
            return

        ip_address = state.config.ip_address
        state.transition(Lifecycle.UPDATING)
        state.begin_partial()

        async with self._operation(Operation.UPDATE, state) as client:
            await client.request(
                UpdateVmNicIp(nic_id=parse_uuid(state.id, "nic id"), ip_address=ip_address)
            )
        state.observe(ip_address=ip_address)
        state.set_partial("ip_address")
        self._log_write("updated", state, ip_address=ip_address)

        await self.read(state)
        state.end_partial()
        state.transition(Lifecycle.PRESENT)

    async def delete(self, state: ResourceState[NicConfig]) -> None:
        """Detach the NIC.

        Raises:
            ResidualAttachment: If the machine still has a NIC on the network
                after the detach reported success. The identity is kept.
        """
        config = state.config
        state.transition(Lifecycle.REMOVING)

        async with self._operation(Operation.DELETE, state) as client:
            vm: VirtualMachine = await client.request(
                RemoveNicFromVirtualMachine(
                    nic_id=parse_uuid(state.id, "nic id"),
                    virtual_machine_id=parse_uuid(config.compute_id, "compute id"),
                )
            )

        if vm.nic_by_network_id(config.network_id) is not None:
            state.transition(Lifecycle.PRESENT)
            raise ResidualAttachment(
                f"Failed removing NIC {state.id} from instance {config.compute_id}"
            )

        self._log_write("deleted", state)
        state.mark_absent()
