"""Network reconciliation.

Create is a two-step saga:
1. Issue createNetwork (zone and offering resolved first, fail fast)
2. Attach the declared tags

If step 2 fails, the freshly created network is deleted as a compensating
action before the tag error is raised. A failure of that delete is logged
and attached to the tag error as a note; the tag error is always the one
the caller sees.

Only name and display text can be updated in place. CIDR and zone are
fixed at creation.
"""

from __future__ import annotations

import logging

from .commands import CreateNetwork, DeleteNetwork, ListNetworks, UpdateNetwork
from .config import Operation
from .context import BoundClient
from .errors import (
    CompensationFailure,
    NotFound,
    OperationCancelled,
    RemoteError,
    UnsupportedOffering,
)
from .identifiers import parse_uuid
from .ipcalc import subnet_parameters
from .models import NetworkConfig
from .reconciler import ResourceReconciler, handle_not_found
from .remote import ListNetworksResponse, Network
from .resolver import get_network_offering, get_zone
from .state import Lifecycle, ResourceState
from .tags import create_tags, tags_after, update_tags

logger = logging.getLogger(__name__)


def network_values(network: Network) -> dict[str, object]:
    """Declared-configuration values observed on a remote network."""
    return {
        "name": network.name,
        "display_text": network.display_text,
        "network_offering": network.network_offering_name,
        "zone": network.zone_name,
        "tags": network.tag_map(),
        "netmask": network.netmask,
        "gateway": network.gateway,
    }


def apply_network(state: ResourceState[NetworkConfig], network: Network) -> None:
    """Refresh local state from a remote network."""
    state.id = network.id
    state.apply(**network_values(network))
    state.mark_observed()


class NetworkReconciler(ResourceReconciler[NetworkConfig]):
    """Create, read, update and delete logical networks."""

    resource_type = "network"

    async def create(self, state: ResourceState[NetworkConfig]) -> None:
        """Create the network, tag it and refresh state.

        Raises:
            NotFound: If the zone or offering cannot be resolved.
            UnsupportedOffering: If the offering requires explicit IP ranges.
            InvalidCIDR: If the declared CIDR is not IPv4.
            RemoteError: If a provider call fails. On tag failure the
                network has already been deleted again.
        """
        config = state.config
        state.transition(Lifecycle.DECLARING)

        async with self._operation(Operation.CREATE, state) as client:
            zone = await get_zone(client, config.zone)
            offering = await get_network_offering(client, config.network_offering, zone.id)

            if offering.specify_ip_ranges:
                raise UnsupportedOffering(
                    f"Network offering {offering.name} requires IP ranges, "
                    "which are not supported"
                )

            subnet = subnet_parameters(config.cidr)

            # Zero addresses are left out so the provider applies its defaults
            network: Network = await client.request(
                CreateNetwork(
                    name=config.name,
                    display_text=config.display_text or config.name,
                    network_offering_id=parse_uuid(offering.id),
                    zone_id=parse_uuid(zone.id),
                    netmask=None if subnet.is_default else subnet.netmask,
                    gateway=None if subnet.is_default else subnet.gateway,
                )
            )
            state.id = network.id
            self._log_write("created", state, name=config.name, zone=zone.name)

            await self._tag_new_network(client, state, network)

        state.transition(Lifecycle.PRESENT)
        await self.read(state)

    async def _tag_new_network(
        self, client: BoundClient, state: ResourceState[NetworkConfig], network: Network
    ) -> None:
        command = create_tags(state, Network.resource_type)
        if command is None:
            return

        try:
            await client.boolean_request(command)
        except OperationCancelled:
            raise
        except Exception as tag_error:
            await self._compensate_create(client, state, network, tag_error)
            raise

    async def _compensate_create(
        self,
        client: BoundClient,
        state: ResourceState[NetworkConfig],
        network: Network,
        tag_error: Exception,
    ) -> None:
        """Delete a network whose tagging failed. Never raises."""
        logger.warning(
            "Tagging failed after network creation, deleting network",
            extra={"resource_id": network.id, "error": str(tag_error)},
        )
        try:
            await client.boolean_request(DeleteNetwork(id=parse_uuid(network.id)))
        except Exception as e:
            failure = CompensationFailure("delete of network " + network.id, tag_error, e)
            logger.warning(
                "Failure to create the tags, but the network was created",
                extra={"resource_id": network.id, "error": str(failure)},
            )
            tag_error.add_note(str(failure))
            return

        state.mark_absent()

    async def read(self, state: ResourceState[NetworkConfig]) -> None:
        """Refresh state from the remote network.

        A network reported missing by the provider clears the local identity
        without raising.

        Raises:
            NotFound: If the listing succeeds but contains no network.
        """
        async with self._operation(Operation.READ, state) as client:
            network_id = parse_uuid(state.id)
            try:
                response: ListNetworksResponse = await client.request(
                    ListNetworks(id=network_id)
                )
            except RemoteError as e:
                handle_not_found(state, e)
                return

        if response.count == 0 or not response.networks:
            raise NotFound(f"No network found for ID: {state.id}")

        apply_network(state, response.networks[0])

    async def _probe(self, client: BoundClient, state: ResourceState[NetworkConfig]) -> bool:
        response: ListNetworksResponse = await client.request(
            ListNetworks(id=parse_uuid(state.id))
        )
        return response.count > 0 and bool(response.networks)

    async def update(self, state: ResourceState[NetworkConfig]) -> None:
        """Update name and display text, then reconcile tags.

        Completed sub-fields are recorded in state.completed_fields, so a
        failure leaves the state partial: name and display_text first, tags
        last.
        """
        network_id = parse_uuid(state.id)
        tag_commands = update_tags(state, Network.resource_type)
        desired = state.config

        state.transition(Lifecycle.UPDATING)
        state.begin_partial()

        async with self._operation(Operation.UPDATE, state) as client:
            network: Network = await client.request(
                UpdateNetwork(
                    id=network_id,
                    name=desired.name,
                    display_text=desired.display_text,
                )
            )
            # Desired tags stay in config until the tag commands succeed
            renamed = {"name": network.name, "display_text": network.display_text}
            state.apply(**renamed)
            state.observe(**renamed)
            state.set_partial("name", "display_text")
            self._log_write("updated", state, name=network.name)

            for command in tag_commands:
                await client.boolean_request(command)
                state.observe(tags=tags_after(state.previous("tags"), command))

        await self.read(state)
        state.set_partial("tags")

        state.end_partial()
        state.transition(Lifecycle.PRESENT)

    async def delete(self, state: ResourceState[NetworkConfig]) -> None:
        """Delete the network and clear the local identity."""
        network_id = parse_uuid(state.id)
        state.transition(Lifecycle.REMOVING)

        async with self._operation(Operation.DELETE, state) as client:
            await client.boolean_request(DeleteNetwork(id=network_id))

        self._log_write("deleted", state)
        state.mark_absent()

    async def import_state(self, identifier: str) -> list[ResourceState[NetworkConfig]]:
        """Adopt an existing network by id.

        Raises:
            InvalidUUID: If identifier is not a network id.
            NotFound: If no such network exists.
        """
        network_id = parse_uuid(identifier)
        probe = self._new_state(NetworkConfig.model_construct(), str(network_id))

        async with self._operation(Operation.READ, probe) as client:
            response: ListNetworksResponse = await client.request(ListNetworks(id=network_id))

        if response.count == 0 or not response.networks:
            raise NotFound(f"No network found for ID: {identifier}")

        network = response.networks[0]
        state = self._new_state(NetworkConfig.model_validate(network_values(network)), network.id)
        state.mark_observed()
        return [state]
