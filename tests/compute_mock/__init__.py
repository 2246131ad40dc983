"""Compute provider mock for reconciler tests.

In-memory provider state plus a ComputeClient implementation that records
every call, so tests can assert both on the resulting state and on the exact
command sequence a reconciler issued.

Usage:
    from compute_mock import MockComputeClient, MockComputeState

    state = MockComputeState()
    zone = state.add_zone("ch-gva-2")
    client = MockComputeClient(state)

    reconciler = NetworkReconciler(client)
    await reconciler.create(resource)

    assert client.call_names() == ["listZones", "listNetworkOfferings", ...]
"""

from .client import GET_CALL, MockComputeClient, not_found
from .state import MockComputeState, new_id

__all__ = [
    "GET_CALL",
    "MockComputeClient",
    "MockComputeState",
    "new_id",
    "not_found",
]
