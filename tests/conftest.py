"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

import pytest

# Add src to path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

# Add tests to path for compute_mock imports
tests_path = Path(__file__).parent
sys.path.insert(0, str(tests_path))

from compute_mock import MockComputeClient, MockComputeState  # noqa: E402

from netcontroller.config import Config, OperationTimeouts  # noqa: E402
from netcontroller.remote import NetworkOffering, Zone  # noqa: E402


@pytest.fixture
def compute_state() -> MockComputeState:
    return MockComputeState()


@pytest.fixture
def compute_client(compute_state: MockComputeState) -> MockComputeClient:
    return MockComputeClient(compute_state)


@pytest.fixture
def zone(compute_state: MockComputeState) -> Zone:
    return compute_state.add_zone("ch-gva-2")


@pytest.fixture
def offering(compute_state: MockComputeState) -> NetworkOffering:
    return compute_state.add_offering("PrivNet")


@pytest.fixture
def short_timeouts() -> Config:
    """Config whose operations time out after one second."""
    return Config(timeouts=OperationTimeouts(create=1, read=1, update=1, delete=1))
