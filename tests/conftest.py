"""Shared fixtures for unit and feature tests."""

from __future__ import annotations

import pytest

from marketplace.cluster import InMemoryClusterClient
from marketplace.datastore import InMemoryDatastore, SourceRef
from marketplace.registry import DesiredState, RegistryConfig, RegistryEnsurer
from tests.helpers.cluster import FaultyClusterClient

REGISTRY_IMAGE = "quay.io/example/registry:v1"


@pytest.fixture
def datastore() -> InMemoryDatastore:
    """Provide a datastore with two sources in the same namespace."""
    store = InMemoryDatastore()
    store.write(SourceRef("nsA", "srcX"), ["pkg1", "pkg2"])
    store.write(SourceRef("nsA", "srcY"), ["pkg3"])
    return store


@pytest.fixture
def desired() -> DesiredState:
    """Provide a registry serving two packages from one source."""
    return DesiredState(
        name="my-registry",
        namespace="markets",
        packages=("pkg1", "pkg2"),
        uid="6f1c9b52-0d0e-4f3e-9c1a-2a7d1b0e5f11",
    )


@pytest.fixture
def registry_config() -> RegistryConfig:
    """Provide registry settings with a fixed server image."""
    return RegistryConfig(image=REGISTRY_IMAGE)


@pytest.fixture
def cluster() -> InMemoryClusterClient:
    """Provide an empty in-memory cluster."""
    return InMemoryClusterClient()


@pytest.fixture
def faulty_cluster() -> FaultyClusterClient:
    """Provide an in-memory cluster that accepts injected failures."""
    return FaultyClusterClient()


@pytest.fixture
def ensurer(
    cluster: InMemoryClusterClient,
    datastore: InMemoryDatastore,
    desired: DesiredState,
    registry_config: RegistryConfig,
) -> RegistryEnsurer:
    """Provide an ensurer bound to the in-memory cluster."""
    return RegistryEnsurer(cluster, datastore, desired, registry_config)
