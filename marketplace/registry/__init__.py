"""Registry convergence for CatalogSourceConfig-style desired states.

A registry is served by five namespaced objects sharing the desired state's
name: a ServiceAccount, a Role scoped to the packages' upstream sources, a
RoleBinding, a single-replica Deployment running ``appregistry-server``, and
a Service exposing its gRPC port.

Usage
-----
Converge a registry and read its address::

    from marketplace.cluster import InMemoryClusterClient
    from marketplace.datastore import InMemoryDatastore, SourceRef
    from marketplace.registry import DesiredState, RegistryConfig, RegistryEnsurer

    store = InMemoryDatastore()
    store.write(SourceRef("markets", "community"), ["etcd"])
    desired = DesiredState(name="demo", namespace="markets", packages=("etcd",))
    ensurer = RegistryEnsurer(
        InMemoryClusterClient(), store, desired, RegistryConfig(image="reg:v1")
    )
    await ensurer.ensure()
    print(ensurer.address)

"""

from marketplace.registry.config import RegistryConfig
from marketplace.registry.descriptor import RegistryDescriptor, load_descriptor
from marketplace.registry.ensurer import RegistryEnsurer, service_address
from marketplace.registry.errors import (
    DescriptorError,
    RegistryConfigError,
    RegistryError,
)
from marketplace.registry.models import (
    DesiredState,
    ResolvedSources,
    parse_package_ids,
)
from marketplace.registry.reconciler import (
    EndpointReconciler,
    KindStrategy,
    ReconcileContext,
    ResourceReconciler,
)
from marketplace.registry.sources import SourceResolver

__all__ = [
    "DescriptorError",
    "DesiredState",
    "EndpointReconciler",
    "KindStrategy",
    "ReconcileContext",
    "RegistryConfig",
    "RegistryConfigError",
    "RegistryDescriptor",
    "RegistryEnsurer",
    "RegistryError",
    "ResolvedSources",
    "ResourceReconciler",
    "SourceResolver",
    "load_descriptor",
    "parse_package_ids",
    "service_address",
]
