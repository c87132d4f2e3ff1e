"""Cluster API access for the registry reconcilers.

Reconcilers depend only on the :class:`ClusterClient` protocol. Two
implementations ship with the package:

- :class:`KubernetesClusterClient` talks to a Kubernetes API server over
  httpx and is what the command line uses.
- :class:`InMemoryClusterClient` keeps objects in a dictionary and mimics
  the API server's create/update semantics; tests and local development use
  it.

"""

from marketplace.cluster.client import ClusterClient, KubernetesClusterClient
from marketplace.cluster.config import ClusterConfig
from marketplace.cluster.errors import (
    AlreadyExistsError,
    ClusterAPIError,
    ClusterConfigError,
    ConflictError,
    NotFoundError,
)
from marketplace.cluster.memory import InMemoryClusterClient

__all__ = [
    "AlreadyExistsError",
    "ClusterAPIError",
    "ClusterClient",
    "ClusterConfig",
    "ClusterConfigError",
    "ConflictError",
    "InMemoryClusterClient",
    "KubernetesClusterClient",
    "NotFoundError",
]
