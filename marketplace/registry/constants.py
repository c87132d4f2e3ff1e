"""Constants shared by the registry manifests and command derivation."""

from __future__ import annotations

import typing as typ

REGISTRY_SERVER_BINARY: typ.Final = "appregistry-server"

# The registry pod serves gRPC on a single well-known port.
PORT_NAME: typ.Final = "grpc"
PORT_NUMBER: typ.Final = 50051

HEALTH_PROBE_COMMAND: typ.Final = (
    "grpc_health_probe",
    f"-addr=localhost:{PORT_NUMBER}",
)
PROBE_INITIAL_DELAY_SECONDS: typ.Final = 5
PROBE_FAILURE_THRESHOLD: typ.Final = 30

REGISTRY_REPLICAS: typ.Final = 1

# Label shared by the Deployment selector, pod template, and Service selector.
REGISTRY_LABEL_KEY: typ.Final = "marketplace.catalogSourceConfig"

OPERATOR_SOURCE_API_GROUP: typ.Final = "marketplace.redhat.com"
OPERATOR_SOURCE_RESOURCE: typ.Final = "operatorsources"

CATALOG_SOURCE_CONFIG_API_VERSION: typ.Final = "marketplace.redhat.com/v1alpha1"
CATALOG_SOURCE_CONFIG_KIND: typ.Final = "CatalogSourceConfig"
