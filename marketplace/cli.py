"""Command-line entry point for registry convergence.

Usage:
    marketplace-registry ensure registry.yaml --datastore packages.yaml
    marketplace-registry command registry.yaml --datastore packages.yaml

Environment variables:
    MARKETPLACE_REGISTRY_IMAGE  - Registry server image (required by ensure)
    MARKETPLACE_LOG_LEVEL       - Log level (default: INFO)
    MARKETPLACE_KUBE_API_SERVER - API server URL (default: in-cluster)
    MARKETPLACE_KUBE_TOKEN      - Bearer token (default: service-account token)
"""

from __future__ import annotations

import asyncio
import typing as typ
from pathlib import Path  # noqa: TC003 - cyclopts resolves annotations at runtime

from cyclopts import App, Parameter

from marketplace.cluster import (
    ClusterAPIError,
    ClusterConfig,
    ClusterConfigError,
    KubernetesClusterClient,
)
from marketplace.datastore import DatastoreError, load_datastore
from marketplace.logging import configure_logging, get_logger, log_warning
from marketplace.registry import (
    RegistryConfig,
    RegistryEnsurer,
    RegistryError,
    SourceResolver,
    load_descriptor,
)
from marketplace.registry.templates import registry_command

if typ.TYPE_CHECKING:
    from marketplace.cluster import ClusterClient

logger = get_logger(__name__)

app = App(
    name="marketplace-registry",
    help="Converge registry workloads for CatalogSourceConfig descriptors",
    version="0.1.0",
)


def build_client() -> KubernetesClusterClient:
    """Return a Kubernetes client configured from the environment."""
    return KubernetesClusterClient(ClusterConfig.from_env())


async def _run_ensure(client: ClusterClient, ensurer: RegistryEnsurer) -> str | None:
    try:
        await ensurer.ensure()
    finally:
        if isinstance(client, KubernetesClusterClient):
            await client.aclose()
    return ensurer.address


@app.command
def ensure(
    descriptor: Path,
    *,
    datastore: Path,
    image: typ.Annotated[
        str | None, Parameter(env_var="MARKETPLACE_REGISTRY_IMAGE")
    ] = None,
    log_level: typ.Annotated[str, Parameter(env_var="MARKETPLACE_LOG_LEVEL")] = "INFO",
) -> int:
    """Converge the registry described by DESCRIPTOR and print its address.

    Args:
        descriptor: YAML file with the registry name, namespace, and packages.
        datastore: YAML file mapping upstream sources to their packages.
        image: Registry server image.
        log_level: Log level for reconciliation messages.

    Returns:
        Exit code (0 for success, 1 for failure).

    """
    _, invalid = configure_logging(log_level, force=True)
    if invalid:
        log_warning(logger, "Invalid log level %r; using INFO", log_level)

    try:
        config = RegistryConfig(image=image) if image else RegistryConfig.from_env()
        desired = load_descriptor(descriptor)
        reader = load_datastore(datastore)
        client = build_client()
        address = asyncio.run(
            _run_ensure(client, RegistryEnsurer(client, reader, desired, config))
        )
    except (ClusterAPIError, ClusterConfigError, DatastoreError, RegistryError) as exc:
        print(f"Registry ensure failed: {exc}")
        return 1

    print(f"Registry {desired.namespace}/{desired.name} available at {address}")
    return 0


@app.command
def command(descriptor: Path, *, datastore: Path) -> int:
    """Print the registry server command derived for DESCRIPTOR.

    Args:
        descriptor: YAML file with the registry name, namespace, and packages.
        datastore: YAML file mapping upstream sources to their packages.

    Returns:
        Exit code (0 for success, 1 for failure).

    """
    try:
        desired = load_descriptor(descriptor)
        reader = load_datastore(datastore)
    except (DatastoreError, RegistryError) as exc:
        print(f"Cannot derive registry command: {exc}")
        return 1

    sources = SourceResolver(reader).resolve(desired.packages)
    print(" ".join(registry_command(desired.packages, sources.display_string)))
    return 0


def main() -> int:
    """Entry point for the CLI."""
    return app()


if __name__ == "__main__":
    raise SystemExit(main())
