"""Orchestration of the objects that together make up a registry."""

from __future__ import annotations

import typing as typ

from marketplace.logging import get_logger, log_info

from .reconciler import (
    DEPLOYMENT_STRATEGY,
    ROLE_BINDING_STRATEGY,
    ROLE_STRATEGY,
    SERVICE_ACCOUNT_STRATEGY,
    EndpointReconciler,
    ReconcileContext,
    ResourceReconciler,
)
from .sources import SourceResolver

if typ.TYPE_CHECKING:
    from marketplace.cluster.client import ClusterClient
    from marketplace.datastore.store import PackageReader
    from marketplace.manifests.models import Service

    from .config import RegistryConfig
    from .models import DesiredState, ResolvedSources

logger = get_logger(__name__)


def service_address(service: Service) -> str:
    """Return ``clusterIP:port`` for the first port of ``service``."""
    return f"{service.spec.cluster_ip}:{service.spec.ports[0].port}"


class RegistryEnsurer:
    """Converge the cluster towards one registry's desired state.

    ``ensure`` reconciles, in dependency order, the ServiceAccount, the Role
    scoped to the packages' sources, the RoleBinding, the registry
    Deployment, and the Service. The first failing step aborts the pass and
    its exception propagates unchanged; objects created before it stay in
    place and the next pass completes the remainder.

    Parameters
    ----------
    client:
        Cluster API client.
    reader:
        Package lookup store used to resolve upstream sources.
    desired:
        Desired state of the registry.
    config:
        Registry settings such as the server image.

    Examples
    --------
    >>> ensurer = RegistryEnsurer(client, reader, desired, config)
    >>> await ensurer.ensure()
    >>> ensurer.address
    '10.96.0.2:50051'

    """

    def __init__(
        self,
        client: ClusterClient,
        reader: PackageReader,
        desired: DesiredState,
        config: RegistryConfig,
    ) -> None:
        """Bind the ensurer to its collaborators and desired state."""
        self._client = client
        self._resolver = SourceResolver(reader)
        self._desired = desired
        self._config = config
        self._address: str | None = None
        self._sources: ResolvedSources | None = None

    @property
    def desired(self) -> DesiredState:
        """Return the desired state this ensurer converges towards."""
        return self._desired

    @property
    def address(self) -> str | None:
        """Return ``clusterIP:port`` of the registry after a successful ensure."""
        return self._address

    @property
    def sources(self) -> ResolvedSources | None:
        """Return the sources resolved by the latest ensure pass."""
        return self._sources

    async def ensure(self) -> None:
        """Ensure all registry objects exist and record the registry address.

        Raises
        ------
        ClusterAPIError
            From the first reconciliation step that fails.

        """
        desired = self._desired
        self._sources = self._resolver.resolve(desired.packages)
        context = ReconcileContext(
            desired=desired, sources=self._sources, image=self._config.image
        )

        for strategy in (
            SERVICE_ACCOUNT_STRATEGY,
            ROLE_STRATEGY,
            ROLE_BINDING_STRATEGY,
            DEPLOYMENT_STRATEGY,
        ):
            await ResourceReconciler(self._client, strategy).ensure(context)

        service = await EndpointReconciler(self._client).ensure(context)
        self._address = service_address(service)
        log_info(
            logger,
            "Registry %s/%s is available at %s",
            desired.namespace,
            desired.name,
            self._address,
        )
