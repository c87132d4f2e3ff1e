"""Get-or-create-or-update reconciliation of the registry's managed objects.

One :class:`ResourceReconciler` handles every kind that converges in place;
a :class:`KindStrategy` value supplies what differs per kind: how to build
the desired object and which fields to copy onto an existing one. The
Service is handled by :class:`EndpointReconciler`, which recreates it on
every pass so the reported address always belongs to a freshly created
object.
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses
import typing as typ

import msgspec

from marketplace.cluster.errors import (
    AlreadyExistsError,
    ClusterAPIError,
    NotFoundError,
)
from marketplace.logging import get_logger, log_error, log_info
from marketplace.manifests.models import (
    Deployment,
    Role,
    RoleBinding,
    Service,
    ServiceAccount,
)

from . import templates

if typ.TYPE_CHECKING:
    from marketplace.cluster.client import ClusterClient

    from .models import DesiredState, ResolvedSources

logger = get_logger(__name__)

_ObjectT = typ.TypeVar("_ObjectT", ServiceAccount, Role, RoleBinding, Deployment)


@dataclasses.dataclass(frozen=True, slots=True)
class ReconcileContext:
    """Inputs shared by every reconciler during one ensure pass."""

    desired: DesiredState
    sources: ResolvedSources
    image: str

    @property
    def command(self) -> tuple[str, ...]:
        """Return the registry server command for this pass."""
        return templates.registry_command(
            self.desired.packages, self.sources.display_string
        )


@dataclasses.dataclass(frozen=True, slots=True)
class KindStrategy(typ.Generic[_ObjectT]):
    """Per-kind behaviour plugged into :class:`ResourceReconciler`.

    Attributes
    ----------
    kind
        Manifest type used to address the cluster client.
    build
        Returns the full desired object, owner reference included.
    merge
        Returns the existing object with the desired mutable fields copied
        over, or ``None`` when presence alone satisfies the kind.

    """

    kind: type[_ObjectT]
    build: cabc.Callable[[ReconcileContext], _ObjectT]
    merge: cabc.Callable[[_ObjectT, _ObjectT], _ObjectT | None]

    @property
    def label(self) -> str:
        """Return the kind name used in log messages."""
        return self.kind.__name__


def _keep_existing(existing: ServiceAccount, desired: ServiceAccount) -> None:
    del existing, desired


def _merge_rules(existing: Role, desired: Role) -> Role:
    return msgspec.structs.replace(existing, rules=desired.rules)


def _merge_binding(existing: RoleBinding, desired: RoleBinding) -> RoleBinding:
    return msgspec.structs.replace(
        existing, role_ref=desired.role_ref, subjects=desired.subjects
    )


def _merge_pod_template(existing: Deployment, desired: Deployment) -> Deployment:
    spec = msgspec.structs.replace(existing.spec, template=desired.spec.template)
    return msgspec.structs.replace(existing, spec=spec)


SERVICE_ACCOUNT_STRATEGY: KindStrategy[ServiceAccount] = KindStrategy(
    kind=ServiceAccount,
    build=lambda ctx: templates.service_account_for(ctx.desired),
    merge=_keep_existing,
)

ROLE_STRATEGY: KindStrategy[Role] = KindStrategy(
    kind=Role,
    build=lambda ctx: templates.role_for(ctx.desired, ctx.sources.names),
    merge=_merge_rules,
)

# The role and the service account both share the registry's name.
ROLE_BINDING_STRATEGY: KindStrategy[RoleBinding] = KindStrategy(
    kind=RoleBinding,
    build=lambda ctx: templates.role_binding_for(ctx.desired, ctx.desired.name),
    merge=_merge_binding,
)

DEPLOYMENT_STRATEGY: KindStrategy[Deployment] = KindStrategy(
    kind=Deployment,
    build=lambda ctx: templates.deployment_for(ctx.desired, ctx.command, ctx.image),
    merge=_merge_pod_template,
)


class ResourceReconciler(typ.Generic[_ObjectT]):
    """Ensure exactly one object of a kind exists and matches the desired shape.

    Parameters
    ----------
    client:
        Cluster API client.
    strategy:
        Kind-specific build and merge behaviour.

    """

    def __init__(self, client: ClusterClient, strategy: KindStrategy[_ObjectT]) -> None:
        """Bind the reconciler to a client and a kind strategy."""
        self._client = client
        self._strategy = strategy

    async def ensure(self, context: ReconcileContext) -> None:
        """Create the object when absent, otherwise update its mutable fields.

        An ``AlreadyExistsError`` on create means a concurrent pass won the
        race and counts as success.

        Raises
        ------
        ClusterAPIError
            When get (other than not-found), create, or update fails.

        """
        strategy = self._strategy
        desired = context.desired
        try:
            existing = await self._client.get(
                strategy.kind, desired.name, desired.namespace
            )
        except NotFoundError:
            await self._create(strategy.build(context))
            return
        except ClusterAPIError as exc:
            log_error(
                logger, "Failed to get %s %s: %s", strategy.label, desired.name, exc
            )
            raise

        merged = strategy.merge(existing, strategy.build(context))
        if merged is None:
            log_info(logger, "%s %s is present", strategy.label, desired.name)
            return
        try:
            await self._client.update(merged)
        except ClusterAPIError as exc:
            log_error(
                logger,
                "Failed to update %s %s: %s",
                strategy.label,
                desired.name,
                exc,
            )
            raise
        log_info(logger, "Updated %s %s", strategy.label, desired.name)

    async def _create(self, obj: _ObjectT) -> None:
        label = self._strategy.label
        name = obj.metadata.name
        try:
            await self._client.create(obj)
        except AlreadyExistsError:
            log_info(logger, "%s %s was created concurrently", label, name)
            return
        except ClusterAPIError as exc:
            log_error(logger, "Failed to create %s %s: %s", label, name, exc)
            raise
        log_info(logger, "Created %s %s", label, name)


class EndpointReconciler:
    """Recreate the registry Service and return it with its assigned address."""

    def __init__(self, client: ClusterClient) -> None:
        """Bind the reconciler to a cluster client."""
        self._client = client

    async def ensure(self, context: ReconcileContext) -> Service:
        """Delete any existing Service, then create a fresh one.

        A failed delete is logged and creation is still attempted. If creation
        reports that the Service already exists, the stored Service is
        returned instead.

        Returns
        -------
        Service
            The Service as stored by the cluster, with ``spec.cluster_ip`` set.

        Raises
        ------
        ClusterAPIError
            When the lookup (other than not-found) or the create fails.

        """
        desired = context.desired
        await self._delete_existing(desired)

        service = templates.service_for(desired)
        try:
            created = await self._client.create(service)
        except AlreadyExistsError:
            log_info(logger, "Service %s was created concurrently", desired.name)
            return await self._client.get(Service, desired.name, desired.namespace)
        except ClusterAPIError as exc:
            log_error(logger, "Failed to create Service %s: %s", desired.name, exc)
            raise
        log_info(logger, "Created Service %s", desired.name)
        return created

    async def _delete_existing(self, desired: DesiredState) -> None:
        try:
            await self._client.get(Service, desired.name, desired.namespace)
        except NotFoundError:
            return
        log_info(logger, "Service %s is present", desired.name)
        try:
            await self._client.delete(Service, desired.name, desired.namespace)
        except ClusterAPIError as exc:
            log_error(logger, "Failed to delete Service %s: %s", desired.name, exc)
            return
        log_info(logger, "Deleted Service %s", desired.name)
