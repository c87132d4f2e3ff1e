"""Typed Kubernetes manifest structures managed by the registry reconcilers.

Only the fields the reconcilers read or write are modelled; unknown fields
returned by the API server are ignored on decode. Structs are frozen, so
callers derive modified copies with :func:`msgspec.structs.replace`.
"""

from __future__ import annotations

import typing as typ

import msgspec


class _Manifest(
    msgspec.Struct,
    kw_only=True,
    frozen=True,
    rename="camel",
    omit_defaults=True,
):
    """Base configuration shared by every manifest structure."""


class OwnerReference(_Manifest):
    """Back-reference from a managed object to the object that owns it.

    Attributes
    ----------
    api_version : str
        API version of the owner, e.g. ``marketplace.redhat.com/v1alpha1``.
    kind : str
        Kind of the owner, e.g. ``CatalogSourceConfig``.
    name : str
        Name of the owner.
    uid : str
        UID of the owner; the garbage collector matches on this.
    controller : bool
        Marks the owner as the managing controller.
    block_owner_deletion : bool
        Holds foreground deletion of the owner until this object is gone.

    """

    api_version: str
    kind: str
    name: str
    uid: str
    controller: bool = False
    block_owner_deletion: bool = False


class ObjectMeta(_Manifest):
    """Subset of Kubernetes object metadata."""

    name: str
    namespace: str
    labels: dict[str, str] = msgspec.field(default_factory=dict)
    annotations: dict[str, str] = msgspec.field(default_factory=dict)
    owner_references: tuple[OwnerReference, ...] = ()
    uid: str | None = None
    resource_version: str | None = None


class ServiceAccount(_Manifest, omit_defaults=False, kw_only=True):
    """Identity the registry pod runs as."""

    api_version: str = "v1"
    kind: str = "ServiceAccount"
    metadata: ObjectMeta


class PolicyRule(_Manifest):
    """Single RBAC rule."""

    verbs: tuple[str, ...]
    api_groups: tuple[str, ...] = ()
    resources: tuple[str, ...] = ()
    resource_names: tuple[str, ...] = ()


class Role(_Manifest, omit_defaults=False, kw_only=True):
    """Namespaced RBAC role."""

    api_version: str = "rbac.authorization.k8s.io/v1"
    kind: str = "Role"
    metadata: ObjectMeta
    rules: tuple[PolicyRule, ...] = ()


class RoleRef(_Manifest):
    """Reference from a RoleBinding to the role it grants."""

    api_group: str
    kind: str
    name: str


class Subject(_Manifest):
    """Principal a RoleBinding applies to."""

    kind: str
    name: str
    namespace: str | None = None


class RoleBinding(_Manifest, omit_defaults=False, kw_only=True):
    """Binding of a role to a set of subjects."""

    api_version: str = "rbac.authorization.k8s.io/v1"
    kind: str = "RoleBinding"
    metadata: ObjectMeta
    role_ref: RoleRef
    subjects: tuple[Subject, ...] = ()


class ExecAction(_Manifest):
    """Command executed inside the container for a probe."""

    command: tuple[str, ...]


class Probe(_Manifest):
    """Readiness or liveness probe."""

    exec: ExecAction
    initial_delay_seconds: int = 0
    failure_threshold: int = 3


class ContainerPort(_Manifest):
    """Port exposed by a container."""

    name: str
    container_port: int


class Container(_Manifest):
    """Container running inside the registry pod."""

    name: str
    image: str
    command: tuple[str, ...] = ()
    ports: tuple[ContainerPort, ...] = ()
    readiness_probe: Probe | None = None
    liveness_probe: Probe | None = None


class PodSpec(_Manifest):
    """Pod specification."""

    containers: tuple[Container, ...]
    service_account_name: str | None = None


class PodTemplateMeta(_Manifest):
    """Metadata stamped onto pods created from a template."""

    name: str | None = None
    namespace: str | None = None
    labels: dict[str, str] = msgspec.field(default_factory=dict)


class PodTemplateSpec(_Manifest):
    """Template the Deployment stamps pods from."""

    metadata: PodTemplateMeta
    spec: PodSpec


class LabelSelector(_Manifest):
    """Equality-based label selector."""

    match_labels: dict[str, str] = msgspec.field(default_factory=dict)


class DeploymentSpec(_Manifest):
    """Deployment specification."""

    selector: LabelSelector
    template: PodTemplateSpec
    replicas: int


class Deployment(_Manifest, omit_defaults=False, kw_only=True):
    """Workload running the registry server."""

    api_version: str = "apps/v1"
    kind: str = "Deployment"
    metadata: ObjectMeta
    spec: DeploymentSpec


class ServicePort(_Manifest):
    """Port exposed by a Service."""

    name: str
    port: int
    target_port: int | str | None = None


class ServiceSpec(_Manifest):
    """Service specification; ``cluster_ip`` is assigned by the cluster."""

    ports: tuple[ServicePort, ...]
    selector: dict[str, str] = msgspec.field(default_factory=dict)
    cluster_ip: str | None = msgspec.field(default=None, name="clusterIP")


class Service(_Manifest, omit_defaults=False, kw_only=True):
    """Network endpoint fronting the registry Deployment."""

    api_version: str = "v1"
    kind: str = "Service"
    metadata: ObjectMeta
    spec: ServiceSpec


ManagedObject: typ.TypeAlias = ServiceAccount | Role | RoleBinding | Deployment | Service
