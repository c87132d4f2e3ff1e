"""Constructor functions for the manifest structures.

Each constructor returns a fully populated, immutable manifest. Owner
references are attached at construction time so the cluster's garbage
collector removes the object together with its owner.

Examples
--------
>>> owner = controller_reference(
...     api_version="marketplace.redhat.com/v1alpha1",
...     kind="CatalogSourceConfig",
...     name="my-csc",
...     uid="1234",
... )
>>> account = service_account(object_meta("my-csc", "markets", owner=owner))
>>> account.metadata.owner_references[0].controller
True

"""

from __future__ import annotations

import typing as typ

from .models import (
    Deployment,
    DeploymentSpec,
    LabelSelector,
    ObjectMeta,
    OwnerReference,
    PodTemplateSpec,
    PolicyRule,
    Role,
    RoleBinding,
    RoleRef,
    Service,
    ServiceAccount,
    ServiceSpec,
    Subject,
)

if typ.TYPE_CHECKING:
    import collections.abc as cabc

RBAC_API_GROUP = "rbac.authorization.k8s.io"


def controller_reference(
    *, api_version: str, kind: str, name: str, uid: str
) -> OwnerReference:
    """Return an owner reference marking the owner as managing controller."""
    return OwnerReference(
        api_version=api_version,
        kind=kind,
        name=name,
        uid=uid,
        controller=True,
        block_owner_deletion=True,
    )


def object_meta(
    name: str,
    namespace: str,
    *,
    owner: OwnerReference | None = None,
    labels: cabc.Mapping[str, str] | None = None,
) -> ObjectMeta:
    """Return object metadata keyed by name and namespace."""
    return ObjectMeta(
        name=name,
        namespace=namespace,
        labels=dict(labels or {}),
        owner_references=(owner,) if owner is not None else (),
    )


def service_account(metadata: ObjectMeta) -> ServiceAccount:
    """Return a ServiceAccount with the given metadata."""
    return ServiceAccount(metadata=metadata)


def policy_rule(
    verbs: cabc.Iterable[str],
    api_groups: cabc.Iterable[str],
    resources: cabc.Iterable[str],
    resource_names: cabc.Iterable[str] | None = None,
) -> PolicyRule:
    """Return a PolicyRule; no resource names means the rule is unscoped."""
    return PolicyRule(
        verbs=tuple(verbs),
        api_groups=tuple(api_groups),
        resources=tuple(resources),
        resource_names=tuple(resource_names or ()),
    )


def role(metadata: ObjectMeta, rules: cabc.Iterable[PolicyRule]) -> Role:
    """Return a Role granting ``rules``."""
    return Role(metadata=metadata, rules=tuple(rules))


def role_ref(role_name: str) -> RoleRef:
    """Return a reference to the namespaced Role called ``role_name``."""
    return RoleRef(api_group=RBAC_API_GROUP, kind="Role", name=role_name)


def service_account_subject(name: str, namespace: str) -> Subject:
    """Return a RoleBinding subject for a ServiceAccount."""
    return Subject(kind="ServiceAccount", name=name, namespace=namespace)


def role_binding(
    metadata: ObjectMeta,
    *,
    role_name: str,
    subjects: cabc.Iterable[Subject],
) -> RoleBinding:
    """Return a RoleBinding granting ``role_name`` to ``subjects``."""
    return RoleBinding(
        metadata=metadata,
        role_ref=role_ref(role_name),
        subjects=tuple(subjects),
    )


def deployment(
    metadata: ObjectMeta,
    *,
    replicas: int,
    labels: cabc.Mapping[str, str],
    template: PodTemplateSpec,
) -> Deployment:
    """Return a Deployment selecting pods by ``labels``."""
    return Deployment(
        metadata=metadata,
        spec=DeploymentSpec(
            replicas=replicas,
            selector=LabelSelector(match_labels=dict(labels)),
            template=template,
        ),
    )


def service(metadata: ObjectMeta, spec: ServiceSpec) -> Service:
    """Return a Service with the given spec."""
    return Service(metadata=metadata, spec=spec)
