"""Typed Kubernetes manifests for the registry's managed objects."""

from marketplace.manifests.kinds import ResourceKind, resource_kind
from marketplace.manifests.models import (
    Container,
    ContainerPort,
    Deployment,
    DeploymentSpec,
    ExecAction,
    LabelSelector,
    ManagedObject,
    ObjectMeta,
    OwnerReference,
    PodSpec,
    PodTemplateMeta,
    PodTemplateSpec,
    PolicyRule,
    Probe,
    Role,
    RoleBinding,
    RoleRef,
    Service,
    ServiceAccount,
    ServicePort,
    ServiceSpec,
    Subject,
)

__all__ = [
    "Container",
    "ContainerPort",
    "Deployment",
    "DeploymentSpec",
    "ExecAction",
    "LabelSelector",
    "ManagedObject",
    "ObjectMeta",
    "OwnerReference",
    "PodSpec",
    "PodTemplateMeta",
    "PodTemplateSpec",
    "PolicyRule",
    "Probe",
    "ResourceKind",
    "Role",
    "RoleBinding",
    "RoleRef",
    "Service",
    "ServiceAccount",
    "ServicePort",
    "ServiceSpec",
    "Subject",
    "resource_kind",
]
