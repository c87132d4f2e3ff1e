"""Desired manifests for the objects backing a registry.

Each function is pure: given the desired state and derived inputs it returns
the object the reconcilers converge the cluster towards.
"""

from __future__ import annotations

import typing as typ

from marketplace.manifests import builders
from marketplace.manifests.models import (
    Container,
    ContainerPort,
    ExecAction,
    PodSpec,
    PodTemplateMeta,
    PodTemplateSpec,
    PolicyRule,
    Probe,
    ServicePort,
    ServiceSpec,
    Subject,
)

from .constants import (
    HEALTH_PROBE_COMMAND,
    OPERATOR_SOURCE_API_GROUP,
    OPERATOR_SOURCE_RESOURCE,
    PORT_NAME,
    PORT_NUMBER,
    PROBE_FAILURE_THRESHOLD,
    PROBE_INITIAL_DELAY_SECONDS,
    REGISTRY_LABEL_KEY,
    REGISTRY_REPLICAS,
    REGISTRY_SERVER_BINARY,
)

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from marketplace.manifests.models import (
        Deployment,
        ObjectMeta,
        Role,
        RoleBinding,
        Service,
        ServiceAccount,
    )

    from .models import DesiredState


def registry_labels(desired: DesiredState) -> dict[str, str]:
    """Return the labels matched by the Deployment and Service selectors."""
    return {REGISTRY_LABEL_KEY: desired.name}


def registry_command(
    packages: cabc.Sequence[str], source_display: str
) -> tuple[str, ...]:
    """Return the registry server's argument list.

    Examples
    --------
    >>> registry_command(["pkg1", "pkg2"], "nsA/srcX")
    ('appregistry-server', '-s', 'nsA/srcX', '-o', 'pkg1,pkg2')

    """
    return (REGISTRY_SERVER_BINARY, "-s", source_display, "-o", ",".join(packages))


def access_rules(source_names: cabc.Iterable[str]) -> tuple[PolicyRule, ...]:
    """Return rules granting read access to ``source_names`` and to secrets."""
    return (
        builders.policy_rule(
            ["get"],
            [OPERATOR_SOURCE_API_GROUP],
            [OPERATOR_SOURCE_RESOURCE],
            source_names,
        ),
        builders.policy_rule(["get"], [""], ["secrets"]),
    )


def registry_subjects(desired: DesiredState) -> tuple[Subject, ...]:
    """Return the subjects bound to the registry role."""
    return (builders.service_account_subject(desired.name, desired.namespace),)


def _health_probe() -> Probe:
    return Probe(
        exec=ExecAction(command=HEALTH_PROBE_COMMAND),
        initial_delay_seconds=PROBE_INITIAL_DELAY_SECONDS,
        failure_threshold=PROBE_FAILURE_THRESHOLD,
    )


def registry_pod_template(
    desired: DesiredState, command: cabc.Sequence[str], image: str
) -> PodTemplateSpec:
    """Return the pod template running the registry server.

    The pod runs as the registry's ServiceAccount and exposes the gRPC port;
    readiness and liveness both use the gRPC health probe.
    """
    return PodTemplateSpec(
        metadata=PodTemplateMeta(
            name=desired.name,
            namespace=desired.namespace,
            labels=registry_labels(desired),
        ),
        spec=PodSpec(
            containers=(
                Container(
                    name=desired.name,
                    image=image,
                    command=tuple(command),
                    ports=(ContainerPort(name=PORT_NAME, container_port=PORT_NUMBER),),
                    readiness_probe=_health_probe(),
                    liveness_probe=_health_probe(),
                ),
            ),
            service_account_name=desired.name,
        ),
    )


def registry_service_spec(desired: DesiredState) -> ServiceSpec:
    """Return a spec exposing the gRPC port of the registry pods."""
    return ServiceSpec(
        ports=(ServicePort(name=PORT_NAME, port=PORT_NUMBER, target_port=PORT_NUMBER),),
        selector=registry_labels(desired),
    )


def _meta(desired: DesiredState) -> ObjectMeta:
    return builders.object_meta(
        desired.name, desired.namespace, owner=desired.owner_reference()
    )


def service_account_for(desired: DesiredState) -> ServiceAccount:
    """Return the registry's ServiceAccount."""
    return builders.service_account(_meta(desired))


def role_for(desired: DesiredState, source_names: cabc.Iterable[str]) -> Role:
    """Return the Role scoped to ``source_names``."""
    return builders.role(_meta(desired), access_rules(source_names))


def role_binding_for(desired: DesiredState, role_name: str) -> RoleBinding:
    """Return the RoleBinding granting ``role_name`` to the registry's account."""
    return builders.role_binding(
        _meta(desired),
        role_name=role_name,
        subjects=registry_subjects(desired),
    )


def deployment_for(
    desired: DesiredState, command: cabc.Sequence[str], image: str
) -> Deployment:
    """Return the single-replica registry Deployment."""
    return builders.deployment(
        _meta(desired),
        replicas=REGISTRY_REPLICAS,
        labels=registry_labels(desired),
        template=registry_pod_template(desired, command, image),
    )


def service_for(desired: DesiredState) -> Service:
    """Return the Service fronting the registry Deployment."""
    return builders.service(_meta(desired), registry_service_spec(desired))
