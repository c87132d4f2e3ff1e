"""REST addressing for the manifest kinds."""

from __future__ import annotations

import dataclasses

from .models import Deployment, Role, RoleBinding, Service, ServiceAccount


@dataclasses.dataclass(frozen=True, slots=True)
class ResourceKind:
    """API group, version, and plural resource name of a namespaced kind."""

    kind: str
    group: str
    version: str
    plural: str

    @property
    def api_prefix(self) -> str:
        """Return the API path prefix, ``/api/v1`` for the core group."""
        if not self.group:
            return f"/api/{self.version}"
        return f"/apis/{self.group}/{self.version}"

    def collection_path(self, namespace: str) -> str:
        """Return the path of the namespaced collection."""
        return f"{self.api_prefix}/namespaces/{namespace}/{self.plural}"

    def object_path(self, name: str, namespace: str) -> str:
        """Return the path of a single named object."""
        return f"{self.collection_path(namespace)}/{name}"


_KINDS: dict[type, ResourceKind] = {
    ServiceAccount: ResourceKind("ServiceAccount", "", "v1", "serviceaccounts"),
    Service: ResourceKind("Service", "", "v1", "services"),
    Role: ResourceKind("Role", "rbac.authorization.k8s.io", "v1", "roles"),
    RoleBinding: ResourceKind(
        "RoleBinding", "rbac.authorization.k8s.io", "v1", "rolebindings"
    ),
    Deployment: ResourceKind("Deployment", "apps", "v1", "deployments"),
}


def resource_kind(kind: type) -> ResourceKind:
    """Return REST addressing for a manifest type.

    Raises
    ------
    KeyError
        If ``kind`` is not one of the managed manifest types.

    """
    return _KINDS[kind]
