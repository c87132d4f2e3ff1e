"""Value objects describing a registry's desired state and its sources."""

from __future__ import annotations

import dataclasses
import typing as typ

from marketplace.manifests.builders import controller_reference

from .constants import CATALOG_SOURCE_CONFIG_API_VERSION, CATALOG_SOURCE_CONFIG_KIND

if typ.TYPE_CHECKING:
    from marketplace.datastore.models import SourceRef
    from marketplace.manifests.models import OwnerReference


def parse_package_ids(raw: str) -> tuple[str, ...]:
    """Split a comma-separated package list, dropping blanks.

    Examples
    --------
    >>> parse_package_ids(" etcd, prometheus,,")
    ('etcd', 'prometheus')

    """
    return tuple(part.strip() for part in raw.split(",") if part.strip())


@dataclasses.dataclass(slots=True, frozen=True)
class DesiredState:
    """Desired state of one registry: its name, namespace, and packages.

    This mirrors a CatalogSourceConfig. Every managed object shares its
    ``name`` and ``namespace`` and carries an owner reference built from
    ``api_version``, ``kind``, ``name``, and ``uid``.
    """

    name: str
    namespace: str
    packages: tuple[str, ...]
    uid: str = ""
    api_version: str = CATALOG_SOURCE_CONFIG_API_VERSION
    kind: str = CATALOG_SOURCE_CONFIG_KIND

    def __post_init__(self) -> None:
        """Validate identifying fields and package identifiers."""
        if not self.name.strip():
            msg = "DesiredState.name must be non-empty"
            raise ValueError(msg)
        if not self.namespace.strip():
            msg = "DesiredState.namespace must be non-empty"
            raise ValueError(msg)
        if any(not package.strip() for package in self.packages):
            msg = f"DesiredState.packages must not contain blanks: {self.packages!r}"
            raise ValueError(msg)

    @classmethod
    def from_package_string(
        cls, name: str, namespace: str, packages: str, *, uid: str = ""
    ) -> DesiredState:
        """Build a desired state from a comma-separated package list."""
        return cls(
            name=name,
            namespace=namespace,
            packages=parse_package_ids(packages),
            uid=uid,
        )

    def owner_reference(self) -> OwnerReference:
        """Return the controller reference stamped on every managed object."""
        return controller_reference(
            api_version=self.api_version,
            kind=self.kind,
            name=self.name,
            uid=self.uid,
        )


@dataclasses.dataclass(slots=True, frozen=True)
class ResolvedSources:
    """Distinct upstream sources for a package list, in first-seen order."""

    refs: tuple[SourceRef, ...] = ()

    @property
    def names(self) -> tuple[str, ...]:
        """Return the bare source names, as scoped in the access role."""
        return tuple(ref.name for ref in self.refs)

    @property
    def display_string(self) -> str:
        """Return ``ns1/name1,ns2/name2`` for the registry server's ``-s`` flag."""
        return ",".join(ref.namespaced_name for ref in self.refs)

    def as_tuple(self) -> tuple[str, list[str]]:
        """Return the ``(display_string, names)`` pair."""
        return (self.display_string, list(self.names))
