"""Upstream source references and the datastore file schema."""

from __future__ import annotations

import dataclasses

import msgspec


@dataclasses.dataclass(slots=True, frozen=True)
class SourceRef:
    """Upstream package source (an OperatorSource) identified by namespace/name."""

    namespace: str
    name: str

    @property
    def namespaced_name(self) -> str:
        """Return ``namespace/name`` as used in registry server arguments."""
        return f"{self.namespace}/{self.name}"


class SourceEntry(msgspec.Struct, kw_only=True):
    """One upstream source and the packages it owns.

    Attributes
    ----------
    namespace : str
        Namespace of the OperatorSource.
    name : str
        Name of the OperatorSource.
    packages : list[str]
        Package identifiers served by this source.

    """

    namespace: str
    name: str
    packages: list[str] = msgspec.field(default_factory=list)


class DatastoreDocument(msgspec.Struct, kw_only=True):
    """Top-level structure of a datastore YAML file."""

    sources: list[SourceEntry] = msgspec.field(default_factory=list)
