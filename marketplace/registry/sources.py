"""Resolution of package identifiers to their upstream sources."""

from __future__ import annotations

import typing as typ

from marketplace.datastore.errors import DatastoreError
from marketplace.logging import get_logger, log_error

from .models import ResolvedSources

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from marketplace.datastore.models import SourceRef
    from marketplace.datastore.store import PackageReader

logger = get_logger(__name__)


class SourceResolver:
    """Map package identifiers to the distinct sources that own them.

    Parameters
    ----------
    reader:
        Lookup store consulted once per package.

    """

    def __init__(self, reader: PackageReader) -> None:
        """Configure the resolver with a package lookup store."""
        self._reader = reader

    def resolve(self, package_ids: cabc.Iterable[str]) -> ResolvedSources:
        """Resolve ``package_ids`` in order, skipping packages that fail lookup.

        Sources are deduplicated on exact ``(namespace, name)`` equality, so a
        source whose namespaced name is a prefix of another's is still kept.
        A lookup failure is logged and never aborts the resolution.

        Parameters
        ----------
        package_ids:
            Package identifiers in the order the registry lists them.

        Returns
        -------
        ResolvedSources
            Distinct sources in first-seen order.

        """
        seen: set[SourceRef] = set()
        refs: list[SourceRef] = []
        for package_id in package_ids:
            try:
                ref = self._reader.read(package_id)
            except DatastoreError as exc:
                log_error(logger, "Error %s reading package %s", exc, package_id)
                continue
            if ref in seen:
                continue
            seen.add(ref)
            refs.append(ref)
        return ResolvedSources(refs=tuple(refs))
