"""Package-to-source lookup store."""

from __future__ import annotations

import typing as typ

from .errors import PackageNotFoundError
from .models import SourceRef

if typ.TYPE_CHECKING:
    import collections.abc as cabc


@typ.runtime_checkable
class PackageReader(typ.Protocol):
    """Read access to the package-to-source mapping.

    Examples
    --------
    >>> store = InMemoryDatastore()
    >>> store.write(SourceRef("markets", "community"), ["etcd"])
    >>> isinstance(store, PackageReader)
    True
    >>> store.read("etcd").namespaced_name
    'markets/community'

    """

    def read(self, package_id: str) -> SourceRef:
        """Return the source that owns ``package_id``.

        Raises
        ------
        PackageNotFoundError
            If no source owns the package.

        """
        ...


class InMemoryDatastore:
    """Dictionary-backed :class:`PackageReader`.

    A package belongs to the source that most recently registered it.
    """

    def __init__(self) -> None:
        """Initialise an empty mapping."""
        self._owners: dict[str, SourceRef] = {}

    def write(self, source: SourceRef, package_ids: cabc.Iterable[str]) -> None:
        """Register ``source`` as the owner of each package in ``package_ids``."""
        for package_id in package_ids:
            self._owners[package_id] = source

    def read(self, package_id: str) -> SourceRef:
        """Return the owning source or raise PackageNotFoundError."""
        try:
            return self._owners[package_id]
        except KeyError:
            raise PackageNotFoundError(package_id) from None
