"""Package datastore mapping package identifiers to their upstream sources."""

from marketplace.datastore.errors import (
    DatastoreError,
    DatastoreLoadError,
    PackageNotFoundError,
)
from marketplace.datastore.loader import load_datastore
from marketplace.datastore.models import SourceRef
from marketplace.datastore.store import InMemoryDatastore, PackageReader

__all__ = [
    "DatastoreError",
    "DatastoreLoadError",
    "InMemoryDatastore",
    "PackageNotFoundError",
    "PackageReader",
    "SourceRef",
    "load_datastore",
]
