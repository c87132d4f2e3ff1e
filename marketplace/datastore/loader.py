"""YAML loader for datastore snapshots.

A datastore file lists upstream sources and the packages each one owns::

    sources:
      - namespace: openshift-marketplace
        name: community-operators
        packages: [etcd, prometheus]

"""

from __future__ import annotations

from pathlib import Path

import msgspec
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .errors import DatastoreLoadError
from .models import DatastoreDocument, SourceRef
from .store import InMemoryDatastore

YAML_VERSION = (1, 2)


def load_datastore(path: Path | str) -> InMemoryDatastore:
    """Parse a datastore YAML file into an :class:`InMemoryDatastore`."""
    path_obj = Path(path)
    try:
        loaded = yaml_loader().load(path_obj.read_text(encoding="utf-8"))
    except (OSError, YAMLError) as exc:
        raise DatastoreLoadError(str(path_obj), f"failed to parse YAML: {exc}") from exc

    if loaded is None:
        raise DatastoreLoadError(str(path_obj), "file is empty")

    try:
        document = msgspec.convert(loaded, type=DatastoreDocument)
    except msgspec.ValidationError as exc:
        raise DatastoreLoadError(
            str(path_obj), f"schema validation failed: {exc}"
        ) from exc

    store = InMemoryDatastore()
    for entry in document.sources:
        store.write(SourceRef(entry.namespace, entry.name), entry.packages)
    return store


def yaml_loader() -> YAML:
    """Return a safe YAML 1.2 loader that rejects duplicate keys."""
    yaml = YAML(typ="safe")
    yaml.version = YAML_VERSION
    yaml.allow_duplicate_keys = False
    return yaml
