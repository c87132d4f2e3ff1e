"""YAML loader for registry descriptors.

A descriptor names a registry and the packages it serves::

    name: my-registry
    namespace: openshift-marketplace
    uid: 2f0b6c1e-...
    packages: [etcd, prometheus]

``packages`` may also be a comma-separated string, as in a
CatalogSourceConfig spec.
"""

from __future__ import annotations

from pathlib import Path

import msgspec
from ruamel.yaml.error import YAMLError

from marketplace.datastore.loader import yaml_loader

from .errors import DescriptorError
from .models import DesiredState, parse_package_ids


class RegistryDescriptor(msgspec.Struct, kw_only=True):
    """On-disk form of a registry's desired state."""

    name: str
    namespace: str
    packages: list[str] | str
    uid: str = ""

    def to_desired_state(self) -> DesiredState:
        """Return the validated desired state."""
        if isinstance(self.packages, str):
            packages = parse_package_ids(self.packages)
        else:
            packages = tuple(package.strip() for package in self.packages)
        return DesiredState(
            name=self.name,
            namespace=self.namespace,
            packages=packages,
            uid=self.uid,
        )


def load_descriptor(path: Path | str) -> DesiredState:
    """Parse a descriptor YAML file into a :class:`DesiredState`."""
    path_obj = Path(path)
    try:
        loaded = yaml_loader().load(path_obj.read_text(encoding="utf-8"))
    except (OSError, YAMLError) as exc:
        raise DescriptorError(str(path_obj), f"failed to parse YAML: {exc}") from exc

    if loaded is None:
        raise DescriptorError(str(path_obj), "file is empty")

    try:
        descriptor = msgspec.convert(loaded, type=RegistryDescriptor)
        return descriptor.to_desired_state()
    except (msgspec.ValidationError, ValueError) as exc:
        raise DescriptorError(str(path_obj), str(exc)) from exc
