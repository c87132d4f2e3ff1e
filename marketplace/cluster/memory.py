"""In-memory implementation of ClusterClient for testing and development."""

from __future__ import annotations

import ipaddress
import itertools
import typing as typ
import uuid

import msgspec

from marketplace.manifests.models import Service

from .errors import AlreadyExistsError, ConflictError, NotFoundError

_ObjectT = typ.TypeVar("_ObjectT", bound=msgspec.Struct)

ObjectKey: typ.TypeAlias = tuple[str, str, str]

DEFAULT_SERVICE_CIDR = "10.96.0.0/12"


def _metadata(obj: msgspec.Struct) -> typ.Any:  # noqa: ANN401
    return typ.cast("typ.Any", obj).metadata


class InMemoryClusterClient:
    """Dictionary-backed cluster that mimics the API server's write semantics.

    Behaviour
    ---------
    - ``create`` assigns ``metadata.uid`` and ``metadata.resourceVersion``;
      Services without an explicit ``clusterIP`` additionally receive the next
      free address from the service CIDR, so a recreated Service never reuses
      its previous address.
    - ``update`` rejects objects whose ``resourceVersion`` differs from the
      stored one with :class:`ConflictError`, and bumps the version.
    - ``get`` returns the stored object; callers cannot mutate it because
      manifests are frozen.

    The ``calls`` list records ``(verb, kind, name)`` for every request so tests
    can assert on the exact sequence of API calls.

    """

    def __init__(self, service_cidr: str = DEFAULT_SERVICE_CIDR) -> None:
        """Initialise an empty store and the service address allocator."""
        self._objects: dict[ObjectKey, msgspec.Struct] = {}
        self._versions = itertools.count(1)
        network = ipaddress.ip_network(service_cidr)
        # Skip the first host; clusters reserve it for the API server service.
        self._addresses = itertools.islice(network.hosts(), 1, None)
        self.calls: list[tuple[str, str, str]] = []

    @staticmethod
    def _key(kind: type, name: str, namespace: str) -> ObjectKey:
        return (kind.__name__, namespace, name)

    def objects(self) -> dict[ObjectKey, msgspec.Struct]:
        """Return a snapshot of every stored object keyed by kind, ns, name."""
        return dict(self._objects)

    def seed(self, obj: _ObjectT) -> _ObjectT:
        """Store ``obj`` directly, as if created earlier, without recording."""
        stored = self._stamp(obj, new=True)
        metadata = _metadata(stored)
        self._objects[self._key(type(obj), metadata.name, metadata.namespace)] = stored
        return stored

    async def get(self, kind: type[_ObjectT], name: str, namespace: str) -> _ObjectT:
        """Return the stored object or raise NotFoundError."""
        self.calls.append(("get", kind.__name__, name))
        stored = self._objects.get(self._key(kind, name, namespace))
        if stored is None:
            raise NotFoundError.for_object(kind.__name__, name, namespace)
        return typ.cast("_ObjectT", stored)

    async def create(self, obj: _ObjectT) -> _ObjectT:
        """Store a new object or raise AlreadyExistsError."""
        metadata = _metadata(obj)
        kind_name = type(obj).__name__
        self.calls.append(("create", kind_name, metadata.name))
        key = self._key(type(obj), metadata.name, metadata.namespace)
        if key in self._objects:
            raise AlreadyExistsError.for_object(
                kind_name, metadata.name, metadata.namespace
            )
        stored = self._stamp(obj, new=True)
        self._objects[key] = stored
        return stored

    async def update(self, obj: _ObjectT) -> _ObjectT:
        """Replace a stored object, enforcing optimistic concurrency."""
        metadata = _metadata(obj)
        kind_name = type(obj).__name__
        self.calls.append(("update", kind_name, metadata.name))
        key = self._key(type(obj), metadata.name, metadata.namespace)
        current = self._objects.get(key)
        if current is None:
            raise NotFoundError.for_object(kind_name, metadata.name, metadata.namespace)
        if metadata.resource_version != _metadata(current).resource_version:
            raise ConflictError.stale_version(kind_name, metadata.name)
        stored = self._stamp(obj, new=False)
        self._objects[key] = stored
        return stored

    async def delete(self, kind: type[_ObjectT], name: str, namespace: str) -> None:
        """Remove a stored object or raise NotFoundError."""
        self.calls.append(("delete", kind.__name__, name))
        if self._objects.pop(self._key(kind, name, namespace), None) is None:
            raise NotFoundError.for_object(kind.__name__, name, namespace)

    def _stamp(self, obj: _ObjectT, *, new: bool) -> _ObjectT:
        """Apply server-assigned fields to an object being written."""
        metadata = _metadata(obj)
        stamped_meta = msgspec.structs.replace(
            metadata,
            uid=str(uuid.uuid4()) if new else metadata.uid,
            resource_version=str(next(self._versions)),
        )
        stamped = msgspec.structs.replace(obj, metadata=stamped_meta)
        if new and isinstance(stamped, Service) and stamped.spec.cluster_ip is None:
            spec = msgspec.structs.replace(
                stamped.spec, cluster_ip=str(next(self._addresses))
            )
            stamped = msgspec.structs.replace(stamped, spec=spec)
        return typ.cast("_ObjectT", stamped)
