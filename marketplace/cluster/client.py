"""Cluster API client interface and its Kubernetes REST implementation."""

from __future__ import annotations

import ssl
import typing as typ

import httpx
import msgspec

from marketplace.manifests.kinds import resource_kind

from .errors import ClusterAPIError

if typ.TYPE_CHECKING:
    from .config import ClusterConfig

_ObjectT = typ.TypeVar("_ObjectT", bound=msgspec.Struct)

_HTTP_ERROR_STATUS_THRESHOLD = 400

JSON_CONTENT_TYPE = "application/json"
MERGE_PATCH_CONTENT_TYPE = "application/merge-patch+json"


@typ.runtime_checkable
class ClusterClient(typ.Protocol):
    """Typed get/create/update/delete access to namespaced cluster objects.

    Objects are keyed by kind, name, and namespace. Implementations raise
    :class:`~marketplace.cluster.errors.NotFoundError` when an object is
    absent, :class:`~marketplace.cluster.errors.AlreadyExistsError` when a
    create collides with an existing object,
    :class:`~marketplace.cluster.errors.ConflictError` when an update carries a
    stale resource version, and a plain
    :class:`~marketplace.cluster.errors.ClusterAPIError` for anything else.
    """

    async def get(self, kind: type[_ObjectT], name: str, namespace: str) -> _ObjectT:
        """Return the stored object of ``kind`` called ``name``."""
        ...

    async def create(self, obj: _ObjectT) -> _ObjectT:
        """Create ``obj`` and return it as stored, with server-assigned fields."""
        ...

    async def update(self, obj: _ObjectT) -> _ObjectT:
        """Write the fields ``obj`` declares over the stored object.

        Fields the stored object carries but ``obj`` does not model are left
        untouched. ``obj.metadata.resourceVersion`` must match the stored
        version, otherwise :class:`~marketplace.cluster.errors.ConflictError`
        is raised.
        """
        ...

    async def delete(self, kind: type[_ObjectT], name: str, namespace: str) -> None:
        """Delete the object of ``kind`` called ``name``."""
        ...


def _json_object(response: httpx.Response) -> dict[str, typ.Any] | None:
    """Return the response body as a JSON object, or None when it is not one."""
    try:
        payload = response.json()
    except ValueError:
        return None
    return payload if isinstance(payload, dict) else None


class KubernetesClusterClient:
    """Kubernetes REST implementation of :class:`ClusterClient`.

    Manifests are encoded and decoded with msgspec; request paths come from
    :func:`marketplace.manifests.kinds.resource_kind`.
    """

    def __init__(
        self,
        config: ClusterConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialise the client with the provided connection settings."""
        self._config = config
        self._owns_client = http_client is None
        self._headers = {
            "User-Agent": config.user_agent,
            "Accept": "application/json",
        }
        if config.token:
            self._headers["Authorization"] = f"Bearer {config.token}"
        verify: ssl.SSLContext | bool = True
        if config.ca_path is not None:
            verify = ssl.create_default_context(cafile=str(config.ca_path))
        self._client = http_client or httpx.AsyncClient(
            timeout=config.timeout_s,
            verify=verify,
        )

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            await self._client.aclose()

    async def get(self, kind: type[_ObjectT], name: str, namespace: str) -> _ObjectT:
        """Fetch a single object."""
        path = resource_kind(kind).object_path(name, namespace)
        response = await self._request("GET", path)
        return self._decode(kind, response)

    async def create(self, obj: _ObjectT) -> _ObjectT:
        """POST ``obj`` to its namespaced collection."""
        kind = type(obj)
        metadata = typ.cast("typ.Any", obj).metadata
        path = resource_kind(kind).collection_path(metadata.namespace)
        response = await self._request("POST", path, body=msgspec.json.encode(obj))
        return self._decode(kind, response)

    async def update(self, obj: _ObjectT) -> _ObjectT:
        """Merge-patch the declared fields of ``obj`` onto the stored object.

        A JSON merge patch only replaces the keys present in the body, so
        fields such as ``metadata.finalizers`` or ``spec.strategy`` survive.
        The encoded ``metadata.resourceVersion`` makes the server reject the
        patch when the object changed since it was read.
        """
        kind = type(obj)
        metadata = typ.cast("typ.Any", obj).metadata
        path = resource_kind(kind).object_path(metadata.name, metadata.namespace)
        response = await self._request(
            "PATCH",
            path,
            body=msgspec.json.encode(obj),
            content_type=MERGE_PATCH_CONTENT_TYPE,
        )
        return self._decode(kind, response)

    async def delete(self, kind: type[_ObjectT], name: str, namespace: str) -> None:
        """DELETE a single object."""
        path = resource_kind(kind).object_path(name, namespace)
        await self._request("DELETE", path)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        body: bytes | None = None,
        content_type: str = JSON_CONTENT_TYPE,
    ) -> httpx.Response:
        """Issue a request and raise a classified error for failure responses."""
        headers = dict(self._headers)
        if body is not None:
            headers["Content-Type"] = content_type
        try:
            response = await self._client.request(
                method,
                f"{self._config.api_server}{path}",
                content=body,
                headers=headers,
            )
        except httpx.HTTPError as exc:
            raise ClusterAPIError.network_error(str(exc)) from exc
        if response.status_code >= _HTTP_ERROR_STATUS_THRESHOLD:
            raise ClusterAPIError.from_status(
                response.status_code, _json_object(response)
            )
        return response

    @staticmethod
    def _decode(kind: type[_ObjectT], response: httpx.Response) -> _ObjectT:
        try:
            return msgspec.json.decode(response.content, type=kind)
        except msgspec.DecodeError as exc:
            raise ClusterAPIError.malformed_response(kind.__name__, str(exc)) from exc
