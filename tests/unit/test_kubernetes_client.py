"""Tests for the Kubernetes REST cluster client."""

from __future__ import annotations

import json
import typing as typ

import httpx
import msgspec
import pytest

from marketplace.cluster import (
    AlreadyExistsError,
    ClusterAPIError,
    ClusterClient,
    ClusterConfig,
    ConflictError,
    KubernetesClusterClient,
    NotFoundError,
)
from marketplace.datastore import SourceRef
from marketplace.manifests import Deployment, Role, Service, ServiceAccount
from marketplace.registry import (
    DesiredState,
    ReconcileContext,
    ResolvedSources,
    ResourceReconciler,
    templates,
)
from marketplace.registry.reconciler import DEPLOYMENT_STRATEGY

_API_SERVER = "https://k8s.example.test:6443"
_TOKEN = "sa-token"

Handler = typ.Callable[[httpx.Request], httpx.Response]


@pytest.fixture
def desired() -> DesiredState:
    """Provide a minimal desired state."""
    return DesiredState(
        name="my-registry", namespace="markets", packages=("pkg1",), uid="abc"
    )


def _make_client(
    handler: Handler, requests: list[httpx.Request]
) -> KubernetesClusterClient:
    def _recording(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(_recording))
    return KubernetesClusterClient(
        ClusterConfig(api_server=_API_SERVER, token=_TOKEN),
        http_client=http_client,
    )


def _status(code: int, reason: str, message: str) -> httpx.Response:
    return httpx.Response(
        code,
        json={
            "kind": "Status",
            "apiVersion": "v1",
            "status": "Failure",
            "reason": reason,
            "message": message,
            "code": code,
        },
    )


def test_satisfies_cluster_client_protocol() -> None:
    """The REST client is usable wherever a ClusterClient is expected."""
    client = KubernetesClusterClient(ClusterConfig(api_server=_API_SERVER))

    assert isinstance(client, ClusterClient)


@pytest.mark.asyncio
async def test_get_decodes_object_and_sends_auth(desired: DesiredState) -> None:
    """GET addresses the core API path and decodes camelCase fields."""
    requests: list[httpx.Request] = []
    body = {
        "apiVersion": "v1",
        "kind": "ServiceAccount",
        "metadata": {
            "name": "my-registry",
            "namespace": "markets",
            "uid": "u-1",
            "resourceVersion": "42",
            "creationTimestamp": "2024-01-01T00:00:00Z",
        },
        "secrets": [{"name": "my-registry-token"}],
    }
    client = _make_client(lambda _: httpx.Response(200, json=body), requests)

    account = await client.get(ServiceAccount, desired.name, desired.namespace)

    (request,) = requests
    assert request.method == "GET"
    assert str(request.url) == (
        f"{_API_SERVER}/api/v1/namespaces/markets/serviceaccounts/my-registry"
    )
    assert request.headers["Authorization"] == f"Bearer {_TOKEN}"
    assert account.metadata.resource_version == "42"
    assert account.metadata.uid == "u-1"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("kind", "path"),
    [
        (Role, "/apis/rbac.authorization.k8s.io/v1/namespaces/markets/roles"),
        (Deployment, "/apis/apps/v1/namespaces/markets/deployments"),
        (Service, "/api/v1/namespaces/markets/services"),
    ],
    ids=["role", "deployment", "service"],
)
async def test_create_posts_to_collection(
    desired: DesiredState, kind: type, path: str
) -> None:
    """POST goes to the kind's namespaced collection with a JSON body."""
    requests: list[httpx.Request] = []
    builders: dict[type, typ.Any] = {
        Role: templates.role_for(desired, ["srcX"]),
        Deployment: templates.deployment_for(desired, ("appregistry-server",), "i"),
        Service: templates.service_for(desired),
    }
    manifest = builders[kind]
    client = _make_client(
        lambda request: httpx.Response(201, content=request.content), requests
    )

    created = await client.create(manifest)

    (request,) = requests
    assert request.method == "POST"
    assert request.url.path == path
    assert request.headers["Content-Type"] == "application/json"
    assert created == manifest


@pytest.mark.asyncio
async def test_service_body_leaves_address_to_the_server(
    desired: DesiredState,
) -> None:
    """The created Service omits clusterIP and decodes the assigned one."""
    requests: list[httpx.Request] = []

    def _assign_ip(request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        payload["spec"]["clusterIP"] = "10.96.0.7"
        return httpx.Response(201, json=payload)

    client = _make_client(_assign_ip, requests)

    created = await client.create(templates.service_for(desired))

    sent = json.loads(requests[0].content)
    assert "clusterIP" not in sent["spec"]
    assert sent["metadata"]["ownerReferences"][0]["controller"] is True
    assert created.spec.cluster_ip == "10.96.0.7"


@pytest.mark.asyncio
async def test_update_patches_object_path(desired: DesiredState) -> None:
    """Updates merge-patch the named object with the declared fields."""
    requests: list[httpx.Request] = []
    client = _make_client(
        lambda request: httpx.Response(200, content=request.content), requests
    )
    role = templates.role_for(desired, ["srcX"])

    await client.update(role)

    (request,) = requests
    assert request.method == "PATCH"
    assert request.headers["Content-Type"] == "application/merge-patch+json"
    assert request.url.path == (
        "/apis/rbac.authorization.k8s.io/v1/namespaces/markets/roles/my-registry"
    )
    assert json.loads(request.content)["rules"][0]["resourceNames"] == ["srcX"]


@pytest.mark.asyncio
async def test_delete_addresses_object(desired: DesiredState) -> None:
    """DELETE addresses the named object and ignores the Status body."""
    requests: list[httpx.Request] = []
    client = _make_client(
        lambda _: httpx.Response(200, json={"kind": "Status", "status": "Success"}),
        requests,
    )

    await client.delete(Service, desired.name, desired.namespace)

    (request,) = requests
    assert request.method == "DELETE"
    assert request.url.path == "/api/v1/namespaces/markets/services/my-registry"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("response", "error_type", "status_code"),
    [
        (_status(404, "NotFound", 'services "x" not found'), NotFoundError, 404),
        (_status(409, "AlreadyExists", "already exists"), AlreadyExistsError, 409),
        (_status(409, "Conflict", "object has been modified"), ConflictError, 409),
        (_status(403, "Forbidden", "forbidden"), ClusterAPIError, 403),
        (httpx.Response(500, text="upstream failure"), ClusterAPIError, 500),
    ],
    ids=["not-found", "already-exists", "conflict", "forbidden", "server-error"],
)
async def test_error_responses_are_classified(
    desired: DesiredState,
    response: httpx.Response,
    error_type: type[ClusterAPIError],
    status_code: int,
) -> None:
    """Failure responses map onto the cluster error hierarchy."""
    client = _make_client(lambda _: response, [])

    with pytest.raises(error_type) as exc_info:
        await client.get(Service, desired.name, desired.namespace)

    assert type(exc_info.value) is error_type
    assert exc_info.value.status_code == status_code


@pytest.mark.asyncio
async def test_status_message_is_surfaced(desired: DesiredState) -> None:
    """The Status message and reason are kept on the raised error."""
    client = _make_client(lambda _: _status(403, "Forbidden", "no access"), [])

    with pytest.raises(ClusterAPIError, match="no access") as exc_info:
        await client.get(Role, desired.name, desired.namespace)

    assert exc_info.value.reason == "Forbidden"


@pytest.mark.asyncio
async def test_transport_error_is_wrapped(desired: DesiredState) -> None:
    """Connection failures surface as a ClusterAPIError without a status."""

    def _refuse(request: httpx.Request) -> httpx.Response:
        msg = "connection refused"
        raise httpx.ConnectError(msg, request=request)

    client = _make_client(_refuse, [])

    with pytest.raises(ClusterAPIError, match="network error") as exc_info:
        await client.get(Role, desired.name, desired.namespace)

    assert exc_info.value.status_code is None


@pytest.mark.asyncio
async def test_malformed_body_is_reported(desired: DesiredState) -> None:
    """A body that does not decode as the kind raises ClusterAPIError."""
    client = _make_client(lambda _: httpx.Response(200, json={"kind": "Role"}), [])

    with pytest.raises(ClusterAPIError, match="malformed Role"):
        await client.get(Role, desired.name, desired.namespace)


def _apply_merge_patch(target: object, patch: object) -> object:
    """Apply a JSON merge patch the way the API server does."""
    if not isinstance(patch, dict):
        return patch
    result = dict(target) if isinstance(target, dict) else {}
    for key, value in patch.items():
        if value is None:
            result.pop(key, None)
        else:
            result[key] = _apply_merge_patch(result.get(key), value)
    return result


@pytest.mark.asyncio
async def test_deployment_update_keeps_unmodelled_fields(
    desired: DesiredState,
) -> None:
    """Converging a Deployment leaves fields the manifests do not model intact."""
    stale = templates.deployment_for(desired, ("appregistry-server",), "old:v0")
    stored: dict[str, typ.Any] = json.loads(msgspec.json.encode(stale))
    stored["metadata"].update(
        uid="u-1",
        resourceVersion="7",
        finalizers=["example.com/cleanup"],
    )
    stored["spec"].update(
        strategy={"type": "Recreate"},
        revisionHistoryLimit=2,
    )
    requests: list[httpx.Request] = []

    def _server(request: httpx.Request) -> httpx.Response:
        nonlocal stored
        if request.method == "PATCH":
            stored = typ.cast(
                "dict[str, typ.Any]",
                _apply_merge_patch(stored, json.loads(request.content)),
            )
        return httpx.Response(200, json=stored)

    client = _make_client(_server, requests)
    context = ReconcileContext(
        desired=desired,
        sources=ResolvedSources(refs=(SourceRef("nsA", "srcX"),)),
        image="new:v1",
    )

    await ResourceReconciler(client, DEPLOYMENT_STRATEGY).ensure(context)

    assert [request.method for request in requests] == ["GET", "PATCH"]
    patch = json.loads(requests[1].content)
    assert patch["metadata"]["resourceVersion"] == "7"
    assert "finalizers" not in patch["metadata"]
    assert "strategy" not in patch["spec"]
    assert stored["metadata"]["finalizers"] == ["example.com/cleanup"], (
        "Expected finalizers to survive the update."
    )
    assert stored["spec"]["strategy"] == {"type": "Recreate"}
    assert stored["spec"]["revisionHistoryLimit"] == 2
    container = stored["spec"]["template"]["spec"]["containers"][0]
    assert container["image"] == "new:v1"
    assert container["command"] == list(context.command)
