"""Tests for the generic get-or-create-or-update reconciler."""

from __future__ import annotations

import typing as typ

import msgspec
import pytest

from marketplace.cluster import AlreadyExistsError, ClusterAPIError, ConflictError
from marketplace.datastore import SourceRef
from marketplace.manifests import (
    Deployment,
    PolicyRule,
    Role,
    RoleBinding,
    ServiceAccount,
)
from marketplace.registry import (
    ReconcileContext,
    ResolvedSources,
    ResourceReconciler,
    templates,
)
from marketplace.registry.reconciler import (
    DEPLOYMENT_STRATEGY,
    ROLE_BINDING_STRATEGY,
    ROLE_STRATEGY,
    SERVICE_ACCOUNT_STRATEGY,
)
from tests.helpers.cluster import verbs_for
from tests.helpers.femtologging_capture import capture_femto_logs

if typ.TYPE_CHECKING:
    from marketplace.cluster import InMemoryClusterClient
    from marketplace.registry import DesiredState
    from tests.helpers.cluster import FaultyClusterClient

IMAGE = "quay.io/example/registry:v1"


@pytest.fixture
def context(desired: DesiredState) -> ReconcileContext:
    """Provide a context whose packages resolve to a single source."""
    return ReconcileContext(
        desired=desired,
        sources=ResolvedSources(refs=(SourceRef("nsA", "srcX"),)),
        image=IMAGE,
    )


class TestCreate:
    """Objects absent from the cluster are created."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "strategy",
        [
            SERVICE_ACCOUNT_STRATEGY,
            ROLE_STRATEGY,
            ROLE_BINDING_STRATEGY,
            DEPLOYMENT_STRATEGY,
        ],
        ids=lambda strategy: strategy.label,
    )
    async def test_missing_object_is_created(
        self,
        cluster: InMemoryClusterClient,
        context: ReconcileContext,
        strategy: typ.Any,  # noqa: ANN401
    ) -> None:
        """Get reports not-found, then create stores the desired object."""
        await ResourceReconciler(cluster, strategy).ensure(context)

        assert verbs_for(cluster.calls, strategy.label) == ["get", "create"]
        stored = await cluster.get(strategy.kind, "my-registry", "markets")
        assert stored.metadata.owner_references[0].uid == context.desired.uid

    @pytest.mark.asyncio
    async def test_concurrent_create_counts_as_success(
        self, faulty_cluster: FaultyClusterClient, context: ReconcileContext
    ) -> None:
        """An already-exists create is tolerated and nothing else is attempted."""
        faulty_cluster.fail(
            "create",
            Role,
            AlreadyExistsError.for_object("Role", "my-registry", "markets"),
        )

        with capture_femto_logs("marketplace.registry.reconciler") as capture:
            await ResourceReconciler(faulty_cluster, ROLE_STRATEGY).ensure(context)
            capture.wait_for_count(1)

        assert faulty_cluster.failed_calls == [("create", "Role", "my-registry")]
        assert verbs_for(faulty_cluster.calls, "Role") == ["get"]
        assert any("concurrently" in m for m in capture.messages("INFO"))

    @pytest.mark.asyncio
    async def test_create_failure_is_logged_and_reraised(
        self, faulty_cluster: FaultyClusterClient, context: ReconcileContext
    ) -> None:
        """Any other create failure propagates as the same exception."""
        error = ClusterAPIError.http_error(403, "forbidden")
        faulty_cluster.fail("create", Deployment, error)

        with capture_femto_logs("marketplace.registry.reconciler") as capture:
            with pytest.raises(ClusterAPIError) as exc_info:
                await ResourceReconciler(faulty_cluster, DEPLOYMENT_STRATEGY).ensure(
                    context
                )
            capture.wait_for_count(1)

        assert exc_info.value is error
        assert any("Failed to create" in m for m in capture.messages("ERROR"))

    @pytest.mark.asyncio
    async def test_get_failure_propagates_without_create(
        self, faulty_cluster: FaultyClusterClient, context: ReconcileContext
    ) -> None:
        """A failing lookup other than not-found aborts before create."""
        error = ClusterAPIError.network_error("connection reset")
        faulty_cluster.fail("get", ServiceAccount, error)

        with pytest.raises(ClusterAPIError) as exc_info:
            await ResourceReconciler(faulty_cluster, SERVICE_ACCOUNT_STRATEGY).ensure(
                context
            )

        assert exc_info.value is error
        assert faulty_cluster.calls == []


class TestUpdate:
    """Objects present in the cluster converge in place."""

    @pytest.mark.asyncio
    async def test_service_account_is_never_updated(
        self, cluster: InMemoryClusterClient, context: ReconcileContext
    ) -> None:
        """Presence alone satisfies the ServiceAccount."""
        cluster.seed(templates.service_account_for(context.desired))

        await ResourceReconciler(cluster, SERVICE_ACCOUNT_STRATEGY).ensure(context)

        assert verbs_for(cluster.calls, "ServiceAccount") == ["get"]

    @pytest.mark.asyncio
    async def test_role_rules_are_replaced(
        self, cluster: InMemoryClusterClient, context: ReconcileContext
    ) -> None:
        """An existing role is updated to the rules for the current sources."""
        stale = templates.role_for(context.desired, ["srcOld"])
        seeded = cluster.seed(msgspec.structs.replace(stale, rules=stale.rules[:1]))

        await ResourceReconciler(cluster, ROLE_STRATEGY).ensure(context)

        assert verbs_for(cluster.calls, "Role") == ["get", "update"]
        stored = await cluster.get(Role, "my-registry", "markets")
        assert stored.rules == templates.access_rules(["srcX"])
        assert stored.metadata.uid == seeded.metadata.uid, "Expected same object."

    @pytest.mark.asyncio
    async def test_role_binding_ref_and_subjects_are_replaced(
        self, cluster: InMemoryClusterClient, context: ReconcileContext
    ) -> None:
        """Role reference and subjects are rewritten on an existing binding."""
        desired_binding = templates.role_binding_for(context.desired, "my-registry")
        cluster.seed(msgspec.structs.replace(desired_binding, subjects=()))

        await ResourceReconciler(cluster, ROLE_BINDING_STRATEGY).ensure(context)

        stored = await cluster.get(RoleBinding, "my-registry", "markets")
        assert stored.subjects == desired_binding.subjects
        assert stored.role_ref == desired_binding.role_ref

    @pytest.mark.asyncio
    async def test_deployment_pod_template_is_replaced(
        self, cluster: InMemoryClusterClient, context: ReconcileContext
    ) -> None:
        """Only the pod template is copied onto an existing deployment."""
        old = templates.deployment_for(
            context.desired, ("appregistry-server", "-s", "", "-o", "x"), "old:v0"
        )
        old_spec = msgspec.structs.replace(old.spec, replicas=3)
        cluster.seed(msgspec.structs.replace(old, spec=old_spec))

        await ResourceReconciler(cluster, DEPLOYMENT_STRATEGY).ensure(context)

        stored = await cluster.get(Deployment, "my-registry", "markets")
        (container,) = stored.spec.template.spec.containers
        assert container.image == IMAGE
        assert container.command == context.command
        assert stored.spec.replicas == 3, "Expected replicas to be left alone."

    @pytest.mark.asyncio
    async def test_update_conflict_surfaces(
        self, faulty_cluster: FaultyClusterClient, context: ReconcileContext
    ) -> None:
        """A stale resource version is reported rather than retried."""
        faulty_cluster.seed(templates.role_for(context.desired, ["srcOld"]))
        error = ConflictError.stale_version("Role", "my-registry")
        faulty_cluster.fail("update", Role, error)

        with capture_femto_logs("marketplace.registry.reconciler") as capture:
            with pytest.raises(ConflictError) as exc_info:
                await ResourceReconciler(faulty_cluster, ROLE_STRATEGY).ensure(context)
            capture.wait_for_count(1)

        assert exc_info.value is error
        assert any("Failed to update" in m for m in capture.messages("ERROR"))

    @pytest.mark.asyncio
    async def test_second_pass_updates_again(
        self, cluster: InMemoryClusterClient, context: ReconcileContext
    ) -> None:
        """Updatable kinds issue an update on every pass once present."""
        reconciler = ResourceReconciler(cluster, ROLE_STRATEGY)

        await reconciler.ensure(context)
        await reconciler.ensure(context)

        assert verbs_for(cluster.calls, "Role") == ["get", "create", "get", "update"]
        assert len(cluster.objects()) == 1


def test_rules_for_unknown_sources_still_grant_secrets() -> None:
    """With no sources, the role still carries both rules."""
    rules = templates.access_rules([])

    assert rules[0].resource_names == ()
    assert rules[1] == PolicyRule(
        verbs=("get",), api_groups=("",), resources=("secrets",)
    )
