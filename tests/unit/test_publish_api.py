"""
Tests for the publish API routes.

Gate failures come back as data with HTTP 200; configuration errors map to
400/404.
"""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from sitepublish.adapters.dev_jobs import DevJobEngine
from sitepublish.adapters.memory import (
    InMemoryContentChanges,
    InMemoryEditionRegistry,
    InMemoryRelationshipGraph,
    InMemoryTargetRegistry,
    InMemoryWorkflowView,
    StaticPublishGate,
)
from sitepublish.api.deps import get_dispatch
from sitepublish.api.routes import publish
from sitepublish.components.dispatch import DispatchConfig, PublishDispatchComponent
from sitepublish.components.related_items import RelatedItemsComponent, build_type_buckets
from sitepublish.domain.entities import ContentItem, ContentType, Edition, PublishTarget, Site
from sitepublish.domain.jobs import PlannedItem

# --- Test Setup ---


@pytest.fixture
def jobs() -> DevJobEngine:
    return DevJobEngine(edition_content=lambda edition: [PlannedItem(content_id=42, revision=3)])


@pytest.fixture
def gate() -> StaticPublishGate:
    return StaticPublishGate()


@pytest.fixture
def changes() -> InMemoryContentChanges:
    return InMemoryContentChanges()


@pytest.fixture
def dispatch(
    jobs: DevJobEngine, gate: StaticPublishGate, changes: InMemoryContentChanges
) -> PublishDispatchComponent:
    targets = InMemoryTargetRegistry()
    targets.add_site(Site(id=1, name="alpha"))
    targets.add_target(PublishTarget(site_id=1, site_name="alpha", server_id=10, server_name="prod"))
    targets.assign_item(42, 1)

    editions = InMemoryEditionRegistry(
        [
            Edition(id=1, name="alpha_FULL", site_id=1, server_id=10, suffix="FULL"),
            Edition(id=2, name="alpha_INCREMENTAL", site_id=1, server_id=10, suffix="INCREMENTAL"),
        ]
    )

    graph = InMemoryRelationshipGraph()
    graph.register(43, 1)
    graph.add_edge(42, 43)
    related = RelatedItemsComponent(
        graph, build_type_buckets([ContentType(id=1, name="page", publishable=True)])
    )

    return PublishDispatchComponent(
        InMemoryWorkflowView([ContentItem(id=42, revision=1)]),
        graph,
        targets,
        editions,
        jobs,
        gate=gate,
        changes=changes,
        related=related,
        config=DispatchConfig(status_sample_delay_seconds=0),
    )


@pytest.fixture
def app(dispatch: PublishDispatchComponent) -> FastAPI:
    """Test FastAPI app with publish routes."""
    app = FastAPI()
    app.include_router(publish.router, prefix="/api/publish")

    app.dependency_overrides[get_dispatch] = lambda: dispatch

    return app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


# --- Publish ---


class TestPublishEndpoint:
    def test_full_publish(self, client: TestClient) -> None:
        response = client.post(
            "/api/publish", json={"siteName": "alpha", "type": "FULL", "serverName": "prod"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["jobId"] == 1
        assert data["status"] == "Pending"
        assert data["delivered"] == "0"
        assert data["failures"] == "0"
        assert data["siteName"] == "alpha"
        assert data["warningMessage"] == ""

    def test_on_demand_publish(self, client: TestClient, jobs: DevJobEngine) -> None:
        response = client.post("/api/publish", json={"type": "PUBLISH_NOW", "itemId": "42"})

        assert response.status_code == 200
        assert response.json()["jobId"] == 0
        assert jobs.pending_demand == 1

    def test_gate_failure_is_data(self, client: TestClient, gate: StaticPublishGate) -> None:
        gate.allowed = False

        response = client.post(
            "/api/publish", json={"siteName": "alpha", "type": "FULL", "serverName": "prod"}
        )

        assert response.status_code == 200
        assert response.json()["status"] == "FORBIDDEN"
        assert response.json()["jobId"] == 0

    def test_unknown_type_is_bad_request(self, client: TestClient) -> None:
        response = client.post(
            "/api/publish", json={"siteName": "alpha", "type": "LATER", "serverName": "prod"}
        )
        assert response.status_code == 400

    def test_missing_item_is_bad_request(self, client: TestClient) -> None:
        response = client.post("/api/publish", json={"type": "PUBLISH_NOW"})
        assert response.status_code == 400

    def test_unknown_target_is_not_found(self, client: TestClient) -> None:
        response = client.post(
            "/api/publish", json={"siteName": "alpha", "type": "FULL", "serverName": "nope"}
        )
        assert response.status_code == 404


class TestIncrementalEndpoint:
    def test_incremental(self, client: TestClient, jobs: DevJobEngine) -> None:
        response = client.post(
            "/api/publish/incremental", json={"siteName": "alpha", "serverName": "prod"}
        )

        assert response.status_code == 200
        assert jobs.get_job_status(response.json()["jobId"]).edition_id == 2

    def test_unknown_server_is_not_found(self, client: TestClient) -> None:
        response = client.post(
            "/api/publish/incremental", json={"siteName": "alpha", "serverName": "nope"}
        )
        assert response.status_code == 404


class TestJobStatusEndpoint:
    def test_finished_job(self, client: TestClient, jobs: DevJobEngine) -> None:
        job_id = client.post(
            "/api/publish", json={"siteName": "alpha", "serverName": "prod"}
        ).json()["jobId"]
        jobs.run_pending()

        response = client.get(f"/api/publish/jobs/{job_id}")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "Completed"
        assert data["finished"] is True
        assert data["delivered"] == 1
        assert data["items"] == [{"contentId": 42, "status": "Published", "revision": 3}]

    def test_unknown_job_is_pending(self, client: TestClient) -> None:
        data = client.get("/api/publish/jobs/77").json()
        assert data["status"] == "Pending"
        assert data["finished"] is False


class TestQueuedEndpoints:
    def test_queued_content(self, client: TestClient, changes: InMemoryContentChanges) -> None:
        changes.mark_changed(1, 42)

        response = client.get("/api/publish/queued/alpha/prod")

        assert response.status_code == 200
        assert response.json() == {"siteName": "alpha", "serverName": "prod", "contentIds": [42]}

    def test_queued_related(self, client: TestClient, changes: InMemoryContentChanges) -> None:
        changes.mark_changed(1, 42)

        response = client.get("/api/publish/queued/alpha/prod/related")

        assert response.json()["contentIds"] == [43]

    def test_unknown_target(self, client: TestClient) -> None:
        assert client.get("/api/publish/queued/alpha/nope").status_code == 404
