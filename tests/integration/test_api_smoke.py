"""
End-to-end API smoke test over the ASGI app with SQLite repositories.
"""

import pytest
from httpx import ASGITransport, AsyncClient

from homeschool_planner.api import deps
from homeschool_planner.infrastructure.local.catch_up_repository import SqliteCatchUpRepository
from homeschool_planner.infrastructure.local.child_repository import SqliteChildRepository
from homeschool_planner.infrastructure.local.event_publisher import InMemorySessionEventPublisher
from homeschool_planner.infrastructure.local.imported_event_repository import SqliteImportedEventRepository
from homeschool_planner.infrastructure.local.session_repository import SqliteSessionRepository
from homeschool_planner.infrastructure.local.time_block_repository import SqliteTimeBlockRepository
from homeschool_planner.infrastructure.local.topic_repository import SqliteTopicRepository
from main import create_app


@pytest.fixture
def app(session_factory):
    app = create_app()
    publisher = InMemorySessionEventPublisher()
    app.dependency_overrides.update(
        {
            deps.get_child_repository: lambda: SqliteChildRepository(session_factory=session_factory),
            deps.get_topic_repository: lambda: SqliteTopicRepository(session_factory=session_factory),
            deps.get_session_repository: lambda: SqliteSessionRepository(session_factory=session_factory),
            deps.get_catch_up_repository: lambda: SqliteCatchUpRepository(session_factory=session_factory),
            deps.get_time_block_repository: lambda: SqliteTimeBlockRepository(session_factory=session_factory),
            deps.get_imported_event_repository: lambda: SqliteImportedEventRepository(
                session_factory=session_factory
            ),
            deps.get_event_publisher: lambda: publisher,
        }
    )
    return app


@pytest.mark.asyncio
async def test_schedule_around_a_time_block(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        health = await client.get("/health")
        assert health.status_code == 200

        response = await client.post("/api/children", json={"name": "Ada", "weekly_budget_minutes": 2100})
        assert response.status_code == 201
        child_id = response.json()["id"]

        response = await client.post(
            f"/api/children/{child_id}/time-blocks",
            json={"day_of_week": 1, "start_time": "09:00", "end_time": "10:00", "label": "Co-op"},
        )
        assert response.status_code == 201
        block_id = response.json()["id"]

        response = await client.post(
            "/api/topics", json={"name": "Fractions", "subject": "Math", "estimated_minutes": 45}
        )
        topic_id = response.json()["id"]

        response = await client.post(f"/api/children/{child_id}/sessions", json={"topic_id": topic_id})
        assert response.status_code == 201
        session = response.json()
        assert session["status"] == "BACKLOG"
        assert session["estimated_minutes"] == 45
        base = f"/api/children/{child_id}/sessions/{session['id']}"

        response = await client.post(f"{base}/plan")
        assert response.json()["status"] == "PLANNED"

        response = await client.post(
            f"{base}/schedule", json={"day_of_week": 1, "start_time": "09:30", "end_time": "10:15"}
        )
        assert response.status_code == 409
        assert response.json()["detail"]["details"]["entity_type"] == "time_block"
        assert response.json()["detail"]["details"]["entity_id"] == block_id

        response = await client.post(
            f"{base}/schedule", json={"day_of_week": 1, "start_time": "10:00", "end_time": "10:45"}
        )
        assert response.status_code == 200
        assert response.json()["status"] == "SCHEDULED"
        assert response.json()["commitment_type"] == "PREFERRED"

        response = await client.get(f"/api/children/{child_id}/capacity", params={"week_of": "2024-09-04"})
        monday = response.json()["days"][0]
        assert monday["budget_minutes"] == 300
        assert monday["fixed_minutes"] == 60
        assert monday["scheduled_minutes"] == 45
        assert monday["remaining_minutes"] == 195
        assert monday["status"] == "light"

        response = await client.get(
            f"/api/children/{child_id}/sessions/{session['id']}/suggestions",
            params={"reference_date": "2024-09-02", "limit": 2},
        )
        assert response.status_code == 200
        assert [(s["scheduled_date"], s["start_time"]) for s in response.json()] == [
            ("2024-09-02", "08:00:00"),
            ("2024-09-02", "10:00:00"),
        ]

        response = await client.delete(base)
        assert response.status_code == 422

        response = await client.delete(base, params={"confirm": "true"})
        assert response.status_code == 204
        response = await client.get(base)
        assert response.status_code == 404


@pytest.mark.asyncio
async def test_unknown_child_is_404(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/api/children/00000000-0000-0000-0000-000000000000/capacity",
                                    params={"week_of": "2024-09-02"})

    assert response.status_code == 404
    assert response.json()["detail"]["error"] == "NotFoundError"
