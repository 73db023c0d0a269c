"""
Statistics tests: the rate arithmetic and the task/personal/population
endpoints.
"""
from __future__ import annotations

import uuid
from datetime import timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.db.types import utcnow
from app.models.task import Task
from app.services.stats_service import build_overview
from tests.helpers import create_task


class TestBuildOverview:
    def test_empty(self) -> None:
        stats = build_overview({}, {})
        assert stats.total == 0
        assert stats.completion_rate == 0
        assert stats.efficiency == 0
        assert stats.status_breakdown == {
            "pending": 0,
            "in-progress": 0,
            "completed": 0,
            "cancelled": 0,
            "on-hold": 0,
        }
        assert stats.priority_breakdown == {"low": 0, "medium": 0, "high": 0, "urgent": 0}

    def test_rates(self) -> None:
        stats = build_overview(
            {"pending": 2, "completed": 1},
            {"high": 3},
            overdue=1,
            total_estimated_hours=8,
            total_actual_hours=6,
        )
        assert stats.total == 3
        assert stats.completed == 1
        assert stats.overdue == 1
        assert stats.completion_rate == 33.33
        assert stats.efficiency == 75
        assert stats.priority_breakdown["high"] == 3


@pytest.mark.asyncio
class TestTaskOverviewEndpoint:
    async def test_overview(
        self,
        client: AsyncClient,
        alice: dict,
        bob: dict,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        late = await create_task(
            client, alice["headers"], title="Late", estimated_hours=4, actual_hours=2
        )
        await create_task(
            client, alice["headers"], title="Done", status="completed", priority="high"
        )
        archived = await create_task(client, alice["headers"], title="Archived")
        await client.patch(f"/api/tasks/{archived['id']}/archive", headers=alice["headers"])
        await create_task(
            client, bob["headers"], title="Assigned", assigned_to_id=alice["user"]["id"]
        )
        await create_task(client, bob["headers"], title="Bob only")

        async with session_factory() as session:
            await session.execute(
                update(Task)
                .where(Task.id == uuid.UUID(late["id"]))
                .values(due_date=utcnow() - timedelta(days=1))
            )
            await session.commit()

        response = await client.get("/api/tasks/stats/overview", headers=alice["headers"])
        assert response.status_code == 200
        stats = response.json()["data"]["stats"]
        assert stats["total"] == 3
        assert stats["completed"] == 1
        assert stats["overdue"] == 1
        assert stats["completion_rate"] == 33.33
        assert stats["status_breakdown"]["pending"] == 2
        assert stats["priority_breakdown"]["high"] == 1
        assert stats["priority_breakdown"]["medium"] == 2
        assert stats["total_estimated_hours"] == 4
        assert stats["total_actual_hours"] == 2
        assert stats["efficiency"] == 50

    async def test_on_hold_past_due_counts_as_overdue(
        self,
        client: AsyncClient,
        alice: dict,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        on_hold = await create_task(client, alice["headers"], status="on-hold")
        closed = await create_task(client, alice["headers"], status="cancelled")
        await create_task(
            client, alice["headers"], due_date=(utcnow() + timedelta(days=2)).isoformat()
        )

        async with session_factory() as session:
            await session.execute(
                update(Task)
                .where(Task.id.in_([uuid.UUID(on_hold["id"]), uuid.UUID(closed["id"])]))
                .values(due_date=utcnow() - timedelta(days=1))
            )
            await session.commit()

        response = await client.get("/api/tasks/stats/overview", headers=alice["headers"])
        stats = response.json()["data"]["stats"]
        assert stats["overdue"] == 1
        assert stats["status_breakdown"]["on-hold"] == 1

        response = await client.get(f"/api/tasks/{on_hold['id']}", headers=alice["headers"])
        assert response.json()["data"]["task"]["is_overdue"] is True

    async def test_overview_without_tasks(self, client: AsyncClient, alice: dict) -> None:
        response = await client.get("/api/tasks/stats/overview", headers=alice["headers"])
        stats = response.json()["data"]["stats"]
        assert stats["total"] == 0
        assert stats["completion_rate"] == 0
        assert stats["efficiency"] == 0

    async def test_overview_requires_auth(self, client: AsyncClient) -> None:
        response = await client.get("/api/tasks/stats/overview")
        assert response.status_code == 401


@pytest.mark.asyncio
class TestPersonalStats:
    async def test_counters_and_overview(self, client: AsyncClient, alice: dict) -> None:
        task = await create_task(client, alice["headers"])
        await create_task(client, alice["headers"])
        await client.put(
            f"/api/tasks/{task['id']}", json={"status": "completed"}, headers=alice["headers"]
        )

        response = await client.get("/api/users/stats/personal", headers=alice["headers"])
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["statistics"] == {
            "tasks_created": 2,
            "tasks_completed": 1,
            "total_time_spent": 0,
        }
        assert data["tasks"]["total"] == 2
        assert data["tasks"]["completion_rate"] == 50


@pytest.mark.asyncio
class TestPopulationStats:
    async def test_admin_only(self, client: AsyncClient, alice: dict) -> None:
        response = await client.get("/api/users/stats/overview", headers=alice["headers"])
        assert response.status_code == 403

    async def test_counts(self, client: AsyncClient, admin: dict, alice: dict) -> None:
        await create_task(client, alice["headers"])
        await create_task(client, alice["headers"])

        response = await client.get("/api/users/stats/overview", headers=admin["headers"])
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["total_users"] == 2
        assert data["active_users"] == 2
        assert data["verified_users"] == 1
        assert data["admins"] == 1
        assert data["average_tasks_created"] == 1
