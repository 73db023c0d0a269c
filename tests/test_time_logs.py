"""
Time log endpoint tests.
actual_hours on the task always equals the logged minutes divided by 60.
"""
from __future__ import annotations

from datetime import timedelta

import pytest
from httpx import AsyncClient

from app.db.types import utcnow
from tests.helpers import create_task

pytestmark = pytest.mark.asyncio


def _interval(minutes: int) -> dict[str, str]:
    end = utcnow() - timedelta(hours=1)
    start = end - timedelta(minutes=minutes)
    return {"start_time": start.isoformat(), "end_time": end.isoformat()}


async def _log(client: AsyncClient, task_id: str, headers: dict, minutes: int, **extra):
    return await client.post(
        f"/api/tasks/{task_id}/time-logs",
        json={**_interval(minutes), **extra},
        headers=headers,
    )


class TestAddTimeLog:
    async def test_log_time(self, client: AsyncClient, alice: dict) -> None:
        task = await create_task(client, alice["headers"])
        response = await _log(client, task["id"], alice["headers"], 90, description="Pairing")
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["time_log"]["duration"] == 90
        assert data["time_log"]["description"] == "Pairing"
        assert data["time_log"]["logged_by_id"] == alice["user"]["id"]
        assert data["actual_hours"] == 1.5

    async def test_actual_hours_accumulate(self, client: AsyncClient, alice: dict) -> None:
        task = await create_task(client, alice["headers"], estimated_hours=2)
        await _log(client, task["id"], alice["headers"], 30)
        await _log(client, task["id"], alice["headers"], 30)

        response = await client.get(f"/api/tasks/{task['id']}", headers=alice["headers"])
        fetched = response.json()["data"]["task"]
        assert fetched["actual_hours"] == 1
        assert fetched["time_spent"] == 60
        assert len(fetched["time_logs"]) == 2
        assert fetched["progress"] == 50

    async def test_statistics_track_logged_minutes(
        self, client: AsyncClient, alice: dict, bob: dict
    ) -> None:
        task = await create_task(client, alice["headers"], assigned_to_id=bob["user"]["id"])
        await _log(client, task["id"], bob["headers"], 45)

        response = await client.get("/api/auth/me", headers=bob["headers"])
        assert response.json()["data"]["user"]["statistics"]["total_time_spent"] == 45

    async def test_end_before_start(self, client: AsyncClient, alice: dict) -> None:
        task = await create_task(client, alice["headers"])
        now = utcnow()
        response = await client.post(
            f"/api/tasks/{task['id']}/time-logs",
            json={
                "start_time": now.isoformat(),
                "end_time": (now - timedelta(minutes=10)).isoformat(),
            },
            headers=alice["headers"],
        )
        assert response.status_code == 400

    async def test_under_a_minute(self, client: AsyncClient, alice: dict) -> None:
        task = await create_task(client, alice["headers"])
        now = utcnow()
        response = await client.post(
            f"/api/tasks/{task['id']}/time-logs",
            json={
                "start_time": (now - timedelta(seconds=30)).isoformat(),
                "end_time": now.isoformat(),
            },
            headers=alice["headers"],
        )
        assert response.status_code == 400

    async def test_unrelated_user_forbidden(
        self, client: AsyncClient, alice: dict, bob: dict
    ) -> None:
        task = await create_task(client, alice["headers"])
        response = await _log(client, task["id"], bob["headers"], 30)
        assert response.status_code == 403


class TestDeleteTimeLog:
    async def test_delete_recomputes_hours(self, client: AsyncClient, alice: dict) -> None:
        task = await create_task(client, alice["headers"])
        first = (await _log(client, task["id"], alice["headers"], 60)).json()["data"]
        await _log(client, task["id"], alice["headers"], 30)

        response = await client.delete(
            f"/api/tasks/{task['id']}/time-logs/{first['time_log']['id']}",
            headers=alice["headers"],
        )
        assert response.status_code == 200
        updated = response.json()["data"]["task"]
        assert updated["actual_hours"] == 0.5
        assert len(updated["time_logs"]) == 1

    async def test_task_creator_deletes_assignees_log(
        self, client: AsyncClient, alice: dict, bob: dict
    ) -> None:
        task = await create_task(client, alice["headers"], assigned_to_id=bob["user"]["id"])
        logged = (await _log(client, task["id"], bob["headers"], 30)).json()["data"]

        response = await client.delete(
            f"/api/tasks/{task['id']}/time-logs/{logged['time_log']['id']}",
            headers=alice["headers"],
        )
        assert response.status_code == 200

    async def test_assignee_cannot_delete_creators_log(
        self, client: AsyncClient, alice: dict, bob: dict
    ) -> None:
        task = await create_task(client, alice["headers"], assigned_to_id=bob["user"]["id"])
        logged = (await _log(client, task["id"], alice["headers"], 30)).json()["data"]

        response = await client.delete(
            f"/api/tasks/{task['id']}/time-logs/{logged['time_log']['id']}",
            headers=bob["headers"],
        )
        assert response.status_code == 403

    async def test_malformed_id(self, client: AsyncClient, alice: dict) -> None:
        task = await create_task(client, alice["headers"])
        response = await client.delete(
            f"/api/tasks/{task['id']}/time-logs/nope", headers=alice["headers"]
        )
        assert response.status_code == 404

    async def test_delete_updates_task_and_keeps_user_total(
        self, client: AsyncClient, alice: dict
    ) -> None:
        task = await create_task(client, alice["headers"])
        logged = (await _log(client, task["id"], alice["headers"], 60)).json()["data"]

        response = await client.delete(
            f"/api/tasks/{task['id']}/time-logs/{logged['time_log']['id']}",
            headers=alice["headers"],
        )
        assert response.status_code == 200

        response = await client.get(f"/api/tasks/{task['id']}", headers=alice["headers"])
        fetched = response.json()["data"]["task"]
        assert fetched["time_logs"] == []
        assert fetched["time_spent"] == 0
        assert fetched["actual_hours"] == 0

        response = await client.get("/api/auth/me", headers=alice["headers"])
        assert response.json()["data"]["user"]["statistics"]["total_time_spent"] == 60

    async def test_deleted_log_cannot_be_deleted_again(
        self, client: AsyncClient, alice: dict
    ) -> None:
        task = await create_task(client, alice["headers"])
        logged = (await _log(client, task["id"], alice["headers"], 15)).json()["data"]
        url = f"/api/tasks/{task['id']}/time-logs/{logged['time_log']['id']}"

        assert (await client.delete(url, headers=alice["headers"])).status_code == 200
        assert (await client.delete(url, headers=alice["headers"])).status_code == 404
