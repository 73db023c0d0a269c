"""
Request helpers shared by the test modules.
"""
from __future__ import annotations

from typing import Any

from httpx import AsyncClient

DEFAULT_PASSWORD = "Password1"


async def register(
    client: AsyncClient,
    name: str,
    email: str,
    password: str = DEFAULT_PASSWORD,
) -> dict[str, Any]:
    """Register a user and return {"user", "headers"}."""
    response = await client.post(
        "/api/auth/register",
        json={"name": name, "email": email, "password": password},
    )
    assert response.status_code == 201, response.text
    data = response.json()["data"]
    return {"user": data["user"], "headers": {"Authorization": f"Bearer {data['token']}"}}


async def create_task(client: AsyncClient, headers: dict[str, str], **fields: Any) -> dict:
    payload = {"title": "Test Task", **fields}
    response = await client.post("/api/tasks", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]["task"]
