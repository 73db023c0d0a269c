"""
Attachment upload tests.
Files land in the per-test upload directory provided by conftest.
"""
from __future__ import annotations

import os
import re
from pathlib import Path

import pytest
from httpx import AsyncClient

from app.core.config import settings
from app.core.exceptions import FileUploadError
from app.crud.attachment import crud_attachment
from app.services.upload_service import sanitize_filename, storage_subdir
from tests.helpers import create_task


def _upload(client: AsyncClient, task_id: str, headers: dict, files: list):
    return client.post(f"/api/tasks/{task_id}/attachments", files=files, headers=headers)


@pytest.mark.asyncio
class TestUpload:
    async def test_upload_files(
        self, client: AsyncClient, alice: dict, upload_dir: Path
    ) -> None:
        task = await create_task(client, alice["headers"])
        response = await _upload(
            client,
            task["id"],
            alice["headers"],
            [
                ("files", ("My Notes.txt", b"hello world", "text/plain")),
                ("files", ("Screen Shot.PNG", b"\x89PNG fake", "image/png")),
            ],
        )
        assert response.status_code == 201
        attachments = response.json()["data"]["attachments"]
        assert len(attachments) == 2

        notes, shot = attachments
        assert notes["original_name"] == "My Notes.txt"
        assert notes["size"] == 11
        assert notes["mimetype"] == "text/plain"
        assert notes["uploaded_by_id"] == alice["user"]["id"]
        assert re.fullmatch(r"my-notes-\d+-\d+\.txt", notes["filename"])
        assert Path(notes["path"]).parent == upload_dir / "others"
        assert Path(shot["path"]).parent == upload_dir / "images"
        assert Path(notes["path"]).read_bytes() == b"hello world"

        response = await client.get(
            f"/api/tasks/{task['id']}/attachments", headers=alice["headers"]
        )
        assert len(response.json()["data"]["attachments"]) == 2

    async def test_disallowed_type(self, client: AsyncClient, alice: dict) -> None:
        task = await create_task(client, alice["headers"])
        response = await _upload(
            client,
            task["id"],
            alice["headers"],
            [("files", ("archive.zip", b"PK", "application/zip"))],
        )
        assert response.status_code == 400
        assert response.json()["error"] == "FileUploadError"

    async def test_too_many_files(self, client: AsyncClient, alice: dict) -> None:
        task = await create_task(client, alice["headers"])
        files = [
            ("files", (f"f{i}.txt", b"x", "text/plain"))
            for i in range(settings.MAX_FILES_PER_UPLOAD + 1)
        ]
        response = await _upload(client, task["id"], alice["headers"], files)
        assert response.status_code == 400
        assert response.json()["error"] == "FileUploadError"

    async def test_file_too_large(
        self, client: AsyncClient, alice: dict, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        task = await create_task(client, alice["headers"])
        monkeypatch.setattr(settings, "MAX_FILE_SIZE_MB", 0)
        response = await _upload(
            client,
            task["id"],
            alice["headers"],
            [("files", ("big.txt", b"too big", "text/plain"))],
        )
        assert response.status_code == 413
        assert response.json()["error"] == "FileSizeError"

    async def test_no_files(self, client: AsyncClient, alice: dict) -> None:
        task = await create_task(client, alice["headers"])
        response = await client.post(
            f"/api/tasks/{task['id']}/attachments",
            data={"note": "nothing attached"},
            headers=alice["headers"],
        )
        assert response.status_code == 400
        assert response.json()["message"] == "No file uploaded"

    async def test_failed_upload_removes_written_files(
        self,
        client: AsyncClient,
        alice: dict,
        upload_dir: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        task = await create_task(client, alice["headers"])
        create_attachment = crud_attachment.create_attachment
        calls = 0

        async def fail_second(*args, **kwargs):
            nonlocal calls
            calls += 1
            if calls == 2:
                raise FileUploadError("Could not record attachment")
            return await create_attachment(*args, **kwargs)

        monkeypatch.setattr(crud_attachment, "create_attachment", fail_second)
        response = await _upload(
            client,
            task["id"],
            alice["headers"],
            [
                ("files", ("first.txt", b"one", "text/plain")),
                ("files", ("second.txt", b"two", "text/plain")),
            ],
        )
        assert response.status_code == 400
        assert list((upload_dir / "others").iterdir()) == []

        response = await client.get(
            f"/api/tasks/{task['id']}/attachments", headers=alice["headers"]
        )
        assert response.json()["data"]["attachments"] == []

    async def test_unrelated_user_forbidden(
        self, client: AsyncClient, alice: dict, bob: dict
    ) -> None:
        task = await create_task(client, alice["headers"])
        response = await _upload(
            client,
            task["id"],
            bob["headers"],
            [("files", ("notes.txt", b"hi", "text/plain"))],
        )
        assert response.status_code == 403


@pytest.mark.asyncio
class TestDeleteAttachment:
    async def test_delete_removes_file(self, client: AsyncClient, alice: dict) -> None:
        task = await create_task(client, alice["headers"])
        response = await _upload(
            client,
            task["id"],
            alice["headers"],
            [("files", ("report.pdf", b"%PDF-1.4", "application/pdf"))],
        )
        attachment = response.json()["data"]["attachments"][0]
        assert os.path.exists(attachment["path"])
        assert "documents" in attachment["path"]

        response = await client.delete(
            f"/api/tasks/{task['id']}/attachments/{attachment['id']}",
            headers=alice["headers"],
        )
        assert response.status_code == 200
        assert not os.path.exists(attachment["path"])

        response = await client.get(
            f"/api/tasks/{task['id']}/attachments", headers=alice["headers"]
        )
        assert response.json()["data"]["attachments"] == []

    async def test_assignee_cannot_delete_creators_upload(
        self, client: AsyncClient, alice: dict, bob: dict
    ) -> None:
        task = await create_task(client, alice["headers"], assigned_to_id=bob["user"]["id"])
        response = await _upload(
            client,
            task["id"],
            alice["headers"],
            [("files", ("notes.txt", b"hi", "text/plain"))],
        )
        attachment = response.json()["data"]["attachments"][0]

        response = await client.delete(
            f"/api/tasks/{task['id']}/attachments/{attachment['id']}",
            headers=bob["headers"],
        )
        assert response.status_code == 403
        assert os.path.exists(attachment["path"])

    async def test_task_delete_removes_files(self, client: AsyncClient, alice: dict) -> None:
        task = await create_task(client, alice["headers"])
        response = await _upload(
            client,
            task["id"],
            alice["headers"],
            [("files", ("notes.txt", b"hi", "text/plain"))],
        )
        path = response.json()["data"]["attachments"][0]["path"]

        await client.delete(f"/api/tasks/{task['id']}", headers=alice["headers"])
        assert not os.path.exists(path)


class TestNaming:
    @pytest.mark.parametrize(
        ("mimetype", "expected"),
        [
            ("image/png", "images"),
            ("application/pdf", "documents"),
            ("text/plain", "others"),
            ("application/msword", "others"),
        ],
    )
    def test_storage_subdir(self, mimetype: str, expected: str) -> None:
        assert storage_subdir(mimetype) == expected

    def test_sanitize_filename(self) -> None:
        name = sanitize_filename("../Quarterly Report (final).PDF")
        assert re.fullmatch(r"quarterly-report-final-\d+-\d+\.pdf", name)

    def test_sanitize_filename_without_usable_stem(self) -> None:
        assert sanitize_filename("###.txt").startswith("file-")
