"""
Attachment file storage.
Validates multipart uploads before the handler runs and stores accepted
files under UPLOAD_DIR/{images,documents,others}/ with sanitized unique names.
"""
from __future__ import annotations

import logging
import os
import re
import secrets
import time
from dataclasses import dataclass
from typing import Annotated

from fastapi import File, UploadFile

from app.core.config import settings
from app.core.exceptions import FileSizeError, FileUploadError

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = (
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "image/webp",
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "text/plain",
)


@dataclass(frozen=True)
class StoredFile:
    filename: str
    original_name: str
    path: str
    size: int
    mimetype: str


def storage_subdir(mimetype: str) -> str:
    if mimetype.startswith("image/"):
        return "images"
    if "pdf" in mimetype:
        return "documents"
    return "others"


def sanitize_filename(original_name: str) -> str:
    """
    Build "<base>-<millis>-<random><ext>" where base is the lowercased original
    stem with every run of non-alphanumerics collapsed to a single dash.
    """
    stem, ext = os.path.splitext(os.path.basename(original_name))
    base = re.sub(r"[^a-z0-9]+", "-", stem.lower()).strip("-") or "file"
    ext = re.sub(r"[^a-zA-Z0-9.]", "", ext).lower()
    unique_suffix = f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}"
    return f"{base}-{unique_suffix}{ext}"


async def _file_size(file: UploadFile) -> int:
    if file.size is not None:
        return file.size
    content = await file.read()
    await file.seek(0)
    return len(content)


async def validate_uploads(
    files: Annotated[list[UploadFile] | None, File()] = None,
) -> list[UploadFile]:
    """
    Dependency enforcing upload limits before the route body runs.
    Too many files, an empty upload or a disallowed type is a FileUploadError;
    an oversized file is a FileSizeError.
    """
    if not files:
        raise FileUploadError("No file uploaded")
    if len(files) > settings.MAX_FILES_PER_UPLOAD:
        raise FileUploadError(
            f"Too many files uploaded. Maximum is {settings.MAX_FILES_PER_UPLOAD}."
        )
    for file in files:
        if file.content_type not in ALLOWED_MIME_TYPES:
            raise FileUploadError(
                f"Invalid file type. Only {', '.join(ALLOWED_MIME_TYPES)} are allowed."
            )
        if await _file_size(file) > settings.max_file_size_bytes:
            raise FileSizeError(settings.MAX_FILE_SIZE_MB)
    return files


async def save_upload(file: UploadFile) -> StoredFile:
    mimetype = file.content_type or "application/octet-stream"
    directory = os.path.join(settings.UPLOAD_DIR, storage_subdir(mimetype))
    os.makedirs(directory, exist_ok=True)

    original_name = file.filename or "upload"
    filename = sanitize_filename(original_name)
    path = os.path.join(directory, filename)

    content = await file.read()
    with open(path, "wb") as f:
        f.write(content)

    logger.info("Stored upload %s (%s bytes) at %s", original_name, len(content), path)
    return StoredFile(
        filename=filename,
        original_name=original_name,
        path=path,
        size=len(content),
        mimetype=mimetype,
    )


def delete_stored_file(path: str) -> None:
    """Remove a stored file. A file that is already gone is not an error."""
    try:
        os.remove(path)
    except FileNotFoundError:
        logger.warning("Stored file %s was already missing", path)
