"""Chat attachment bucket.

Files are written under ``settings.UPLOAD_DIR`` and served back from
``settings.UPLOAD_PUBLIC_URL`` by the static mount in ``app.main``.
"""
import logging
import uuid
from pathlib import Path
from typing import Literal

from pydantic import BaseModel

from app.core.config import settings

logger = logging.getLogger(__name__)

ATTACHMENT_BUCKET = "chat-attachments"


class StoredAttachment(BaseModel):
    url: str
    type: Literal["image", "file"]
    file_name: str


def bucket_path() -> Path:
    path = Path(settings.UPLOAD_DIR) / ATTACHMENT_BUCKET
    path.mkdir(parents=True, exist_ok=True)
    return path


def _object_name(file_name: str) -> str:
    suffix = Path(file_name).suffix.lower()
    return f"{uuid.uuid4().hex}{suffix}"


def get_public_url(object_name: str) -> str:
    base = settings.UPLOAD_PUBLIC_URL.rstrip("/")
    return f"{base}/{ATTACHMENT_BUCKET}/{object_name}"


def save_attachment(*, file_name: str, content_type: str | None, content: bytes) -> StoredAttachment:
    if len(content) > settings.MAX_UPLOAD_BYTES:
        raise ValueError(
            f"Attachment is {len(content)} bytes; the limit is {settings.MAX_UPLOAD_BYTES}"
        )
    object_name = _object_name(file_name)
    (bucket_path() / object_name).write_bytes(content)
    logger.info("Stored attachment %s as %s (%s bytes)", file_name, object_name, len(content))

    kind: Literal["image", "file"] = (
        "image" if (content_type or "").startswith("image/") else "file"
    )
    return StoredAttachment(url=get_public_url(object_name), type=kind, file_name=file_name)
