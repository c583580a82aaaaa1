import asyncio
import logging
import uuid
from collections.abc import AsyncIterator
from typing import Any

from fastapi import APIRouter, File, HTTPException, UploadFile
from sqlalchemy.engine import Engine
from sqlmodel import Session
from sse_starlette.sse import EventSourceResponse

from app import crud
from app.api.deps import CurrentUser, SessionDep
from app.core import db
from app.core.config import settings
from app.core.storage import StoredAttachment, save_attachment
from app.models import (
    ChatMessageCreate,
    ChatMessagePublic,
    ConversationPublic,
    User,
)

router = APIRouter(prefix="/messages", tags=["messages"])
logger = logging.getLogger(__name__)


def _message_event(message) -> dict[str, str]:
    return {
        "event": "message",
        "id": str(message.id),
        "data": ChatMessagePublic.model_validate(message, from_attributes=True).model_dump_json(),
    }


async def stream_thread_messages(
    user_id: uuid.UUID,
    partner_id: uuid.UUID,
    *,
    engine: Engine | None = None,
    poll_interval: float | None = None,
) -> AsyncIterator[dict[str, str]]:
    """
    Push messages of a thread as they are stored. Messages that already exist
    when the stream opens are skipped; the client loads those with a GET.
    """
    bind = engine or db.engine
    interval = settings.MESSAGE_POLL_INTERVAL_SECONDS if poll_interval is None else poll_interval

    with Session(bind) as session:
        existing = crud.get_thread(session=session, user_id=user_id, partner_id=partner_id)
    seen = {message.id for message in existing}
    after = existing[-1].created_at if existing else None

    while True:
        await asyncio.sleep(interval)
        with Session(bind) as session:
            fresh = crud.get_messages_since(
                session=session, user_id=user_id, partner_id=partner_id, after=after
            )
        for message in fresh:
            if message.id in seen:
                continue
            seen.add(message.id)
            after = message.created_at
            yield _message_event(message)


@router.get("/", response_model=list[ConversationPublic])
def read_conversations(session: SessionDep, current_user: CurrentUser) -> Any:
    return crud.get_conversations(session=session, user_id=current_user.id)


@router.post("/attachments", response_model=StoredAttachment)
async def upload_attachment(
    current_user: CurrentUser,
    file: UploadFile = File(...),
) -> Any:
    """
    Store a chat attachment and return its public URL. Send the URL as the
    content of an `image` or `file` message.
    """
    limit = settings.MAX_UPLOAD_BYTES
    if file.size is not None and file.size > limit:
        raise HTTPException(
            status_code=413, detail=f"Attachment is {file.size} bytes; the limit is {limit}"
        )
    # Never buffer more than one byte past the limit
    content = await file.read(limit + 1)
    if not content:
        raise HTTPException(status_code=400, detail="The uploaded file is empty.")
    try:
        return save_attachment(
            file_name=file.filename or "attachment",
            content_type=file.content_type,
            content=content,
        )
    except ValueError as exc:
        raise HTTPException(status_code=413, detail=str(exc))


@router.get("/{partner_id}", response_model=list[ChatMessagePublic])
def read_thread(partner_id: uuid.UUID, session: SessionDep, current_user: CurrentUser) -> Any:
    return crud.get_thread(session=session, user_id=current_user.id, partner_id=partner_id)


@router.post("/{partner_id}", response_model=ChatMessagePublic)
def send_message(
    partner_id: uuid.UUID,
    message_in: ChatMessageCreate,
    session: SessionDep,
    current_user: CurrentUser,
) -> Any:
    if partner_id == current_user.id:
        raise HTTPException(status_code=400, detail="You cannot message yourself")
    if not session.get(User, partner_id):
        raise HTTPException(status_code=404, detail="User not found")
    if not message_in.content.strip():
        raise HTTPException(status_code=400, detail="Message is empty")
    return crud.send_message(
        session=session,
        sender_id=current_user.id,
        receiver_id=partner_id,
        message_in=message_in,
    )


@router.get("/{partner_id}/stream")
async def stream_thread(partner_id: uuid.UUID, current_user: CurrentUser) -> EventSourceResponse:
    logger.info("Opening message stream for %s with %s", current_user.id, partner_id)
    return EventSourceResponse(stream_thread_messages(current_user.id, partner_id))
