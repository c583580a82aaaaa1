from typing import Any

from fastapi import APIRouter

from app import crud
from app.api.deps import CurrentUser, SessionDep
from app.models import Message, NotificationsPublic

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/", response_model=NotificationsPublic)
def read_notifications(session: SessionDep, current_user: CurrentUser) -> Any:
    return NotificationsPublic(
        data=crud.get_notifications(session=session, user_id=current_user.id),
        unread_count=crud.count_unread_notifications(session=session, user_id=current_user.id),
    )


@router.post("/read", response_model=Message)
def mark_notifications_read(session: SessionDep, current_user: CurrentUser) -> Any:
    updated = crud.mark_notifications_read(session=session, user_id=current_user.id)
    return Message(message=f"{updated} notification(s) marked as read")
