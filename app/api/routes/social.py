import uuid
from typing import Any

from fastapi import APIRouter, HTTPException

from app import crud
from app.api.deps import CurrentUser, SessionDep
from app.models import Message, User, UserCard

router = APIRouter(prefix="/social", tags=["social"])


@router.post("/follow/{user_id}", response_model=Message)
def follow(user_id: uuid.UUID, session: SessionDep, current_user: CurrentUser) -> Any:
    if not session.get(User, user_id):
        raise HTTPException(status_code=404, detail="User not found")
    try:
        crud.follow_user(session=session, follower_id=current_user.id, following_id=user_id)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return Message(message="Following")


@router.delete("/follow/{user_id}", response_model=Message)
def unfollow(user_id: uuid.UUID, session: SessionDep, current_user: CurrentUser) -> Any:
    crud.unfollow_user(session=session, follower_id=current_user.id, following_id=user_id)
    return Message(message="Unfollowed")


@router.get("/followers", response_model=list[UserCard])
def read_followers(session: SessionDep, current_user: CurrentUser) -> Any:
    return crud.get_followers(session=session, user_id=current_user.id)


@router.get("/following", response_model=list[UserCard])
def read_following(session: SessionDep, current_user: CurrentUser) -> Any:
    return crud.get_following(session=session, user_id=current_user.id)


@router.get("/following/{user_id}")
def read_is_following(user_id: uuid.UUID, session: SessionDep, current_user: CurrentUser) -> bool:
    return crud.is_following(session=session, follower_id=current_user.id, following_id=user_id)
