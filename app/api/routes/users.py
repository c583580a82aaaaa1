import uuid
from typing import Any

from fastapi import APIRouter, HTTPException, Query
from sqlmodel import Session

from app import crud
from app.achievements import evaluate_achievements
from app.api.deps import CurrentProgress, CurrentUser, SessionDep
from app.models import (
    ProfilePublic,
    User,
    UserCard,
    UserCreate,
    UserProgress,
    UserProgressPublic,
    UserPublic,
    UserRegister,
    UserUpdateMe,
)

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/signup", response_model=UserPublic)
def register_user(session: SessionDep, user_in: UserRegister) -> Any:
    """
    Create new user without the need to be logged in.
    """
    user = crud.get_user_by_email(session=session, email=user_in.email)
    if user:
        raise HTTPException(
            status_code=400,
            detail="The user with this email already exists in the system",
        )
    user_create = UserCreate.model_validate(user_in)
    user = crud.create_user(session=session, user_create=user_create)
    return user


@router.get("/me", response_model=UserPublic)
def read_user_me(current_user: CurrentUser) -> Any:
    """
    Get current user.
    """
    return current_user


@router.patch("/me", response_model=UserPublic)
def update_user_me(
    *, session: SessionDep, user_in: UserUpdateMe, current_user: CurrentUser
) -> Any:
    """
    Update own name, email or avatar. Name and avatar are mirrored onto the
    progress row shown on leaderboards and profiles.
    """
    if user_in.email:
        existing_user = crud.get_user_by_email(session=session, email=user_in.email)
        if existing_user and existing_user.id != current_user.id:
            raise HTTPException(
                status_code=409, detail="User with this email already exists"
            )
    return crud.update_user_me(session=session, db_user=current_user, user_in=user_in)


@router.get("/me/progress", response_model=UserProgressPublic)
def read_my_progress(current_progress: CurrentProgress) -> Any:
    return current_progress


@router.get("/me/profile", response_model=ProfilePublic)
def read_my_profile(session: SessionDep, current_progress: CurrentProgress) -> Any:
    return _build_profile(session=session, db_progress=current_progress, is_following=False)


@router.get("/search", response_model=list[UserCard])
def search_users(
    session: SessionDep,
    current_user: CurrentUser,
    q: str = Query(min_length=1, max_length=100),
) -> Any:
    if not q.strip():
        raise HTTPException(status_code=400, detail="Search query is empty")
    return crud.search_users(session=session, query=q, exclude_user_id=current_user.id)


@router.get("/{user_id}/profile", response_model=ProfilePublic)
def read_user_profile(
    user_id: uuid.UUID, session: SessionDep, current_user: CurrentUser
) -> Any:
    if not session.get(User, user_id):
        raise HTTPException(status_code=404, detail="User not found")
    db_progress = crud.get_user_progress(session=session, user_id=user_id)
    if not db_progress:
        raise HTTPException(status_code=404, detail="This user has not started a course yet")
    following = crud.is_following(
        session=session, follower_id=current_user.id, following_id=user_id
    )
    return _build_profile(session=session, db_progress=db_progress, is_following=following)


def _build_profile(
    *, session: Session, db_progress: UserProgress, is_following: bool
) -> ProfilePublic:
    achievements = evaluate_achievements(db_progress)
    return ProfilePublic(
        progress=UserProgressPublic.model_validate(db_progress, from_attributes=True),
        completed_lessons=crud.count_completed_lessons(session=session, db_progress=db_progress),
        achievements=achievements,
        unlocked_count=sum(1 for a in achievements if a.unlocked),
        is_following=is_following,
    )
