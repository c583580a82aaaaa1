import uuid
from typing import Any

from fastapi import APIRouter, HTTPException

from app import crud
from app.api.deps import CurrentProgress, SessionDep, Today
from app.models import (
    AnswerSubmit,
    Challenge,
    ChallengeOption,
    ChallengeResult,
    LessonCompleteResult,
    LessonDetail,
    StreakStatus,
    UnitWithLessons,
)
from app.progress import ProgressError

router = APIRouter(prefix="/learn", tags=["learn"])


@router.get("/units", response_model=list[UnitWithLessons])
def read_units(session: SessionDep, current_progress: CurrentProgress) -> Any:
    """
    Units of the active course with a completed flag per lesson.
    """
    if current_progress.active_course_id is None:
        return []
    return crud.get_units_with_status(
        session=session,
        user_id=current_progress.user_id,
        course_id=current_progress.active_course_id,
    )


@router.get("/lesson", response_model=LessonDetail)
def read_current_lesson(session: SessionDep, current_progress: CurrentProgress) -> Any:
    """
    The first lesson of the active course that is not completed yet.
    """
    lesson = crud.get_lesson_detail(
        session=session,
        user_id=current_progress.user_id,
        course_id=current_progress.active_course_id,
    )
    if not lesson:
        raise HTTPException(status_code=404, detail="No lesson left in the active course")
    return lesson


@router.get("/lesson/percentage")
def read_lesson_percentage(session: SessionDep, current_progress: CurrentProgress) -> int:
    lesson = crud.get_lesson_detail(
        session=session,
        user_id=current_progress.user_id,
        course_id=current_progress.active_course_id,
    )
    return lesson.percentage if lesson else 0


@router.get("/lessons/{id}", response_model=LessonDetail)
def read_lesson(id: uuid.UUID, session: SessionDep, current_progress: CurrentProgress) -> Any:
    lesson = crud.get_lesson_detail(
        session=session,
        user_id=current_progress.user_id,
        course_id=current_progress.active_course_id,
        lesson_id=id,
    )
    if not lesson:
        raise HTTPException(status_code=404, detail="Lesson not found")
    return lesson


@router.post("/challenges/{id}/answer", response_model=ChallengeResult)
def answer_challenge(
    id: uuid.UUID,
    answer_in: AnswerSubmit,
    session: SessionDep,
    current_progress: CurrentProgress,
    today: Today,
) -> Any:
    """
    Check the chosen option. A correct answer marks the challenge completed and
    awards XP; a wrong one spends a heart shield or a heart.
    """
    challenge = session.get(Challenge, id)
    if not challenge:
        raise HTTPException(status_code=404, detail="Challenge not found")
    option = session.get(ChallengeOption, answer_in.option_id)
    if not option or option.challenge_id != challenge.id:
        raise HTTPException(status_code=400, detail="Option does not belong to this challenge")
    try:
        return crud.answer_challenge(
            session=session,
            db_progress=current_progress,
            challenge=challenge,
            option=option,
            today=today,
        )
    except ProgressError as exc:
        raise HTTPException(status_code=400, detail=exc.code)


@router.post("/lesson/complete", response_model=LessonCompleteResult)
def complete_lesson(session: SessionDep, current_progress: CurrentProgress) -> Any:
    """
    Close a lesson run. One boosted lesson is used up here, never per answer.
    """
    return crud.complete_lesson(session=session, db_progress=current_progress)


@router.post("/streak/check", response_model=StreakStatus)
def check_streak(session: SessionDep, current_progress: CurrentProgress, today: Today) -> Any:
    return crud.check_streak_status(session=session, db_progress=current_progress, today=today)
