import uuid
from typing import Any

from fastapi import APIRouter, HTTPException

from app import crud
from app.api.deps import CurrentUser, SessionDep
from app.models import Course, CoursePublic, CourseWithUnits, UserProgressPublic

router = APIRouter(prefix="/courses", tags=["courses"])


@router.get("/", response_model=list[CoursePublic])
def read_courses(session: SessionDep, current_user: CurrentUser) -> Any:
    return crud.get_courses(session=session)


@router.get("/{id}", response_model=CourseWithUnits)
def read_course(id: uuid.UUID, session: SessionDep, current_user: CurrentUser) -> Any:
    """
    Course outline: units and lessons in order, with the caller's completion.
    """
    course = session.get(Course, id)
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")
    units = crud.get_units_with_status(session=session, user_id=current_user.id, course_id=id)
    return CourseWithUnits(id=course.id, title=course.title, image_src=course.image_src, units=units)


@router.post("/{id}/select", response_model=UserProgressPublic)
def select_course(id: uuid.UUID, session: SessionDep, current_user: CurrentUser) -> Any:
    """
    Make this the active course, creating the caller's progress row on first use.
    """
    course = session.get(Course, id)
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")
    return crud.select_course(session=session, user=current_user, course_id=id)
