from typing import Any

from fastapi import APIRouter

from app import crud
from app.agent.artifacts import (
    PracticePrompt,
    PromptRequest,
    SpeakingFeedback,
    SpeakingSubmission,
    WritingFeedback,
    WritingSubmission,
)
from app.agent.prompt_agent import PracticePromptAgent
from app.agent.speaking_agent import SpeakingFeedbackAgent
from app.agent.writing_agent import WritingFeedbackAgent
from app.api.deps import CurrentUser, SessionDep
from app.models import PracticeSessionCreate, PracticeSessionPublic

router = APIRouter(prefix="/practice", tags=["practice"])


@router.post("/prompt", response_model=PracticePrompt)
async def generate_practice_prompt(payload: PromptRequest, current_user: CurrentUser) -> Any:
    """
    A fresh writing or speaking topic. Falls back to a built-in topic when the
    model is unavailable.
    """
    return await PracticePromptAgent().run(payload.type)


@router.post("/writing/analyze", response_model=WritingFeedback)
async def analyze_writing(payload: WritingSubmission, current_user: CurrentUser) -> Any:
    return await WritingFeedbackAgent().run(payload)


@router.post("/speaking/analyze", response_model=SpeakingFeedback)
async def analyze_speaking(payload: SpeakingSubmission, current_user: CurrentUser) -> Any:
    return await SpeakingFeedbackAgent().run(payload)


@router.post("/sessions", response_model=PracticeSessionPublic)
def save_practice_session(
    session_in: PracticeSessionCreate, session: SessionDep, current_user: CurrentUser
) -> Any:
    return crud.save_practice_session(
        session=session, user_id=current_user.id, session_in=session_in
    )


@router.get("/sessions", response_model=list[PracticeSessionPublic])
def read_practice_history(session: SessionDep, current_user: CurrentUser) -> Any:
    return crud.get_practice_history(session=session, user_id=current_user.id)
