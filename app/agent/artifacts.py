from pydantic import BaseModel, Field, field_validator

from app.models import PracticeType

MAX_HINTS = 3


def _clamp_score(value: object) -> int:
    try:
        score = int(round(float(value)))  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0
    return max(0, min(100, score))


class PracticePrompt(BaseModel):
    """Topic produced by the PracticePromptAgent."""
    text: str = Field(description="The main topic or question, in the language being learned")
    translation: str = Field(description="Translation of the topic into the learner's native language")
    hints: list[str] = Field(
        default_factory=list,
        description="Three sub-topics or supporting questions, in the language being learned",
    )

    @field_validator("hints")
    @classmethod
    def keep_three_hints(cls, hints: list[str]) -> list[str]:
        return [hint for hint in hints if hint.strip()][:MAX_HINTS]


class Correction(BaseModel):
    original: str = Field(description="Excerpt containing the mistake")
    correction: str = Field(description="Corrected excerpt")
    explanation: str = Field(description="Short explanation of the mistake in the learner's native language")


class WritingFeedback(BaseModel):
    """Review produced by the WritingFeedbackAgent."""
    feedback: str = Field(description="Encouraging overall comment, in the learner's native language")
    corrections: list[Correction] = Field(
        default_factory=list,
        description="Mistakes found in the text; empty when there are none",
    )
    score: int = Field(description="0 to 100, based on grammar and vocabulary")

    normalize_score = field_validator("score", mode="before")(_clamp_score)


class SpeakingFeedback(BaseModel):
    """Review produced by the SpeakingFeedbackAgent."""
    feedback: str = Field(description="Comment on clarity and relevance, in the learner's native language")
    better_way_to_say: str = Field(
        default="",
        description="A more natural way to express the same idea in the language being learned",
    )
    pronunciation_tips: str = Field(
        default="",
        description="Sounds in these words that are usually hard for native speakers of the learner's language",
    )
    score: int = Field(description="0 to 100, based on clarity and naturalness")

    normalize_score = field_validator("score", mode="before")(_clamp_score)


class WritingSubmission(BaseModel):
    text: str = Field(min_length=1, max_length=5000)
    prompt: str = Field(min_length=1, max_length=2000)


class SpeakingSubmission(BaseModel):
    transcript: str = Field(min_length=1, max_length=5000)
    prompt: str = Field(min_length=1, max_length=2000)


class PromptRequest(BaseModel):
    type: PracticeType
