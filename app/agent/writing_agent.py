from app.agent.artifacts import WritingFeedback, WritingSubmission
from app.agent.base import BaseAgent
from app.agent.prompts.practice import WRITING_SYSTEM_PROMPT, WRITING_USER_TEMPLATE
from app.core.config import settings


class WritingFeedbackAgent(BaseAgent[WritingSubmission, WritingFeedback]):
    """Grades a written answer and lists its corrections."""

    async def generate(self, input_data: WritingSubmission) -> WritingFeedback:
        return await self.llm.generate_structured(
            system_prompt=WRITING_SYSTEM_PROMPT.format(
                target=settings.PRACTICE_TARGET_LANGUAGE,
                native=settings.PRACTICE_NATIVE_LANGUAGE,
            ),
            user_prompt=WRITING_USER_TEMPLATE.format(
                prompt=input_data.prompt, text=input_data.text
            ),
            response_schema=WritingFeedback,
            temperature=0.2,
        )

    def fallback(self, input_data: WritingSubmission) -> WritingFeedback:
        return WritingFeedback(
            feedback="There was an error analysing your answer. Please try again later.",
            corrections=[],
            score=0,
        )
