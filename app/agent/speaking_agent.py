from app.agent.artifacts import SpeakingFeedback, SpeakingSubmission
from app.agent.base import BaseAgent
from app.agent.prompts.practice import SPEAKING_SYSTEM_PROMPT, SPEAKING_USER_TEMPLATE
from app.core.config import settings


class SpeakingFeedbackAgent(BaseAgent[SpeakingSubmission, SpeakingFeedback]):
    """Reviews a spoken answer from its transcript."""

    async def generate(self, input_data: SpeakingSubmission) -> SpeakingFeedback:
        return await self.llm.generate_structured(
            system_prompt=SPEAKING_SYSTEM_PROMPT.format(
                target=settings.PRACTICE_TARGET_LANGUAGE,
                native=settings.PRACTICE_NATIVE_LANGUAGE,
            ),
            user_prompt=SPEAKING_USER_TEMPLATE.format(
                prompt=input_data.prompt, transcript=input_data.transcript
            ),
            response_schema=SpeakingFeedback,
            temperature=0.2,
        )

    def fallback(self, input_data: SpeakingSubmission) -> SpeakingFeedback:
        return SpeakingFeedback(
            feedback="The recording could not be analysed.",
            better_way_to_say="",
            pronunciation_tips="",
            score=0,
        )
