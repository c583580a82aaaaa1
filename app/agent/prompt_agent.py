import random
import time

from app.agent.artifacts import PracticePrompt
from app.agent.base import BaseAgent
from app.agent.prompts.practice import PROMPT_SYSTEM_PROMPT, PROMPT_USER_TEMPLATE
from app.core.config import settings
from app.models import PracticeType

DIFFICULTIES = ("beginner", "intermediate", "advanced")

FALLBACK_PROMPTS = [
    PracticePrompt(
        text="Talk about your favorite travel destination.",
        translation="Fala sobre o teu destino de viagem favorito.",
        hints=["Where is it?", "Why do you like it?", "What can you do there?"],
    ),
    PracticePrompt(
        text="Describe your daily routine.",
        translation="Descreve a tua rotina diária.",
        hints=[
            "What time do you wake up?",
            "What do you do for work/school?",
            "What do you do in the evening?",
        ],
    ),
    PracticePrompt(
        text="What are your goals for this year?",
        translation="Quais são os teus objetivos para este ano?",
        hints=["Professional goals", "Personal goals", "Steps to achieve them"],
    ),
    PracticePrompt(
        text="Talk about a movie you watched recently.",
        translation="Fala sobre um filme que viste recentemente.",
        hints=["What was the plot?", "Did you like the characters?", "Would you recommend it?"],
    ),
    PracticePrompt(
        text="If you could have any superpower, what would it be?",
        translation="Se pudesses ter um superpoder, qual seria?",
        hints=["Flying?", "Invisibility?", "How would you use it?"],
    ),
]


class PracticePromptAgent(BaseAgent[PracticeType, PracticePrompt]):
    """Invents a writing or speaking topic with a translation and three hints."""

    def get_system_prompt(self, practice_type: PracticeType) -> str:
        if practice_type == PracticeType.WRITING:
            kind, goal = "creative writing", "develop the text"
        else:
            kind, goal = "conversation", "keep the conversation going"
        return PROMPT_SYSTEM_PROMPT.format(
            target=settings.PRACTICE_TARGET_LANGUAGE,
            native=settings.PRACTICE_NATIVE_LANGUAGE,
            kind=kind,
            goal=goal,
        )

    async def generate(self, input_data: PracticeType) -> PracticePrompt:
        user_prompt = PROMPT_USER_TEMPLATE.format(
            difficulty=random.choice(DIFFICULTIES),
            seed=int(time.time() * 1000),
        )
        prompt = await self.llm.generate_structured(
            system_prompt=self.get_system_prompt(input_data),
            user_prompt=user_prompt,
            response_schema=PracticePrompt,
            temperature=1.0,
        )
        if not prompt.text.strip():
            raise ValueError("PracticePromptAgent received an empty topic.")
        return prompt

    def fallback(self, input_data: PracticeType) -> PracticePrompt:
        return random.choice(FALLBACK_PROMPTS).model_copy(deep=True)
