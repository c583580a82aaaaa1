import logging
from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from pydantic import BaseModel

from app.agent.llm_client import LLMClient
from app.core.config import settings

logger = logging.getLogger(__name__)

InType = TypeVar("InType")
OutType = TypeVar("OutType", bound=BaseModel)


class BaseAgent(ABC, Generic[InType, OutType]):
    """Abstract base class for the practice agents.

    ``run`` never raises: any provider or parsing failure is logged and the
    agent's static ``fallback`` is returned instead.
    """

    def __init__(
        self,
        model_name: str | None = None,
        base_url: str | None = None,
        api_key: str | None = None,
    ):
        model_to_use = model_name or settings.MODEL_PRACTICE or settings.MODEL_DEFAULT
        self.llm = LLMClient(model_name=model_to_use, base_url=base_url, api_key=api_key)

    @abstractmethod
    async def generate(self, input_data: InType) -> OutType:
        """Ask the model for the artifact."""

    @abstractmethod
    def fallback(self, input_data: InType) -> OutType:
        """Static artifact used when the model call fails."""

    async def run(self, input_data: InType) -> OutType:
        try:
            return await self.generate(input_data)
        except Exception as exc:
            logger.warning("%s failed; returning fallback: %s", type(self).__name__, exc)
            return self.fallback(input_data)
