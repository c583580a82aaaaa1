import json
import logging
import re
from typing import TypeVar

from openai import AsyncOpenAI
from pydantic import BaseModel, ValidationError

from app.core.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


def _extract_fenced_block(text: str) -> str | None:
    blocks = re.findall(r"```(?:json)?\s*(.*?)\s*```", text, re.DOTALL | re.IGNORECASE)
    return blocks[0].strip() if blocks else None


def _extract_balanced_json_object(text: str) -> str | None:
    """Best-effort extraction of the first balanced top-level JSON object."""
    if not text:
        return None

    start_idx = text.find("{")
    if start_idx == -1:
        return None

    depth = 0
    in_string = False
    escape = False
    for i in range(start_idx, len(text)):
        ch = text[i]
        if in_string:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start_idx:i + 1]
    return None


def structured_text_candidates(raw_text: str) -> list[str]:
    """Strings worth handing to ``json.loads``, most likely first.

    Models wrap JSON in markdown fences, prefix it with a stray ``json`` token
    or add a sentence of prose around it; each of those gets a cleaned-up
    candidate here.
    """
    text = (raw_text or "").strip()
    if not text:
        return []

    candidates: list[str] = []
    fenced = _extract_fenced_block(text)
    if fenced:
        candidates.append(fenced)

    candidates.append(text)

    balanced = _extract_balanced_json_object(text)
    if balanced:
        candidates.append(balanced)

    if text.lower().startswith("json"):
        trimmed = text[4:].lstrip(": \n\r\t")
        if trimmed:
            candidates.append(trimmed)

    # Deduplicate while preserving order.
    seen = set()
    unique: list[str] = []
    for candidate in candidates:
        c = candidate.strip()
        if not c or c in seen:
            continue
        seen.add(c)
        unique.append(c)
    return unique


def parse_structured(raw_text: str, response_schema: type[T]) -> T:
    parse_candidates = structured_text_candidates(raw_text)
    if not parse_candidates:
        raise ValueError("Model returned empty content for structured response")
    parse_errors: list[str] = []
    for candidate in parse_candidates:
        try:
            parsed_data = json.loads(candidate, strict=False)
            return response_schema.model_validate(parsed_data)
        except (json.JSONDecodeError, ValidationError, ValueError) as candidate_error:
            parse_errors.append(str(candidate_error))
            continue
    raise ValueError(
        "Unable to parse structured response after candidate extraction: "
        + " | ".join(parse_errors[:3])
    )


class LLMClient:
    """Structured generation against any OpenAI-compatible chat endpoint (Gemini by default)."""

    def __init__(
        self,
        model_name: str | None = None,
        base_url: str | None = None,
        api_key: str | None = None,
    ):
        self.model_name = model_name or settings.MODEL_DEFAULT

        # Use LLM_API_KEY or fall back to GEMINI_API_KEY when only that one is set
        resolved_api_key = api_key or settings.LLM_API_KEY or settings.GEMINI_API_KEY
        resolved_base_url = base_url or settings.LLM_BASE_URL

        self.client = AsyncOpenAI(
            base_url=resolved_base_url,
            api_key=resolved_api_key,
        )

    async def generate_structured(
        self,
        system_prompt: str,
        user_prompt: str,
        response_schema: type[T],
        *,
        temperature: float = 0.7,
    ) -> T:
        """
        Generate a structured response matching the provided Pydantic schema.
        The schema is injected into the system prompt; a second attempt with
        stricter instructions is made when the first reply does not parse.
        """
        schema_json = json.dumps(response_schema.model_json_schema())

        augmented_system_prompt = (
            f"{system_prompt}\n\n"
            "CRITICAL: You must respond in ONLY valid JSON format matching the following JSON Schema. "
            "Do not include markdown code blocks (```json) or any conversational text around the JSON.\n\n"
            f"EXPECTED SCHEMA:\n{schema_json}"
        )

        attempt_prompts = [
            augmented_system_prompt,
            (
                f"{augmented_system_prompt}\n\n"
                "RETRY INSTRUCTIONS: Your previous response was invalid or incomplete. "
                "Return ONLY a single JSON object matching the schema. "
                "Do not add any prose, headings, markdown fences, or explanations."
            ),
        ]

        for attempt_idx, system_prompt_attempt in enumerate(attempt_prompts, start=1):
            try:
                logger.info(
                    "Issuing structured request to model %s (attempt %s/%s)...",
                    self.model_name,
                    attempt_idx,
                    len(attempt_prompts),
                )
                response = await self.client.chat.completions.create(
                    model=self.model_name,
                    messages=[
                        {"role": "system", "content": system_prompt_attempt},
                        {"role": "user", "content": user_prompt},
                    ],
                    temperature=0 if attempt_idx > 1 else temperature,
                )

                if not getattr(response, "choices", None):
                    logger.error("Received no choices from %s: %s", self.model_name, response)
                    raise ValueError(
                        f"Provider {self.model_name} returned no output. Try again or change model."
                    )

                text_response = response.choices[0].message.content or ""
                return parse_structured(text_response, response_schema)

            except (json.JSONDecodeError, ValidationError, ValueError) as e:
                if attempt_idx < len(attempt_prompts):
                    logger.warning(
                        "Structured parsing failed for %s on attempt %s/%s: %s. Retrying...",
                        self.model_name,
                        attempt_idx,
                        len(attempt_prompts),
                        e,
                    )
                    continue
                logger.error("Error parsing structured LLM response from %s: %s", self.model_name, e)
                raise
            except Exception as e:
                logger.error("Error calling LLM provider %s: %s", self.model_name, e)
                raise

        raise RuntimeError("Structured generation failed without a captured error")
