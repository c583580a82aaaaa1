from unittest.mock import AsyncMock, patch, MagicMock

import pytest
from pydantic import BaseModel

from app.agent.llm_client import LLMClient, parse_structured, structured_text_candidates


class DummyModel(BaseModel):
    name: str
    age: int


def make_client_instance(*contents):
    responses = []
    for content in contents:
        mock_message = MagicMock()
        mock_message.content = content
        mock_choice = MagicMock()
        mock_choice.message = mock_message
        mock_response = MagicMock()
        mock_response.choices = [mock_choice]
        responses.append(mock_response)

    mock_completions = MagicMock()
    mock_completions.create = AsyncMock(side_effect=responses)

    mock_chat = MagicMock()
    mock_chat.completions = mock_completions

    mock_client_instance = AsyncMock()
    mock_client_instance.chat = mock_chat
    return mock_client_instance, mock_completions


@pytest.mark.asyncio
async def test_llm_client_json_parsing():
    mock_client_instance, mock_completions = make_client_instance('{"name": "Alice", "age": 30}')

    with patch("app.agent.llm_client.AsyncOpenAI", return_value=mock_client_instance):
        with patch("app.agent.llm_client.settings.LLM_API_KEY", "dummy_key"):
            client = LLMClient(model_name="test-model")

            result = await client.generate_structured(
                system_prompt="You are a helpful assistant.",
                user_prompt="Give me Alice's details",
                response_schema=DummyModel
            )

            assert isinstance(result, DummyModel)
            assert result.name == "Alice"
            assert result.age == 30
            mock_completions.create.assert_called_once()
            kwargs = mock_completions.create.call_args.kwargs
            assert kwargs["model"] == "test-model"
            assert kwargs["temperature"] == 0.7
            assert "EXPECTED SCHEMA" in kwargs["messages"][0]["content"]


@pytest.mark.asyncio
async def test_llm_client_retries_once_with_zero_temperature():
    mock_client_instance, mock_completions = make_client_instance(
        "Sure! Here you go.", '{"name": "Bob", "age": 41}'
    )

    with patch("app.agent.llm_client.AsyncOpenAI", return_value=mock_client_instance):
        client = LLMClient(model_name="test-model", api_key="dummy_key")
        result = await client.generate_structured(
            system_prompt="sys", user_prompt="user", response_schema=DummyModel
        )

    assert result.name == "Bob"
    assert mock_completions.create.await_count == 2
    retry_kwargs = mock_completions.create.await_args_list[1].kwargs
    assert retry_kwargs["temperature"] == 0
    assert "RETRY INSTRUCTIONS" in retry_kwargs["messages"][0]["content"]


@pytest.mark.asyncio
async def test_llm_client_gives_up_after_two_attempts():
    mock_client_instance, _ = make_client_instance("nope", "still nope")

    with patch("app.agent.llm_client.AsyncOpenAI", return_value=mock_client_instance):
        client = LLMClient(model_name="test-model", api_key="dummy_key")
        with pytest.raises(ValueError):
            await client.generate_structured(
                system_prompt="sys", user_prompt="user", response_schema=DummyModel
            )


def test_gemini_key_is_used_when_no_llm_key():
    with patch("app.agent.llm_client.AsyncOpenAI") as mock_openai:
        with patch("app.agent.llm_client.settings.LLM_API_KEY", ""), \
                patch("app.agent.llm_client.settings.GEMINI_API_KEY", "gemini-key"):
            LLMClient()
    assert mock_openai.call_args.kwargs["api_key"] == "gemini-key"


def test_fenced_and_wrapped_json_is_extracted():
    raw = 'Here is the result:\n```json\n{"name": "Carla", "age": 25}\n```\nEnjoy!'
    assert parse_structured(raw, DummyModel).name == "Carla"

    prose = 'The answer is {"name": "Dora", "age": 52} as requested.'
    assert parse_structured(prose, DummyModel).age == 52

    prefixed = 'json: {"name": "Eva", "age": 19}'
    assert parse_structured(prefixed, DummyModel).name == "Eva"


def test_braces_inside_strings_do_not_break_extraction():
    raw = 'noise {"name": "a } b", "age": 3} trailing'
    candidates = structured_text_candidates(raw)
    assert '{"name": "a } b", "age": 3}' in candidates
    assert parse_structured(raw, DummyModel).name == "a } b"


def test_empty_reply_is_an_error():
    with pytest.raises(ValueError):
        parse_structured("   ", DummyModel)
