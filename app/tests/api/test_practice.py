import json
from unittest.mock import AsyncMock, MagicMock, patch

from app.agent.prompt_agent import FALLBACK_PROMPTS
from app.core.config import settings

API = settings.API_V1_STR


def mock_openai(content: str | None = None, error: Exception | None = None) -> tuple[MagicMock, AsyncMock]:
    mock_message = MagicMock()
    mock_message.content = content

    mock_choice = MagicMock()
    mock_choice.message = mock_message

    mock_response = MagicMock()
    mock_response.choices = [mock_choice]

    mock_completions = MagicMock()
    if error is not None:
        mock_completions.create = AsyncMock(side_effect=error)
    else:
        mock_completions.create = AsyncMock(return_value=mock_response)

    mock_client_instance = AsyncMock()
    mock_client_instance.chat = MagicMock()
    mock_client_instance.chat.completions = mock_completions
    return mock_client_instance, mock_completions.create


def test_prompt_from_model(client, user_headers):
    instance, create = mock_openai(
        json.dumps(
            {
                "text": "Describe your favourite meal.",
                "translation": "Descreve a tua refeição favorita.",
                "hints": ["Who cooks it?", "When do you eat it?", "Why do you like it?"],
            }
        )
    )
    with patch("app.agent.llm_client.AsyncOpenAI", return_value=instance):
        r = client.post(f"{API}/practice/prompt", headers=user_headers, json={"type": "writing"})

    assert r.status_code == 200, r.text
    assert r.json()["text"] == "Describe your favourite meal."
    assert len(r.json()["hints"]) == 3
    create.assert_awaited_once()
    system_prompt = create.await_args.kwargs["messages"][0]["content"]
    assert "creative writing" in system_prompt


def test_prompt_falls_back_when_model_fails(client, user_headers):
    instance, _ = mock_openai(error=RuntimeError("provider down"))
    with patch("app.agent.llm_client.AsyncOpenAI", return_value=instance):
        r = client.post(f"{API}/practice/prompt", headers=user_headers, json={"type": "speaking"})

    assert r.status_code == 200
    assert r.json() in [prompt.model_dump() for prompt in FALLBACK_PROMPTS]


def test_writing_feedback(client, user_headers):
    instance, _ = mock_openai(
        "```json\n"
        + json.dumps(
            {
                "feedback": "Bom trabalho!",
                "corrections": [
                    {
                        "original": "I goed",
                        "correction": "I went",
                        "explanation": "'go' é irregular no passado.",
                    }
                ],
                "score": 140,
            }
        )
        + "\n```"
    )
    with patch("app.agent.llm_client.AsyncOpenAI", return_value=instance):
        r = client.post(
            f"{API}/practice/writing/analyze",
            headers=user_headers,
            json={"text": "Yesterday I goed to the beach.", "prompt": "Talk about your weekend."},
        )

    assert r.status_code == 200, r.text
    feedback = r.json()
    assert feedback["score"] == 100
    assert feedback["corrections"][0]["correction"] == "I went"


def test_speaking_feedback_fallback_on_bad_json(client, user_headers):
    instance, create = mock_openai("not json at all")
    with patch("app.agent.llm_client.AsyncOpenAI", return_value=instance):
        r = client.post(
            f"{API}/practice/speaking/analyze",
            headers=user_headers,
            json={"transcript": "I like the beach", "prompt": "Talk about holidays."},
        )

    assert r.status_code == 200
    assert r.json()["score"] == 0
    # One retry before giving up
    assert create.await_count == 2


def test_practice_sessions_history(client, user_headers, other_headers):
    for text, score in (("First answer", 60), ("Second answer", 85)):
        r = client.post(
            f"{API}/practice/sessions",
            headers=user_headers,
            json={
                "type": "writing",
                "prompt": "Describe your daily routine.",
                "prompt_data": {"translation": "Descreve a tua rotina diária.", "hints": []},
                "user_input": text,
                "feedback": {"feedback": "Good", "corrections": []},
                "score": score,
            },
        )
        assert r.status_code == 200, r.text

    history = client.get(f"{API}/practice/sessions", headers=user_headers).json()
    assert [item["user_input"] for item in history] == ["Second answer", "First answer"]
    assert history[0]["prompt_data"]["translation"] == "Descreve a tua rotina diária."

    assert client.get(f"{API}/practice/sessions", headers=other_headers).json() == []


def test_practice_requires_login(client):
    r = client.post(f"{API}/practice/prompt", json={"type": "writing"})
    assert r.status_code == 401
