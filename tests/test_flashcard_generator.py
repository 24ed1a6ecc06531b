"""Tests for the LLM flashcard generator (OpenAI client mocked)"""

from types import SimpleNamespace
from unittest.mock import MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient
from openai import APIConnectionError
from tenacity import wait_none

from conftest import create_test_app, signup_and_signin
from flippy.services.flashcard_generator import FlashcardGenerator, parse_flashcards
from flippy.utils.exceptions import ServiceUnavailableError, UpstreamError, ValidationError

REPLY = (
    "Sure! Here are your flashcards:\n```json\n"
    '[{"question": "What is DNA?", "answer": "Deoxyribonucleic acid"},'
    ' {"question": "Where is DNA stored?", "answer": "In the nucleus"}]\n```'
)


def _completion(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def _connection_error():
    return APIConnectionError(request=httpx.Request("POST", "https://example.invalid/v1/chat/completions"))


@pytest.fixture
def generator():
    gen = FlashcardGenerator(api_key="test-token", max_retries=3, retry_wait=wait_none())
    gen._client = MagicMock()
    return gen


class TestParseFlashcards:
    def test_extracts_array_from_prose(self):
        cards = parse_flashcards(REPLY)
        assert cards == [
            {"question": "What is DNA?", "answer": "Deoxyribonucleic acid"},
            {"question": "Where is DNA stored?", "answer": "In the nucleus"},
        ]

    def test_skips_malformed_items(self):
        cards = parse_flashcards('[{"question": "Q?", "answer": "A"}, {"question": "no answer"}, 7, {"question": " ", "answer": "x"}]')
        assert cards == [{"question": "Q?", "answer": "A"}]

    @pytest.mark.parametrize(
        "content",
        [None, "", "no json here", "[not json]", "[]", '{"question": "Q", "answer": "A"}', "[1, 2, 3]"],
    )
    def test_unusable_reply_is_upstream_error(self, content):
        with pytest.raises(UpstreamError):
            parse_flashcards(content)


class TestFlashcardGenerator:
    def test_generate(self, generator):
        generator._client.chat.completions.create.return_value = _completion(REPLY)

        cards = generator.generate("DNA carries genetic information.", count=2)

        assert len(cards) == 2
        kwargs = generator._client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "Qwen/Qwen2.5-7B-Instruct:together"
        prompt = kwargs["messages"][0]["content"]
        assert prompt.startswith("DNA carries genetic information.")
        assert "exactly 2 flashcards" in prompt

    def test_control_characters_are_stripped(self, generator):
        generator._client.chat.completions.create.return_value = _completion(REPLY)
        generator.generate("abc\x00\x07def\n")
        prompt = generator._client.chat.completions.create.call_args.kwargs["messages"][0]["content"]
        assert prompt.startswith("abcdef")

    @pytest.mark.parametrize("text", [None, "", "   ", 42])
    def test_empty_text_is_validation_error(self, generator, text):
        with pytest.raises(ValidationError):
            generator.generate(text)
        generator._client.chat.completions.create.assert_not_called()

    def test_transient_failure_is_retried(self, generator):
        generator._client.chat.completions.create.side_effect = [_connection_error(), _completion(REPLY)]
        assert len(generator.generate("some text")) == 2
        assert generator._client.chat.completions.create.call_count == 2

    def test_persistent_failure_is_upstream_error(self, generator):
        generator._client.chat.completions.create.side_effect = _connection_error()
        with pytest.raises(UpstreamError):
            generator.generate("some text")
        assert generator._client.chat.completions.create.call_count == 3

    def test_non_retryable_failure_is_not_retried(self, generator):
        generator._client.chat.completions.create.side_effect = RuntimeError("boom")
        with pytest.raises(UpstreamError):
            generator.generate("some text")
        assert generator._client.chat.completions.create.call_count == 1

    def test_unconfigured_generator(self):
        gen = FlashcardGenerator(api_key=None)
        assert not gen.is_available()
        with pytest.raises(ServiceUnavailableError):
            gen.generate("some text")


class TestGenerateFlashcardsRoute:
    def test_returns_cards_without_spending_quota(self, tmp_path, generator):
        generator._client.chat.completions.create.return_value = _completion(REPLY)
        client = TestClient(create_test_app(tmp_path, generator=generator))
        signup_and_signin(client, "gen@example.com")
        before = client.get("/profile").json()["remainingApiCalls"]

        res = client.post("/generate-flashcards", json={"text": "DNA carries genetic information."})
        assert res.status_code == 200
        assert len(res.json()["cards"]) == 2
        assert client.get("/profile").json()["remainingApiCalls"] == before
        assert client.get("/card-groups").json() == {"groups": []}

    def test_requires_session(self, tmp_path, generator):
        client = TestClient(create_test_app(tmp_path, generator=generator))
        res = client.post("/generate-flashcards", json={"text": "x"})
        assert res.status_code == 401

    def test_unconfigured_is_503(self, client):
        signup_and_signin(client, "gen@example.com")
        res = client.post("/generate-flashcards", json={"text": "some text"})
        assert res.status_code == 503
        assert res.json() == {"error": "Flashcard generation is not configured"}

    def test_empty_text_is_400(self, client):
        signup_and_signin(client, "gen@example.com")
        res = client.post("/generate-flashcards", json={"text": ""})
        assert res.status_code == 400

    def test_upstream_failure_is_generic_502(self, tmp_path, generator):
        generator._client.chat.completions.create.side_effect = RuntimeError("secret internal detail")
        client = TestClient(create_test_app(tmp_path, generator=generator))
        signup_and_signin(client, "gen@example.com")

        res = client.post("/generate-flashcards", json={"text": "some text"})
        assert res.status_code == 502
        assert res.json() == {"error": "Upstream service error."}
