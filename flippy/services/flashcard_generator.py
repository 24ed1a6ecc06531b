"""Flashcard generator - turn uploaded source text into question/answer pairs via an LLM"""

import json
from typing import Any, Dict, List, Optional

from openai import (
    APIConnectionError,
    InternalServerError,
    OpenAI,
    RateLimitError,
)
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from ..utils.exceptions import ServiceUnavailableError, UpstreamError, ValidationError
from ..utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_MODEL = "Qwen/Qwen2.5-7B-Instruct:together"
DEFAULT_BASE_URL = "https://router.huggingface.co/v1"
DEFAULT_TIMEOUT = 30.0
DEFAULT_CARD_COUNT = 5
MAX_SOURCE_CHARS = 20000

PROMPT_SUFFIX = (
    "\n\nBased on the following content, generate exactly {count} flashcards in the "
    "following JSON format. Each flashcard should have a question and a detailed answer. "
    "Return ONLY the JSON array, no additional text:\n"
    '[{{"question": "Your question here?", "answer": "Your detailed answer here"}}, ...]'
)

RETRYABLE_ERRORS = (APIConnectionError, RateLimitError, InternalServerError)


def parse_flashcards(content: Optional[str]) -> List[Dict[str, str]]:
    """
    Pull the JSON array of {question, answer} out of a model reply.

    Models often wrap the array in prose or a code fence, so parse the span
    from the first "[" to the last "]". Raises UpstreamError when no usable
    cards are found.
    """
    if not content:
        raise UpstreamError("AI service returned an empty reply")
    start = content.find("[")
    end = content.rfind("]")
    if start == -1 or end <= start:
        raise UpstreamError("AI service reply did not contain a JSON array")
    try:
        raw = json.loads(content[start : end + 1])
    except json.JSONDecodeError as e:
        raise UpstreamError("AI service reply was not valid JSON") from e

    cards = []
    for item in raw if isinstance(raw, list) else []:
        if not isinstance(item, dict):
            continue
        question = item.get("question")
        answer = item.get("answer")
        if isinstance(question, str) and isinstance(answer, str) and question.strip() and answer.strip():
            cards.append({"question": question.strip(), "answer": answer.strip()})
    if not cards:
        raise UpstreamError("AI service reply contained no flashcards")
    return cards


class FlashcardGenerator:
    """
    Client for an OpenAI-compatible chat-completions endpoint
    (Hugging Face router by default).

    Transient failures are retried with exponential backoff; anything that
    still fails surfaces as UpstreamError so callers can answer 502.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = DEFAULT_BASE_URL,
        model: str = DEFAULT_MODEL,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = 3,
        retry_wait: Optional[wait_base] = None,
    ):
        self._api_key = (api_key or "").strip()
        self._model = model
        self._client: Optional[OpenAI] = None
        self._retrying = Retrying(
            stop=stop_after_attempt(max(1, max_retries)),
            wait=retry_wait or wait_exponential(multiplier=1, min=2, max=10),
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            reraise=True,
        )

        if self._api_key:
            self._client = OpenAI(
                api_key=self._api_key,
                base_url=base_url,
                timeout=max(1.0, float(timeout)),
                max_retries=0,
            )
            logger.info("FLASHCARD_GENERATOR", action="initialized", has_api_key=True, model=model)
        else:
            logger.warning(
                "FLASHCARD_GENERATOR",
                action="initialized",
                has_api_key=False,
                error="AI API key not configured",
            )

    def is_available(self) -> bool:
        """Return True if the service is configured and ready"""
        return self._client is not None

    def _sanitize_input(self, text: Any) -> str:
        """Drop control characters (except whitespace) and cap the length."""
        if not text or not isinstance(text, str):
            return ""
        sanitized = "".join(ch for ch in text if ord(ch) >= 32 or ch in "\n\r\t")
        return sanitized[:MAX_SOURCE_CHARS].strip()

    def _complete(self, messages: List[Dict[str, str]]) -> str:
        response = self._client.chat.completions.create(
            model=self._model,
            messages=messages,
        )
        return response.choices[0].message.content or ""

    def generate(self, text: Any, count: int = DEFAULT_CARD_COUNT) -> List[Dict[str, str]]:
        """Generate `count` flashcards from source text."""
        source = self._sanitize_input(text)
        if not source:
            raise ValidationError("Text is required")
        if not self.is_available():
            raise ServiceUnavailableError("Flashcard generation is not configured")

        messages = [{"role": "user", "content": source + PROMPT_SUFFIX.format(count=count)}]
        try:
            content = self._retrying(self._complete, messages)
        except Exception as e:
            logger.error("Flashcard generation failed", model=self._model, error=str(e))
            raise UpstreamError("Upstream service error.") from e

        cards = parse_flashcards(content)
        logger.info("Flashcards generated", model=self._model, cards=len(cards))
        return cards
