"""
Text-completion clients.

Defines the structured request the generation pipeline sends to the
external completion capability, the protocol every client implements, and
an OpenAI-backed client with retries (tenacity) and an injected rate limiter.
"""

import logging
import os
from typing import Any, Dict, List, Literal, Optional, Protocol

from dotenv import load_dotenv
from openai import (
    APIConnectionError,
    AsyncOpenAI,
    InternalServerError,
    OpenAIError,
    RateLimitError,
)
from pydantic import BaseModel, Field
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from nomad.shared.errors import UpstreamError
from nomad.shared.llm.rate_limiter import RateLimiter
from nomad.shared.llm.response_parser import parse_json_object

load_dotenv()


logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4.1-mini"

_TRANSIENT_ERRORS = (APIConnectionError, RateLimitError, InternalServerError)


class CompletionRequest(BaseModel):
    """A structured request to the completion capability."""

    task: Literal["trip_metadata", "city_itinerary"] = Field(
        description="Which structured document is being requested"
    )
    system_prompt: str
    user_prompt: str
    payload: Dict[str, Any] = Field(
        default_factory=dict,
        description="The structured parameters the prompts were built from",
    )


class TextCompletionClient(Protocol):
    """Anything that turns a CompletionRequest into a decoded JSON object."""

    async def complete(self, request: CompletionRequest) -> Dict[str, Any]:
        """Return the decoded response, or raise UpstreamError."""
        ...


def create_async_client(api_key: Optional[str] = None) -> AsyncOpenAI:
    """
    Create an AsyncOpenAI client.

    Uses the OPENAI_API_KEY environment variable unless a key is passed.
    """
    api_key = api_key or os.environ.get("OPENAI_API_KEY")
    if not api_key:
        raise ValueError(
            "OPENAI_API_KEY environment variable is not set. "
            "Please set it to your OpenAI API key."
        )
    return AsyncOpenAI(api_key=api_key)


class OpenAICompletionClient:
    """
    Completion client backed by the OpenAI Chat Completions API.

    Transient API failures are retried with exponential backoff. Anything
    still failing afterwards, and any response that is not a JSON object,
    surfaces as UpstreamError.
    """

    def __init__(
        self,
        client: Optional[AsyncOpenAI] = None,
        model: str = DEFAULT_MODEL,
        temperature: float = 0.7,
        rate_limiter: Optional[RateLimiter] = None,
    ):
        self._client = client
        self.model = model
        self.temperature = temperature
        self.rate_limiter = rate_limiter

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = create_async_client()
        return self._client

    async def complete(self, request: CompletionRequest) -> Dict[str, Any]:
        messages = [
            {"role": "system", "content": request.system_prompt},
            {"role": "user", "content": request.user_prompt},
        ]

        try:
            content = await self._create_completion(messages)
        except OpenAIError as e:
            logger.error(f"Completion call failed | task={request.task}, error={e}")
            raise UpstreamError(f"Completion call failed: {e}") from e

        return parse_json_object(content)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(_TRANSIENT_ERRORS),
        reraise=True,
    )
    async def _create_completion(self, messages: List[Dict[str, str]]) -> str:
        if self.rate_limiter is not None:
            await self.rate_limiter.acquire()

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.temperature,
                response_format={"type": "json_object"},
            )
        except RateLimitError:
            if self.rate_limiter is not None:
                self.rate_limiter.record_rate_limited()
            raise

        if response.usage is not None:
            logger.debug(
                f"Completion usage | model={self.model}, "
                f"input={response.usage.prompt_tokens}, "
                f"output={response.usage.completion_tokens}"
            )

        content = response.choices[0].message.content
        return (content or "").strip()
