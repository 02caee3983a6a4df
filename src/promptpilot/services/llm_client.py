"""Chat-completion client used by every LLM-backed prompt function."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, List, Optional, Union

import openai
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI
from openai import AsyncOpenAI

from ..config import settings
from ..exceptions import (
    LLMNotConfiguredError,
    LLMResponseError,
    LLMTimeoutError,
)

logger = logging.getLogger(__name__)

UserContent = Union[str, List[Dict[str, Any]]]


@dataclass
class LLMResult:
    """Text reply of one completion plus its token usage."""

    content: str
    model: str
    usage: Dict[str, int] = field(
        default_factory=lambda: {"prompt_tokens": 0, "completion_tokens": 0, "total_tokens": 0}
    )


def usage_from_metadata(message) -> Dict[str, int]:
    """Read token usage from a LangChain message (either metadata flavour)."""
    metadata = getattr(message, "response_metadata", None) or {}
    token_usage = metadata.get("token_usage") or metadata.get("usage")
    if token_usage:
        prompt_tokens = token_usage.get("prompt_tokens", 0) or 0
        completion_tokens = token_usage.get("completion_tokens", 0) or 0
        return {
            "prompt_tokens": prompt_tokens,
            "completion_tokens": completion_tokens,
            "total_tokens": token_usage.get("total_tokens") or prompt_tokens + completion_tokens,
        }

    usage_metadata = getattr(message, "usage_metadata", None)
    if usage_metadata:
        return {
            "prompt_tokens": usage_metadata.get("input_tokens", 0),
            "completion_tokens": usage_metadata.get("output_tokens", 0),
            "total_tokens": usage_metadata.get("total_tokens", 0),
        }
    return {"prompt_tokens": 0, "completion_tokens": 0, "total_tokens": 0}


class LLMClient:
    """Thin wrapper around ChatOpenAI with timeouts and rate-limit backoff."""

    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None):
        self.api_key = api_key if api_key is not None else settings.openai_api_key
        self.base_url = base_url if base_url is not None else settings.openai_base_url

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _chat_model(
        self,
        model: str,
        temperature: Optional[float],
        max_tokens: Optional[int],
        streaming: bool = False,
    ) -> ChatOpenAI:
        llm_params = {
            "model": model,
            "openai_api_key": self.api_key,
            "max_retries": 0,
            "streaming": streaming,
        }
        if temperature is not None:
            llm_params["temperature"] = temperature
        if max_tokens:
            llm_params["max_tokens"] = max_tokens
        if streaming:
            llm_params["stream_options"] = {"include_usage": True}

        # Add base URL if configured
        if self.base_url:
            llm_params["base_url"] = self.base_url

        return ChatOpenAI(**llm_params)

    async def complete(
        self,
        system: str,
        user: UserContent,
        model: str,
        temperature: Optional[float] = 0.7,
        max_tokens: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> LLMResult:
        """
        Run one chat completion.

        Raises:
            LLMNotConfiguredError: no API key is set
            LLMTimeoutError: the call did not finish within ``timeout`` seconds
            LLMResponseError: the provider rejected the request or returned nothing
        """
        if not self.configured:
            raise LLMNotConfiguredError("OpenAI API key is not configured")

        llm = self._chat_model(model, temperature, max_tokens)
        messages = [SystemMessage(content=system), HumanMessage(content=user)]
        timeout = timeout or settings.openai_timeout_seconds

        attempt = 0
        while True:
            try:
                response = await asyncio.wait_for(llm.ainvoke(messages), timeout=timeout)
                break
            except asyncio.TimeoutError:
                logger.error(f"OpenAI call to {model} timed out after {timeout}s")
                raise LLMTimeoutError("OpenAI call timed out")
            except openai.RateLimitError as e:
                if attempt >= settings.openai_max_retries:
                    raise LLMResponseError(f"Rate limited by OpenAI: {e}")
                delay = settings.openai_retry_backoff_seconds * (2**attempt)
                logger.warning(f"Rate limited by OpenAI, retrying in {delay:.1f}s")
                await asyncio.sleep(delay)
                attempt += 1
            except openai.OpenAIError as e:
                logger.error(f"OpenAI API error from {model}: {e}")
                raise LLMResponseError(str(e))

        content = response.content if isinstance(response.content, str) else ""
        if not content:
            raise LLMResponseError("Empty response from OpenAI")

        metadata = response.response_metadata or {}
        return LLMResult(
            content=content,
            model=metadata.get("model_name", model),
            usage=usage_from_metadata(response),
        )

    async def stream(
        self,
        system: str,
        user: UserContent,
        model: str,
        temperature: Optional[float] = 0.7,
    ) -> AsyncIterator[Dict[str, Any]]:
        """
        Stream a completion.

        Yields ``{"content": str}`` per chunk and finally
        ``{"usage": {...}}`` once the provider reports it.
        """
        if not self.configured:
            raise LLMNotConfiguredError("OpenAI API key is not configured")

        llm = self._chat_model(model, temperature, None, streaming=True)
        messages = [SystemMessage(content=system), HumanMessage(content=user)]

        usage = None
        try:
            async for chunk in llm.astream(messages):
                if getattr(chunk, "usage_metadata", None):
                    usage = usage_from_metadata(chunk)
                if chunk.content:
                    yield {"content": chunk.content}
        except openai.OpenAIError as e:
            logger.error(f"OpenAI streaming error from {model}: {e}")
            raise LLMResponseError(str(e))

        yield {"usage": usage or {"prompt_tokens": 0, "completion_tokens": 0, "total_tokens": 0}}

    async def list_models(self) -> List[Dict[str, Any]]:
        """List the models available to the configured API key."""
        if not self.configured:
            raise LLMNotConfiguredError("OpenAI API key not found")

        client_params = {"api_key": self.api_key}
        if self.base_url:
            client_params["base_url"] = self.base_url
        client = AsyncOpenAI(**client_params)
        try:
            page = await client.models.list()
        except openai.OpenAIError as e:
            raise LLMResponseError(str(e))
        return [model.model_dump() for model in page.data]


_llm_client: Optional[LLMClient] = None


def get_llm_client() -> LLMClient:
    """FastAPI dependency returning the shared client."""
    global _llm_client
    if _llm_client is None:
        _llm_client = LLMClient()
    return _llm_client
