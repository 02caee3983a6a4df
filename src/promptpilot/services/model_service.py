"""AI model catalogue maintenance and OpenAI connectivity checks."""

import asyncio
import logging
from datetime import timedelta
from typing import Any, Dict, List

from ..config import settings
from ..database.models import utcnow
from ..exceptions import LLMError, LLMNotConfiguredError
from ..repositories import AIModelRepository
from .analysis import parse_json_reply
from .llm_client import LLMClient

logger = logging.getLogger(__name__)

MODEL_INFO_SYSTEM_PROMPT = (
    "You are an AI expert tasked with creating detailed, factual information about AI models."
)

MODEL_INFO_PROMPT = """Create a detailed analysis of the AI model "{name}" by {provider}.
Format your response as a JSON object with the following keys:
1. description: A comprehensive description of the model, focusing on its purpose, capabilities, and typical use cases.
2. strengths: An array of 4-6 specific strengths or advantages of this model.
3. limitations: An array of 4-6 specific limitations or weaknesses of this model.
Make your response specific to this model based on what is publicly known about it, and ensure all information is factual.
Return only valid JSON with those three keys."""


def _string_list(value: Any) -> List[str]:
    if isinstance(value, list):
        return [str(item) for item in value if item]
    if isinstance(value, str) and value:
        return [value]
    return []


class ModelService:
    def __init__(self, llm_client: LLMClient, repository: AIModelRepository):
        self.llm_client = llm_client
        self.repository = repository

    async def list_openai_models(self) -> List[Dict[str, Any]]:
        """Models visible to the configured key; errors propagate."""
        models = await self.llm_client.list_models()
        logger.info(f"Fetched {len(models)} models from OpenAI")
        return models

    async def enhance_models(self) -> Dict[str, Any]:
        """
        Fill in description, strengths and limitations for every active model.

        Raises:
            LLMNotConfiguredError: no OpenAI API key is set
        """
        if not self.llm_client.configured:
            raise LLMNotConfiguredError(
                "OpenAI API key not configured. Please add it to the service environment."
            )

        models = await self.repository.list()
        if not models:
            return {"success": False, "message": "No models found to enhance"}

        logger.info(f"Found {len(models)} models to enhance with AI")
        enhanced_count = 0
        for index, model in enumerate(models):
            if index and settings.model_enhance_delay_seconds:
                await asyncio.sleep(settings.model_enhance_delay_seconds)

            prompt = MODEL_INFO_PROMPT.format(
                name=model.name, provider=model.provider or "an unknown provider"
            )
            try:
                result = await self.llm_client.complete(
                    MODEL_INFO_SYSTEM_PROMPT, prompt, settings.model_info_model, temperature=0.7
                )
            except LLMError as e:
                logger.error(f"Error enhancing model {model.name}: {e}")
                continue

            analysis = parse_json_reply(result.content)
            if not isinstance(analysis, dict):
                logger.error(f"Error parsing AI response for model {model.name}")
                continue

            await self.repository.set_details(
                model.id,
                str(analysis.get("description") or ""),
                _string_list(analysis.get("strengths")),
                _string_list(analysis.get("limitations")),
            )
            enhanced_count += 1
            logger.info(f"Successfully enhanced model: {model.name}")

        return {
            "success": True,
            "message": (
                f"Successfully enhanced {enhanced_count} out of {len(models)} models "
                "with AI-generated information"
            ),
            "enhancedCount": enhanced_count,
            "totalModels": len(models),
        }

    async def update_models(self, force: bool = False) -> Dict[str, Any]:
        """Summarize the catalogue and refresh model details, at most once per interval."""
        if not force:
            last_update = await self.repository.last_updated_at()
            interval = timedelta(hours=settings.model_update_interval_hours)
            if last_update and utcnow() - last_update < interval:
                logger.info(f"Skipping model update, last updated at {last_update}")
                return {
                    "success": True,
                    "skipped": True,
                    "message": "Models were updated recently. Use X-Force-Update: true to force an update.",
                }

        provider_stats = await self.repository.provider_stats()
        total = sum(provider_stats.values())
        logger.info(f"Found {total} models from {len(provider_stats)} providers")

        try:
            enhancement = await self.enhance_models()
            logger.info(f"AI enhancement finished: {enhancement.get('message')}")
        except LLMError as e:
            logger.error(f"Error triggering AI enhancement: {e}")

        return {
            "success": True,
            "message": "Successfully updated model metadata and triggered AI enhancement",
            "totalModels": total,
            "providerStats": provider_stats,
            "providers": list(provider_stats),
        }

    async def test_connection(self) -> Dict[str, Any]:
        """Tiny completion against the test model; never raises."""
        if not self.llm_client.configured:
            return {
                "success": False,
                "message": "OpenAI API key is not configured in the environment",
            }

        model = settings.connection_test_model
        try:
            result = await self.llm_client.complete(
                "You are a helpful assistant.", "Test connection", model, max_tokens=5
            )
        except LLMError as e:
            logger.error(f"OpenAI connection test failed: {e}")
            return {"success": False, "message": f"Failed to connect to OpenAI API: {e}"}

        return {
            "success": True,
            "message": "Successfully connected to OpenAI API",
            "model": result.model,
            "tokenCount": result.usage.get("total_tokens", 0),
        }
