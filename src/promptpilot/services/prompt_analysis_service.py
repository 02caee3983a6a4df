"""Analyze-prompt function: cached graph run plus usage accounting."""

import logging
from typing import Optional

from ..database import UsageStepEnum
from ..models.analysis import AnalyzePromptRequest, AnalyzePromptResponse
from .analysis_graph import PromptAnalysisGraph, state_to_response_fields
from .llm_client import LLMClient
from .response_cache import ResponseCache
from .usage_service import UsageService
from .website_context import WebsiteContextFetcher

logger = logging.getLogger(__name__)


class PromptAnalysisService:
    def __init__(
        self,
        llm_client: LLMClient,
        cache: ResponseCache,
        usage_service: Optional[UsageService] = None,
        website_fetcher: Optional[WebsiteContextFetcher] = None,
    ):
        self.cache = cache
        self.usage_service = usage_service
        self.graph = PromptAnalysisGraph(llm_client, website_fetcher)

    async def analyze(self, request: AnalyzePromptRequest) -> AnalyzePromptResponse:
        """
        Analyze a prompt into questions and variables.

        Identical payloads are served from the cache. Heuristic
        results are not cached so a later call can still reach the model.
        """
        cache_payload = request.model_dump(exclude={"user_id", "prompt_id"})
        cache_key = self.cache.make_key("analyze-prompt", cache_payload)

        cached = await self.cache.get(cache_key)
        if cached:
            logger.info("Serving prompt analysis from cache")
            return AnalyzePromptResponse.model_validate(cached)

        state = await self.graph.run(request)
        response = AnalyzePromptResponse(**state_to_response_fields(state))

        if self.usage_service and state.get("usage"):
            await self.usage_service.record_usage(
                request.user_id,
                request.prompt_id,
                state.get("model", ""),
                UsageStepEnum.ANALYSIS.value,
                state["usage"],
            )

        if response.source == "ai":
            await self.cache.set(cache_key, response.model_dump(by_alias=True))

        logger.info(
            f"Analyzed prompt ({response.source}): {len(response.questions)} questions, "
            f"{len(response.variables)} variables, ambiguity {response.ambiguity}"
        )
        return response
