"""Services package for PromptPilot.

Submodules pull in langchain, langgraph and redis; attributes are loaded
lazily so importing one service (or the heuristics in
``services.analysis``) does not import all of them.
"""

__all__ = [
    "EnhancementService",
    "LLMClient",
    "ModelService",
    "PromptAnalysisService",
    "ResponseCache",
    "UsageService",
]


def __getattr__(name):
    if name == "EnhancementService":
        from .enhancement_service import EnhancementService as _EnhancementService

        return _EnhancementService
    if name == "LLMClient":
        from .llm_client import LLMClient as _LLMClient

        return _LLMClient
    if name == "ModelService":
        from .model_service import ModelService as _ModelService

        return _ModelService
    if name == "PromptAnalysisService":
        from .prompt_analysis_service import PromptAnalysisService as _PromptAnalysisService

        return _PromptAnalysisService
    if name == "ResponseCache":
        from .response_cache import ResponseCache as _ResponseCache

        return _ResponseCache
    if name == "UsageService":
        from .usage_service import UsageService as _UsageService

        return _UsageService
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
