"""Shared FastAPI dependencies and error translation for the routers."""

from typing import Optional

from fastapi import Depends, Header, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..exceptions import (
    ConflictError,
    LLMError,
    LLMNotConfiguredError,
    NotFoundError,
    PermissionDeniedError,
    PromptPilotError,
)
from ..repositories import AIModelRepository, TemplateRepository
from ..services.enhancement_service import EnhancementService
from ..services.llm_client import LLMClient, get_llm_client
from ..services.model_service import ModelService
from ..services.prompt_analysis_service import PromptAnalysisService
from ..services.response_cache import ResponseCache, get_response_cache
from ..services.usage_service import UsageService
from ..services.website_context import WebsiteContextFetcher
from ..services.youtube_service import YouTubeService


def get_optional_user_id(
    x_user_id: Optional[str] = Header(None),
    user_id: Optional[str] = Query(None, alias="userId"),
) -> Optional[str]:
    """Caller id from the ``X-User-Id`` header, else the ``userId`` query parameter."""
    return x_user_id or user_id


def get_user_id(user_id: Optional[str] = Depends(get_optional_user_id)) -> str:
    if not user_id:
        raise HTTPException(
            status_code=401, detail="Missing user id (X-User-Id header or userId parameter)"
        )
    return user_id


def to_http_exception(error: PromptPilotError) -> HTTPException:
    """Map a domain error onto its HTTP status."""
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, PermissionDeniedError):
        return HTTPException(status_code=403, detail=str(error))
    if isinstance(error, ConflictError):
        return HTTPException(status_code=409, detail=str(error))
    if isinstance(error, LLMNotConfiguredError):
        return HTTPException(status_code=400, detail=str(error))
    if isinstance(error, LLMError):
        return HTTPException(status_code=502, detail=str(error))
    return HTTPException(status_code=400, detail=str(error))


def get_website_fetcher() -> WebsiteContextFetcher:
    return WebsiteContextFetcher()


def get_youtube_service() -> YouTubeService:
    return YouTubeService()


def get_usage_service(db: AsyncSession = Depends(get_db)) -> UsageService:
    return UsageService(db)


def get_analysis_service(
    llm_client: LLMClient = Depends(get_llm_client),
    cache: ResponseCache = Depends(get_response_cache),
    usage_service: UsageService = Depends(get_usage_service),
    website_fetcher: WebsiteContextFetcher = Depends(get_website_fetcher),
) -> PromptAnalysisService:
    return PromptAnalysisService(llm_client, cache, usage_service, website_fetcher)


def get_enhancement_service(
    db: AsyncSession = Depends(get_db),
    llm_client: LLMClient = Depends(get_llm_client),
    usage_service: UsageService = Depends(get_usage_service),
) -> EnhancementService:
    return EnhancementService(llm_client, usage_service, TemplateRepository(db))


def get_model_service(
    db: AsyncSession = Depends(get_db),
    llm_client: LLMClient = Depends(get_llm_client),
) -> ModelService:
    return ModelService(llm_client, AIModelRepository(db))
