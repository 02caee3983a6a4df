"""Token usage and billing statistics endpoints."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..services.usage_service import UsageService
from .deps import get_usage_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/usage", tags=["usage"])


@router.get("/prompt-counts")
async def prompt_counts(service: UsageService = Depends(get_usage_service)):
    """Per-user prompt and draft counts with token totals and cost per model."""
    try:
        return await service.prompt_counts()
    except Exception as e:
        logger.error(f"Error fetching prompt counts: {e}")
        return JSONResponse(status_code=500, content={"error": str(e)})


@router.get("/{user_id}/summary")
async def user_summary(user_id: str, service: UsageService = Depends(get_usage_service)):
    try:
        return await service.user_summary(user_id)
    except Exception as e:
        logger.error(f"Error fetching usage summary for {user_id}: {e}")
        return JSONResponse(status_code=500, content={"error": str(e)})
