"""Prompt function endpoints (analyze, enhance, templates, JSON, tags, YouTube, variables)."""

import json
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse

from ..exceptions import PromptPilotError
from ..models.analysis import (
    AnalyzePromptRequest,
    AnalyzePromptResponse,
    EnhancePromptRequest,
    EnhancePromptResponse,
    PillarSuggestion,
    PromptJsonResponse,
    PromptTagsResponse,
    PromptTextRequest,
    ReplaceVariableRequest,
    ReplaceVariableResponse,
    UseTemplateRequest,
)
from ..services.analysis import pillar_suggestions
from ..services.analysis.placeholders import extract_placeholders, replace_variable
from ..services.enhancement_service import EnhancementService
from ..services.prompt_analysis_service import PromptAnalysisService
from ..services.youtube_service import YouTubeService
from .deps import (
    get_analysis_service,
    get_enhancement_service,
    get_optional_user_id,
    get_youtube_service,
    to_http_exception,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/functions", tags=["functions"])


@router.post("/analyze-prompt", response_model=AnalyzePromptResponse)
async def analyze_prompt(
    request: AnalyzePromptRequest,
    caller_id: Optional[str] = Depends(get_optional_user_id),
    service: PromptAnalysisService = Depends(get_analysis_service),
):
    """
    Analyze a raw prompt into clarifying questions and variables.

    Falls back to template-driven heuristics when the model cannot be
    used; ``source`` tells which path produced the result.
    """
    try:
        request.user_id = request.user_id or caller_id
        return await service.analyze(request)
    except Exception as e:
        logger.error(f"Error in analyze-prompt: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/enhance-prompt", response_model=EnhancePromptResponse)
async def enhance_prompt(
    request: EnhancePromptRequest,
    caller_id: Optional[str] = Depends(get_optional_user_id),
    service: EnhancementService = Depends(get_enhancement_service),
):
    try:
        request.user_id = request.user_id or caller_id
        return await service.enhance(request)
    except Exception as e:
        logger.error(f"Error in enhance-prompt: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/enhance-prompt/stream")
async def enhance_prompt_stream(
    request: EnhancePromptRequest,
    caller_id: Optional[str] = Depends(get_optional_user_id),
    service: EnhancementService = Depends(get_enhancement_service),
):
    """
    Stream the enhanced prompt as Server-Sent Events.

    Events:
    - chunk: a piece of the enhanced prompt
    - final_response: the complete ``EnhancePromptResponse``
    - error: the model call failed
    """
    request.user_id = request.user_id or caller_id

    async def event_generator():
        try:
            async for event in service.enhance_stream(request):
                event_type = event["type"]
                event_data = json.dumps(event["data"], ensure_ascii=False)

                yield f"event: {event_type}\n"
                yield f"data: {event_data}\n\n"

                if event_type in ["final_response", "error"]:
                    break
        except Exception as e:
            logger.error(f"Error in enhance-prompt stream: {e}")
            error_data = {
                "error": str(e),
                "message": "An error occurred while processing your request",
            }
            yield "event: error\n"
            yield f"data: {json.dumps(error_data, ensure_ascii=False)}\n\n"

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@router.post("/use-prompt-template", response_model=EnhancePromptResponse)
async def use_prompt_template(
    request: UseTemplateRequest,
    caller_id: Optional[str] = Depends(get_optional_user_id),
    service: EnhancementService = Depends(get_enhancement_service),
):
    try:
        request.user_id = request.user_id or caller_id
        return await service.use_template(request)
    except Exception as e:
        logger.error(f"Error in use-prompt-template: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/prompt-to-json", response_model=PromptJsonResponse)
async def prompt_to_json(
    request: PromptTextRequest,
    caller_id: Optional[str] = Depends(get_optional_user_id),
    service: EnhancementService = Depends(get_enhancement_service),
):
    try:
        return await service.prompt_to_json(
            request.prompt_text or "", request.user_id or caller_id, request.prompt_id
        )
    except Exception as e:
        logger.error(f"Error in prompt-to-json: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/generate-prompt-tags", response_model=PromptTagsResponse)
async def generate_prompt_tags(
    request: Dict[str, Any] = Body(...),
    service: EnhancementService = Depends(get_enhancement_service),
):
    """
    Generate three category/subcategory tags for a prompt.

    Request body: ``{"promptText": "..."}``
    """
    prompt_text = request.get("promptText", request.get("prompt_text"))
    if not prompt_text or not isinstance(prompt_text, str):
        raise HTTPException(status_code=400, detail="Invalid or missing prompt text")

    try:
        return await service.generate_tags(prompt_text)
    except Exception as e:
        logger.error(f"Error in generate-prompt-tags: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/youtube-transcript")
async def youtube_transcript(
    video_id: Optional[str] = Query(None, alias="videoId"),
    service: YouTubeService = Depends(get_youtube_service),
):
    """Video metadata used as prompt context."""
    try:
        if not video_id:
            raise HTTPException(status_code=400, detail="No video ID provided")
        return await service.get_video_context(video_id)
    except HTTPException:
        raise
    except PromptPilotError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error fetching YouTube context for {video_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/replace-variable", response_model=ReplaceVariableResponse)
async def replace_prompt_variable(request: ReplaceVariableRequest):
    """
    Swap a variable's value inside a final prompt.

    An empty ``oldValue`` fills the ``{{variableName}}`` placeholder and an
    empty ``newValue`` puts the placeholder back.
    """
    prompt_text = replace_variable(
        request.prompt_text, request.old_value, request.new_value, request.variable_name
    )
    return ReplaceVariableResponse(
        prompt_text=prompt_text, placeholders=extract_placeholders(prompt_text)
    )


@router.get("/pillar-suggestions", response_model=List[PillarSuggestion])
async def get_pillar_suggestions(
    pillar: str = Query(..., min_length=1),
    prompt: str = Query(""),
):
    """Canned follow-up questions with example answers for one pillar."""
    return pillar_suggestions(pillar, prompt)
