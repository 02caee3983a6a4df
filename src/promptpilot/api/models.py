"""AI model catalogue endpoints."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..exceptions import PromptPilotError
from ..models.records import AIModelCreate, AIModelOut, AIModelUpdate
from ..repositories import AIModelRepository
from ..services.model_service import ModelService
from .deps import get_model_service, to_http_exception

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/models", tags=["models"])


@router.get("/openai")
async def list_openai_models(service: ModelService = Depends(get_model_service)):
    try:
        models = await service.list_openai_models()
        return {"models": models}
    except Exception as e:
        logger.error(f"Error fetching OpenAI models: {e}")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to fetch OpenAI models", "message": str(e)},
        )


@router.post("/enhance")
async def enhance_models(service: ModelService = Depends(get_model_service)):
    """Ask the model for description, strengths and limitations of every model."""
    try:
        return await service.enhance_models()
    except PromptPilotError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error in enhance-ai-models: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/update")
async def update_models(
    x_force_update: Optional[str] = Header(None),
    service: ModelService = Depends(get_model_service),
):
    """Refresh the catalogue; skipped within the update interval unless ``X-Force-Update: true``."""
    try:
        return await service.update_models(force=x_force_update == "true")
    except Exception as e:
        logger.error(f"Error in update-ai-models: {e}")
        return JSONResponse(status_code=500, content={"success": False, "error": str(e)})


@router.post("/test-connection")
async def test_connection(service: ModelService = Depends(get_model_service)):
    return await service.test_connection()


@router.get("", response_model=List[AIModelOut])
async def list_models(
    search: Optional[str] = None,
    provider: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
):
    try:
        models = await AIModelRepository(db).list(search, provider)
        return [AIModelOut.from_row(m) for m in models]
    except Exception as e:
        logger.error(f"Error listing AI models: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/deleted", response_model=List[AIModelOut])
async def list_deleted_models(db: AsyncSession = Depends(get_db)):
    try:
        return [AIModelOut.from_row(m) for m in await AIModelRepository(db).list_deleted()]
    except Exception as e:
        logger.error(f"Error listing deleted AI models: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("", response_model=AIModelOut, status_code=201)
async def create_model(data: AIModelCreate, db: AsyncSession = Depends(get_db)):
    try:
        return AIModelOut.from_row(await AIModelRepository(db).create(data))
    except Exception as e:
        logger.error(f"Error creating AI model: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/{model_id}", response_model=AIModelOut)
async def get_model(model_id: str, db: AsyncSession = Depends(get_db)):
    try:
        return AIModelOut.from_row(await AIModelRepository(db).get(model_id))
    except PromptPilotError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error fetching AI model {model_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.patch("/{model_id}", response_model=AIModelOut)
async def update_model(model_id: str, data: AIModelUpdate, db: AsyncSession = Depends(get_db)):
    try:
        return AIModelOut.from_row(await AIModelRepository(db).update(model_id, data))
    except PromptPilotError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error updating AI model {model_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/{model_id}/restore", response_model=AIModelOut)
async def restore_model(model_id: str, db: AsyncSession = Depends(get_db)):
    try:
        return AIModelOut.from_row(await AIModelRepository(db).restore(model_id))
    except PromptPilotError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error restoring AI model {model_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/{model_id}", status_code=204)
async def delete_model(model_id: str, db: AsyncSession = Depends(get_db)):
    try:
        await AIModelRepository(db).soft_delete(model_id)
    except PromptPilotError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error deleting AI model {model_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
