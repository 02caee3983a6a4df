"""Saved prompt endpoints."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..exceptions import PromptPilotError
from ..models.records import PromptCreate, PromptOut, PromptUpdate
from ..repositories import PromptRepository
from .deps import get_optional_user_id, get_user_id, to_http_exception

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/prompts", tags=["prompts"])


@router.get("", response_model=List[PromptOut])
async def list_prompts(
    include_drafts: bool = False,
    user_id: str = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
):
    try:
        prompts = await PromptRepository(db).list_for_user(user_id, include_drafts)
        return [PromptOut.from_row(p) for p in prompts]
    except Exception as e:
        logger.error(f"Error listing prompts for {user_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("", response_model=PromptOut, status_code=201)
async def create_prompt(
    data: PromptCreate,
    user_id: str = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
):
    try:
        return PromptOut.from_row(await PromptRepository(db).create(user_id, data))
    except Exception as e:
        logger.error(f"Error creating prompt: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/{prompt_id}", response_model=PromptOut)
async def get_prompt(
    prompt_id: str,
    user_id: Optional[str] = Depends(get_optional_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Public prompts are readable by anyone; private ones only by their owner."""
    try:
        return PromptOut.from_row(await PromptRepository(db).get(prompt_id, user_id))
    except PromptPilotError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error fetching prompt {prompt_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.patch("/{prompt_id}", response_model=PromptOut)
async def update_prompt(
    prompt_id: str,
    data: PromptUpdate,
    user_id: str = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
):
    try:
        return PromptOut.from_row(await PromptRepository(db).update(prompt_id, user_id, data))
    except PromptPilotError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error updating prompt {prompt_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/{prompt_id}/rename", response_model=PromptOut)
async def rename_prompt(
    prompt_id: str,
    title: str = Body(..., embed=True, min_length=1),
    user_id: str = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
):
    try:
        return PromptOut.from_row(await PromptRepository(db).rename(prompt_id, user_id, title))
    except PromptPilotError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error renaming prompt {prompt_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/{prompt_id}/duplicate", response_model=PromptOut, status_code=201)
async def duplicate_prompt(
    prompt_id: str,
    user_id: str = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
):
    try:
        return PromptOut.from_row(await PromptRepository(db).duplicate(prompt_id, user_id))
    except PromptPilotError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error duplicating prompt {prompt_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/{prompt_id}", status_code=204)
async def delete_prompt(
    prompt_id: str,
    user_id: str = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
):
    try:
        await PromptRepository(db).delete(prompt_id, user_id)
    except PromptPilotError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error deleting prompt {prompt_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
