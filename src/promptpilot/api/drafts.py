"""Draft endpoints."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..database import get_db
from ..exceptions import PromptPilotError
from ..models.records import DraftOut, DraftSave
from ..repositories import DraftRepository
from .deps import get_user_id, to_http_exception

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/drafts", tags=["drafts"])


@router.get("", response_model=List[DraftOut])
async def list_drafts(
    search: Optional[str] = None,
    user_id: str = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Active drafts, newest first; ``search`` matches the title case-insensitively."""
    try:
        drafts = await DraftRepository(db).list(user_id, search)
        return [DraftOut.from_row(d) for d in drafts]
    except Exception as e:
        logger.error(f"Error listing drafts for {user_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("", response_model=DraftOut)
async def save_draft(
    data: DraftSave,
    user_id: str = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
):
    try:
        return DraftOut.from_row(await DraftRepository(db).save(user_id, data))
    except PromptPilotError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error saving draft: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/latest", response_model=Optional[DraftOut])
async def latest_draft(
    user_id: str = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
):
    try:
        draft = await DraftRepository(db).latest(user_id)
        return DraftOut.from_row(draft) if draft else None
    except Exception as e:
        logger.error(f"Error fetching latest draft for {user_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/purge")
async def purge_expired_drafts(
    user_id: str = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
):
    """
    Hard-delete drafts (every user's) untouched for longer than the configured TTL.

    Meant for operators; it still requires a caller id.
    """
    try:
        logger.info(f"Draft purge requested by {user_id}")
        removed = await DraftRepository(db).purge_expired(settings.draft_ttl_days)
        return {"removed": removed, "ttlDays": settings.draft_ttl_days}
    except Exception as e:
        logger.error(f"Error purging drafts: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("", status_code=200)
async def clear_drafts(
    user_id: str = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
):
    try:
        cleared = await DraftRepository(db).clear_all(user_id)
        return {"cleared": cleared}
    except Exception as e:
        logger.error(f"Error clearing drafts for {user_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/{draft_id}", response_model=DraftOut)
async def get_draft(
    draft_id: str,
    user_id: str = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
):
    try:
        return DraftOut.from_row(await DraftRepository(db).get(draft_id, user_id))
    except PromptPilotError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error fetching draft {draft_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/{draft_id}", status_code=204)
async def delete_draft(
    draft_id: str,
    user_id: str = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
):
    try:
        await DraftRepository(db).soft_delete(draft_id, user_id)
    except PromptPilotError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error deleting draft {draft_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
