"""Profile endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..exceptions import PromptPilotError
from ..models.records import ProfileOut, ProfileUpdate
from ..repositories import ProfileRepository
from .deps import get_user_id, to_http_exception

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.get("/{profile_id}", response_model=ProfileOut)
async def get_profile(profile_id: str, db: AsyncSession = Depends(get_db)):
    try:
        return ProfileOut.from_row(await ProfileRepository(db).get(profile_id))
    except PromptPilotError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error fetching profile {profile_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.put("/{profile_id}", response_model=ProfileOut)
async def save_profile(
    profile_id: str,
    data: ProfileUpdate,
    user_id: str = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
):
    """
    Create or update a profile.

    Returns 409 when the username is already used by another profile.
    """
    if profile_id != user_id:
        raise HTTPException(status_code=403, detail="You can only update your own profile")

    try:
        profile = await ProfileRepository(db).upsert(profile_id, data.username, data.avatar_url)
        return ProfileOut.from_row(profile)
    except PromptPilotError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error saving profile {profile_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
