"""Repository for user profiles."""

import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import Profile
from ..exceptions import NotFoundError, UsernameTakenError

logger = logging.getLogger(__name__)


class ProfileRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, user_id: str) -> Profile:
        result = await self.db.execute(select(Profile).where(Profile.id == user_id))
        profile = result.scalar_one_or_none()
        if profile is None:
            raise NotFoundError(f"Profile {user_id} not found")
        return profile

    async def username_taken(self, username: str, exclude_user_id: Optional[str] = None) -> bool:
        """Case-insensitive check against every other profile."""
        query = select(Profile.id).where(func.lower(Profile.username) == username.lower())
        if exclude_user_id:
            query = query.where(Profile.id != exclude_user_id)
        result = await self.db.execute(query.limit(1))
        return result.scalar_one_or_none() is not None

    async def upsert(
        self,
        user_id: str,
        username: Optional[str] = None,
        avatar_url: Optional[str] = None,
    ) -> Profile:
        """
        Create or update a profile.

        Raises:
            UsernameTakenError: another profile already uses ``username``
        """
        if username is not None:
            username = username.strip()
            if await self.username_taken(username, exclude_user_id=user_id):
                raise UsernameTakenError(username)

        result = await self.db.execute(select(Profile).where(Profile.id == user_id))
        profile = result.scalar_one_or_none()
        if profile is None:
            profile = Profile(id=user_id)
            self.db.add(profile)

        if username is not None:
            profile.username = username
        if avatar_url is not None:
            profile.avatar_url = avatar_url

        await self.db.commit()
        await self.db.refresh(profile)
        return profile
