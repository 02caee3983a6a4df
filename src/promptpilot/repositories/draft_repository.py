"""Repository for prompt drafts."""

import logging
from datetime import timedelta
from typing import List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import PromptDraft
from ..database.models import utcnow
from ..exceptions import NotFoundError, PermissionDeniedError
from ..models.records import DraftSave
from ..models.variables import variables_to_json

logger = logging.getLogger(__name__)


def draft_title(data: DraftSave) -> str:
    """Explicit title, else the prompt's first line, else a placeholder."""
    if data.title:
        return data.title
    first_line = (data.prompt_text or "").split("\n")[0].strip()
    return first_line[:255] or "Untitled Draft"


class DraftRepository:
    """Drafts are soft-deleted; every read skips rows flagged ``is_deleted``."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _active(self, user_id: str):
        return select(PromptDraft).where(
            PromptDraft.user_id == user_id, PromptDraft.is_deleted.isnot(True)
        )

    async def get(self, draft_id: str, user_id: str) -> PromptDraft:
        result = await self.db.execute(
            select(PromptDraft).where(
                PromptDraft.id == draft_id, PromptDraft.is_deleted.isnot(True)
            )
        )
        draft = result.scalar_one_or_none()
        if draft is None:
            raise NotFoundError(f"Draft {draft_id} not found")
        if draft.user_id != user_id:
            raise PermissionDeniedError("You can only access your own drafts")
        return draft

    async def save(self, user_id: str, data: DraftSave) -> PromptDraft:
        """Update the given draft, or create a new one when no id is supplied."""
        draft = await self.get(data.id, user_id) if data.id else None
        if draft is None:
            draft = PromptDraft(user_id=user_id)
            self.db.add(draft)

        draft.title = draft_title(data)
        draft.prompt_text = data.prompt_text
        draft.master_command = data.master_command
        draft.primary_toggle = data.primary_toggle
        draft.secondary_toggle = data.secondary_toggle
        draft.variables = variables_to_json(data.variables)
        draft.current_step = data.current_step
        draft.is_private = data.is_private
        draft.updated_at = utcnow()

        await self.db.commit()
        await self.db.refresh(draft)
        return draft

    async def latest(self, user_id: str) -> Optional[PromptDraft]:
        result = await self.db.execute(
            self._active(user_id).order_by(PromptDraft.updated_at.desc()).limit(1)
        )
        return result.scalar_one_or_none()

    async def list(self, user_id: str, search: Optional[str] = None) -> List[PromptDraft]:
        """Active drafts, newest first, optionally filtered by title (case-insensitive)."""
        query = self._active(user_id)
        if search:
            query = query.where(func.lower(PromptDraft.title).contains(search.lower(), autoescape=True))
        result = await self.db.execute(query.order_by(PromptDraft.updated_at.desc()))
        return list(result.scalars().all())

    async def soft_delete(self, draft_id: str, user_id: str) -> None:
        draft = await self.get(draft_id, user_id)
        draft.is_deleted = True
        await self.db.commit()

    async def clear_all(self, user_id: str) -> int:
        result = await self.db.execute(
            update(PromptDraft)
            .where(PromptDraft.user_id == user_id, PromptDraft.is_deleted.isnot(True))
            .values(is_deleted=True)
        )
        await self.db.commit()
        return result.rowcount or 0

    async def purge_expired(self, ttl_days: int) -> int:
        """Hard-delete drafts not touched for ``ttl_days`` days."""
        cutoff = utcnow() - timedelta(days=ttl_days)
        result = await self.db.execute(delete(PromptDraft).where(PromptDraft.updated_at < cutoff))
        await self.db.commit()

        removed = result.rowcount or 0
        if removed:
            logger.info(f"Purged {removed} draft(s) older than {ttl_days} days")
        return removed
