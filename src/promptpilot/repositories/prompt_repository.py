"""Repository for saved prompts."""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import Prompt
from ..exceptions import NotFoundError, PermissionDeniedError
from ..models.records import PromptCreate, PromptUpdate
from ..models.variables import variables_to_json

logger = logging.getLogger(__name__)


class PromptRepository:
    """Repository for managing a user's prompts in database."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get_row(self, prompt_id: str) -> Prompt:
        result = await self.db.execute(select(Prompt).where(Prompt.id == prompt_id))
        prompt = result.scalar_one_or_none()
        if prompt is None:
            raise NotFoundError(f"Prompt {prompt_id} not found")
        return prompt

    async def _get_owned(self, prompt_id: str, user_id: str) -> Prompt:
        prompt = await self._get_row(prompt_id)
        if prompt.user_id != user_id:
            raise PermissionDeniedError("You can only change your own prompts")
        return prompt

    async def list_for_user(self, user_id: str, include_drafts: bool = False) -> List[Prompt]:
        query = select(Prompt).where(Prompt.user_id == user_id)
        if not include_drafts:
            query = query.where(Prompt.is_draft.isnot(True))
        result = await self.db.execute(query.order_by(Prompt.created_at.desc()))
        return list(result.scalars().all())

    async def get(self, prompt_id: str, user_id: Optional[str] = None) -> Prompt:
        """
        Fetch a prompt.

        Private prompts are only visible to their owner.
        """
        prompt = await self._get_row(prompt_id)
        if prompt.is_private and prompt.user_id != user_id:
            raise PermissionDeniedError("This prompt is private")
        return prompt

    async def create(self, user_id: str, data: PromptCreate) -> Prompt:
        prompt = Prompt(
            user_id=user_id,
            title=data.title or "Untitled Prompt",
            prompt_text=data.prompt_text,
            master_command=data.master_command,
            primary_toggle=data.primary_toggle,
            secondary_toggle=data.secondary_toggle,
            variables=variables_to_json(data.variables),
            tags=[tag.model_dump() for tag in data.tags],
            json_structure=data.json_structure,
            is_draft=False,
            is_private=data.is_private,
        )
        self.db.add(prompt)
        await self.db.commit()
        await self.db.refresh(prompt)

        logger.info(f"Created prompt {prompt.id} for user {user_id}")
        return prompt

    async def rename(self, prompt_id: str, user_id: str, title: str) -> Prompt:
        prompt = await self._get_owned(prompt_id, user_id)
        prompt.title = title
        await self.db.commit()
        await self.db.refresh(prompt)
        return prompt

    async def update(self, prompt_id: str, user_id: str, data: PromptUpdate) -> Prompt:
        prompt = await self._get_owned(prompt_id, user_id)

        update_dict = data.model_dump(exclude_unset=True)
        for field, value in update_dict.items():
            if value is not None:
                setattr(prompt, field, value)

        await self.db.commit()
        await self.db.refresh(prompt)

        logger.info(f"Updated prompt {prompt_id}")
        return prompt

    async def duplicate(self, prompt_id: str, user_id: str) -> Prompt:
        source = await self.get(prompt_id, user_id)
        copy = Prompt(
            user_id=user_id,
            title=f"{source.title} (Copy)",
            prompt_text=source.prompt_text,
            master_command=source.master_command,
            primary_toggle=source.primary_toggle,
            secondary_toggle=source.secondary_toggle,
            variables=source.variables,
            saved_variables=source.saved_variables,
            tags=source.tags,
            json_structure=source.json_structure,
            is_draft=False,
            is_private=source.is_private,
        )
        self.db.add(copy)
        await self.db.commit()
        await self.db.refresh(copy)
        return copy

    async def delete(self, prompt_id: str, user_id: str) -> None:
        prompt = await self._get_owned(prompt_id, user_id)
        await self.db.delete(prompt)
        await self.db.commit()

        logger.info(f"Deleted prompt {prompt_id}")
