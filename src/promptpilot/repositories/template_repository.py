"""Repository for prompt templates."""

import logging
from typing import List, Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import PromptTemplate
from ..exceptions import NotFoundError, PermissionDeniedError
from ..models.records import TemplateCreate, TemplateUpdate

logger = logging.getLogger(__name__)


def _pillars_json(pillars) -> list:
    """Store pillars ordered, with ``order`` matching the list position."""
    ordered = sorted(pillars, key=lambda p: p.order)
    stored = []
    for index, pillar in enumerate(ordered):
        stored.append(
            {
                "id": pillar.id or f"pillar-{index + 1}",
                "title": pillar.title,
                "description": pillar.description,
                "order": index,
            }
        )
    return stored


class TemplateRepository:
    """Default templates are shared and read-only; the rest belong to one user."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_for_user(self, user_id: Optional[str]) -> List[PromptTemplate]:
        """Defaults first, then the caller's own templates, each group by title."""
        condition = PromptTemplate.is_default.is_(True)
        if user_id:
            condition = or_(condition, PromptTemplate.user_id == user_id)
        result = await self.db.execute(
            select(PromptTemplate)
            .where(condition)
            .order_by(PromptTemplate.is_default.desc(), PromptTemplate.title)
        )
        return list(result.scalars().all())

    async def get(self, template_id: str, user_id: Optional[str] = None) -> PromptTemplate:
        result = await self.db.execute(
            select(PromptTemplate).where(PromptTemplate.id == template_id)
        )
        template = result.scalar_one_or_none()
        if template is None:
            raise NotFoundError(f"Template {template_id} not found")
        if not template.is_default and user_id is not None and template.user_id != user_id:
            raise PermissionDeniedError("You can only use your own templates")
        return template

    async def _get_editable(self, template_id: str, user_id: str) -> PromptTemplate:
        template = await self.get(template_id, user_id)
        if template.is_default:
            raise PermissionDeniedError("Default templates cannot be modified")
        return template

    async def create(self, user_id: str, data: TemplateCreate) -> PromptTemplate:
        template = PromptTemplate(
            user_id=user_id,
            title=data.title,
            description=data.description,
            pillars=_pillars_json(data.pillars),
            system_prefix=data.system_prefix,
            temperature=data.temperature,
            max_chars=data.max_chars,
            is_default=False,
        )
        self.db.add(template)
        await self.db.commit()
        await self.db.refresh(template)

        logger.info(f"Created template {template.id} for user {user_id}")
        return template

    async def update(self, template_id: str, user_id: str, data: TemplateUpdate) -> PromptTemplate:
        template = await self._get_editable(template_id, user_id)

        update_dict = data.model_dump(exclude_unset=True, exclude={"pillars"})
        for field, value in update_dict.items():
            setattr(template, field, value)
        if data.pillars is not None:
            template.pillars = _pillars_json(data.pillars)

        await self.db.commit()
        await self.db.refresh(template)
        return template

    async def duplicate(self, template_id: str, user_id: str) -> PromptTemplate:
        source = await self.get(template_id, user_id)
        copy = PromptTemplate(
            user_id=user_id,
            title=f"{source.title} (Copy)",
            description=source.description,
            pillars=list(source.pillars or []),
            system_prefix=source.system_prefix,
            temperature=source.temperature,
            max_chars=source.max_chars,
            is_default=False,
        )
        self.db.add(copy)
        await self.db.commit()
        await self.db.refresh(copy)
        return copy

    async def delete(self, template_id: str, user_id: str) -> None:
        template = await self._get_editable(template_id, user_id)
        await self.db.delete(template)
        await self.db.commit()

        logger.info(f"Deleted template {template_id}")
