"""Repository for the AI model catalogue."""

import logging
from collections import Counter
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import AIModel
from ..database.models import utcnow
from ..exceptions import NotFoundError
from ..models.records import AIModelCreate, AIModelUpdate

logger = logging.getLogger(__name__)


class AIModelRepository:
    """Rows are soft-deleted; a NULL ``is_deleted`` counts as active."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list(
        self, search: Optional[str] = None, provider: Optional[str] = None
    ) -> List[AIModel]:
        query = select(AIModel).where(AIModel.is_deleted.isnot(True))
        if search:
            query = query.where(func.lower(AIModel.name).contains(search.lower(), autoescape=True))
        if provider:
            query = query.where(AIModel.provider == provider)
        result = await self.db.execute(query.order_by(AIModel.name))
        return list(result.scalars().all())

    async def list_deleted(self) -> List[AIModel]:
        result = await self.db.execute(
            select(AIModel).where(AIModel.is_deleted.is_(True)).order_by(AIModel.name)
        )
        return list(result.scalars().all())

    async def get(self, model_id: str, include_deleted: bool = False) -> AIModel:
        query = select(AIModel).where(AIModel.id == model_id)
        if not include_deleted:
            query = query.where(AIModel.is_deleted.isnot(True))
        result = await self.db.execute(query)
        model = result.scalar_one_or_none()
        if model is None:
            raise NotFoundError(f"Model {model_id} not found")
        return model

    async def create(self, data: AIModelCreate) -> AIModel:
        model = AIModel(
            name=data.name,
            provider=data.provider,
            description=data.description,
            strengths=data.strengths,
            limitations=data.limitations,
            is_deleted=False,
        )
        self.db.add(model)
        await self.db.commit()
        await self.db.refresh(model)

        logger.info(f"Created AI model {model.name}")
        return model

    async def update(self, model_id: str, data: AIModelUpdate) -> AIModel:
        model = await self.get(model_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(model, field, value)
        await self.db.commit()
        await self.db.refresh(model)
        return model

    async def set_details(
        self, model_id: str, description: str, strengths: List[str], limitations: List[str]
    ) -> None:
        """Store AI-written metadata for one model."""
        model = await self.get(model_id)
        model.description = description
        model.strengths = strengths
        model.limitations = limitations
        model.updated_at = utcnow()
        await self.db.commit()

    async def soft_delete(self, model_id: str) -> None:
        model = await self.get(model_id)
        model.is_deleted = True
        await self.db.commit()

        logger.info(f"Soft-deleted AI model {model_id}")

    async def restore(self, model_id: str) -> AIModel:
        model = await self.get(model_id, include_deleted=True)
        model.is_deleted = False
        await self.db.commit()
        await self.db.refresh(model)
        return model

    async def last_updated_at(self) -> Optional[datetime]:
        result = await self.db.execute(
            select(func.max(AIModel.updated_at)).where(AIModel.is_deleted.isnot(True))
        )
        return result.scalar_one_or_none()

    async def provider_stats(self) -> Dict[str, int]:
        """Count of active models per provider; a missing provider counts as ``Unknown``."""
        models = await self.list()
        return dict(Counter(model.provider or "Unknown" for model in models))
