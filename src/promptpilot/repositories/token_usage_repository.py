"""Repository for token usage rows."""

from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import TokenUsage


class TokenUsageRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def record(self, row: TokenUsage) -> TokenUsage:
        self.db.add(row)
        await self.db.commit()
        await self.db.refresh(row)
        return row

    async def for_user(self, user_id: str) -> List[TokenUsage]:
        result = await self.db.execute(
            select(TokenUsage)
            .where(TokenUsage.user_id == user_id)
            .order_by(TokenUsage.created_at)
        )
        return list(result.scalars().all())

    async def all(self) -> List[TokenUsage]:
        result = await self.db.execute(select(TokenUsage).order_by(TokenUsage.created_at))
        return list(result.scalars().all())
