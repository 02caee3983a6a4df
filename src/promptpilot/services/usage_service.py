"""Token usage recording and per-user billing statistics."""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import Prompt, PromptDraft, TokenUsage
from ..repositories import TokenUsageRepository

logger = logging.getLogger(__name__)

# USD per 1000 tokens
MODEL_PRICING = {
    "gpt-4o": {"prompt": 2.50, "completion": 10.00},
    "o3-mini": {"prompt": 1.10, "completion": 4.40},
    "gpt-3.5-turbo": {"prompt": 1.50, "completion": 2.00},
    "default": {"prompt": 2.50, "completion": 10.00},
}


def calculate_cost(model: str, prompt_tokens: int, completion_tokens: int) -> Dict[str, float]:
    pricing = MODEL_PRICING.get(model, MODEL_PRICING["default"])
    prompt_cost = prompt_tokens / 1000 * pricing["prompt"]
    completion_cost = completion_tokens / 1000 * pricing["completion"]
    return {
        "prompt_cost": prompt_cost,
        "completion_cost": completion_cost,
        "total_cost": prompt_cost + completion_cost,
    }


def _empty_stats() -> Dict[str, Any]:
    return {
        "prompts_count": 0,
        "drafts_count": 0,
        "total_count": 0,
        "model_usage": {},
        "total_cost": 0.0,
    }


def _empty_model_usage() -> Dict[str, Any]:
    return {
        "prompt_tokens": 0,
        "completion_tokens": 0,
        "total_tokens": 0,
        "prompt_cost": 0.0,
        "completion_cost": 0.0,
        "total_cost": 0.0,
        "usage_count": 0,
    }


def _add_usage(stats: Dict[str, Any], row: TokenUsage) -> None:
    model_name = row.model or "unknown"
    model_usage = stats["model_usage"].setdefault(model_name, _empty_model_usage())

    prompt_tokens = row.prompt_tokens or 0
    completion_tokens = row.completion_tokens or 0
    costs = calculate_cost(model_name, prompt_tokens, completion_tokens)

    model_usage["prompt_tokens"] += prompt_tokens
    model_usage["completion_tokens"] += completion_tokens
    model_usage["total_tokens"] += prompt_tokens + completion_tokens
    model_usage["usage_count"] += 1
    model_usage["prompt_cost"] += costs["prompt_cost"]
    model_usage["completion_cost"] += costs["completion_cost"]
    model_usage["total_cost"] += costs["total_cost"]
    stats["total_cost"] += costs["total_cost"]


def _format_stats(user_id: str, stats: Dict[str, Any]) -> Dict[str, Any]:
    model_usage = stats["model_usage"]
    return {
        "user_id": user_id,
        "prompts_count": stats["prompts_count"],
        "drafts_count": stats["drafts_count"],
        "total_count": stats["total_count"],
        "total_cost": round(stats["total_cost"], 6),
        "model_usage": model_usage,
        "total_prompt_tokens": sum(m["prompt_tokens"] for m in model_usage.values()),
        "total_completion_tokens": sum(m["completion_tokens"] for m in model_usage.values()),
        "total_tokens": sum(m["total_tokens"] for m in model_usage.values()),
    }


class UsageService:
    """Records completion usage and aggregates it per user."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repository = TokenUsageRepository(db)

    async def record_usage(
        self,
        user_id: Optional[str],
        prompt_id: Optional[str],
        model: str,
        step: int,
        usage: Dict[str, int],
    ) -> Optional[TokenUsage]:
        """Store one usage row; nothing is recorded for anonymous callers."""
        if not user_id:
            return None

        prompt_tokens = usage.get("prompt_tokens", 0) or 0
        completion_tokens = usage.get("completion_tokens", 0) or 0
        costs = calculate_cost(model, prompt_tokens, completion_tokens)

        try:
            return await self.repository.record(
                TokenUsage(
                    user_id=user_id,
                    prompt_id=prompt_id,
                    model=model,
                    step=step,
                    prompt_tokens=prompt_tokens,
                    completion_tokens=completion_tokens,
                    **costs,
                )
            )
        except Exception as e:
            # Usage accounting never fails the prompt function itself
            logger.error(f"Error recording token usage for user {user_id}: {e}")
            await self.db.rollback()
            return None

    async def prompt_counts(self) -> List[Dict[str, Any]]:
        """Prompt, draft and token statistics for every user with activity."""
        user_stats: Dict[str, Dict[str, Any]] = {}

        prompts = await self.db.execute(select(Prompt.user_id, Prompt.is_draft))
        for user_id, is_draft in prompts.all():
            if not user_id:
                continue
            stats = user_stats.setdefault(user_id, _empty_stats())
            if is_draft:
                stats["drafts_count"] += 1
            else:
                stats["prompts_count"] += 1
            stats["total_count"] += 1

        drafts = await self.db.execute(select(PromptDraft.user_id))
        for (user_id,) in drafts.all():
            if not user_id:
                continue
            stats = user_stats.setdefault(user_id, _empty_stats())
            stats["drafts_count"] += 1
            stats["total_count"] += 1

        for row in await self.repository.all():
            if row.user_id:
                _add_usage(user_stats.setdefault(row.user_id, _empty_stats()), row)

        logger.info(f"Fetched usage stats for {len(user_stats)} users")
        return [_format_stats(user_id, stats) for user_id, stats in user_stats.items()]

    async def user_summary(self, user_id: str) -> Dict[str, Any]:
        """Token and cost totals for one user."""
        stats = _empty_stats()
        for row in await self.repository.for_user(user_id):
            _add_usage(stats, row)

        summary = _format_stats(user_id, stats)
        for key in ("prompts_count", "drafts_count", "total_count"):
            summary.pop(key)
        return summary
