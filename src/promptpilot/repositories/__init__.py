"""Repositories wrapping the database tables."""

from .draft_repository import DraftRepository
from .model_repository import AIModelRepository
from .profile_repository import ProfileRepository
from .prompt_repository import PromptRepository
from .template_repository import TemplateRepository
from .token_usage_repository import TokenUsageRepository

__all__ = [
    "AIModelRepository",
    "DraftRepository",
    "ProfileRepository",
    "PromptRepository",
    "TemplateRepository",
    "TokenUsageRepository",
]
