"""Database module for PromptPilot."""

from .base import Base, get_async_engine, get_async_session, get_db
from .models import AIModel, Profile, Prompt, PromptDraft, PromptTemplate, TokenUsage
from .enums import PrimaryToggleEnum, SecondaryToggleEnum, UsageStepEnum

__all__ = [
    "Base",
    "get_async_engine",
    "get_async_session",
    "get_db",
    "AIModel",
    "Profile",
    "Prompt",
    "PromptDraft",
    "PromptTemplate",
    "TokenUsage",
    "PrimaryToggleEnum",
    "SecondaryToggleEnum",
    "UsageStepEnum",
]
