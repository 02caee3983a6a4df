"""Database models."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Float, Integer, JSON, String, Text
from .base import Base


def utcnow() -> datetime:
    """Naive UTC timestamp; every datetime column stores UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    return str(uuid.uuid4())


class Profile(Base):
    """User profile; the id is the auth provider's user id."""

    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True)
    username = Column(String(255), nullable=True, unique=True)
    avatar_url = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)


class Prompt(Base):
    """A finalized (or draft-flagged) prompt owned by a user."""

    __tablename__ = "prompts"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), nullable=True, index=True)
    title = Column(String(255), nullable=False, default="Untitled Prompt")
    prompt_text = Column(Text, nullable=True)
    master_command = Column(Text, nullable=True)
    primary_toggle = Column(String(50), nullable=True)
    secondary_toggle = Column(String(50), nullable=True)
    variables = Column(JSON, nullable=True)
    saved_variables = Column(JSON, nullable=True)
    tags = Column(JSON, nullable=True)
    json_structure = Column(JSON, nullable=True)
    current_step = Column(Integer, nullable=True)
    is_draft = Column(Boolean, nullable=True, default=False)
    is_private = Column(Boolean, nullable=True, default=False)
    created_at = Column(DateTime, nullable=True, default=utcnow)
    updated_at = Column(DateTime, nullable=True, default=utcnow, onupdate=utcnow)


class PromptDraft(Base):
    """Work-in-progress prompt saved while the user moves through the steps."""

    __tablename__ = "prompt_drafts"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), nullable=False, index=True)
    title = Column(String(255), nullable=True)
    prompt_text = Column(Text, nullable=True)
    master_command = Column(Text, nullable=True)
    primary_toggle = Column(String(50), nullable=True)
    secondary_toggle = Column(String(50), nullable=True)
    variables = Column(JSON, nullable=True)
    current_step = Column(Integer, nullable=True)
    is_private = Column(Boolean, nullable=True, default=False)
    is_deleted = Column(Boolean, nullable=True, default=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)


class PromptTemplate(Base):
    """Enhancement template made of an ordered list of pillars."""

    __tablename__ = "prompt_templates"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), nullable=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    pillars = Column(JSON, nullable=False, default=list)
    system_prefix = Column(Text, nullable=True)
    temperature = Column(Float, nullable=True)
    max_chars = Column(Integer, nullable=True)
    is_default = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)


class AIModel(Base):
    """Metadata about a model offered to users."""

    __tablename__ = "ai_models"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    provider = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    strengths = Column(JSON, nullable=True)
    limitations = Column(JSON, nullable=True)
    is_deleted = Column(Boolean, nullable=True)
    created_at = Column(DateTime, nullable=True, default=utcnow)
    updated_at = Column(DateTime, nullable=True, default=utcnow, onupdate=utcnow)


class TokenUsage(Base):
    """One chat-completion call billed to a user."""

    __tablename__ = "token_usage"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), nullable=False, index=True)
    prompt_id = Column(String(36), nullable=True)
    model = Column(String(255), nullable=False)
    step = Column(Integer, nullable=False)
    prompt_tokens = Column(Integer, nullable=False, default=0)
    completion_tokens = Column(Integer, nullable=False, default=0)
    prompt_cost = Column(Float, nullable=False, default=0.0)
    completion_cost = Column(Float, nullable=False, default=0.0)
    total_cost = Column(Float, nullable=False, default=0.0)
    created_at = Column(DateTime, nullable=False, default=utcnow)
