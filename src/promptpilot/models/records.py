"""Models for the CRUD endpoints (prompts, drafts, templates, profiles, AI models)."""

from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import Field, field_validator

from .analysis import CamelModel, PromptTag, TemplatePillar, Variable
from .variables import json_to_variables


class PromptCreate(CamelModel):
    title: Optional[str] = None
    prompt_text: str = Field(..., alias="promptText")
    master_command: str = Field(default="", alias="masterCommand")
    primary_toggle: Optional[str] = Field(None, alias="primaryToggle")
    secondary_toggle: Optional[str] = Field(None, alias="secondaryToggle")
    variables: List[Variable] = Field(default_factory=list)
    tags: List[PromptTag] = Field(default_factory=list)
    json_structure: Optional[Dict[str, Any]] = Field(None, alias="jsonStructure")
    is_private: bool = Field(default=False, alias="isPrivate")


class PromptUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1)
    tags: Optional[List[PromptTag]] = None
    json_structure: Optional[Dict[str, Any]] = Field(None, alias="jsonStructure")
    is_private: Optional[bool] = Field(None, alias="isPrivate")


class PromptOut(CamelModel):
    id: str
    title: str
    prompt_text: str = Field(default="", alias="promptText")
    master_command: str = Field(default="", alias="masterCommand")
    primary_toggle: Optional[str] = Field(None, alias="primaryToggle")
    secondary_toggle: Optional[str] = Field(None, alias="secondaryToggle")
    variables: List[Variable] = Field(default_factory=list)
    tags: List[PromptTag] = Field(default_factory=list)
    json_structure: Optional[Dict[str, Any]] = Field(None, alias="jsonStructure")
    is_private: bool = Field(default=False, alias="isPrivate")
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    @classmethod
    def from_row(cls, row) -> "PromptOut":
        return cls(
            id=row.id,
            title=row.title or "Untitled Prompt",
            prompt_text=row.prompt_text or "",
            master_command=row.master_command or "",
            primary_toggle=row.primary_toggle,
            secondary_toggle=row.secondary_toggle,
            variables=json_to_variables(row.variables),
            tags=row.tags or [],
            json_structure=row.json_structure,
            is_private=bool(row.is_private),
            created_at=row.created_at,
        )


class DraftSave(CamelModel):
    id: Optional[str] = None
    title: Optional[str] = None
    prompt_text: str = Field(default="", alias="promptText")
    master_command: str = Field(default="", alias="masterCommand")
    primary_toggle: Optional[str] = Field(None, alias="primaryToggle")
    secondary_toggle: Optional[str] = Field(None, alias="secondaryToggle")
    variables: List[Variable] = Field(default_factory=list)
    current_step: int = Field(default=1, alias="currentStep", ge=1)
    is_private: bool = Field(default=False, alias="isPrivate")


class DraftOut(CamelModel):
    id: str
    title: str
    prompt_text: str = Field(default="", alias="promptText")
    master_command: str = Field(default="", alias="masterCommand")
    primary_toggle: Optional[str] = Field(None, alias="primaryToggle")
    secondary_toggle: Optional[str] = Field(None, alias="secondaryToggle")
    variables: List[Variable] = Field(default_factory=list)
    current_step: int = Field(default=1, alias="currentStep")
    is_private: bool = Field(default=False, alias="isPrivate")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    @classmethod
    def from_row(cls, row) -> "DraftOut":
        return cls(
            id=row.id,
            title=row.title or "Untitled Draft",
            prompt_text=row.prompt_text or "",
            master_command=row.master_command or "",
            primary_toggle=row.primary_toggle,
            secondary_toggle=row.secondary_toggle,
            variables=json_to_variables(row.variables),
            current_step=row.current_step or 1,
            is_private=bool(row.is_private),
            updated_at=row.updated_at,
        )


class TemplateCreate(CamelModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    pillars: List[TemplatePillar] = Field(default_factory=list)
    system_prefix: Optional[str] = Field(None, alias="systemPrefix")
    temperature: Optional[float] = Field(None, ge=0, le=2)
    max_chars: Optional[int] = Field(None, alias="maxChars", gt=0)


class TemplateUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    pillars: Optional[List[TemplatePillar]] = None
    system_prefix: Optional[str] = Field(None, alias="systemPrefix")
    temperature: Optional[float] = Field(None, ge=0, le=2)
    max_chars: Optional[int] = Field(None, alias="maxChars", gt=0)


class TemplateOut(CamelModel):
    id: str
    title: str
    description: Optional[str] = None
    pillars: List[TemplatePillar] = Field(default_factory=list)
    system_prefix: Optional[str] = Field(None, alias="systemPrefix")
    temperature: Optional[float] = None
    max_chars: Optional[int] = Field(None, alias="maxChars")
    is_default: bool = Field(default=False, alias="isDefault")
    user_id: Optional[str] = Field(None, alias="userId")

    @classmethod
    def from_row(cls, row) -> "TemplateOut":
        return cls(
            id=row.id,
            title=row.title,
            description=row.description,
            pillars=row.pillars or [],
            system_prefix=row.system_prefix,
            temperature=row.temperature,
            max_chars=row.max_chars,
            is_default=bool(row.is_default),
            user_id=row.user_id,
        )


class ProfileUpdate(CamelModel):
    username: Optional[str] = Field(None, min_length=3, max_length=50)
    avatar_url: Optional[str] = Field(None, alias="avatarUrl")

    @field_validator("username", mode="before")
    @classmethod
    def strip_username(cls, value):
        return value.strip() if isinstance(value, str) else value


class ProfileOut(CamelModel):
    id: str
    username: Optional[str] = None
    avatar_url: Optional[str] = Field(None, alias="avatarUrl")

    @classmethod
    def from_row(cls, row) -> "ProfileOut":
        return cls(id=row.id, username=row.username, avatar_url=row.avatar_url)


class AIModelCreate(CamelModel):
    name: str = Field(..., min_length=1)
    provider: Optional[str] = None
    description: Optional[str] = None
    strengths: List[str] = Field(default_factory=list)
    limitations: List[str] = Field(default_factory=list)


class AIModelUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1)
    provider: Optional[str] = None
    description: Optional[str] = None
    strengths: Optional[List[str]] = None
    limitations: Optional[List[str]] = None


class AIModelOut(CamelModel):
    id: str
    name: str
    provider: Optional[str] = None
    description: Optional[str] = None
    strengths: List[str] = Field(default_factory=list)
    limitations: List[str] = Field(default_factory=list)
    is_deleted: bool = Field(default=False, alias="isDeleted")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    @classmethod
    def from_row(cls, row) -> "AIModelOut":
        return cls(
            id=row.id,
            name=row.name,
            provider=row.provider,
            description=row.description,
            strengths=row.strengths or [],
            limitations=row.limitations or [],
            is_deleted=bool(row.is_deleted),
            updated_at=row.updated_at,
        )
