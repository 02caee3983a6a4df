"""Data models for PromptPilot."""

from .analysis import (
    AnalyzePromptRequest,
    AnalyzePromptResponse,
    EnhancePromptRequest,
    EnhancePromptResponse,
    ImageData,
    PromptJsonResponse,
    PromptTag,
    PromptTagsResponse,
    PromptTextRequest,
    Question,
    SmartContext,
    TechnicalTerm,
    TemplatePillar,
    TemplateSpec,
    Usage,
    UseTemplateRequest,
    Variable,
    WebsiteData,
)
from .variables import json_to_variables, variables_to_json

__all__ = [
    "AnalyzePromptRequest",
    "AnalyzePromptResponse",
    "EnhancePromptRequest",
    "EnhancePromptResponse",
    "ImageData",
    "PromptJsonResponse",
    "PromptTag",
    "PromptTagsResponse",
    "PromptTextRequest",
    "Question",
    "SmartContext",
    "TechnicalTerm",
    "TemplatePillar",
    "TemplateSpec",
    "Usage",
    "UseTemplateRequest",
    "Variable",
    "WebsiteData",
    "json_to_variables",
    "variables_to_json",
]
