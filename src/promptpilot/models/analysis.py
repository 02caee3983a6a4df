"""Request and response models for the prompt functions."""

from typing import Any, Dict, List, Optional
from pydantic import AliasChoices, BaseModel, Field


class CamelModel(BaseModel):
    """Accepts both camelCase (wire) and snake_case (Python) field names."""

    class Config:
        populate_by_name = True


class TechnicalTerm(CamelModel):
    """Plain-language explanation attached to a question using jargon."""

    term: str
    explanation: str
    example: str


class Question(CamelModel):
    """Clarifying question shown to the user."""

    id: str = Field(..., description="Stable question id, e.g. 'q-1'")
    text: str = Field(..., description="Question text")
    answer: str = Field(default="", description="User's (or prefilled) answer")
    is_relevant: Optional[bool] = Field(None, alias="isRelevant")
    category: str = Field(default="Other", description="Pillar the question belongs to")
    context_source: Optional[str] = Field(None, alias="contextSource")
    prefill_source: Optional[str] = Field(None, alias="prefillSource")
    technical_terms: Optional[List[TechnicalTerm]] = Field(None, alias="technicalTerms")
    examples: List[str] = Field(default_factory=list)
    expected_answer_type: Optional[str] = Field(None, alias="expectedAnswerType")


class Variable(CamelModel):
    """Short extracted attribute inserted into the final prompt."""

    id: str
    name: str
    value: str = ""
    is_relevant: Optional[bool] = Field(None, alias="isRelevant")
    category: str = "Other"
    code: str = ""
    context_source: Optional[str] = Field(None, alias="contextSource")


class WebsiteData(CamelModel):
    url: str
    instructions: str = ""


class ImageData(CamelModel):
    base64: str = Field(..., description="Data URL or raw base64 image")
    filename: Optional[str] = None
    type: Optional[str] = None


class SmartContext(CamelModel):
    """Free text the user pasted as extra context."""

    context: str = ""
    usage_instructions: str = Field(default="", alias="usageInstructions")


class TemplatePillar(CamelModel):
    id: Optional[str] = None
    title: str = Field(..., validation_alias=AliasChoices("title", "name"))
    description: str = ""
    order: int = 0


class TemplateSpec(CamelModel):
    """Pillars of the template selected in the UI."""

    id: Optional[str] = None
    title: Optional[str] = None
    pillars: List[TemplatePillar] = Field(default_factory=list)


class Usage(BaseModel):
    """Token usage as reported by the chat-completion API."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class AnalyzePromptRequest(CamelModel):
    prompt_text: str = Field(..., alias="promptText", min_length=1)
    primary_toggle: Optional[str] = Field(None, alias="primaryToggle")
    secondary_toggle: Optional[str] = Field(None, alias="secondaryToggle")
    user_id: Optional[str] = Field(None, alias="userId")
    prompt_id: Optional[str] = Field(None, alias="promptId")
    website_data: Optional[WebsiteData] = Field(None, alias="websiteData")
    image_data: Optional[ImageData] = Field(None, alias="imageData")
    smart_context: Optional[SmartContext] = Field(None, alias="smartContext")
    template: Optional[TemplateSpec] = None
    user_intent: Optional[str] = Field(None, alias="userIntent")
    model: Optional[str] = None


class AnalyzePromptResponse(CamelModel):
    questions: List[Question] = Field(default_factory=list)
    variables: List[Variable] = Field(default_factory=list)
    master_command: str = Field(default="", alias="masterCommand")
    enhanced_prompt: str = Field(default="", alias="enhancedPrompt")
    ambiguity: float = 1.0
    source: str = Field(default="ai", description="'ai' or 'heuristic'")
    usage: Usage = Field(default_factory=Usage)
    error: Optional[str] = None


class EnhancePromptRequest(CamelModel):
    original_prompt: str = Field(..., alias="originalPrompt")
    answered_questions: List[Question] = Field(default_factory=list, alias="answeredQuestions")
    relevant_variables: List[Variable] = Field(default_factory=list, alias="relevantVariables")
    primary_toggle: Optional[str] = Field(None, alias="primaryToggle")
    secondary_toggle: Optional[str] = Field(None, alias="secondaryToggle")
    user_id: Optional[str] = Field(None, alias="userId")
    prompt_id: Optional[str] = Field(None, alias="promptId")
    model: Optional[str] = None


class EnhancePromptResponse(CamelModel):
    enhanced_prompt: str = Field(..., alias="enhancedPrompt")
    loading_message: str = Field(default="", alias="loadingMessage")
    usage: Usage = Field(default_factory=Usage)
    error: Optional[str] = None


class UseTemplateRequest(CamelModel):
    original_prompt: str = Field(..., alias="originalPrompt")
    answered_questions: List[Question] = Field(default_factory=list, alias="answeredQuestions")
    template_id: str = Field(..., alias="templateId")
    user_id: Optional[str] = Field(None, alias="userId")
    prompt_id: Optional[str] = Field(None, alias="promptId")


class PromptTextRequest(CamelModel):
    prompt_text: Optional[str] = Field(None, alias="promptText")
    user_id: Optional[str] = Field(None, alias="userId")
    prompt_id: Optional[str] = Field(None, alias="promptId")


class PromptJsonResponse(CamelModel):
    json_structure: Optional[Dict[str, Any]] = Field(None, alias="jsonStructure")
    usage: Usage = Field(default_factory=Usage)
    error: Optional[str] = None


class PromptTag(BaseModel):
    category: str
    subcategory: Optional[str] = None


class PromptTagsResponse(BaseModel):
    tags: List[PromptTag]
    usage: Usage = Field(default_factory=Usage)


class ReplaceVariableRequest(CamelModel):
    prompt_text: str = Field(..., alias="promptText")
    variable_name: str = Field(..., alias="variableName", min_length=1)
    old_value: str = Field(default="", alias="oldValue")
    new_value: str = Field(default="", alias="newValue")


class ReplaceVariableResponse(CamelModel):
    prompt_text: str = Field(..., alias="promptText")
    placeholders: List[str] = Field(default_factory=list)


class PillarSuggestion(BaseModel):
    text: str
    examples: List[str] = Field(default_factory=list)
