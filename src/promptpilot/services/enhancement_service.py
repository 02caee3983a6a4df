"""Prompt enhancement functions: enhance, template enhance, JSON conversion, tags."""

import logging
from typing import Any, AsyncIterator, Dict, List, Optional

from ..config import settings
from ..database import UsageStepEnum
from ..database.enums import PRIMARY_TOGGLE_LABELS, SECONDARY_TOGGLE_LABELS
from ..exceptions import LLMError, NotFoundError, PermissionDeniedError
from ..models.analysis import (
    EnhancePromptRequest,
    EnhancePromptResponse,
    PromptJsonResponse,
    PromptTag,
    PromptTagsResponse,
    Question,
    Usage,
    UseTemplateRequest,
    Variable,
)
from ..repositories import TemplateRepository
from .analysis import extract_tags_from_text, parse_json_reply
from .analysis.extractors import DEFAULT_TAGS
from .llm_client import LLMClient
from .usage_service import UsageService

logger = logging.getLogger(__name__)

ENHANCE_SYSTEM_PROMPT = """You will be given an intent prompt together with context questions (some relevant, some not) and variables.
Rebuild it into a complete prompt that improves clarity, grammar, structure and logical flow while preserving the original intent.

The final prompt must be organized into four pillars:

Task: what the model has to produce, stated precisely.
Persona: the role and expertise the model should assume, with tone and style expectations.
Conditions: constraints to respect. Define ambiguous terms, mark data that must not change, read statements for their full meaning rather than keywords, and leave labeled placeholders such as "[Context Needed]" wherever information is missing instead of inventing it.
Instructions: numbered steps the model should follow to reach the output, in chronological or hierarchical order where it matters.

Use only the relevant questions and the supplied variable values. End with a short "Notes" section for clarifications or examples."""

ENHANCE_ERROR_TEXT = (
    "# Error Enhancing Prompt\n\n"
    "There was an error analyzing your inputs. Please try again or adjust your inputs."
)

DEFAULT_TEMPLATE_PREFIX = (
    "You are an expert prompt engineer that transforms input prompts into highly "
    "effective, well-structured prompts."
)

TEMPLATE_TASK = (
    "TASK: You will be provided with an intent and context information, which may be as "
    "brief as two sentences or as extensive as a comprehensive brief. Your job is to enhance "
    "this prompt by applying best practices and instructions. Improve clarity, grammar, "
    "structure, and logical flow while preserving the original intent."
)

PROMPT_TO_JSON_SYSTEM_PROMPT = """You convert structured prompts into JSON.
Return a single JSON object of this shape:
{
  "title": "Brief title extracted from the prompt",
  "sections": [
    {"type": "task", "content": "...", "variables": [{"name": "...", "value": "..."}]},
    {"type": "persona", "content": "...", "variables": [{"name": "...", "value": "..."}]},
    {"type": "conditions", "content": "...", "variables": [{"name": "...", "value": "..."}]},
    {"type": "instructions", "content": "...", "variables": [{"name": "...", "value": "..."}]}
  ]
}
The title is often at the very beginning, e.g. "**[TITLE]**".
Variables are the contextual words a user may want to swap: domain terms, tool or platform names, numbers and parameters, emphasized phrases.
Reply with the JSON object only, no markdown and no explanation."""

TAGS_SYSTEM_PROMPT = (
    "You are a tag generator for AI prompts. Analyze the given prompt and generate 3 main "
    "category tags, each with a specific subcategory tag. Each tag should be a single word that "
    "categorizes the prompt by the main task or type of work it's used for. Respond with a JSON "
    "array of objects, each with 'category' and 'subcategory' properties. Be concise and accurate."
)


def loading_message(primary_toggle: Optional[str], secondary_toggle: Optional[str]) -> str:
    """Status line shown while a prompt is being enhanced."""
    primary = PRIMARY_TOGGLE_LABELS.get(primary_toggle or "")
    secondary = SECONDARY_TOGGLE_LABELS.get(secondary_toggle or "")

    message = "Enhancing your prompt"
    if primary:
        message += f" for {primary}"
        if secondary:
            message += f" and to be {secondary}"
    elif secondary:
        message += f" to be {secondary}"
    return message + "..."


def format_questions(questions: List[Question]) -> str:
    return "\n\n".join(
        f"- Question: {q.text}\n  Answer: {q.answer}\n  Category: {q.category}\n"
        f"  Relevant: {'Yes' if q.is_relevant else 'No'}"
        for q in questions
    )


def format_variables(variables: List[Variable]) -> str:
    return "\n\n".join(
        f"- Variable Name: {v.name}\n  Value: {v.value}\n  Category: {v.category or 'Uncategorized'}"
        for v in variables
    )


def build_enhance_message(request: EnhancePromptRequest) -> str:
    return (
        "Please analyze and enhance the following prompt based on the provided context.\n\n"
        f"ORIGINAL PROMPT:\n{request.original_prompt}\n\n"
        f"CONTEXT QUESTIONS AND ANSWERS:\n{format_questions(request.answered_questions)}\n\n"
        f"VARIABLES:\n{format_variables(request.relevant_variables)}\n\n"
        f"PRIMARY TOGGLE: {request.primary_toggle or 'None'}\n"
        f"SECONDARY TOGGLE: {request.secondary_toggle or 'None'}\n\n"
        "Based on this information, generate an enhanced final prompt that follows the "
        "structure of Task, Persona, Conditions, and Instructions."
    )


def build_template_system_message(template) -> str:
    message = template.system_prefix or DEFAULT_TEMPLATE_PREFIX
    pillars = sorted(template.pillars or [], key=lambda p: p.get("order", 0))
    if pillars:
        message += "\n\nFRAMEWORK STRUCTURE:"
        for pillar in pillars:
            message += f"\n{pillar.get('title') or pillar.get('name')}: {pillar.get('description', '')}"
    return message + "\n\n" + TEMPLATE_TASK


def build_template_message(original_prompt: str, questions: List[Question]) -> str:
    context = "\n\n".join(
        f"{q.text}\nAnswer: {q.answer}" for q in questions if q.answer and q.answer.strip()
    )
    return (
        "Transform this prompt into an enhanced version following the framework provided:\n\n"
        f"ORIGINAL PROMPT:\n{original_prompt}\n\n"
        f"CONTEXT FROM USER:\n{context}\n\n"
        "Create an enhanced prompt that clearly defines all required elements in the framework "
        "while maintaining natural flow and clarity. Focus especially on creating a prompt that "
        "can be immediately used in another AI platform with excellent results."
    )


class EnhancementService:
    """Second-step prompt functions; every call records step-2 usage."""

    def __init__(
        self,
        llm_client: LLMClient,
        usage_service: Optional[UsageService] = None,
        template_repository: Optional[TemplateRepository] = None,
    ):
        self.llm_client = llm_client
        self.usage_service = usage_service
        self.template_repository = template_repository

    async def _record(self, user_id, prompt_id, model: str, usage: Dict[str, int]) -> None:
        if self.usage_service:
            await self.usage_service.record_usage(
                user_id, prompt_id, model, UsageStepEnum.ENHANCEMENT.value, usage
            )

    async def enhance(self, request: EnhancePromptRequest) -> EnhancePromptResponse:
        message = loading_message(request.primary_toggle, request.secondary_toggle)
        logger.info(
            f"Enhancing prompt: {len(request.answered_questions)} questions, "
            f"{len(request.relevant_variables)} variables"
        )

        model = request.model or settings.enhance_model
        try:
            result = await self.llm_client.complete(
                ENHANCE_SYSTEM_PROMPT, build_enhance_message(request), model, temperature=0.7
            )
        except LLMError as e:
            logger.error(f"Error in enhance-prompt: {e}")
            return EnhancePromptResponse(
                enhanced_prompt=ENHANCE_ERROR_TEXT, loading_message=message, error=str(e)
            )

        await self._record(request.user_id, request.prompt_id, result.model, result.usage)
        return EnhancePromptResponse(
            enhanced_prompt=result.content,
            loading_message=message,
            usage=Usage(**result.usage),
        )

    async def enhance_stream(self, request: EnhancePromptRequest) -> AsyncIterator[Dict[str, Any]]:
        """
        Stream the enhanced prompt.

        Yields ``{"type": "chunk"}`` events while text arrives, then one
        ``final_response`` (or ``error``) event with the complete payload.
        """
        message = loading_message(request.primary_toggle, request.secondary_toggle)
        model = request.model or settings.enhance_model
        parts = []
        usage = None

        try:
            async for item in self.llm_client.stream(
                ENHANCE_SYSTEM_PROMPT, build_enhance_message(request), model, temperature=0.7
            ):
                if "content" in item:
                    parts.append(item["content"])
                    yield {"type": "chunk", "data": {"content": item["content"]}}
                elif "usage" in item:
                    usage = item["usage"]
        except LLMError as e:
            logger.error(f"Error streaming enhance-prompt: {e}")
            yield {
                "type": "error",
                "data": {
                    "error": str(e),
                    "enhancedPrompt": ENHANCE_ERROR_TEXT,
                    "loadingMessage": message,
                },
            }
            return

        usage = usage or Usage().model_dump()
        await self._record(request.user_id, request.prompt_id, model, usage)
        yield {
            "type": "final_response",
            "data": EnhancePromptResponse(
                enhanced_prompt="".join(parts), loading_message=message, usage=Usage(**usage)
            ).model_dump(by_alias=True, exclude_none=True),
        }

    async def use_template(self, request: UseTemplateRequest) -> EnhancePromptResponse:
        try:
            template = await self.template_repository.get(request.template_id, request.user_id)
        except (NotFoundError, PermissionDeniedError) as e:
            logger.error(f"Error in use-prompt-template: {e}")
            return EnhancePromptResponse(
                enhanced_prompt="Error: Could not process the prompt enhancement request.",
                loading_message="Error processing request...",
                error=str(e),
            )

        logger.info(f"Enhancing prompt with template: {template.title}")
        model = settings.template_model
        max_tokens = max(1, int(template.max_chars / 4 + 0.5)) if template.max_chars else 1000
        try:
            result = await self.llm_client.complete(
                build_template_system_message(template),
                build_template_message(request.original_prompt, request.answered_questions),
                model,
                temperature=template.temperature or 0.7,
                max_tokens=max_tokens,
            )
        except LLMError as e:
            logger.error(f"Error calling OpenAI API for template {template.id}: {e}")
            return EnhancePromptResponse(
                enhanced_prompt=(
                    "# Error Enhancing Prompt\n\n"
                    "We encountered an error while trying to enhance your prompt. Please try again.\n\n"
                    f"Original Prompt:\n{request.original_prompt}"
                ),
                loading_message="Error enhancing prompt...",
                error=str(e),
            )

        await self._record(request.user_id, request.prompt_id, result.model, result.usage)
        return EnhancePromptResponse(
            enhanced_prompt=result.content,
            loading_message=f"Enhancing prompt with {template.title}...",
            usage=Usage(**result.usage),
        )

    async def prompt_to_json(
        self, prompt_text: str, user_id: Optional[str] = None, prompt_id: Optional[str] = None
    ) -> PromptJsonResponse:
        if not prompt_text:
            return PromptJsonResponse(json_structure=None, error="Empty prompt text provided")

        logger.info(f"Converting prompt to JSON: {prompt_text[:50]!r}")
        try:
            result = await self.llm_client.complete(
                PROMPT_TO_JSON_SYSTEM_PROMPT, prompt_text, settings.json_model, temperature=0.2
            )
        except LLMError as e:
            logger.error(f"Error in prompt-to-json: {e}")
            return PromptJsonResponse(json_structure=None, error=str(e))

        structure = parse_json_reply(result.content)
        if not isinstance(structure, dict):
            logger.error(f"Failed to parse response as JSON: {result.content[:200]}")
            return PromptJsonResponse(
                json_structure=None, error="Failed to parse response as JSON structure"
            )

        await self._record(user_id, prompt_id, result.model, result.usage)
        return PromptJsonResponse(json_structure=structure, usage=Usage(**result.usage))

    async def generate_tags(self, prompt_text: str) -> PromptTagsResponse:
        """
        Three category/subcategory tags for a prompt.

        A reply that is not a JSON array is mined for tags; the LLM
        errors themselves propagate to the caller.
        """
        result = await self.llm_client.complete(
            TAGS_SYSTEM_PROMPT, prompt_text, settings.tags_model, temperature=0.7, max_tokens=150
        )

        parsed = parse_json_reply(result.content)
        raw_tags = []
        if isinstance(parsed, list):
            raw_tags = [t for t in parsed if isinstance(t, dict) and t.get("category")]
        if not raw_tags:
            logger.warning("Tag reply was not a JSON array of tags, extracting tags from text")
            raw_tags = [
                t for t in extract_tags_from_text(result.content)
                if isinstance(t, dict) and t.get("category")
            ] or [dict(tag) for tag in DEFAULT_TAGS]

        tags = [
            PromptTag(category=str(t["category"]), subcategory=t.get("subcategory"))
            for t in raw_tags[:3]
        ]
        return PromptTagsResponse(tags=tags, usage=Usage(**result.usage))
