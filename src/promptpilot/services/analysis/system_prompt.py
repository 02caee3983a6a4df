"""System and user messages for the analyze-prompt model call."""

import logging
import re
from typing import Any, Dict, List, Optional, Union

from ...config import settings

logger = logging.getLogger(__name__)

NO_HALLUCINATION_RULE = (
    "When proposing variables, NEVER invent or guess values (e.g., dog breeds). "
    "Leave the value empty unless the prompt or the supplied context states it."
)

QUESTION_STYLE_RULE = (
    "When asked to generate clarifying questions: write them in simple language,"
    " reference the user's main subject where meaningful, and invite detailed answers"
    " (so users type more than one word)."
)

BASE_PROMPT = """You are an AI assistant specializing in prompt analysis and enhancement. Your task is to analyze the provided user prompt and extract relevant context-based questions, variables, and generate an enhanced version of the prompt.

You will receive a prompt text, and possibly additional context from a website or an image. If image or website context is provided, carefully analyze it and incorporate insights into your response.

QUESTIONS: create 3-5 specific, contextual questions that will help clarify the user's intent. Focus on ambiguities, missing details, or potential clarifications that would improve the prompt. Give each a category (Task, Audience, Purpose, Format or Context) and up to four short example answers.

VARIABLES: identify 3-6 key variables that could be parameterized in the prompt. These are elements that might change based on different use cases. Give each a name, a value taken from the prompt (or empty) and a category (Task, Content, Format or Style).

MASTER COMMAND: a single sentence that encapsulates the core request or objective of the prompt.

ENHANCED PROMPT: an improved version of the original prompt that maintains the user's intent but enhances clarity, structure, and effectiveness."""

PRIMARY_INSTRUCTIONS = {
    "math": "Since this prompt is for mathematical tasks, focus your analysis on precision, step-by-step reasoning, and mathematical notation. Your questions should identify any ambiguities in mathematical terms or processes.",
    "reasoning": "Since this prompt is for reasoning tasks, focus your analysis on logical structure, assumptions, and potential biases. Your questions should probe underlying reasoning processes.",
    "coding": "Since this prompt is for coding tasks, focus your analysis on programming language specifics, implementation details, and technical requirements. Your questions should clarify technical ambiguities.",
    "copilot": "Since this prompt is for collaborative work, focus your analysis on interactive elements, iteration possibilities, and feedback loops. Your questions should clarify collaboration expectations.",
    "image": "Since this prompt is for image generation, focus your analysis on visual elements, style, composition, and artistic direction. Your questions should clarify visual ambiguities and stylistic preferences.",
}

SECONDARY_INSTRUCTIONS = {
    "strict": "Ensure that your enhanced prompt enforces strict formatting and clear structural requirements.",
    "creative": "Ensure that your enhanced prompt encourages creative exploration and multiple perspectives.",
    "token": "Ensure that your enhanced prompt is optimized for token efficiency without sacrificing clarity.",
}

CONTEXT_GUIDANCE = """When provided with website content:
- Analyze the website's purpose, content, and structure
- Draw connections between the website's content and the user's prompt
- Include website-specific questions that help clarify how the prompt relates to the website
- Identify website-specific variables that might need customization

When provided with an image:
- Analyze the visual elements, style, composition, and content of the image
- Draw connections between the image and the user's prompt
- Include image-specific questions that help clarify how the prompt relates to the image
- Identify image-specific variables that might be relevant to the prompt

Remember that your goal is to help the user create a more effective, contextually-aware prompt based on all available information."""

OUTPUT_FORMAT = """Respond with a single JSON object and nothing else:
{
  "questions": [{"text": "...", "category": "...", "examples": ["..."]}],
  "variables": [{"name": "...", "value": "...", "category": "..."}],
  "masterCommand": "...",
  "enhancedPrompt": "...",
  "imageAnalysis": {"Style": "...", "Subject Matter": "...", "Color Palette": "...", "Mood": "...", "Technical": "..."}
}
Include "imageAnalysis" only when an image is attached."""

IMAGE_DATA_URL_RE = re.compile(r"^data:image/(png|jpe?g|gif|webp);base64,", re.IGNORECASE)


def create_system_prompt(
    primary_toggle: Optional[str] = None,
    secondary_toggle: Optional[str] = None,
    pillar_titles: Optional[List[str]] = None,
) -> str:
    """Analyzer instructions for the given toggles and template pillars."""
    parts = [BASE_PROMPT]

    if primary_toggle in PRIMARY_INSTRUCTIONS:
        parts.append(PRIMARY_INSTRUCTIONS[primary_toggle])
    if secondary_toggle in SECONDARY_INSTRUCTIONS:
        parts.append(SECONDARY_INSTRUCTIONS[secondary_toggle])

    if pillar_titles:
        parts.append(
            "Use these template pillars as question categories: " + ", ".join(pillar_titles) + "."
        )

    parts.extend([CONTEXT_GUIDANCE, NO_HALLUCINATION_RULE, QUESTION_STYLE_RULE, OUTPUT_FORMAT])
    return "\n\n".join(parts)


def normalise_data_url(data_url: str = "") -> str:
    """Drop EXIF query parameters from an image data URL."""
    if "data:image/" not in data_url:
        return data_url
    return re.sub(r"exif=[^&]+&?", "", data_url, flags=re.IGNORECASE)


def accept_image(image_base64: Optional[str]) -> Optional[str]:
    """Return the data URL if it may be sent to the model, else None."""
    if not image_base64:
        return None
    if len(image_base64) > settings.max_image_base64_chars:
        logger.warning("Image omitted from OpenAI request due to size constraints")
        return None

    data_url = normalise_data_url(image_base64)
    if not IMAGE_DATA_URL_RE.match(data_url):
        logger.warning("Unsupported image mime, skipping image for chat call")
        return None
    return data_url


def build_user_message(
    prompt_text: str,
    additional_context: str = "",
    image_url: Optional[str] = None,
) -> Union[str, List[Dict[str, Any]]]:
    """User turn: the prompt, any context, and the image as a content part."""
    text = f'Analyze this prompt: "{prompt_text}"'
    if additional_context:
        text += f"\n\nCONTEXT:\n{additional_context}"

    if image_url:
        return [
            {"type": "text", "text": text},
            {"type": "image_url", "image_url": {"url": image_url}},
        ]
    return text
