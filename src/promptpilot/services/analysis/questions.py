"""Question scoring, ordering, wording and validation."""

import logging
import re
from typing import Dict, List, Optional

from ...models.analysis import Question, TechnicalTerm, Variable
from .extractors import count_tokens

logger = logging.getLogger(__name__)

# Jargon replaced with plain words in question text
FRIENDLY_MAP = {
    "resolution": "size",
    "RGB": "color model",
    "HTTP": "web address",
    "API": "connection",
    "backend": "server",
    "frontend": "user interface",
    "database": "storage",
    "authentication": "login system",
    "deployment": "publishing",
    "debugging": "error fixing",
}

# term -> (full name, what it helps with, everyday example)
TECHNICAL_TERMS = {
    "api": (
        "Application Programming Interface",
        "connecting different software systems",
        "connecting to a weather service to get today's forecast",
    ),
    "sdk": (
        "Software Development Kit",
        "building software applications",
        "tools that help create mobile apps",
    ),
    "oauth": (
        "Open Authentication",
        "secure login systems",
        "logging in with your Google account",
    ),
    "jwt": (
        "JSON Web Token",
        "secure data transfer",
        "securely remembering who you are while using an app",
    ),
    "sql": (
        "Structured Query Language",
        "managing database information",
        "finding all orders from the last month",
    ),
    "regex": (
        "Regular Expression",
        "finding patterns in text",
        "checking if an email address is valid",
    ),
    "kubernetes": (
        "Container Orchestration System",
        "managing large applications",
        "running a website that can handle millions of users",
    ),
    "docker": (
        "Container Platform",
        "packaging applications",
        "making sure an app works the same on any computer",
    ),
}

SUGGESTION_BANK = {
    "mood": [
        ("What feeling should the image evoke?", ["playful", "serene", "dramatic"]),
        ("Is the mood subtle or bold?", ["soft pastels", "vibrant neon", "gritty noir"]),
        ("What is the main intention of the image?", ["social ad", "personal gift", "storytelling"]),
    ],
    "style": [
        ("Which visual style best fits?", ["water-colour", "comic", "photorealistic"]),
        ("Do you prefer a specific era or genre?", ["80s retro", "futuristic", "baroque"]),
        ("Any colour palette constraints?", ["brand colours", "monochrome", "pastel set"]),
    ],
    "environment": [
        ("Where is the scene set?", ["beach", "city park", "outer space"]),
        ("Time of day or season?", ["sunset", "winter morning", "mid-day"]),
        ("Should the background be detailed or minimal?", ["detailed", "clean white", "blurred"]),
    ],
    "subject": [
        ("What is the main subject's pose or action?", ["running", "sitting", "jumping"]),
        ("Any composition guidelines?", ["rule-of-thirds", "centre focus", "symmetry"]),
        ("Camera angle preference?", ["eye level", "bird's-eye", "low angle"]),
    ],
}


def compute_ambiguity(prompt: str) -> float:
    """Score from 0 (very clear) to 1 (very vague); short prompts score high."""
    if not prompt:
        return 1.0
    tokens = count_tokens(prompt)
    score = 1 - min(1.0, max(0.0, (tokens - 10) / 50))
    return round(score, 2)


def organize_questions_by_pillar(
    questions: List[Question], ambiguity: float = 0.5
) -> List[Question]:
    """Group questions by category and cap each group (3 when vague, else 2)."""
    if not questions:
        return []

    groups: Dict[str, List[Question]] = {}
    for question in questions:
        key = (question.category or "Misc").lower()
        groups.setdefault(key, []).append(question)

    max_per_pillar = 3 if ambiguity >= 0.6 else 2

    result = []
    for group in groups.values():
        result.extend(group[:max_per_pillar])
    return result


def sanitize_question_text(text: str) -> str:
    sanitized = text
    for tech, friendly in FRIENDLY_MAP.items():
        sanitized = re.sub(rf"\b{re.escape(tech)}\b", friendly, sanitized, flags=re.IGNORECASE)
    return sanitized


def append_examples(text: str, examples: Optional[List[str]] = None) -> str:
    if not examples or "(" in text:
        return text
    return f"{text} (e.g., {', '.join(examples[:4])})"


def pillar_suggestions(pillar: str, prompt_snippet: str = "") -> List[Dict[str, object]]:
    """Canned questions for well-known pillars, else one templated question."""
    pillar_lower = pillar.lower()
    for key, bank in SUGGESTION_BANK.items():
        if key in pillar_lower:
            return [{"text": text, "examples": list(examples)} for text, examples in bank]

    short = prompt_snippet[:57] + "…" if len(prompt_snippet) > 60 else prompt_snippet
    obj = re.sub(r"^create\s+(an|a)?\s*", "", short, flags=re.IGNORECASE)
    obj = re.sub(r"^\w+\s+of\s+", "", obj, flags=re.IGNORECASE)

    return [
        {
            "text": f"For **{obj}**, what {pillar_lower} details are still missing?",
            "examples": [],
        }
    ]


def find_technical_terms(text: str) -> List[TechnicalTerm]:
    text_lower = text.lower()
    found = []
    for term, (full_name, helps_with, example) in TECHNICAL_TERMS.items():
        if re.search(rf"\b{term}\b", text_lower):
            found.append(
                TechnicalTerm(
                    term=term,
                    explanation=f"{full_name} - A technical tool that helps with {helps_with}",
                    example=f"For example: {example}",
                )
            )
    return found


def validate_question_variable_pairs(
    questions: List[Question], variables: List[Variable]
) -> bool:
    """
    Check that questions do not simply ask for a variable's value and
    that any jargon they use comes with an example.

    Questions that mention a technical term get ``technical_terms``
    attached as a side effect.
    """
    variable_names = [v.name.lower() for v in variables if v.name]

    for question in questions:
        question_lower = question.text.lower()

        for var_name in variable_names:
            words = " ".join(w for w in re.split(r"[_\s]", var_name) if w)
            if not words:
                continue
            direct_patterns = [
                f"{verb} {words}"
                for verb in ("what", "which", "specify", "select", "choose", "define")
            ]
            if any(pattern in question_lower for pattern in direct_patterns):
                logger.warning(f'Question "{question.text}" directly asks for variable "{var_name}"')
                return False

        has_example = "(" in question.text and ")" in question.text
        terms = find_technical_terms(question.text)
        if terms:
            question.technical_terms = terms
            if not has_example:
                logger.warning(f'Question "{question.text}" contains technical terms without examples')
                return False

    return True
