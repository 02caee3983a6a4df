"""Prompt-analysis heuristics (regex extraction, scoring, generation)."""

from .extractors import (
    classify_gap_type,
    count_tokens,
    extract_entities,
    extract_tags_from_text,
    infer_main_subject,
    is_visual_request,
    parse_json_reply,
)
from .generators import generate_context_questions, generate_contextual_variables
from .questions import (
    append_examples,
    compute_ambiguity,
    organize_questions_by_pillar,
    pillar_suggestions,
    sanitize_question_text,
    validate_question_variable_pairs,
)

__all__ = [
    "append_examples",
    "classify_gap_type",
    "compute_ambiguity",
    "count_tokens",
    "extract_entities",
    "extract_tags_from_text",
    "generate_context_questions",
    "generate_contextual_variables",
    "infer_main_subject",
    "is_visual_request",
    "organize_questions_by_pillar",
    "parse_json_reply",
    "pillar_suggestions",
    "sanitize_question_text",
    "validate_question_variable_pairs",
]
