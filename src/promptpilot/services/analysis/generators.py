"""Heuristic question and variable generation from template pillars.

Used when the model reply is missing or unusable. Questions and
variables are derived from the pillars of the selected template and
from entities found in the prompt, optionally prefilled from an image
analysis (a mapping of category name to free text).
"""

import logging
import re
import time
from typing import Dict, List, Optional

from ...models.analysis import Question, TemplatePillar, Variable
from .extractors import (
    classify_gap_type,
    extract_entities,
    extract_keywords,
    extract_style,
    has_entity,
    is_location,
    is_object,
    is_person_or_character,
    is_visual_request,
    main_subject,
)

logger = logging.getLogger(__name__)

CONTENT_PILLARS = ("Content", "Subject Matter")
STYLE_PILLARS = ("Style", "Artistic Direction")
TECHNICAL_PILLARS = ("Technical", "Technical Specifications")
COMPOSITION_PILLARS = ("Composition", "Layout")
MOOD_PILLARS = ("Mood", "Atmosphere", "Emotional Impact")
PURPOSE_PILLARS = ("Context", "Purpose", "Usage")

PERSON_AGE_RE = re.compile(r"\b(age|old|young|adult|teen|child|elderly)\b")
PERSON_GENDER_RE = re.compile(r"\b(male|female|man|woman|boy|girl|non-binary|gender)\b")
PERSON_CLOTHING_RE = re.compile(r"\b(wear|dress|clothe|outfit|costume|attire)\b")
LOCATION_TIME_RE = re.compile(
    r"\b(time|day|night|morning|evening|afternoon|season|winter|summer|fall|spring)\b"
)
LOCATION_WEATHER_RE = re.compile(r"\b(weather|climate|sunny|rainy|cloudy|snowy|stormy)\b")


def _timestamp() -> int:
    return int(time.time() * 1000)


def default_questions() -> List[Question]:
    ts = _timestamp()
    return [
        Question(
            id=f"q-{ts}-1",
            text="What specific details can you provide about the subject?",
            is_relevant=True,
            category="Content",
        ),
        Question(
            id=f"q-{ts}-2",
            text="What style or aesthetic are you looking for?",
            is_relevant=True,
            category="Style",
        ),
    ]


def default_variables() -> List[Variable]:
    ts = _timestamp()
    return [
        Variable(id=f"v-{ts}-1", name="Subject", is_relevant=True, category="Content", code="VAR_1"),
        Variable(id=f"v-{ts}-2", name="Style", is_relevant=True, category="Style", code="VAR_2"),
    ]


def identify_missing_information(
    pillar_title: str, entities: List[Dict[str, str]], prompt: str
) -> List[str]:
    """Follow-up questions for attributes a content pillar's subject still lacks."""
    subject = main_subject(entities, prompt)
    if not subject or pillar_title not in CONTENT_PILLARS:
        return []

    prompt_lower = prompt.lower()
    missing = []
    if is_person_or_character(subject):
        if not PERSON_AGE_RE.search(prompt_lower):
            missing.append(f"What is the age of the {subject}?")
        if not PERSON_GENDER_RE.search(prompt_lower):
            missing.append(f"What is the gender or appearance of the {subject}?")
        if not PERSON_CLOTHING_RE.search(prompt_lower):
            missing.append(f"What is the {subject} wearing?")
    elif is_location(subject):
        if not LOCATION_TIME_RE.search(prompt_lower):
            missing.append(f"What time of day or season is it at the {subject}?")
        if not LOCATION_WEATHER_RE.search(prompt_lower):
            missing.append(f"What are the weather conditions at the {subject}?")
    elif is_object(subject):
        if not has_entity(entities, "material"):
            missing.append(f"What material is the {subject} made of?")
        if not has_entity(entities, "color"):
            missing.append(f"What color is the {subject}?")
    return missing


def questions_for_pillar(
    pillar_title: str,
    entities: List[Dict[str, str]],
    prompt: str,
    id_prefix: Optional[str] = None,
) -> List[Question]:
    id_prefix = id_prefix or f"q-{_timestamp()}"
    subject = main_subject(entities, prompt)
    texts = []

    if pillar_title in CONTENT_PILLARS:
        if subject:
            if not has_entity(entities, "color"):
                texts.append(("c1", f"What color scheme should the {subject} have?"))
            if not has_entity(entities, "size"):
                texts.append(("c2", f"What size or scale should the {subject} be?"))
            texts.append(("c3", f"What specific details or features should the {subject} have?"))
        else:
            texts.append(("c4", "What is the main subject or focus of your request?"))
    elif pillar_title in STYLE_PILLARS:
        texts.append(("s1", "What specific artistic style are you looking for?"))
        texts.append(
            ("s2", "Do you have any reference artists or works that illustrate the style you want?")
        )
    elif pillar_title in TECHNICAL_PILLARS:
        texts.append(("t1", "What dimensions or resolution do you need?"))
        if is_visual_request(prompt):
            texts.append(("t2", "What file format do you prefer for the final output?"))
    elif pillar_title in COMPOSITION_PILLARS:
        if subject:
            texts.append(("l1", f"Where should the {subject} be positioned in the composition?"))
        texts.append(("l2", "What type of background or environment would you like?"))
    elif pillar_title in MOOD_PILLARS:
        texts.append(("m1", "What mood or atmosphere are you aiming for?"))
        texts.append(("m2", "What emotional response should this evoke in the audience?"))
    elif pillar_title in PURPOSE_PILLARS:
        texts.append(("p1", "What is the purpose or intended use of this?"))
        texts.append(("p2", "Who is the target audience?"))
    else:
        texts.append(("g1", f"What specific requirements do you have for {pillar_title.lower()}?"))

    for index, text in enumerate(identify_missing_information(pillar_title, entities, prompt)):
        texts.append((f"mi{index}", text))

    return [
        Question(id=f"{id_prefix}-{suffix}", text=text, is_relevant=True, category=pillar_title)
        for suffix, text in texts
    ]


def variables_for_pillar(
    pillar_title: str,
    entities: List[Dict[str, str]],
    prompt: str,
    simple: bool = False,
) -> List[Variable]:
    ts = _timestamp()
    subject = main_subject(entities, prompt)
    names = []

    if pillar_title in CONTENT_PILLARS:
        if subject:
            names.append(("Subject", subject))
        colors = [e["value"] for e in entities if e["type"] == "color"]
        for index, color in enumerate(colors):
            names.append(("Primary Color" if index == 0 else f"Color {index + 1}", color))
    elif pillar_title in STYLE_PILLARS:
        names.append(("Art Style", ""))
        if not simple:
            names.append(("Reference Artist", ""))
    elif pillar_title in TECHNICAL_PILLARS:
        dimensions = [e["value"] for e in entities if e["type"] == "dimension"]
        if dimensions:
            for index, dimension in enumerate(dimensions):
                names.append(("Dimensions" if index == 0 else f"Dimension {index + 1}", dimension))
        elif is_visual_request(prompt):
            names.append(("Dimensions", ""))
        if is_visual_request(prompt) and not simple:
            names.append(("File Format", ""))
    elif pillar_title in COMPOSITION_PILLARS:
        if not simple:
            names.append(("Background", ""))
    elif pillar_title in MOOD_PILLARS:
        names.append(("Mood", ""))

    return [
        Variable(
            id=f"v-{ts}-{index}",
            name=name,
            value=value,
            is_relevant=True,
            category=pillar_title,
            code=f"VAR_{index + 1}",
        )
        for index, (name, value) in enumerate(names)
    ]


def _question_relates_to_intent(question_text: str, user_intent: str) -> bool:
    intent = user_intent.lower()
    text = question_text.lower()
    return intent in text or any(len(word) > 4 and word in text for word in intent.split(" "))


def _keyword_window(analysis_text: str, keywords: List[str]) -> str:
    """Cut about 50 characters either side of the last matching keyword."""
    section = analysis_text
    if len(analysis_text) <= 100:
        return section

    lower = analysis_text.lower()
    for keyword in keywords:
        index = lower.find(keyword.lower())
        if index < 0:
            continue
        start = max(0, index - 50)
        end = min(len(analysis_text), index + len(keyword) + 50)
        section = analysis_text[start:end]
        if start > 0 and not re.match(r"^[A-Z]", section):
            section = "..." + section
        if end < len(analysis_text):
            last_period = section.rfind(".")
            if last_period > len(section) / 2:
                section = section[: last_period + 1]
            else:
                section += "..."
    return section


def find_image_analysis_for_question(
    question: Question, image_analysis: Optional[Dict[str, str]], user_intent: str = ""
) -> Optional[str]:
    """Answer text for a question taken from an image analysis, if any fits."""
    if not isinstance(image_analysis, dict):
        return None

    if user_intent and not _question_relates_to_intent(question.text, user_intent):
        return None

    by_category = image_analysis.get(question.category)
    if by_category:
        return by_category

    keywords = extract_keywords(question.text)
    for analysis_text in image_analysis.values():
        if not isinstance(analysis_text, str):
            continue
        lower = analysis_text.lower()
        relevant = [k for k in keywords if k.lower() in lower]
        if relevant:
            return _keyword_window(analysis_text, relevant)
    return None


def find_image_analysis_for_variable(
    variable: Variable, image_analysis: Optional[Dict[str, str]]
) -> Optional[str]:
    """Short value for a variable taken from an image analysis, if any fits."""
    if not isinstance(image_analysis, dict):
        return None

    name = variable.name.lower()

    if name == "art style" and image_analysis.get("Style"):
        style_text = image_analysis["Style"]
        return extract_style(style_text) or style_text.split(".")[0]

    subject_text = image_analysis.get("Subject Matter") or image_analysis.get("Content")
    if name == "subject" and subject_text:
        match = re.search(r"main subject is (?:a|an|the)\s+([^.]+)", subject_text, re.IGNORECASE)
        if match:
            return match.group(1).strip()
        first_sentence = subject_text.split(".")[0]
        match = re.search(
            r"(?:features|contains|shows|depicts)\s+(?:a|an|the)\s+([^,]+)",
            first_sentence,
            re.IGNORECASE,
        )
        return match.group(1).strip() if match else None

    color_text = image_analysis.get("Color Palette") or image_analysis.get("Style")
    if "color" in name and color_text:
        match = re.search(
            r"(?:primary|dominant|main)\s+colors?\s+(?:is|are)\s+([^.]+)", color_text, re.IGNORECASE
        )
        if match:
            return match.group(1).strip()
        match = re.search(
            r"\b(red|blue|green|yellow|purple|pink|orange|brown|black|white|gray|grey|"
            r"teal|turquoise|gold|silver)\b",
            color_text,
            re.IGNORECASE,
        )
        return match.group(1) if match else None

    mood_text = image_analysis.get("Mood") or image_analysis.get("Atmosphere")
    if name == "mood" and mood_text:
        match = re.search(
            r"(?:mood|atmosphere|feeling)\s+(?:is|seems|appears)\s+([^.]+)", mood_text, re.IGNORECASE
        )
        return match.group(1).strip() if match else mood_text.split(".")[0]

    if name == "dimensions" and image_analysis.get("Technical"):
        match = re.search(r"(\d+\s*x\s*\d+(?:\s*\w+)?)", image_analysis["Technical"], re.IGNORECASE)
        return match.group(1) if match else None

    return None


def generate_context_questions(
    prompt: str,
    pillars: Optional[List[TemplatePillar]],
    image_analysis: Optional[Dict[str, str]] = None,
    user_intent: str = "",
) -> List[Question]:
    """Questions for every template pillar, prefilled from the image analysis."""
    if not pillars:
        logger.info("No template pillars available, using default questions")
        return default_questions()

    entities = extract_entities(prompt)
    ts = _timestamp()
    questions = []
    for index, pillar in enumerate(pillars):
        if pillar and pillar.title:
            questions.extend(
                questions_for_pillar(pillar.title, entities, prompt, id_prefix=f"q-{ts}-p{index}")
            )

    if not questions:
        return default_questions()

    if image_analysis:
        for question in questions:
            relevant = find_image_analysis_for_question(question, image_analysis, user_intent)
            if relevant:
                question.answer = f"Based on image analysis: {relevant}"
                question.prefill_source = "image"

    for question in questions:
        question.expected_answer_type = classify_gap_type(question.text, question.category)

    prefilled = sum(1 for q in questions if q.answer)
    logger.info(f"Generated {len(questions)} questions ({prefilled} prefilled)")
    return questions


def generate_contextual_variables(
    prompt: str,
    pillars: Optional[List[TemplatePillar]],
    image_analysis: Optional[Dict[str, str]] = None,
    simple: bool = False,
) -> List[Variable]:
    """Variables for every template pillar, unique by name, topped up with defaults."""
    defaults = default_variables()
    if not pillars:
        logger.info("No template pillars available, using default variables")
        return defaults

    entities = extract_entities(prompt)
    variables = []
    seen = set()
    for pillar in pillars:
        if not pillar or not pillar.title:
            continue
        for variable in variables_for_pillar(pillar.title, entities, prompt, simple):
            key = variable.name.lower()
            if key not in seen:
                seen.add(key)
                variables.append(variable)

    if image_analysis:
        for variable in variables:
            value = find_image_analysis_for_variable(variable, image_analysis)
            if value:
                variable.value = value
                variable.context_source = "image"

    # Ids and codes restart per pillar; renumber across the whole list
    ts = _timestamp()
    for index, variable in enumerate(variables):
        variable.id = f"v-{ts}-{index}"
        variable.code = f"VAR_{index + 1}"

    if len(variables) < 2:
        for default in defaults:
            if default.name.lower() not in seen:
                default.id = f"v-{ts}-{len(variables)}"
                default.code = f"VAR_{len(variables) + 1}"
                variables.append(default)

    return variables
