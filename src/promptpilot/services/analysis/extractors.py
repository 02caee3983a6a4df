"""Regex extractors over raw prompt text and model replies."""

import json
import logging
import re
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

SUBJECT_PATTERNS = [
    re.compile(
        r"(?:create|generate|make|design|draw|produce)\s+(?:a|an|the)?\s*"
        r"([a-z][a-z\s]+?)(?:\s+(?:with|that|which|in|for|to|of|using)|\.|$)",
        re.IGNORECASE,
    ),
    re.compile(
        r"(?:I want|I need|I'm looking for|I'd like|Can you)\s+(?:a|an|the)?\s*"
        r"([a-z][a-z\s]+?)(?:\s+(?:with|that|which|in|for|to|of|using)|\.|$)",
        re.IGNORECASE,
    ),
]

COLOR_RE = re.compile(
    r"\b(red|blue|green|yellow|purple|pink|orange|brown|black|white|gray|grey|teal|"
    r"turquoise|gold|silver|bronze|navy|maroon|olive|violet|indigo|magenta|cyan|"
    r"lavender|beige|tan|ivory|cream|crimson|aqua|burgundy)\b",
    re.IGNORECASE,
)
SIZE_RE = re.compile(
    r"\b(small|medium|large|tiny|huge|giant|tall|short|big|little|mini|macro|micro|"
    r"enormous|massive|petite|scaled|life-?sized)\b",
    re.IGNORECASE,
)
DIMENSION_RE = re.compile(
    r"\b(\d+(?:\.\d+)?)\s*(px|cm|mm|m|in|ft|inch(?:es)?|feet|foot|meter(?:s)?|"
    r"kilometer(?:s)?|mile(?:s)?|yard(?:s)?)\b",
    re.IGNORECASE,
)
MATERIAL_RE = re.compile(
    r"\b(wood(?:en)?|metal(?:lic)?|plastic|glass|ceramic|marble|fabric|cloth|leather|"
    r"paper|cardboard|steel|iron|gold|silver|bronze|copper|aluminum|stone|granite|"
    r"concrete|rubber|vinyl|silk|cotton|wool|linen|diamond|crystal)\b",
    re.IGNORECASE,
)

VISUAL_TERMS = [
    "image", "picture", "photo", "illustration", "design", "artwork", "drawing",
    "graphic", "logo", "sketch", "render", "painting", "portrait", "poster",
    "banner", "mockup", "visual", "style frame",
]

PERSON_TERMS = [
    "person", "man", "woman", "boy", "girl", "child", "adult", "teen", "teenager",
    "character", "hero", "villain", "protagonist", "antagonist", "figure", "human",
    "guy", "lady", "male", "female", "player", "actor", "actress", "model", "warrior",
    "knight", "wizard", "witch", "prince", "princess", "king", "queen", "soldier",
]

LOCATION_TERMS = [
    "landscape", "scene", "place", "location", "setting", "environment", "world",
    "city", "town", "village", "forest", "mountain", "beach", "desert", "room",
    "interior", "exterior", "building", "house", "castle", "palace", "temple",
    "garden", "park", "street", "road", "river", "lake", "ocean", "sea", "sky",
]

GAP_VARIABLE_PATTERNS = [
    re.compile(word, re.IGNORECASE)
    for word in (
        "color", "size", "dimension", "breed", "height", "width", "name", "number",
        "quantity", "age", "price", "cost", "type", "model", "brand", "date", "time",
        "duration", "range", "material", "weight", "length", "depth", "texture",
    )
]

STOP_WORDS = {
    "a", "an", "the", "this", "that", "these", "those", "is", "are", "was", "were",
    "be", "have", "has", "had", "do", "does", "did", "will", "would", "should",
    "can", "could", "may", "might", "must", "shall", "for", "and", "nor", "but",
    "or", "yet", "so", "if", "then", "else", "when", "where", "why", "how", "what",
    "which", "who", "whom", "whose", "whither", "whence", "whereby",
}

STYLE_PATTERNS = [
    re.compile(
        r"(?:style|aesthetic)(?:\s+is|\s+appears\s+to\s+be|\s+seems\s+to\s+be|"
        r"\s+can\s+be\s+described\s+as)\s+([^.]+)",
        re.IGNORECASE,
    ),
    re.compile(r"illustrated\s+in\s+(?:a|an)\s+([^.]+?)\s+style", re.IGNORECASE),
    re.compile(r"(?:done|created|executed)\s+in\s+(?:a|an)\s+([^.]+?)\s+style", re.IGNORECASE),
]

DEFAULT_TAGS = [
    {"category": "writing", "subcategory": "creative"},
    {"category": "coding", "subcategory": "web"},
    {"category": "business", "subcategory": "marketing"},
]

CODE_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)
TAG_LINE_RE = re.compile(r"(?:category:?\s*)(\w+)(?:.*subcategory:?\s*)(\w+)", re.IGNORECASE)


def count_tokens(text: str) -> int:
    """Whitespace word count used as a cheap token estimate."""
    return len((text or "").split())


def canon_key(text: str) -> str:
    return re.sub(r"[^a-z]+", " ", (text or "").lower())


def shorten(text: str = "", words: int = 3) -> str:
    return " ".join((text or "").split()[:words])


def strip_code_fences(text: str) -> str:
    return CODE_FENCE_RE.sub("", (text or "").strip())


def parse_json_reply(text: Optional[str]) -> Optional[Any]:
    """Parse a model reply as JSON, tolerating markdown code fences."""
    if not text:
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    try:
        return json.loads(strip_code_fences(text))
    except json.JSONDecodeError:
        logger.warning(f"Invalid JSON from model: {text[:200]}")
        return None


def extract_entities(prompt: str) -> List[Dict[str, str]]:
    """Pull subject, colours, sizes, dimensions and materials from a prompt."""
    if not prompt:
        return []

    entities = []
    for pattern in SUBJECT_PATTERNS:
        match = pattern.search(prompt)
        if match and match.group(1):
            entities.append({"type": "subject", "value": match.group(1).strip().lower()})
            break

    for match in COLOR_RE.finditer(prompt):
        entities.append({"type": "color", "value": match.group(1).lower()})
    for match in SIZE_RE.finditer(prompt):
        entities.append({"type": "size", "value": match.group(1).lower()})
    for match in DIMENSION_RE.finditer(prompt):
        entities.append({"type": "dimension", "value": f"{match.group(1)} {match.group(2)}"})
    for match in MATERIAL_RE.finditer(prompt):
        entities.append({"type": "material", "value": match.group(1).lower()})

    return entities


def has_entity(entities: List[Dict[str, str]], entity_type: str) -> bool:
    return any(e["type"] == entity_type for e in entities)


def infer_main_subject(prompt: str) -> str:
    """Best-effort subject: a verb pattern match, else the first three words."""
    if not prompt:
        return ""

    for pattern in SUBJECT_PATTERNS:
        match = pattern.search(prompt)
        if match and match.group(1):
            return match.group(1).strip()

    cleaned = re.sub(
        r"^(create|generate|make|design|draw|produce|i want|i need|please)",
        "",
        prompt,
        flags=re.IGNORECASE,
    ).strip()
    return " ".join(cleaned.split(" ")[:3])


def main_subject(entities: List[Dict[str, str]], prompt: str) -> str:
    for entity in entities:
        if entity["type"] == "subject":
            return entity["value"]
    return infer_main_subject(prompt)


def is_visual_request(prompt: str) -> bool:
    if not prompt:
        return False
    prompt_lower = prompt.lower()
    return any(term in prompt_lower for term in VISUAL_TERMS)


def is_person_or_character(subject: str) -> bool:
    if not subject:
        return False
    subject_lower = subject.lower()
    return any(term in subject_lower for term in PERSON_TERMS)


def is_location(subject: str) -> bool:
    if not subject:
        return False
    subject_lower = subject.lower()
    return any(term in subject_lower for term in LOCATION_TERMS)


def is_object(subject: str) -> bool:
    if not subject:
        return False
    return not is_person_or_character(subject) and not is_location(subject)


def classify_gap_type(text: str, category: str = "") -> str:
    """'variable' for short attribute questions (colour, size ...), else 'question'."""
    text = text or ""
    if len(text) < 100 and any(p.search(text) for p in GAP_VARIABLE_PATTERNS):
        return "variable"
    return "question"


def extract_keywords(question_text: str) -> List[str]:
    if not question_text:
        return []
    stripped = re.sub(r"[.,?!;:]", "", question_text)
    return [
        word
        for word in stripped.split()
        if len(word) > 3 and word.lower() not in STOP_WORDS
    ]


def extract_style(text: str) -> Optional[str]:
    if not text:
        return None
    for pattern in STYLE_PATTERNS:
        match = pattern.search(text)
        if match and match.group(1):
            return match.group(1).strip()
    return None


def extract_tags_from_text(text: str) -> List[Dict[str, str]]:
    """Recover category/subcategory pairs from a non-JSON tag reply."""
    array_match = re.search(r"\[[\s\S]*\]", text or "")
    if array_match:
        try:
            parsed = json.loads(array_match.group(0))
            if isinstance(parsed, list) and parsed:
                return parsed
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse extracted JSON: {e}")

    pairs = []
    for line in (text or "").split("\n"):
        match = TAG_LINE_RE.search(line)
        if match:
            pairs.append(
                {"category": match.group(1).lower(), "subcategory": match.group(2).lower()}
            )
            if len(pairs) >= 3:
                break

    return pairs if pairs else [dict(tag) for tag in DEFAULT_TAGS]
