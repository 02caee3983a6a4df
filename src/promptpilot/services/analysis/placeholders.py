"""``{{name}}`` placeholder helpers for editing a final prompt's variables."""

import re
from typing import List

PLACEHOLDER_RE = re.compile(r"{{([^}]+)}}")


def extract_placeholders(prompt: str) -> List[str]:
    return [name.strip() for name in PLACEHOLDER_RE.findall(prompt or "")]


def find_occurrences(text: str, value: str) -> List[int]:
    """Start offsets of every (possibly overlapping) occurrence of ``value``."""
    if not value or not value.strip():
        return []

    positions = []
    position = text.find(value)
    while position != -1:
        positions.append(position)
        position = text.find(value, position + 1)
    return positions


def replace_variable(prompt: str, old_value: str, new_value: str, variable_name: str) -> str:
    """
    Swap a variable's value inside a prompt.

    An empty ``old_value`` fills the ``{{variable_name}}`` placeholder; an
    empty ``new_value`` puts the placeholder back. Replacement only hits
    whole words.
    """
    if not old_value and not new_value:
        return prompt

    if not old_value:
        pattern = re.compile(r"{{\s*" + re.escape(variable_name) + r"\s*}}")
        return pattern.sub(lambda _: new_value, prompt)

    pattern = re.compile(r"\b" + re.escape(old_value) + r"\b")
    replacement = new_value if new_value else "{{" + variable_name + "}}"
    return pattern.sub(lambda _: replacement, prompt)
