"""Conversion between Variable lists and their stored JSON form.

Stored form is an object keyed by variable id::

    {"v-1": {"name": "Color", "value": "red", "isRelevant": true,
             "category": "Style", "code": "VAR_1"}}

Older rows may hold a plain list of variable objects instead.
"""

import logging
from typing import Any, Dict, List

from .analysis import Variable

logger = logging.getLogger(__name__)


def variables_to_json(variables: List[Variable]) -> Dict[str, Dict[str, Any]]:
    """Convert a list of variables to the id-keyed storage object."""
    if not isinstance(variables, list):
        logger.error(f"Variables is not a list: {variables!r}")
        return {}

    stored = {}
    for variable in variables:
        if variable is None or not variable.id:
            continue
        stored[variable.id] = {
            "name": variable.name or "",
            "value": variable.value or "",
            "isRelevant": variable.is_relevant,
            "category": variable.category or "Other",
            "code": variable.code or "",
        }
    return stored


def json_to_variables(data: Any) -> List[Variable]:
    """Convert stored JSON (object or list) back to variables."""
    if not data:
        return []

    if isinstance(data, list):
        return [
            Variable(
                id=str(item.get("id") or ""),
                name=item.get("name") or "",
                value=item.get("value") or "",
                is_relevant=item.get("isRelevant"),
                category=item.get("category") or "Other",
                code=item.get("code") or "",
            )
            for item in data
            if isinstance(item, dict)
        ]

    if not isinstance(data, dict):
        logger.error(f"Cannot convert {type(data).__name__} to variables")
        return []

    variables = []
    for variable_id, item in data.items():
        item = item if isinstance(item, dict) else {}
        variables.append(
            Variable(
                id=variable_id,
                name=item.get("name") or "",
                value=item.get("value") or "",
                is_relevant=item.get("isRelevant"),
                category=item.get("category") or "Other",
                code=item.get("code") or "",
            )
        )
    return variables
