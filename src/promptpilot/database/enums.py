"""Database enums."""

from enum import Enum


class PrimaryToggleEnum(str, Enum):
    """Task family a prompt is written for."""

    COMPLEX = "complex"
    MATH = "math"
    REASONING = "reasoning"
    CODING = "coding"
    COPILOT = "copilot"
    IMAGE = "image"


class SecondaryToggleEnum(str, Enum):
    """Output style modifier applied on top of the primary toggle."""

    TOKEN = "token"
    STRICT = "strict"
    CREATIVE = "creative"


class UsageStepEnum(int, Enum):
    """Pipeline step a token-usage row was recorded for."""

    ANALYSIS = 1
    ENHANCEMENT = 2


# Human readable labels used in loading messages
PRIMARY_TOGGLE_LABELS = {
    PrimaryToggleEnum.COMPLEX.value: "Complex Reasoning",
    PrimaryToggleEnum.MATH.value: "Mathematical Problem-Solving",
    PrimaryToggleEnum.REASONING.value: "Reasoning",
    PrimaryToggleEnum.CODING.value: "Coding",
    PrimaryToggleEnum.COPILOT.value: "Creating a copilot",
    PrimaryToggleEnum.IMAGE.value: "Image Generation",
}

SECONDARY_TOGGLE_LABELS = {
    SecondaryToggleEnum.TOKEN.value: "Token Saver prompt",
    SecondaryToggleEnum.STRICT.value: "Strict Response",
    SecondaryToggleEnum.CREATIVE.value: "Creative",
}
