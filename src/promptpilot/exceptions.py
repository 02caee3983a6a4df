"""Domain exceptions raised by repositories and services.

Routes translate these into HTTP responses; services never raise
``HTTPException`` themselves.
"""


class PromptPilotError(Exception):
    """Base class for all PromptPilot errors."""


class NotFoundError(PromptPilotError):
    """Requested row does not exist (or is soft-deleted)."""


class PermissionDeniedError(PromptPilotError):
    """Caller does not own the row it tries to change."""


class ConflictError(PromptPilotError):
    """Write would violate a uniqueness rule."""


class UsernameTakenError(ConflictError):
    """Another profile already uses the requested username."""

    def __init__(self, username: str):
        self.username = username
        super().__init__("Username is already taken")


class LLMError(PromptPilotError):
    """Chat-completion call failed."""


class LLMNotConfiguredError(LLMError):
    """No OpenAI API key is configured."""


class LLMTimeoutError(LLMError):
    """Chat-completion call did not finish within the configured timeout."""


class LLMResponseError(LLMError):
    """Model replied with something that could not be used."""
