"""
Input validation. Questions are checked before they enter the agent graph.

A rejected question causes no graph execution and no checkpoint write.
"""

from docchat.core.errors import ValidationError
from docchat.core.logging import get_logger

log = get_logger(__name__)

# Hard length cap against token flooding
_MAX_QUESTION_LENGTH = 8_000  # characters


def validate_question(text: str | None, max_length: int = _MAX_QUESTION_LENGTH) -> str:
    """
    Validate a user question.
    Raises ValidationError if it is missing, blank or too long.
    Returns the text stripped of surrounding whitespace.
    """
    if text is None or not text.strip():
        raise ValidationError("Question is required.")

    question = text.strip()
    if len(question) > max_length:
        log.warning("question_too_long", length=len(question), max_length=max_length)
        raise ValidationError(f"Question too long ({len(question)} chars). Maximum is {max_length}.")

    return question
