"""
Error taxonomy for the questionnaire.

Load errors stop a session before it starts, branch-integrity and
classification errors end a running session. Callers at the engine and
web boundary convert every one of these into a fixed user-facing message.
"""

from typing import Optional


class FinProfileError(Exception):
    """Base class for all questionnaire errors."""


class QuestionLoadError(FinProfileError):
    """Question source unavailable or unparsable."""


class QuestionBankError(QuestionLoadError):
    """Question records loaded but structurally invalid (duplicate ids, empty list)."""


class InvalidBranchError(FinProfileError):
    """A multiple-choice option points at a question id that does not exist."""

    def __init__(self, question_id: str, target_id: str):
        self.question_id = question_id
        self.target_id = target_id
        super().__init__(
            f"Question '{question_id}' branches to unknown question '{target_id}'"
        )


class ClassificationError(FinProfileError):
    """Classification service failed or returned a non-conforming result."""

    def __init__(self, message: str, raw_content: Optional[str] = None):
        super().__init__(message)
        self.raw_content = raw_content


class EngineStateError(FinProfileError):
    """Operation called in a phase that does not allow it."""
