"""
Prompt templates for the financial profile classifier.
"""

from .profile_prompts import (
    ASSISTANT_INSTRUCTIONS,
    create_system_prompt,
    create_profile_request,
    format_transcript
)

__all__ = [
    "ASSISTANT_INSTRUCTIONS",
    "create_system_prompt",
    "create_profile_request",
    "format_transcript"
]
