"""
Financial profile classification.
"""

from .result import (
    FinancialProfile,
    Recommendation,
    ClassificationResult,
    parse_classification
)
from .profiles import ProfileLibrary, PROFILE_SUMMARIES
from .base import ClassificationStage, ProfileClassifier
from .assistant import AssistantProfileClassifier
from .classifier import ChatProfileClassifier, build_classifier

__all__ = [
    "FinancialProfile",
    "Recommendation",
    "ClassificationResult",
    "parse_classification",
    "ProfileLibrary",
    "PROFILE_SUMMARIES",
    "ClassificationStage",
    "ProfileClassifier",
    "AssistantProfileClassifier",
    "ChatProfileClassifier",
    "build_classifier"
]
